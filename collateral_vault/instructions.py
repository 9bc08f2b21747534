"""Vault program instructions: deposit, withdraw, lock, unlock and transfer."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator, Optional

from .program_errors import ProgramError, ProgramErrorCode
from .state import (
    CollateralVault,
    DepositEvent,
    LockEvent,
    TokenAccount,
    TransferEvent,
    UnLockEvent,
    VaultAuthority,
    WithdrawEvent,
)

U64_MAX = 2**64 - 1


def _require(condition: bool, code: ProgramErrorCode) -> None:
    if not condition:
        raise ProgramError(code)


def _add(a: int, b: int) -> int:
    result = a + b
    _require(result <= U64_MAX, ProgramErrorCode.OVER_FLOW)
    return result


def _sub(a: int, b: int, code: ProgramErrorCode = ProgramErrorCode.UNDER_FLOW) -> int:
    result = a - b
    _require(result >= 0, code)
    return result


def _now(timestamp: Optional[int]) -> int:
    return int(time.time()) if timestamp is None else timestamp


@contextmanager
def _atomic(*accounts: object) -> Iterator[None]:
    """Restore every account to its prior state if the block fails."""
    saved = [(account, dict(vars(account))) for account in accounts]
    try:
        yield
    except BaseException:
        for account, state in reversed(saved):
            vars(account).update(state)
        raise


def _transfer_tokens(
    source: TokenAccount, destination: TokenAccount, authority: str, amount: int
) -> None:
    _require(source.owner == authority, ProgramErrorCode.UN_AUTHORIZED)
    _require(source.amount >= amount, ProgramErrorCode.INSUFFICIENT_BALANCE)
    source.amount -= amount
    destination.amount = _add(destination.amount, amount)


def add_authorized_program(
    authority: VaultAuthority, admin_is_signer: bool, program_id: str
) -> None:
    """Authorize a program to act on the vault; adding it twice has no effect."""
    _require(admin_is_signer, ProgramErrorCode.UN_AUTHORIZED)
    if program_id not in authority.authorized_programs:
        authority.authorized_programs.append(program_id)


def deposit(
    vault: CollateralVault,
    user: str,
    owner: str,
    user_token_account: TokenAccount,
    vault_ata: TokenAccount,
    amount: int,
    timestamp: Optional[int] = None,
) -> DepositEvent:
    """Move tokens from the user into the vault and credit its balances."""
    _require(vault.owner == owner, ProgramErrorCode.UN_AUTHORIZED)
    _require(user_token_account.owner == user, ProgramErrorCode.INVALID_TOKEN_ACCOUNT)
    _require(
        vault_ata.address == vault.token_account,
        ProgramErrorCode.INVALID_TOKEN_ACCOUNT,
    )
    _require(amount > 0, ProgramErrorCode.INVALID_AMOUNT)

    with _atomic(vault, user_token_account, vault_ata):
        _transfer_tokens(user_token_account, vault_ata, user, amount)
        vault.total_balance = _add(vault.total_balance, amount)
        vault.available_balance = _add(vault.available_balance, amount)
        vault.total_deposited = _add(vault.total_deposited, amount)

    return DepositEvent(
        user=user,
        vault=vault.address,
        amount=amount,
        new_total_balance=vault.total_balance,
        new_available_balance=vault.available_balance,
        timestamp=_now(timestamp),
    )


def withdraw(
    vault: CollateralVault,
    user: str,
    vault_ata: TokenAccount,
    user_token_account: TokenAccount,
    amount: int,
    timestamp: Optional[int] = None,
) -> WithdrawEvent:
    """Return available (unlocked) tokens from the vault to its owner."""
    _require(vault_ata.address == vault.token_account, ProgramErrorCode.INVALID_AMOUNT)
    _require(user_token_account.owner == user, ProgramErrorCode.INVALID_TOKEN_ACCOUNT)
    _require(amount > 0, ProgramErrorCode.INVALID_AMOUNT)
    _require(vault.owner == user, ProgramErrorCode.UN_AUTHORIZED)
    _require(
        vault.available_balance >= amount, ProgramErrorCode.INSUFFICIENT_BALANCE
    )

    with _atomic(vault, user_token_account, vault_ata):
        _transfer_tokens(vault_ata, user_token_account, vault.address, amount)
        vault.total_balance = _sub(
            vault.total_balance, amount, ProgramErrorCode.OVER_FLOW
        )
        vault.available_balance = _sub(
            vault.available_balance, amount, ProgramErrorCode.OVER_FLOW
        )
        vault.total_withdrawn = _add(vault.total_withdrawn, amount)

    return WithdrawEvent(
        user=user,
        vault=vault.address,
        amount=amount,
        new_total_balance=vault.total_balance,
        new_available_balance=vault.available_balance,
        timestamp=_now(timestamp),
    )


def lock_collateral(
    vault: CollateralVault,
    authority: VaultAuthority,
    authority_program: str,
    amount: int,
    timestamp: Optional[int] = None,
) -> LockEvent:
    """Move available balance into the locked balance."""
    _require(amount > 0, ProgramErrorCode.INVALID_AMOUNT)
    _require(
        authority.is_program_authorized(authority_program),
        ProgramErrorCode.PROGRAM_NOT_AUTHORIZED,
    )
    _require(
        vault.available_balance >= amount, ProgramErrorCode.INSUFFICIENT_BALANCE
    )

    with _atomic(vault):
        vault.locked_balance = _add(vault.locked_balance, amount)
        vault.available_balance = _sub(vault.available_balance, amount)

    return LockEvent(
        vault=vault.address,
        amount=amount,
        total_locked_balance=vault.locked_balance,
        total_available_balance=vault.available_balance,
        timestamp=_now(timestamp),
    )


def unlock_collateral(
    vault: CollateralVault,
    authority: VaultAuthority,
    authority_program: str,
    amount: int,
    timestamp: Optional[int] = None,
) -> UnLockEvent:
    """Move locked balance back into the available balance."""
    _require(amount > 0, ProgramErrorCode.INVALID_AMOUNT)
    _require(
        authority.is_program_authorized(authority_program),
        ProgramErrorCode.PROGRAM_NOT_AUTHORIZED,
    )
    _require(vault.locked_balance >= amount, ProgramErrorCode.INSUFFICIENT_BALANCE)

    with _atomic(vault):
        vault.locked_balance = _sub(vault.locked_balance, amount)
        vault.available_balance = _add(vault.available_balance, amount)

    return UnLockEvent(
        vault=vault.address,
        amount=amount,
        new_locked_balance=vault.locked_balance,
        new_available_balance=vault.available_balance,
        timestamp=_now(timestamp),
    )


def transfer_collateral(
    from_vault: CollateralVault,
    to_vault: CollateralVault,
    from_vault_ata: TokenAccount,
    to_vault_ata: TokenAccount,
    authority: VaultAuthority,
    authority_program: str,
    amount: int,
    timestamp: Optional[int] = None,
) -> TransferEvent:
    """Move available collateral from one vault to another."""
    _require(
        from_vault_ata.address == from_vault.token_account,
        ProgramErrorCode.INVALID_TOKEN_ACCOUNT,
    )
    _require(
        to_vault_ata.address == to_vault.token_account,
        ProgramErrorCode.INVALID_TOKEN_ACCOUNT,
    )
    _require(amount > 0, ProgramErrorCode.INVALID_AMOUNT)
    _require(
        authority.is_program_authorized(authority_program),
        ProgramErrorCode.PROGRAM_NOT_AUTHORIZED,
    )
    _require(
        from_vault.available_balance >= amount,
        ProgramErrorCode.INSUFFICIENT_BALANCE,
    )

    with _atomic(from_vault, to_vault, from_vault_ata, to_vault_ata):
        from_vault.total_balance = _sub(from_vault.total_balance, amount)
        from_vault.available_balance = _sub(from_vault.available_balance, amount)
        to_vault.total_balance = _add(to_vault.total_balance, amount)
        to_vault.available_balance = _add(to_vault.available_balance, amount)
        _transfer_tokens(from_vault_ata, to_vault_ata, from_vault.address, amount)

    return TransferEvent(
        from_vault=from_vault.address,
        to_vault=to_vault.address,
        amount=amount,
        timestamp=_now(timestamp),
    )