"""On-chain account state, records and events of the vault program."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class CollateralVault:
    """A vault account holding a user's collateral balances."""

    address: str
    owner: str
    token_account: str
    total_balance: int = 0
    locked_balance: int = 0
    available_balance: int = 0
    total_deposited: int = 0
    total_withdrawn: int = 0
    created_at: int = 0
    bump: int = 0

    LEN: ClassVar[int] = 32 + 32 + 8 + 8 + 8 + 8 + 8 + 8 + 1


@dataclass
class VaultAuthority:
    """The set of programs allowed to lock, unlock and transfer collateral."""

    authorized_programs: list[str] = field(default_factory=list)
    bump: int = 0

    # 4 bytes of vector length, room for eight keys, one bump byte.
    LEN: ClassVar[int] = 4 + (32 * 8) + 1

    def is_program_authorized(self, program: str) -> bool:
        return program in self.authorized_programs


@dataclass
class TokenAccount:
    """A token account: its address, the key that controls it and its balance."""

    address: str
    owner: str
    amount: int = 0


class TransactionType(enum.IntEnum):
    DEPOSIT = 0
    WITHDRAWAL = 1
    LOCK = 2
    UNLOCK = 3
    TRANSFER = 4


@dataclass(frozen=True)
class TransactionRecord:
    vault: str
    transaction_type: TransactionType
    amount: int
    timestamp: int


@dataclass(frozen=True)
class VaultInitializeEvent:
    user: str
    vault: str
    token_account: str
    timestamp: int


@dataclass(frozen=True)
class DepositEvent:
    user: str
    vault: str
    amount: int
    new_total_balance: int
    new_available_balance: int
    timestamp: int


@dataclass(frozen=True)
class WithdrawEvent:
    user: str
    vault: str
    amount: int
    new_total_balance: int
    new_available_balance: int
    timestamp: int


@dataclass(frozen=True)
class LockEvent:
    vault: str
    amount: int
    total_locked_balance: int
    total_available_balance: int
    timestamp: int


@dataclass(frozen=True)
class UnLockEvent:
    vault: str
    amount: int
    new_locked_balance: int
    new_available_balance: int
    timestamp: int


@dataclass(frozen=True)
class TransferEvent:
    from_vault: str
    to_vault: str
    amount: int
    timestamp: int