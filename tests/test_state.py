import dataclasses

import pytest

from collateral_vault.state import (
    CollateralVault,
    DepositEvent,
    TokenAccount,
    TransactionRecord,
    TransactionType,
    VaultAuthority,
)

PROGRAM_A = "4rL4RCWHz3iA5JwKGmPWAf5BqaLJxqEhEDGLqZqVY5Mj"
PROGRAM_B = "7sB8YPWHz3iA5JwKGmPWAf5BqaLJxqEhEDGLqZqVY2Kn"


def test_is_program_authorized():
    authority = VaultAuthority(authorized_programs=[PROGRAM_A])
    assert authority.is_program_authorized(PROGRAM_A) is True
    assert authority.is_program_authorized(PROGRAM_B) is False


def test_empty_authority_authorizes_nothing():
    assert VaultAuthority().is_program_authorized(PROGRAM_A) is False


def test_new_vault_starts_empty():
    vault = CollateralVault(address="vault", owner=PROGRAM_A, token_account="ata")
    assert (vault.total_balance, vault.locked_balance, vault.available_balance) == (
        0,
        0,
        0,
    )
    assert vault.total_deposited == vault.total_withdrawn == 0


@pytest.mark.parametrize(
    "value, expected",
    [
        (0, "DEPOSIT"),
        (1, "WITHDRAWAL"),
        (2, "LOCK"),
        (3, "UNLOCK"),
        (4, "TRANSFER"),
    ],
)
def test_transaction_type_values(value, expected):
    assert TransactionType(value).name == expected


def test_transaction_record_keeps_fields():
    record = TransactionRecord(
        vault="vault", transaction_type=TransactionType.LOCK, amount=5, timestamp=7
    )
    assert record.transaction_type is TransactionType.LOCK
    assert record.amount == 5


def test_events_are_immutable():
    event = DepositEvent(
        user="u",
        vault="v",
        amount=1,
        new_total_balance=1,
        new_available_balance=1,
        timestamp=0,
    )
    with pytest.raises(dataclasses.FrozenInstanceError):
        event.amount = 2  # type: ignore[misc]
    assert event.amount == 1
    changed = dataclasses.replace(event, amount=2)
    assert changed.amount == 2
    assert event.amount == 1


def test_token_account_balance_is_mutable():
    account = TokenAccount(address="a", owner="o", amount=10)
    account.amount += 5
    assert account.amount == 15