from datetime import datetime, timezone

import pytest

from collateral_vault.models import (
    AlertSeverity,
    ApiResponse,
    AuditEventType,
    PaginatedResponse,
    PaginationParams,
    SnapshotType,
    TransactionRecord,
    TransactionType,
    Vault,
)

ALICE_PUBKEY = "4rL4RCWHz3iA5JwKGmPWAf5BqaLJxqEhEDGLqZqVY5Mj"
ALICE_TOKEN_ACCOUNT = "BYLfz8RQMYE7A5FwL2fVn7RZnYNqh82cBzJpXu9hS3Rq"
ALICE_VAULT_PUBKEY = "3KmPPXJe3f3cK8qLp9rHqVa5sCHRTLz2MWL4Xa6dN9Zj"


def make_vault(total=5_000_000, locked=2_000_000, available=3_000_000):
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return Vault(
        vault_pubkey=ALICE_VAULT_PUBKEY,
        owner_pubkey=ALICE_PUBKEY,
        token_account=ALICE_TOKEN_ACCOUNT,
        total_balance=total,
        locked_balance=locked,
        available_balance=available,
        total_deposited=10_000_000,
        total_withdrawn=5_000_000,
        created_at=now,
        updated_at=now,
    )


def test_invariant_holds_for_workflow_state():
    vault = make_vault()
    assert vault.verify_invariant() is True
    assert vault.available() == 3_000_000


def test_invariant_detects_violation():
    assert make_vault(total=5_000_000, locked=2_000_000, available=2_000_000).verify_invariant() is False


def test_has_available_and_locked():
    vault = make_vault()
    assert vault.has_available(3_000_000)
    assert not vault.has_available(3_000_001)
    assert vault.has_locked(2_000_000)
    assert not vault.has_locked(2_000_001)


def test_utilization_bounds():
    assert make_vault(total=0, locked=0, available=0).utilization() == 0.0
    assert make_vault(total=5_000_000, locked=5_000_000, available=0).utilization() == 100.0
    assert 0.0 < make_vault().utilization() < 100.0


def test_vault_dict_round_trip():
    vault = make_vault()
    data = vault.to_dict()
    assert data["created_at"].endswith("Z")
    assert Vault.from_dict(data) == vault


def test_enum_values():
    assert TransactionType("withdraw") is TransactionType.WITHDRAW
    assert AuditEventType.VAULT_CREATED.value == "vault_created"
    assert SnapshotType("reconciliation") is SnapshotType.RECONCILIATION


def test_alert_severity_labels_and_order():
    assert AlertSeverity.INFO.as_str() == "INFO"
    assert AlertSeverity.WARNING.as_str() == "warning"
    assert AlertSeverity.CRITICAL.as_str() == "critical"
    assert AlertSeverity.INFO < AlertSeverity.WARNING < AlertSeverity.CRITICAL
    assert max(AlertSeverity) is AlertSeverity.CRITICAL


def test_transaction_record_defaults():
    record = TransactionRecord(
        vault_pubkey=ALICE_VAULT_PUBKEY,
        tx_signature="sig",
        tx_type=TransactionType.DEPOSIT.value,
        amount=1_000_000,
        status="pending",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    assert record.id == 0
    assert record.from_vault is None and record.meta is None


def test_api_response_success_and_error():
    ok = ApiResponse.succeeded(make_vault())
    assert ok.to_dict()["data"]["vault_pubkey"] == ALICE_VAULT_PUBKEY
    assert "error" not in ok.to_dict()
    bad = ApiResponse.failed("Vault not found: x")
    assert bad.to_dict() == {"success": False, "error": "Vault not found: x"}


def test_pagination_defaults():
    params = PaginationParams.from_dict({})
    assert (params.limit, params.offset) == (100, 0)
    assert PaginationParams.from_dict({"limit": 10}).limit == 10


@pytest.mark.parametrize(
    "items, total, offset, expected",
    [([1, 2], 5, 0, True), ([1, 2], 2, 0, False), ([1, 2], 4, 2, False), ([], 3, 0, True)],
)
def test_paginated_has_more(items, total, offset, expected):
    page = PaginatedResponse(items=items, total=total, limit=10, offset=offset)
    assert page.has_more is expected