"""Data models shared across the collateral vault system."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


def _format_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _to_plain(value: Any) -> Any:
    if isinstance(value, datetime):
        return _format_datetime(value)
    if isinstance(value, enum.Enum):
        return value.value
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_plain(v) for k, v in value.items()}
    return value


@dataclass
class Vault:
    """A user's collateral vault with its balances."""

    vault_pubkey: str
    owner_pubkey: str
    token_account: str
    total_balance: int
    locked_balance: int
    available_balance: int
    total_deposited: int
    total_withdrawn: int
    created_at: datetime
    updated_at: datetime

    def available(self) -> int:
        return self.available_balance

    def has_available(self, amount: int) -> bool:
        return self.available_balance >= amount

    def has_locked(self, amount: int) -> bool:
        return self.locked_balance >= amount

    def verify_invariant(self) -> bool:
        """True when total equals available plus locked."""
        return self.total_balance == self.available_balance + self.locked_balance

    def utilization(self) -> float:
        """Percentage of the total balance that is locked (0.0 to 100.0)."""
        if self.total_balance == 0:
            return 0.0
        return (self.locked_balance / self.total_balance) * 100.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "vault_pubkey": self.vault_pubkey,
            "owner_pubkey": self.owner_pubkey,
            "token_account": self.token_account,
            "total_balance": self.total_balance,
            "locked_balance": self.locked_balance,
            "available_balance": self.available_balance,
            "total_deposited": self.total_deposited,
            "total_withdrawn": self.total_withdrawn,
            "created_at": _format_datetime(self.created_at),
            "updated_at": _format_datetime(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Vault":
        return cls(
            vault_pubkey=data["vault_pubkey"],
            owner_pubkey=data["owner_pubkey"],
            token_account=data["token_account"],
            total_balance=int(data["total_balance"]),
            locked_balance=int(data["locked_balance"]),
            available_balance=int(data["available_balance"]),
            total_deposited=int(data["total_deposited"]),
            total_withdrawn=int(data["total_withdrawn"]),
            created_at=_parse_datetime(data["created_at"]),
            updated_at=_parse_datetime(data["updated_at"]),
        )


class TransactionType(str, enum.Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    LOCK = "lock"
    UNLOCK = "unlock"
    TRANSFER = "transfer"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(kw_only=True)
class TransactionRecord:
    """A record of one vault operation."""

    id: int = 0
    vault_pubkey: str
    tx_signature: str
    tx_type: str
    amount: int
    from_vault: Optional[str] = None
    to_vault: Optional[str] = None
    status: str
    block_time: Optional[int] = None
    slot: Optional[int] = None
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    meta: Optional[Any] = None


@dataclass(kw_only=True)
class BalanceSnapshot:
    id: int = 0
    vault_pubkey: str
    total_balance: int
    locked_balance: int
    available_balance: int
    on_chain_token_balance: int
    snapshot_type: str
    snapshot_ts: datetime
    discrepancy: int


class SnapshotType(str, enum.Enum):
    HOURLY = "hourly"
    DAILY = "daily"
    RECONCILIATION = "reconciliation"


@dataclass(kw_only=True)
class ReconciliationLog:
    id: int
    vault_pubkey: str
    expected_balance: int
    actual_balance: int
    discrepancy: int
    resolution_status: str
    resolution_notes: Optional[str] = None
    detected_at: datetime
    resolved_at: Optional[datetime] = None


class ReconciliationStatus(str, enum.Enum):
    DETECTED = "detected"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"


@dataclass(kw_only=True)
class AuditTrailEntry:
    id: int
    event_type: str
    vault_pubkey: Optional[str] = None
    user_pubkey: Optional[str] = None
    amount: Optional[int] = None
    tx_signature: Optional[str] = None
    event_data: Any
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime


class AuditEventType(str, enum.Enum):
    VAULT_CREATED = "vault_created"
    BALANCE_CHANGE = "balance_change"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    LOCK = "lock"
    UNLOCK = "unlock"
    TRANSFER = "transfer"
    RECONCILIATION = "reconciliation"
    ALERT = "alert"
    ERROR = "error"


@dataclass(kw_only=True)
class Alert:
    id: int
    alert_type: str
    severity: str
    vault_pubkey: Optional[str] = None
    message: str
    details: Optional[Any] = None
    status: str
    created_at: datetime
    acknowledged_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None


_SEVERITY_RANK = {"info": 0, "warning": 1, "critical": 2}


class AlertSeverity(enum.Enum):
    """Alert severity, ordered from INFO up to CRITICAL."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"

    def as_str(self) -> str:
        """Label stored for the severity; INFO is upper case."""
        return "INFO" if self is AlertSeverity.INFO else self.value

    @property
    def _rank(self) -> int:
        return _SEVERITY_RANK[self.value]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, AlertSeverity):
            return NotImplemented
        return self._rank < other._rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, AlertSeverity):
            return NotImplemented
        return self._rank <= other._rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, AlertSeverity):
            return NotImplemented
        return self._rank > other._rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, AlertSeverity):
            return NotImplemented
        return self._rank >= other._rank


class AlertStatus(str, enum.Enum):
    ACTIVE = "active"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"


@dataclass
class TvlStats:
    total_vaults: int
    total_value_locked: int
    total_available: int
    total_locked: int
    avg_vault_balance: float
    max_vault_balance: int
    timestamp: datetime


@dataclass
class CreateVaultRequest:
    vault_pubkey: str
    owner_pubkey: str
    token_account: str


@dataclass
class ProcessDepositRequest:
    vault_pubkey: str
    amount: int
    tx_signature: str


@dataclass
class ProcessWithdrawalRequest:
    vault_pubkey: str
    amount: int
    tx_signature: str


@dataclass
class LockCollateralRequest:
    vault_pubkey: str
    amount: int
    tx_signature: str


@dataclass
class UnlockCollateralRequest:
    vault_pubkey: str
    amount: int
    tx_signature: str


@dataclass
class ApiResponse(Generic[T]):
    """Envelope for API replies: either data or an error message."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def succeeded(cls, data: T) -> "ApiResponse[T]":
        return cls(success=True, data=data, error=None)

    @classmethod
    def failed(cls, error: str) -> "ApiResponse[T]":
        return cls(success=False, data=None, error=error)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            result["data"] = _to_plain(self.data)
        if self.error is not None:
            result["error"] = self.error
        return result


@dataclass
class PaginationParams:
    limit: int = 100
    offset: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PaginationParams":
        return cls(limit=int(data.get("limit", 100)), offset=int(data.get("offset", 0)))


@dataclass
class PaginatedResponse(Generic[T]):
    items: list[T]
    total: int
    limit: int
    offset: int
    has_more: bool = field(init=False)

    def __post_init__(self) -> None:
        self.has_more = self.offset + len(self.items) < self.total