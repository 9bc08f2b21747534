"""Error types raised by vault operations."""

from __future__ import annotations


class VaultError(Exception):
    """Base class for every error raised by the vault system."""


class _DetailError(VaultError):
    """An error that carries one free-form detail string."""

    prefix = "Error"

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"{self.prefix}: {detail}")


class DatabaseError(_DetailError):
    prefix = "Database error"


class InvalidPubkey(_DetailError):
    prefix = "Invalid pubkey"


class VaultNotFound(_DetailError):
    prefix = "Vault not found"


class InsufficientBalance(VaultError):
    def __init__(self, available: int, required: int) -> None:
        self.available = available
        self.required = required
        super().__init__(
            f"Insufficient Balance : available={available}, required={required}"
        )


class InsufficientLockedBalance(VaultError):
    def __init__(self, locked: int, required: int) -> None:
        self.locked = locked
        self.required = required
        super().__init__(
            f"Insufficient locked balance: locked={locked}, required={required}"
        )


class InvalidAmount(_DetailError):
    prefix = "Invalid amount"


class Overflow(VaultError):
    def __init__(self) -> None:
        super().__init__("Arithmetic overflow")


class Underflow(VaultError):
    def __init__(self) -> None:
        super().__init__("Arithmetic underflow")


class BalanceInvariantViolation(VaultError):
    def __init__(self, total: int, available: int, locked: int) -> None:
        self.total = total
        self.available = available
        self.locked = locked
        super().__init__(
            "Balance invariant violation: "
            f"total={total}, available={available}, locked={locked}"
        )


class Unauthorized(VaultError):
    def __init__(self) -> None:
        super().__init__("Unauthorized operation")


class TransactionNotFound(_DetailError):
    prefix = "Transaction not found"


class SolanaRpcError(_DetailError):
    prefix = "Solana RPC error"


class SerializationError(_DetailError):
    prefix = "Serialization error"


class DeserializationError(_DetailError):
    prefix = "Deserialization error"


class ConfigError(_DetailError):
    prefix = "Configuration error"


class InternalError(_DetailError):
    prefix = "Internal error"