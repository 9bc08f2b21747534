"""Validation, checked arithmetic and USDT unit conversions."""

from __future__ import annotations

import math

from .errors import InvalidAmount, InvalidPubkey, Overflow, Underflow

_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
_INDEX = {ch: i for i, ch in enumerate(_ALPHABET)}

I64_MIN = -(2**63)
I64_MAX = 2**63 - 1

_USDT_SCALE = 1_000_000.0


def b58decode(text: str) -> bytes:
    """Decode a base58 string (Bitcoin alphabet); raise ValueError on bad input."""
    number = 0
    for position, ch in enumerate(text):
        digit = _INDEX.get(ch)
        if digit is None:
            raise ValueError(
                f"provided string contained invalid character {ch!r} at byte {position}"
            )
        number = number * 58 + digit
    leading_zeros = len(text) - len(text.lstrip("1"))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    return b"\x00" * leading_zeros + body


def validate_pubkey(pubkey: str) -> None:
    """Check that a public key has a plausible length and is valid base58."""
    length = len(pubkey.encode("utf-8"))
    if length < 32 or length > 44:
        raise InvalidPubkey("Pubkey length must be between 32-44 characters")
    try:
        b58decode(pubkey)
    except ValueError as exc:
        raise InvalidPubkey(f"Invalid base58: {exc}") from exc


def validate_signature(signature: str) -> None:
    """Check that a transaction signature has a plausible length and is base58."""
    length = len(signature.encode("utf-8"))
    if length < 86 or length > 88:
        raise InvalidPubkey("Signature length must be 86-88 characters")
    try:
        b58decode(signature)
    except ValueError as exc:
        raise InvalidPubkey(f"Invalid signature: {exc}") from exc


def validate_amount(amount: int) -> int:
    """Return the amount if it is strictly positive."""
    if amount <= 0:
        raise InvalidAmount("Amount must be greater than zero")
    return amount


def _fits(value: int) -> bool:
    return I64_MIN <= value <= I64_MAX


def checked_add(a: int, b: int) -> int:
    result = a + b
    if not _fits(result):
        raise Overflow()
    return result


def checked_sub(a: int, b: int) -> int:
    result = a - b
    if not _fits(result):
        raise Underflow()
    return result


def checked_mul(a: int, b: int) -> int:
    result = a * b
    if not _fits(result):
        raise Overflow()
    return result


def base_units_to_usdt(amount: int) -> float:
    """Convert base units (6 decimals) to a USDT amount."""
    return amount / _USDT_SCALE


def usdt_to_base_units(amount: float) -> int:
    """Convert a USDT amount to base units, truncating and saturating to i64."""
    scaled = amount * _USDT_SCALE
    if math.isnan(scaled):
        return 0
    if scaled >= I64_MAX:
        return I64_MAX
    if scaled <= I64_MIN:
        return I64_MIN
    return int(scaled)


def format_usdt(amount: int) -> str:
    return f"{base_units_to_usdt(amount):.6f} USDT"