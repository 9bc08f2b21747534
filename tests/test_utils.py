import pytest

from collateral_vault.errors import InvalidAmount, InvalidPubkey, Overflow, Underflow
from collateral_vault.utils import (
    I64_MAX,
    I64_MIN,
    b58decode,
    base_units_to_usdt,
    checked_add,
    checked_mul,
    checked_sub,
    format_usdt,
    usdt_to_base_units,
    validate_amount,
    validate_pubkey,
    validate_signature,
)

ALICE_PUBKEY = "4rL4RCWHz3iA5JwKGmPWAf5BqaLJxqEhEDGLqZqVY5Mj"
SYSTEM_PROGRAM = "11111111111111111111111111111111"


def test_b58decode_leading_ones_are_zero_bytes():
    assert b58decode(SYSTEM_PROGRAM) == bytes(32)


def test_b58decode_empty():
    assert b58decode("") == b""


def test_b58decode_rejects_invalid_character():
    with pytest.raises(ValueError):
        b58decode("abc0")


def test_alice_pubkey_decodes_to_32_bytes():
    assert len(b58decode(ALICE_PUBKEY)) == 32
    validate_pubkey(ALICE_PUBKEY)
    assert b58decode(ALICE_PUBKEY)[0] != 0


def test_system_program_is_valid_pubkey():
    validate_pubkey(SYSTEM_PROGRAM)
    assert len(SYSTEM_PROGRAM) == 32


@pytest.mark.parametrize("bad", ["not-valid", "", "1" * 31, "1" * 45])
def test_pubkey_bad_length(bad):
    with pytest.raises(InvalidPubkey, match="length"):
        validate_pubkey(bad)


def test_pubkey_bad_base58():
    with pytest.raises(InvalidPubkey, match="Invalid base58"):
        validate_pubkey("FakeVault11111111111111111111111111111111111")


def test_signature_validation():
    validate_signature("5" * 88)
    with pytest.raises(InvalidPubkey, match="86-88"):
        validate_signature("")
    with pytest.raises(InvalidPubkey, match="Invalid signature"):
        validate_signature("0" * 87)


@pytest.mark.parametrize("amount", [1, 1_000_000, I64_MAX])
def test_validate_amount_accepts_positive(amount):
    assert validate_amount(amount) == amount


@pytest.mark.parametrize("amount", [0, -100])
def test_validate_amount_rejects(amount):
    with pytest.raises(InvalidAmount):
        validate_amount(amount)


def test_checked_ops_invert():
    assert checked_sub(checked_add(1_000_000, 500_000), 500_000) == 1_000_000
    assert checked_add(I64_MAX, 0) == I64_MAX


def test_checked_overflow_and_underflow():
    with pytest.raises(Overflow):
        checked_add(I64_MAX, 1)
    with pytest.raises(Underflow):
        checked_sub(I64_MIN, 1)
    with pytest.raises(Overflow):
        checked_mul(I64_MAX, 2)
    assert checked_mul(I64_MAX, 1) == I64_MAX


@pytest.mark.parametrize("amount", [0, 1, 1_000_000, 5_000_000, 999_999])
def test_usdt_round_trip(amount):
    assert usdt_to_base_units(base_units_to_usdt(amount)) == amount


def test_usdt_conversion_saturates():
    assert usdt_to_base_units(float("inf")) == I64_MAX
    assert usdt_to_base_units(float("-inf")) == I64_MIN
    assert usdt_to_base_units(float("nan")) == 0


def test_format_usdt():
    assert format_usdt(1_000_000) == "1.000000 USDT"
    assert format_usdt(0) == "0.000000 USDT"