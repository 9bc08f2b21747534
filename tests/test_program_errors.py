import pytest

from collateral_vault.program_errors import ProgramError, ProgramErrorCode


@pytest.mark.parametrize(
    "error_code, message",
    [
        (ProgramErrorCode.INVALID_AMOUNT, "Invalid Amount: Must be Greater than Zero"),
        (
            ProgramErrorCode.INSUFFICIENT_BALANCE,
            "Insufficient Balance For this Operation",
        ),
        (ProgramErrorCode.INSUFFICIENT_LOCKED_BALANCE, "Insufficient Locked Balance"),
        (
            ProgramErrorCode.UN_AUTHORIZED,
            "Unauthorized: you don't have permission for this operation",
        ),
        (ProgramErrorCode.INVALID_TOKEN_ACCOUNT, "Invalid Token Account"),
        (ProgramErrorCode.OVER_FLOW, "Arithmetic Overflow"),
        (ProgramErrorCode.UNDER_FLOW, "Arithmetic Underflow"),
        (
            ProgramErrorCode.PROGRAM_NOT_AUTHORIZED,
            "Program Not Authorized to perform this Operation",
        ),
        (ProgramErrorCode.BUMP_NOT_FOUND, "Bump Not Found"),
        (
            ProgramErrorCode.HAS_OPEN_POSITIONS,
            "Vault has Open Positions - cannot withdraw locked collateral",
        ),
    ],
)
def test_messages(error_code, message):
    assert error_code.message() == message


@pytest.mark.parametrize("error_code", list(ProgramErrorCode))
def test_program_error_text_matches_member_message(error_code):
    err = ProgramError(error_code)
    assert err.error_code is error_code
    assert str(err) == error_code.message()
    assert str(err) != ""


def test_program_error_carries_code_and_message():
    err = ProgramError(ProgramErrorCode.BUMP_NOT_FOUND)
    assert err.error_code is ProgramErrorCode.BUMP_NOT_FOUND
    assert str(err) == "Bump Not Found"