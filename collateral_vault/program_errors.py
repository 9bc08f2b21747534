"""Error codes raised by the on-chain vault instructions."""

from __future__ import annotations

import enum


class ProgramErrorCode(enum.Enum):
    """Custom program error codes, numbered from 6000 in declaration order."""

    INVALID_AMOUNT = 6000
    INSUFFICIENT_BALANCE = 6001
    INSUFFICIENT_LOCKED_BALANCE = 6002
    UN_AUTHORIZED = 6003
    INVALID_TOKEN_ACCOUNT = 6004
    OVER_FLOW = 6005
    UNDER_FLOW = 6006
    PROGRAM_NOT_AUTHORIZED = 6007
    BUMP_NOT_FOUND = 6008
    HAS_OPEN_POSITIONS = 6009

    def message(self) -> str:
        """Human-readable description of the error."""
        return _MESSAGES[self]

    def code(self) -> int:
        """Numeric error code."""
        return self.value


_MESSAGES = {
    ProgramErrorCode.INVALID_AMOUNT: "Invalid Amount: Must be Greater than Zero",
    ProgramErrorCode.INSUFFICIENT_BALANCE: "Insufficient Balance For this Operation",
    ProgramErrorCode.INSUFFICIENT_LOCKED_BALANCE: "Insufficient Locked Balance",
    ProgramErrorCode.UN_AUTHORIZED: (
        "Unauthorized: you don't have permission for this operation"
    ),
    ProgramErrorCode.INVALID_TOKEN_ACCOUNT: "Invalid Token Account",
    ProgramErrorCode.OVER_FLOW: "Arithmetic Overflow",
    ProgramErrorCode.UNDER_FLOW: "Arithmetic Underflow",
    ProgramErrorCode.PROGRAM_NOT_AUTHORIZED: (
        "Program Not Authorized to perform this Operation"
    ),
    ProgramErrorCode.BUMP_NOT_FOUND: "Bump Not Found",
    ProgramErrorCode.HAS_OPEN_POSITIONS: (
        "Vault has Open Positions - cannot withdraw locked collateral"
    ),
}


class ProgramError(Exception):
    """Raised when an instruction fails with one of the program's error codes."""

    def __init__(self, error_code: ProgramErrorCode) -> None:
        self.error_code = error_code
        super().__init__(error_code.message())