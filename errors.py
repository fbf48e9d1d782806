"""Error taxonomy for the arithmetic engine.

Every failure the engine can report belongs to exactly one ``ErrorKind``
and is raised as the matching ``CalculatorError`` subclass:

    InvalidOperandError     an operand failed validation
    DivisionByZeroError     divide with a zero divisor
    ModuloByZeroError       modulo with a zero divisor
    OverflowError           finite result above SAFE_MAX
    UnderflowError          finite result below SAFE_MIN
    InvalidResultError      result is +/-Infinity or NaN
    InvalidOperationError   operand is valid but outside the operation's domain

Each subclass also derives from the closest built-in exception so code
that already catches ``ZeroDivisionError`` or ``ArithmeticError`` keeps
working.  ``OverflowError`` shadows the built-in of the same name inside
this module and is a subclass of it.
"""

from __future__ import annotations

import builtins
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar

from bounds import format_number

ERROR_LABEL = "Calculator Error"


class ErrorKind(str, Enum):
    INVALID_OPERAND = "invalid_operand"
    DIVISION_BY_ZERO = "division_by_zero"
    MODULO_BY_ZERO = "modulo_by_zero"
    OVERFLOW = "overflow"
    UNDERFLOW = "underflow"
    INVALID_RESULT = "invalid_result"
    INVALID_OPERATION = "invalid_operation"


class ErrorCode(str, Enum):
    """Machine-readable codes carried in error payloads."""

    # Division
    DIVISION_BY_ZERO = "CALC_001"
    MODULO_BY_ZERO = "CALC_002"

    # Range
    OVERFLOW_ERROR = "CALC_101"
    UNDERFLOW_ERROR = "CALC_102"

    # Results
    INVALID_RESULT = "CALC_201"
    RESULT_NOT_FINITE = "CALC_202"

    # Operation domain
    INVALID_OPERATION = "CALC_301"
    NEGATIVE_SQUARE_ROOT = "CALC_302"
    NEGATIVE_FACTORIAL = "CALC_303"
    NON_INTEGER_FACTORIAL = "CALC_304"
    FACTORIAL_INPUT_TOO_LARGE = "CALC_305"

    # Operands
    INVALID_OPERAND = "CALC_401"
    OPERAND_NOT_NUMBER = "CALC_402"
    OPERAND_IS_NAN = "CALC_403"
    OPERAND_NOT_FINITE = "CALC_404"
    OPERAND_NOT_INTEGER = "CALC_405"

    UNEXPECTED_ERROR = "CALC_999"


ERROR_DESCRIPTIONS: dict[ErrorCode, str] = {
    ErrorCode.DIVISION_BY_ZERO: "Division by zero is not mathematically defined",
    ErrorCode.MODULO_BY_ZERO: "Modulo by zero is not mathematically defined",
    ErrorCode.OVERFLOW_ERROR: "Operation result exceeds maximum safe integer value",
    ErrorCode.UNDERFLOW_ERROR: "Operation result is below minimum safe integer value",
    ErrorCode.INVALID_RESULT: "Operation produced an invalid result",
    ErrorCode.RESULT_NOT_FINITE: "Operation result is not a finite number",
    ErrorCode.INVALID_OPERATION: (
        "The requested mathematical operation is not valid for the given inputs"
    ),
    ErrorCode.NEGATIVE_SQUARE_ROOT: "Cannot calculate square root of a negative number",
    ErrorCode.NEGATIVE_FACTORIAL: "Cannot calculate factorial of a negative number",
    ErrorCode.NON_INTEGER_FACTORIAL: "Factorial can only be calculated for integer values",
    ErrorCode.FACTORIAL_INPUT_TOO_LARGE: "Factorial input exceeds maximum allowed value",
    ErrorCode.INVALID_OPERAND: "One or more operands are invalid",
    ErrorCode.OPERAND_NOT_NUMBER: "Operand must be a valid number",
    ErrorCode.OPERAND_IS_NAN: "Operand cannot be NaN",
    ErrorCode.OPERAND_NOT_FINITE: "Operand must be a finite number",
    ErrorCode.OPERAND_NOT_INTEGER: "Operand must be an integer value",
    ErrorCode.UNEXPECTED_ERROR: "An unexpected error occurred during calculation",
}


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

class CalculatorError(Exception):
    """Base class of every failure raised by the engine."""

    kind: ClassVar[ErrorKind]
    default_code: ClassVar[ErrorCode]
    status_code: ClassVar[int] = 400

    def __init__(
        self,
        operation: str,
        reason: str,
        *,
        message: str | None = None,
        code: ErrorCode | None = None,
        details: str | None = None,
        operands: tuple[Any, ...] = (),
        result: float | None = None,
    ) -> None:
        self.operation = operation
        self.reason = reason
        self.message = message or reason
        self.code = code or self.default_code
        self.details = details
        self.operands = tuple(operands)
        self.result = result
        super().__init__(self.message)

    @property
    def description(self) -> str:
        return ERROR_DESCRIPTIONS[self.code]

    def to_payload(self, timestamp: str | None = None) -> dict[str, Any]:
        """Structured body for transport layers."""
        return {
            "statusCode": self.status_code,
            "timestamp": timestamp or _utcnow_iso(),
            "message": self.message,
            "error": ERROR_LABEL,
            "kind": self.kind.value,
            "errorCode": self.code.value,
            "description": self.description,
            "operation": self.operation,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(operation={self.operation!r}, "
            f"reason={self.reason!r}, code={self.code.value})"
        )


# ---------------------------------------------------------------------------
# Operand errors
# ---------------------------------------------------------------------------

class InvalidOperandError(CalculatorError, ValueError):
    """An operand failed validation (absent, non-numeric, NaN, infinite...)."""

    kind = ErrorKind.INVALID_OPERAND
    default_code = ErrorCode.INVALID_OPERAND

    def __init__(
        self,
        label: str,
        reason: str,
        *,
        operation: str = "validation",
        code: ErrorCode | None = None,
        value: Any = None,
    ) -> None:
        self.label = label
        super().__init__(
            operation,
            reason,
            code=code,
            details=f"{label} - {reason}",
            operands=(value,),
        )


# ---------------------------------------------------------------------------
# Domain errors
# ---------------------------------------------------------------------------

class DivisionByZeroError(CalculatorError, ZeroDivisionError):
    kind = ErrorKind.DIVISION_BY_ZERO
    default_code = ErrorCode.DIVISION_BY_ZERO

    def __init__(self, numerator: float | None = None) -> None:
        details = None if numerator is None else f"{format_number(numerator)} / 0"
        operands = () if numerator is None else (numerator, 0.0)
        super().__init__(
            "division",
            "Division by zero is not allowed",
            details=details,
            operands=operands,
        )


class ModuloByZeroError(CalculatorError, ZeroDivisionError):
    kind = ErrorKind.MODULO_BY_ZERO
    default_code = ErrorCode.MODULO_BY_ZERO

    def __init__(self, dividend: float | None = None) -> None:
        details = None if dividend is None else f"{format_number(dividend)} % 0"
        operands = () if dividend is None else (dividend, 0.0)
        super().__init__(
            "modulo",
            "Modulo by zero is not allowed",
            details=details,
            operands=operands,
        )


class InvalidOperationError(CalculatorError, ValueError):
    """The operand is a valid number but the operation is undefined for it."""

    kind = ErrorKind.INVALID_OPERATION
    default_code = ErrorCode.INVALID_OPERATION

    def __init__(
        self,
        operation: str,
        reason: str,
        *,
        code: ErrorCode | None = None,
        operands: tuple[Any, ...] = (),
    ) -> None:
        super().__init__(operation, reason, code=code, operands=operands)


# ---------------------------------------------------------------------------
# Result errors
# ---------------------------------------------------------------------------

class OverflowError(CalculatorError, builtins.OverflowError):
    kind = ErrorKind.OVERFLOW
    default_code = ErrorCode.OVERFLOW_ERROR

    def __init__(
        self,
        operation: str,
        details: str | None = None,
        *,
        operands: tuple[Any, ...] = (),
        result: float | None = None,
    ) -> None:
        reason = details or "Result exceeds maximum safe integer"
        super().__init__(
            operation,
            reason,
            message="Operation resulted in overflow",
            details=details,
            operands=operands,
            result=result,
        )


class UnderflowError(CalculatorError, ArithmeticError):
    kind = ErrorKind.UNDERFLOW
    default_code = ErrorCode.UNDERFLOW_ERROR

    def __init__(
        self,
        operation: str,
        details: str | None = None,
        *,
        operands: tuple[Any, ...] = (),
        result: float | None = None,
    ) -> None:
        reason = details or "Result is below minimum safe integer"
        super().__init__(
            operation,
            reason,
            message="Operation resulted in underflow",
            details=details,
            operands=operands,
            result=result,
        )


class InvalidResultError(CalculatorError, ArithmeticError):
    """The computed value is +Infinity, -Infinity or NaN."""

    kind = ErrorKind.INVALID_RESULT
    default_code = ErrorCode.INVALID_RESULT

    def __init__(
        self,
        operation: str,
        reason: str,
        *,
        operands: tuple[Any, ...] = (),
        result: float | None = None,
    ) -> None:
        super().__init__(
            operation,
            reason,
            message=f"Invalid result: {reason}",
            details=reason,
            operands=operands,
            result=result,
        )


ERROR_TYPES: dict[ErrorKind, type[CalculatorError]] = {
    cls.kind: cls
    for cls in (
        InvalidOperandError,
        DivisionByZeroError,
        ModuloByZeroError,
        OverflowError,
        UnderflowError,
        InvalidResultError,
        InvalidOperationError,
    )
}


def unexpected_payload(exc: BaseException, timestamp: str | None = None) -> dict[str, Any]:
    """Structured body for a failure that is not a ``CalculatorError``.

    The exception text stays out of the body; only its type is reported.
    """
    return {
        "statusCode": 500,
        "timestamp": timestamp or _utcnow_iso(),
        "message": ERROR_DESCRIPTIONS[ErrorCode.UNEXPECTED_ERROR],
        "error": ERROR_LABEL,
        "kind": None,
        "errorCode": ErrorCode.UNEXPECTED_ERROR.value,
        "description": ERROR_DESCRIPTIONS[ErrorCode.UNEXPECTED_ERROR],
        "operation": "system",
        "details": f"Unexpected error: {type(exc).__name__}",
    }
