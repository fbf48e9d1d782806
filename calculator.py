"""Safe arithmetic core.

Every operation validates its operands, computes, and (for the checked
operations) verifies the result before returning.  Decision branches are
annotated with their branch ids (see ``contracts.BRANCHES``) so the
white-box tests can trace coverage back to a named decision point.

Two call shapes are offered:

    Calculator           returns the bare float
    RecordingCalculator  returns a ``CalculationRecord``

The recording shape delegates to a ``Calculator`` and only adds
metadata, so both shapes always agree on success and failure.
"""
from __future__ import annotations

import builtins
import logging
import math
from dataclasses import dataclass, field
from typing import Any

from bounds import FACTORIAL_DOMAIN, FACTORIAL_MAX_INPUT, SAFE, Bounds, format_number
from errors import (
    DivisionByZeroError,
    ErrorCode,
    InvalidOperandError,
    InvalidOperationError,
    InvalidResultError,
    ModuloByZeroError,
    OverflowError,
    UnderflowError,
)
from formatter import ResultFormatter
from models import (
    CalculationRecord,
    Operation,
    ValidationFailure,
    ValidationPolicy,
    ValidationVerdict,
)
from validation import FIRST_OPERAND, OPERAND, SECOND_OPERAND, Validator

logger = logging.getLogger(__name__)

_OPERAND_CODES = {
    ValidationFailure.NULL_VALUE: ErrorCode.INVALID_OPERAND,
    ValidationFailure.NOT_A_NUMBER: ErrorCode.OPERAND_NOT_NUMBER,
    ValidationFailure.EMPTY_STRING: ErrorCode.OPERAND_NOT_NUMBER,
    ValidationFailure.NAN_VALUE: ErrorCode.OPERAND_IS_NAN,
    ValidationFailure.INFINITE_VALUE: ErrorCode.OPERAND_NOT_FINITE,
    ValidationFailure.NOT_INTEGER: ErrorCode.OPERAND_NOT_INTEGER,
}

SQRT_POLICY = ValidationPolicy(allow_negative=False, parameter_label=OPERAND)

# Sign, integrality and range are checked in that order, which is the
# order factorial must report them in.
FACTORIAL_POLICY = ValidationPolicy(
    allow_negative=False,
    require_integer=True,
    min=FACTORIAL_DOMAIN.lo,
    max=FACTORIAL_DOMAIN.hi,
    parameter_label=OPERAND,
)


def operand_error(
    verdict: ValidationVerdict, label: str, operation: str, value: Any = None
) -> InvalidOperandError:
    """Turn a failed operand verdict into the matching typed error."""
    return InvalidOperandError(
        label,
        verdict.reason or "Invalid value",
        operation=operation,
        code=_OPERAND_CODES.get(verdict.failure, ErrorCode.INVALID_OPERAND),
        value=value,
    )


def ieee_pow(base: float, exponent: float) -> float:
    """``pow`` with IEEE-754 results instead of Python exceptions.

    ``math.pow`` raises where IEEE returns a value: NaN for a negative
    base with a fractional exponent, +/-inf for a zero base with a
    negative exponent or for a result beyond the double range.
    """
    odd_integer = exponent.is_integer() and math.fmod(exponent, 2.0) != 0.0
    if base == 0.0 and exponent < 0.0:
        return math.copysign(math.inf, base) if odd_integer else math.inf
    try:
        return math.pow(base, exponent)
    except ValueError:
        return math.nan
    except builtins.OverflowError:
        return -math.inf if base < 0.0 and odd_integer else math.inf


def _integral(rounded: int, value: float) -> float:
    """Back to float, keeping the sign of zero (``ceil(-0.5)`` is ``-0.0``)."""
    if rounded == 0:
        return math.copysign(0.0, value)
    return float(rounded)


def round_half_up(value: float) -> float:
    """Nearest integer; ties go towards +inf (``-3.5`` -> ``-3``)."""
    floor = math.floor(value)
    # value - floor is exact for doubles, so 0.49999999999999994 stays below 0.5
    if value - floor >= 0.5:
        floor += 1
    return _integral(floor, value)


@dataclass(frozen=True)
class Calculator:
    """Twelve validated operations over IEEE-754 doubles."""

    validator: Validator = field(default_factory=Validator)
    bounds: Bounds = SAFE
    log: logging.Logger = field(default=logger, repr=False, compare=False)

    # -- internal helpers ---------------------------------------------------

    def _operand(self, value: Any, label: str, operation: Operation) -> float:
        """Validate one operand.

        Branches: OPERAND-VALID, OPERAND-INVALID-A, OPERAND-INVALID-B
        """
        verdict = self.validator.validate(value, label)
        if not verdict.valid:                                     # OPERAND-INVALID-*
            raise operand_error(verdict, label, operation.label, value)
        return verdict.value                                      # OPERAND-VALID

    def _operands(
        self, a: Any, b: Any, operation: Operation
    ) -> tuple[float, float]:
        # First operand is checked first so its label wins when both are bad.
        return (
            self._operand(a, FIRST_OPERAND, operation),
            self._operand(b, SECOND_OPERAND, operation),
        )

    def _checked(
        self, raw: float, operation: Operation, operands: tuple[float, ...]
    ) -> float:
        """Reject non-finite or out-of-range results.

        Branches: RESULT-IN-RANGE, RESULT-OVERFLOW, RESULT-UNDERFLOW,
                  RESULT-NOT-FINITE
        """
        verdict = self.validator.validate_result_range(
            raw, operation.label, self.bounds
        )
        if verdict.valid:                                         # RESULT-IN-RANGE
            self.log.debug("%s%s = %s", operation.value, operands, raw)
            return raw

        if verdict.failure is ValidationFailure.ABOVE_MAXIMUM:    # RESULT-OVERFLOW
            raise OverflowError(
                operation.label, verdict.reason, operands=operands, result=raw
            )
        if verdict.failure is ValidationFailure.BELOW_MINIMUM:    # RESULT-UNDERFLOW
            raise UnderflowError(
                operation.label, verdict.reason, operands=operands, result=raw
            )
        raise InvalidResultError(                                 # RESULT-NOT-FINITE
            operation.label, verdict.reason, operands=operands, result=raw
        )

    def _unary(self, value: Any, operation: Operation) -> float:
        return self._operand(value, OPERAND, operation)

    # -- binary operations --------------------------------------------------

    def add(self, a: Any, b: Any) -> float:
        x, y = self._operands(a, b, Operation.ADD)
        return self._checked(x + y, Operation.ADD, (x, y))

    def subtract(self, a: Any, b: Any) -> float:
        x, y = self._operands(a, b, Operation.SUBTRACT)
        return self._checked(x - y, Operation.SUBTRACT, (x, y))

    def multiply(self, a: Any, b: Any) -> float:
        x, y = self._operands(a, b, Operation.MULTIPLY)
        return self._checked(x * y, Operation.MULTIPLY, (x, y))

    def divide(self, a: Any, b: Any) -> float:
        """Branches: DIV-ZERO, DIV-NORMAL"""
        x, y = self._operands(a, b, Operation.DIVIDE)
        if y == 0:                                                # DIV-ZERO
            raise DivisionByZeroError(x)
        return self._checked(x / y, Operation.DIVIDE, (x, y))     # DIV-NORMAL

    def power(self, a: Any, b: Any) -> float:
        x, y = self._operands(a, b, Operation.POWER)
        return self._checked(ieee_pow(x, y), Operation.POWER, (x, y))

    def modulo(self, a: Any, b: Any) -> float:
        """Truncating remainder: the result takes the sign of the dividend.

        No range check, ``|result| < |divisor|`` already holds.

        Branches: MOD-ZERO, MOD-NORMAL
        """
        x, y = self._operands(a, b, Operation.MODULO)
        if y == 0:                                                # MOD-ZERO
            raise ModuloByZeroError(x)
        return math.fmod(x, y)                                    # MOD-NORMAL

    # -- unary operations ---------------------------------------------------

    def sqrt(self, value: Any) -> float:
        """Branches: SQRT-NEGATIVE"""
        x = self._unary(value, Operation.SQRT)
        verdict = self.validator.validate_with_policy(x, SQRT_POLICY)
        if not verdict.valid:                                     # SQRT-NEGATIVE
            raise InvalidOperationError(
                Operation.SQRT.label,
                "Cannot calculate square root of negative number",
                code=ErrorCode.NEGATIVE_SQUARE_ROOT,
                operands=(x,),
            )
        return math.sqrt(x)

    def factorial(self, value: Any) -> float:
        """Iterative product over doubles, defined for integers 0..170.

        A negative input is a domain error and is reported before a
        fractional one; a fractional input is an operand error.

        Branches: FACT-NEGATIVE, FACT-NON-INTEGER, FACT-TOO-LARGE,
                  FACT-INTERMEDIATE-OVERFLOW
        """
        op = Operation.FACTORIAL
        n = self._unary(value, op)
        verdict = self.validator.validate_with_policy(n, FACTORIAL_POLICY)

        if verdict.failure is ValidationFailure.NEGATIVE_VALUE:   # FACT-NEGATIVE
            raise InvalidOperationError(
                op.label,
                "Cannot calculate factorial of negative number",
                code=ErrorCode.NEGATIVE_FACTORIAL,
                operands=(n,),
            )
        if verdict.failure is ValidationFailure.NOT_INTEGER:      # FACT-NON-INTEGER
            raise InvalidOperandError(
                OPERAND,
                "Factorial requires an integer input",
                operation=op.label,
                code=ErrorCode.NON_INTEGER_FACTORIAL,
                value=value,
            )
        if verdict.failure is ValidationFailure.OUT_OF_RANGE:     # FACT-TOO-LARGE
            raise InvalidOperationError(
                op.label,
                f"Factorial input too large (maximum is {FACTORIAL_MAX_INPUT})",
                code=ErrorCode.FACTORIAL_INPUT_TOO_LARGE,
                operands=(n,),
            )

        result = 1.0
        for i in range(2, int(n) + 1):
            result *= i
            if not math.isfinite(result):                         # FACT-INTERMEDIATE-OVERFLOW
                raise OverflowError(
                    op.label,
                    f"Intermediate product is not finite at {i}!",
                    operands=(n,),
                    result=result,
                )
        self.log.debug("factorial(%s) = %s", format_number(n), result)
        return result

    def absolute(self, value: Any) -> float:
        return abs(self._unary(value, Operation.ABSOLUTE))

    def ceiling(self, value: Any) -> float:
        x = self._unary(value, Operation.CEILING)
        return _integral(math.ceil(x), x)

    def floor(self, value: Any) -> float:
        x = self._unary(value, Operation.FLOOR)
        return _integral(math.floor(x), x)

    def round(self, value: Any) -> float:
        """Branches: ROUND-HALF-UP"""
        return round_half_up(self._unary(value, Operation.ROUND))

    # -- dispatch -----------------------------------------------------------

    def execute(self, operation: Operation | str, *operands: Any) -> float:
        """Run an operation by name.  Unknown names raise ``ValueError``."""
        operation = Operation(operation)
        if len(operands) != operation.arity:
            raise TypeError(
                f"{operation.value} takes {operation.arity} operand(s), "
                f"got {len(operands)}"
            )
        return getattr(self, operation.value)(*operands)


@dataclass(frozen=True)
class RecordingCalculator:
    """Same operations as ``Calculator``, returning ``CalculationRecord``s."""

    calculator: Calculator = field(default_factory=Calculator)
    formatter: ResultFormatter = field(default_factory=ResultFormatter)

    def execute(self, operation: Operation | str, *operands: Any) -> CalculationRecord:
        operation = Operation(operation)
        result = self.calculator.execute(operation, *operands)
        return self.formatter.format(result, operation)

    def add(self, a: Any, b: Any) -> CalculationRecord:
        return self.execute(Operation.ADD, a, b)

    def subtract(self, a: Any, b: Any) -> CalculationRecord:
        return self.execute(Operation.SUBTRACT, a, b)

    def multiply(self, a: Any, b: Any) -> CalculationRecord:
        return self.execute(Operation.MULTIPLY, a, b)

    def divide(self, a: Any, b: Any) -> CalculationRecord:
        return self.execute(Operation.DIVIDE, a, b)

    def power(self, a: Any, b: Any) -> CalculationRecord:
        return self.execute(Operation.POWER, a, b)

    def modulo(self, a: Any, b: Any) -> CalculationRecord:
        return self.execute(Operation.MODULO, a, b)

    def sqrt(self, value: Any) -> CalculationRecord:
        return self.execute(Operation.SQRT, value)

    def factorial(self, value: Any) -> CalculationRecord:
        return self.execute(Operation.FACTORIAL, value)

    def absolute(self, value: Any) -> CalculationRecord:
        return self.execute(Operation.ABSOLUTE, value)

    def ceiling(self, value: Any) -> CalculationRecord:
        return self.execute(Operation.CEILING, value)

    def floor(self, value: Any) -> CalculationRecord:
        return self.execute(Operation.FLOOR, value)

    def round(self, value: Any) -> CalculationRecord:
        return self.execute(Operation.ROUND, value)
