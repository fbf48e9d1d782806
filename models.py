"""Value types shared by the validator, the arithmetic core and the API.

Internal verdicts are plain frozen dataclasses.  Anything that crosses
the HTTP boundary or is configured by a caller is a pydantic model so it
gets validation and (de)serialization for free.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from bounds import SAFE_MAX, SAFE_MIN


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

class Operation(str, Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    POWER = "power"
    MODULO = "modulo"
    SQRT = "sqrt"
    FACTORIAL = "factorial"
    ABSOLUTE = "absolute"
    CEILING = "ceiling"
    FLOOR = "floor"
    ROUND = "round"

    @property
    def arity(self) -> int:
        return 2 if self in _BINARY else 1

    @property
    def label(self) -> str:
        """Human-readable name used in error payloads."""
        return _LABELS[self]


_BINARY = frozenset({
    Operation.ADD,
    Operation.SUBTRACT,
    Operation.MULTIPLY,
    Operation.DIVIDE,
    Operation.POWER,
    Operation.MODULO,
})

_LABELS = {
    Operation.ADD: "addition",
    Operation.SUBTRACT: "subtraction",
    Operation.MULTIPLY: "multiplication",
    Operation.DIVIDE: "division",
    Operation.POWER: "power",
    Operation.MODULO: "modulo",
    Operation.SQRT: "square root",
    Operation.FACTORIAL: "factorial",
    Operation.ABSOLUTE: "absolute",
    Operation.CEILING: "ceiling",
    Operation.FLOOR: "floor",
    Operation.ROUND: "round",
}


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationFailure(str, Enum):
    """Which predicate rejected a value."""

    NULL_VALUE = "NULL_VALUE"
    NOT_A_NUMBER = "NOT_A_NUMBER"
    EMPTY_STRING = "EMPTY_STRING"
    NAN_VALUE = "NAN_VALUE"
    INFINITE_VALUE = "INFINITE_VALUE"
    NEGATIVE_VALUE = "NEGATIVE_VALUE"
    NOT_INTEGER = "NOT_INTEGER"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    ABOVE_MAXIMUM = "ABOVE_MAXIMUM"
    BELOW_MINIMUM = "BELOW_MINIMUM"


@dataclass(frozen=True)
class ValidationVerdict:
    """Outcome of one validation step.

    A valid verdict always carries the normalized value.  A failed one
    carries the reason and the failing predicate; ``value`` is kept when
    the input could be read as a number at all.
    """

    valid: bool
    value: float | None = None
    reason: str | None = None
    failure: ValidationFailure | None = None

    @classmethod
    def ok(cls, value: float) -> ValidationVerdict:
        return cls(valid=True, value=value)

    @classmethod
    def fail(
        cls,
        reason: str,
        failure: ValidationFailure,
        value: float | None = None,
    ) -> ValidationVerdict:
        return cls(valid=False, value=value, reason=reason, failure=failure)

    def __bool__(self) -> bool:
        return self.valid


class ValidationPolicy(BaseModel):
    """Optional narrowing of the default operand contract.

    ``min``/``max`` only take effect when at least one of them is given;
    the missing side then defaults to the safe-integer bound.
    """

    model_config = ConfigDict(frozen=True)

    allow_infinity: bool = False
    allow_negative: bool = True
    require_integer: bool = False
    min: float | None = None
    max: float | None = None
    parameter_label: str = Field(default="Value", min_length=1)

    @model_validator(mode="after")
    def min_not_above_max(self) -> ValidationPolicy:
        lo, hi = self.range
        if lo > hi:
            raise ValueError(f"min ({lo}) must be <= max ({hi})")
        return self

    @property
    def is_bounded(self) -> bool:
        return self.min is not None or self.max is not None

    @property
    def range(self) -> tuple[float, float]:
        lo = SAFE_MIN if self.min is None else self.min
        hi = SAFE_MAX if self.max is None else self.max
        return lo, hi


# ---------------------------------------------------------------------------
# Decorated results
# ---------------------------------------------------------------------------

class CalculationRecord(BaseModel):
    """A successful result wrapped with audit metadata."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    result: float
    operation: Operation
    timestamp: str
    calculation_id: str = Field(alias="calculationId")


# ---------------------------------------------------------------------------
# HTTP payloads
# ---------------------------------------------------------------------------

class BinaryOperationRequest(BaseModel):
    """Body for two-operand operations.  Values are parsed by the validator."""

    a: Any = None
    b: Any = None


class UnaryOperationRequest(BaseModel):
    """Body for one-operand operations.  The value is parsed by the validator."""

    value: Any = None


class CalculatorResponse(BaseModel):
    result: float
    operation: str


class BinaryOperationResponse(BaseModel):
    operation: str
    a: float
    b: float
    result: float


class UnaryOperationResponse(BaseModel):
    operation: str
    value: float
    result: float


class OperationInfo(BaseModel):
    name: Operation
    label: str
    arity: int


class ErrorResponse(BaseModel):
    """Structured error body returned for every failed calculation."""

    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(alias="statusCode")
    timestamp: str
    message: str
    error: str
    kind: str | None = None
    error_code: str = Field(alias="errorCode")
    description: str
    operation: str | None = None
    details: str | None = None
    path: str | None = None
    method: str | None = None
