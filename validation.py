"""
Operand and result validation.

The validator never raises for a bad value.  Every check returns a
``ValidationVerdict`` and it is up to the caller (normally the
arithmetic core) to turn a failed verdict into a typed error.

Check order for the default contract:

    present -> number type -> not NaN -> finite

``validate_with_policy`` continues after that with

    sign (if restricted) -> integrality (if required) -> range (if bounded)

and stops at the first failing stage.
"""

from __future__ import annotations

import logging
import math
import numbers
import re
from dataclasses import dataclass, field
from typing import Any, Sequence

from bounds import SAFE, Breach, Bounds, format_number
from models import ValidationFailure, ValidationPolicy, ValidationVerdict

logger = logging.getLogger(__name__)

FIRST_OPERAND = "First operand"
SECOND_OPERAND = "Second operand"
OPERAND = "Operand"

_DECIMAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
_INFINITIES = {
    "Infinity": math.inf,
    "+Infinity": math.inf,
    "-Infinity": -math.inf,
}


def is_number(value: Any) -> bool:
    """True for real numbers; ``bool`` is not a number here."""
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def to_float(value: Any) -> float:
    """Coerce to a double, mapping magnitudes beyond the double range to +/-inf."""
    try:
        return float(value)
    except OverflowError:
        return math.inf if value > 0 else -math.inf


def parse_decimal(text: str) -> float:
    """Parse decimal or scientific notation; anything else is NaN."""
    if text in _INFINITIES:
        return _INFINITIES[text]
    if not _DECIMAL.fullmatch(text):
        return math.nan
    return to_float(text)


@dataclass(frozen=True)
class Validator:
    """Stateless validator.  The logger is the only collaborator."""

    log: logging.Logger = field(default=logger, repr=False, compare=False)

    # -- single predicates --------------------------------------------------

    def is_present(self, value: Any, label: str) -> ValidationVerdict:
        """Only rejects ``None``; the raw value is passed through untouched."""
        if value is None:
            self.log.warning("Validation failed: %s is null", label)
            return ValidationVerdict.fail(
                f"{label} must not be null", ValidationFailure.NULL_VALUE
            )
        return ValidationVerdict(valid=True, value=value)

    def is_not_nan(self, value: float, label: str) -> ValidationVerdict:
        if math.isnan(value):
            self.log.warning("Validation failed: %s is NaN", label)
            return ValidationVerdict.fail(
                f"{label} must not be NaN", ValidationFailure.NAN_VALUE, value
            )
        return ValidationVerdict.ok(value)

    def is_finite(self, value: float, label: str) -> ValidationVerdict:
        if not math.isfinite(value):
            self.log.warning(
                "Validation failed: %s is not finite (value: %s)", label, value
            )
            return ValidationVerdict.fail(
                f"{label} must be a finite number",
                ValidationFailure.INFINITE_VALUE,
                value,
            )
        return ValidationVerdict.ok(value)

    def is_integer(self, value: float, label: str) -> ValidationVerdict:
        if not float(value).is_integer():
            self.log.warning(
                "Validation failed: %s is not an integer (value: %s)", label, value
            )
            return ValidationVerdict.fail(
                f"{label} must be an integer", ValidationFailure.NOT_INTEGER, value
            )
        return ValidationVerdict.ok(value)

    def is_in_range(
        self, value: float, lo: float, hi: float, label: str
    ) -> ValidationVerdict:
        if value < lo or value > hi:
            self.log.warning(
                "Validation failed: %s is out of range (value: %s, range: [%s, %s])",
                label, value, lo, hi,
            )
            return ValidationVerdict.fail(
                f"{label} must be between {format_number(lo)} and {format_number(hi)}",
                ValidationFailure.OUT_OF_RANGE,
                value,
            )
        return ValidationVerdict.ok(value)

    # -- composite contracts ------------------------------------------------

    def validate(self, value: Any, label: str) -> ValidationVerdict:
        """Default operand contract; returns the value normalized to float."""
        verdict = self.is_present(value, label)
        if not verdict.valid:
            return verdict

        if not is_number(value):
            self.log.warning(
                "Validation failed: %s is not a number (type: %s)",
                label, type(value).__name__,
            )
            return ValidationVerdict.fail(
                f"{label} must be a number", ValidationFailure.NOT_A_NUMBER
            )

        number = to_float(value)
        for check in (self.is_not_nan, self.is_finite):
            verdict = check(number, label)
            if not verdict.valid:
                return verdict
        return ValidationVerdict.ok(number)

    def validate_with_policy(
        self, value: Any, policy: ValidationPolicy
    ) -> ValidationVerdict:
        label = policy.parameter_label
        verdict = self.validate(value, label)

        if not verdict.valid:
            if (
                policy.allow_infinity
                and verdict.failure is ValidationFailure.INFINITE_VALUE
            ):
                self.log.debug("Allowing infinity value for %s", label)
                return ValidationVerdict.ok(verdict.value)
            return verdict

        number = verdict.value
        if not policy.allow_negative and number < 0:
            self.log.warning(
                "Validation failed: %s is negative (value: %s)", label, number
            )
            return ValidationVerdict.fail(
                f"{label} must not be negative",
                ValidationFailure.NEGATIVE_VALUE,
                number,
            )

        if policy.require_integer:
            verdict = self.is_integer(number, label)
            if not verdict.valid:
                return verdict

        if policy.is_bounded:
            lo, hi = policy.range
            verdict = self.is_in_range(number, lo, hi, label)
            if not verdict.valid:
                return verdict

        return ValidationVerdict.ok(number)

    def validate_operands(
        self, a: Any, b: Any
    ) -> tuple[ValidationVerdict, ValidationVerdict]:
        return (
            self.validate(a, FIRST_OPERAND),
            self.validate(b, SECOND_OPERAND),
        )

    def validate_many(
        self, values: Sequence[Any], labels: Sequence[str]
    ) -> list[ValidationVerdict]:
        if len(values) != len(labels):
            raise ValueError(
                "values and labels must have the same length "
                f"({len(values)} != {len(labels)})"
            )
        return [self.validate(v, label) for v, label in zip(values, labels)]

    # -- boundary parsing ---------------------------------------------------

    def parse(self, value: Any, label: str) -> ValidationVerdict:
        """Turn an untyped input (number, string, anything) into a verdict."""
        if value is None or isinstance(value, bool) or is_number(value):
            return self.validate(value, label)

        if isinstance(value, str):
            text = value.strip()
            if not text:
                self.log.warning("Validation failed: %s is an empty string", label)
                return ValidationVerdict.fail(
                    f"{label} cannot be an empty string",
                    ValidationFailure.EMPTY_STRING,
                )
            return self.validate(parse_decimal(text), label)

        self.log.warning(
            "Attempting to parse %s from type %s", label, type(value).__name__
        )
        try:
            coerced = to_float(value)
        except (TypeError, ValueError):
            coerced = math.nan
        return self.validate(coerced, label)

    # -- results ------------------------------------------------------------

    def validate_result_range(
        self, result: float, operation: str, bounds: Bounds = SAFE
    ) -> ValidationVerdict:
        """Post-computation check: finite and inside ``bounds``."""
        breach = bounds.breach(result)

        if breach is Breach.NONE:
            return ValidationVerdict.ok(result)

        if breach is Breach.POSITIVE_INFINITY:
            reason, failure = "Result is positive infinity", ValidationFailure.INFINITE_VALUE
        elif breach is Breach.NEGATIVE_INFINITY:
            reason, failure = "Result is negative infinity", ValidationFailure.INFINITE_VALUE
        elif breach is Breach.NOT_A_NUMBER:
            reason, failure = "Result is not a number", ValidationFailure.NAN_VALUE
        elif breach is Breach.ABOVE:
            reason = (
                f"Result {format_number(result)} exceeds maximum safe integer "
                f"{format_number(bounds.hi)}"
            )
            failure = ValidationFailure.ABOVE_MAXIMUM
        else:
            reason = (
                f"Result {format_number(result)} is below minimum safe integer "
                f"{format_number(bounds.lo)}"
            )
            failure = ValidationFailure.BELOW_MINIMUM

        self.log.error("%s operation failed result check: %s", operation, reason)
        return ValidationVerdict.fail(reason, failure, result)
