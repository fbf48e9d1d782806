"""
Boundary policy for safe arithmetic.

The safe interval is the range of integers a 64-bit IEEE-754 double can
represent exactly.  Results of the checked operations must land inside
it; anything outside is reported as an overflow or underflow rather than
being silently rounded.

Non-finite values (infinities, NaN) are a separate breach category: they
are never "above" or "below" the interval, they are simply not numbers
a caller can trust.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto


SAFE_MAX = 2**53 - 1
SAFE_MIN = -(2**53 - 1)

# 171! exceeds the largest finite double.
FACTORIAL_MAX_INPUT = 170


class Breach(Enum):
    """How a value escapes the bounds, if it does."""

    NONE = auto()
    ABOVE = auto()
    BELOW = auto()
    POSITIVE_INFINITY = auto()
    NEGATIVE_INFINITY = auto()
    NOT_A_NUMBER = auto()


@dataclass(frozen=True)
class Bounds:
    """
    An inclusive interval [lo, hi] over doubles.

    Unlike the value-level predicates in ``validation`` this type knows
    nothing about labels or messages; it only answers where a number
    sits relative to the interval.
    """

    lo: float
    hi: float

    def __post_init__(self):
        if self.lo > self.hi:
            raise ValueError(f"lo ({self.lo}) must be <= hi ({self.hi})")

    def contains(self, value: float) -> bool:
        return self.lo <= value <= self.hi

    def breach(self, value: float) -> Breach:
        """Classify ``value`` against the interval."""
        if math.isnan(value):
            return Breach.NOT_A_NUMBER
        if math.isinf(value):
            return Breach.POSITIVE_INFINITY if value > 0 else Breach.NEGATIVE_INFINITY
        if value > self.hi:
            return Breach.ABOVE
        if value < self.lo:
            return Breach.BELOW
        return Breach.NONE


SAFE = Bounds(lo=SAFE_MIN, hi=SAFE_MAX)
FACTORIAL_DOMAIN = Bounds(lo=0, hi=FACTORIAL_MAX_INPUT)


def format_number(value: float) -> str:
    """Render a number the way it should read in an error message.

    Integral doubles print without a trailing ``.0`` so that
    ``9007199254740992.0`` reads as ``9007199254740992``.
    """
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        if abs(value) < 1e21:
            return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)
