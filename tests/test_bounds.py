"""Tests for the boundary policy."""

from __future__ import annotations

import math

import pytest
from hypothesis import given
from hypothesis.strategies import floats

from bounds import (
    FACTORIAL_DOMAIN,
    FACTORIAL_MAX_INPUT,
    SAFE,
    SAFE_MAX,
    SAFE_MIN,
    Bounds,
    Breach,
    format_number,
)


class TestBoundsConstruction:

    def test_safe_bounds(self):
        assert SAFE.lo == SAFE_MIN == -9007199254740991
        assert SAFE.hi == SAFE_MAX == 9007199254740991

    def test_factorial_domain(self):
        assert FACTORIAL_DOMAIN.lo == 0
        assert FACTORIAL_DOMAIN.hi == FACTORIAL_MAX_INPUT == 170

    def test_single_value_bounds(self):
        b = Bounds(lo=0, hi=0)
        assert b.contains(0)
        assert not b.contains(1)

    def test_invalid_bounds_raises(self):
        with pytest.raises(ValueError, match="lo.*must be <= hi"):
            Bounds(lo=10, hi=-10)


class TestBreach:

    def test_inside(self):
        assert SAFE.breach(0.0) is Breach.NONE
        assert SAFE.breach(float(SAFE_MAX)) is Breach.NONE
        assert SAFE.breach(float(SAFE_MIN)) is Breach.NONE

    def test_above(self):
        assert SAFE.breach(float(SAFE_MAX) + 1) is Breach.ABOVE

    def test_below(self):
        assert SAFE.breach(float(SAFE_MIN) - 1) is Breach.BELOW

    def test_infinities(self):
        assert SAFE.breach(math.inf) is Breach.POSITIVE_INFINITY
        assert SAFE.breach(-math.inf) is Breach.NEGATIVE_INFINITY

    def test_nan(self):
        assert SAFE.breach(math.nan) is Breach.NOT_A_NUMBER

    @given(x=floats(allow_nan=False, allow_infinity=False))
    def test_contains_agrees_with_breach(self, x):
        assert SAFE.contains(x) == (SAFE.breach(x) is Breach.NONE)


class TestFormatNumber:

    def test_integral_float_has_no_fraction(self):
        assert format_number(9007199254740992.0) == "9007199254740992"
        assert format_number(-0.0) == "0"

    def test_fractional_float(self):
        assert format_number(2.5) == "2.5"

    def test_int(self):
        assert format_number(SAFE_MAX) == "9007199254740991"

    def test_huge_float_keeps_exponent(self):
        assert format_number(1e300) == "1e+300"

    def test_non_finite(self):
        assert format_number(math.inf) == "inf"
        assert format_number(math.nan) == "nan"
