"""Contract conformance tests.

These tests are *driven by* the contracts: they iterate over every
postcondition, error condition and algebraic property defined in
``contracts.build_contracts`` and verify the calculator satisfies them.

If a contract changes (e.g. a new postcondition is added), these tests
automatically cover it, no manual test authoring required for the new
predicate.
"""
from __future__ import annotations

import math

import pytest
from hypothesis import given, settings
from hypothesis.strategies import floats, integers, one_of, sampled_from

from bounds import SAFE_MAX, SAFE_MIN, Bounds
from calculator import Calculator
from contracts import BRANCHES, build_contracts
from errors import CalculatorError
from models import Operation

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

CONTRACTS = build_contracts()
CALC = Calculator()

# Mix of awkward doubles, safe-range edges and small integers so that every
# error condition is reachable.
values = one_of(
    floats(),
    floats(min_value=-1e6, max_value=1e6),
    integers(min_value=-200, max_value=200),
    sampled_from([
        0.0, -0.0, 0.5, -0.5, 2.5, -3.5,
        float(SAFE_MAX), float(SAFE_MIN), 2.0**53, 1e300,
    ]),
)

BINARY = [op for op in Operation if op.arity == 2]
UNARY = [op for op in Operation if op.arity == 1]


def _check(contract, operands):
    """Either the expected error is raised, or every postcondition holds."""
    expected = contract.expected_error(*operands)
    fn = getattr(CALC, contract.operation.value)
    if expected is not None:
        with pytest.raises(expected):
            fn(*operands)
        return
    result = fn(*operands)
    for post in contract.postconditions:
        assert post.check(*operands, result), (
            f"Postcondition '{post.name}' failed: "
            f"{contract.operation.value}{operands} = {result}"
        )


# ===================================================================
# STRUCTURE
# ===================================================================

class TestStructure:

    def test_every_operation_has_a_contract(self):
        assert set(CONTRACTS.operations) == set(Operation)

    def test_every_operation_rejects_non_finite_operands(self):
        for contract in CONTRACTS.operations.values():
            names = [c.name for c in contract.error_conditions]
            assert names[0] == "operand_not_finite"

    def test_every_operation_has_postconditions(self):
        covered = {op for op, _ in CONTRACTS.all_postconditions}
        assert covered == set(Operation)

    def test_branch_ids_unique(self):
        ids = [b.id for b in BRANCHES]
        assert len(ids) == len(set(ids))
        assert CONTRACTS.branches is BRANCHES

    def test_bounds_recorded(self):
        custom = build_contracts(Bounds(lo=-10, hi=10))
        assert custom.bounds.hi == 10


# ===================================================================
# ERROR CONDITIONS AND POSTCONDITIONS - property-based
# ===================================================================

class TestBinaryContracts:

    @pytest.mark.parametrize("op", BINARY, ids=lambda op: op.value)
    @given(a=values, b=values)
    @settings(max_examples=300)
    def test_binary(self, op, a, b):
        _check(CONTRACTS.operations[op], (float(a), float(b)))


class TestUnaryContracts:

    @pytest.mark.parametrize("op", UNARY, ids=lambda op: op.value)
    @given(x=values)
    @settings(max_examples=300)
    def test_unary(self, op, x):
        _check(CONTRACTS.operations[op], (float(x),))

    @pytest.mark.parametrize("op, x", [
        (Operation.CEILING, 1.146293122134223e-179),
        (Operation.CEILING, -0.5),
        (Operation.CEILING, 1e300),
        (Operation.FLOOR, -1.0597999757402239e-128),
        (Operation.FLOOR, 0.5),
        (Operation.FLOOR, -1e300),
    ])
    def test_rounding_near_zero_and_huge(self, op, x):
        _check(CONTRACTS.operations[op], (x,))

    def test_factorial_exhaustive(self):
        contract = CONTRACTS.operations[Operation.FACTORIAL]
        for n in range(-5, 180):
            _check(contract, (float(n),))


# ===================================================================
# SPECIFIC ERROR CONDITIONS
# ===================================================================

class TestErrorConditions:

    @pytest.mark.parametrize("op, operands", [
        (Operation.ADD, (SAFE_MAX, 1)),
        (Operation.SUBTRACT, (SAFE_MIN, 1)),
        (Operation.DIVIDE, (1, 0)),
        (Operation.MODULO, (1, 0)),
        (Operation.POWER, (10, 1000)),
        (Operation.SQRT, (-1,)),
        (Operation.FACTORIAL, (171,)),
        (Operation.FACTORIAL, (5.5,)),
        (Operation.ROUND, (math.nan,)),
    ])
    def test_trigger_matches_raised(self, op, operands):
        contract = CONTRACTS.operations[op]
        expected = contract.expected_error(*(float(x) for x in operands))
        assert expected is not None
        with pytest.raises(expected):
            CALC.execute(op, *operands)


# ===================================================================
# ALGEBRAIC PROPERTIES - property-based
# ===================================================================

class TestAlgebraicProperties:
    """Every algebraic property holds wherever the calculator succeeds."""

    @given(a=values, b=values)
    @settings(max_examples=300)
    def test_binary_properties(self, a, b):
        for op, prop in CONTRACTS.all_properties:
            if prop.arity != 2:
                continue
            try:
                ok = prop.check(CALC, float(a), float(b))
            except CalculatorError:
                continue
            assert ok, f"Property '{prop.name}' failed for {op.value}({a}, {b})"

    @given(a=values)
    @settings(max_examples=300)
    def test_unary_properties(self, a):
        for op, prop in CONTRACTS.all_properties:
            if prop.arity != 1:
                continue
            try:
                ok = prop.check(CALC, float(a))
            except CalculatorError:
                continue
            assert ok, f"Property '{prop.name}' failed for {op.value}({a})"
