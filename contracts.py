"""Machine-readable contracts for the safe calculator.

Each operation is described as a collection of:
- error conditions: inputs that must raise a specific ``CalculatorError``
- postconditions: what the output must satisfy when no error is raised
- algebraic properties: relationships that must hold between calls

Conformance tests iterate over these contracts instead of hand-writing a
test per rule, so a rule added here is exercised automatically.

Layers
------
ErrorCondition     trigger predicate + expected exception class
Postcondition      predicate over operands and result
AlgebraicProperty  predicate over a calculator instance and free values
OperationContract  the full contract of one operation
BranchSpec         every decision point white-box tests must cover
CalculatorContract contracts for all twelve operations
build_contracts()  constructs a CalculatorContract for given bounds
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable

from bounds import FACTORIAL_MAX_INPUT, SAFE, Bounds, Breach
from calculator import ieee_pow
from errors import (
    CalculatorError,
    DivisionByZeroError,
    InvalidOperandError,
    InvalidOperationError,
    InvalidResultError,
    ModuloByZeroError,
    OverflowError,
    UnderflowError,
)
from models import Operation


# ---------------------------------------------------------------------------
# Contract building blocks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorCondition:
    name: str
    description: str
    trigger: Callable[..., bool]
    exception: type[CalculatorError]


@dataclass(frozen=True)
class Postcondition:
    name: str
    description: str
    check: Callable[..., bool]


@dataclass(frozen=True)
class AlgebraicProperty:
    name: str
    description: str
    arity: int          # how many free input values the check needs
    check: Callable[..., bool]


@dataclass(frozen=True)
class OperationContract:
    operation: Operation
    error_conditions: list[ErrorCondition] = field(default_factory=list)
    postconditions: list[Postcondition] = field(default_factory=list)
    properties: list[AlgebraicProperty] = field(default_factory=list)

    def expected_error(self, *operands: float) -> type[CalculatorError] | None:
        """First error condition triggered by ``operands``, if any."""
        for condition in self.error_conditions:
            if condition.trigger(*operands):
                return condition.exception
        return None


@dataclass(frozen=True)
class BranchSpec:
    """A decision point in the implementation that must be exercised."""

    id: str
    description: str
    condition: str      # human-readable boolean expression
    operation: str      # which operation / helper this belongs to


@dataclass(frozen=True)
class CalculatorContract:
    bounds: Bounds
    operations: dict[Operation, OperationContract]
    branches: list[BranchSpec]

    @property
    def all_properties(self) -> list[tuple[Operation, AlgebraicProperty]]:
        return [
            (op, prop)
            for op, contract in self.operations.items()
            for prop in contract.properties
        ]

    @property
    def all_postconditions(self) -> list[tuple[Operation, Postcondition]]:
        return [
            (op, post)
            for op, contract in self.operations.items()
            for post in contract.postconditions
        ]


# ---------------------------------------------------------------------------
# Helpers used inside the contract predicates
# ---------------------------------------------------------------------------

def _any_non_finite(*operands: float) -> bool:
    return any(not math.isfinite(x) for x in operands)


def _same(a: float, b: float) -> bool:
    """Bit-level equality: NaN equals NaN and -0.0 differs from 0.0."""
    if math.isnan(a) or math.isnan(b):
        return math.isnan(a) and math.isnan(b)
    return a == b and math.copysign(1.0, a) == math.copysign(1.0, b)


def _operand_condition() -> ErrorCondition:
    return ErrorCondition(
        "operand_not_finite",
        "InvalidOperandError when any operand is NaN or infinite",
        _any_non_finite,
        InvalidOperandError,
    )


def _range_conditions(
    bounds: Bounds, raw: Callable[..., float]
) -> list[ErrorCondition]:
    """Overflow / underflow / invalid-result conditions over ``raw``."""
    non_finite = {
        Breach.POSITIVE_INFINITY,
        Breach.NEGATIVE_INFINITY,
        Breach.NOT_A_NUMBER,
    }
    return [
        ErrorCondition(
            "result_not_finite",
            "InvalidResultError when the raw result is +/-inf or NaN",
            lambda *xs: bounds.breach(raw(*xs)) in non_finite,
            InvalidResultError,
        ),
        ErrorCondition(
            "overflow",
            "OverflowError when the raw result exceeds the upper bound",
            lambda *xs: bounds.breach(raw(*xs)) is Breach.ABOVE,
            OverflowError,
        ),
        ErrorCondition(
            "underflow",
            "UnderflowError when the raw result is below the lower bound",
            lambda *xs: bounds.breach(raw(*xs)) is Breach.BELOW,
            UnderflowError,
        ),
    ]


def _in_bounds(bounds: Bounds) -> Postcondition:
    return Postcondition(
        "result_in_bounds",
        "Result is finite and within bounds",
        lambda *args: bounds.breach(args[-1]) is Breach.NONE,
    )


def _integral_result() -> Postcondition:
    return Postcondition(
        "result_integral",
        "Result has no fractional part",
        lambda x, result: result.is_integer(),
    )


# ---------------------------------------------------------------------------
# Branches
# ---------------------------------------------------------------------------

BRANCHES = [
    # Operand validation (Calculator._operand)
    BranchSpec("OPERAND-VALID", "Operand accepted", "finite number", "validation"),
    BranchSpec(
        "OPERAND-INVALID-A",
        "First operand rejected",
        "a is None, non-numeric, NaN or infinite",
        "validation",
    ),
    BranchSpec(
        "OPERAND-INVALID-B",
        "Second operand rejected (first was valid)",
        "b is None, non-numeric, NaN or infinite",
        "validation",
    ),
    # Result checks (Calculator._checked)
    BranchSpec("RESULT-IN-RANGE", "Result returned", "SAFE_MIN <= r <= SAFE_MAX", "result"),
    BranchSpec("RESULT-OVERFLOW", "OverflowError raised", "r > SAFE_MAX", "result"),
    BranchSpec("RESULT-UNDERFLOW", "UnderflowError raised", "r < SAFE_MIN", "result"),
    BranchSpec(
        "RESULT-NOT-FINITE", "InvalidResultError raised", "r is +/-inf or NaN", "result"
    ),
    # Division and modulo
    BranchSpec("DIV-NORMAL", "Quotient computed", "b != 0", "divide"),
    BranchSpec("DIV-ZERO", "DivisionByZeroError raised", "b == 0", "divide"),
    BranchSpec("MOD-NORMAL", "Truncating remainder computed", "b != 0", "modulo"),
    BranchSpec("MOD-ZERO", "ModuloByZeroError raised", "b == 0", "modulo"),
    # Square root
    BranchSpec("SQRT-NEGATIVE", "InvalidOperationError raised", "x < 0", "sqrt"),
    # Factorial
    BranchSpec("FACT-NEGATIVE", "InvalidOperationError raised", "n < 0", "factorial"),
    BranchSpec(
        "FACT-NON-INTEGER", "InvalidOperandError raised", "n has a fraction", "factorial"
    ),
    BranchSpec(
        "FACT-TOO-LARGE",
        "InvalidOperationError raised",
        f"n > {FACTORIAL_MAX_INPUT}",
        "factorial",
    ),
    BranchSpec(
        "FACT-INTERMEDIATE-OVERFLOW",
        "OverflowError raised when a partial product is not finite",
        "not isfinite(product)",
        "factorial",
    ),
    # Rounding
    BranchSpec(
        "ROUND-HALF-UP", "Ties round towards +inf", "x - floor(x) == 0.5", "round"
    ),
]


# ---------------------------------------------------------------------------
# Contract builder
# ---------------------------------------------------------------------------

def build_contracts(bounds: Bounds = SAFE) -> CalculatorContract:
    """Construct the contracts of all twelve operations for ``bounds``."""

    # ------------------------------------------------------------------ add
    add = OperationContract(
        Operation.ADD,
        error_conditions=[
            _operand_condition(),
            *_range_conditions(bounds, lambda a, b: a + b),
        ],
        postconditions=[
            _in_bounds(bounds),
            Postcondition(
                "result_correct",
                "Result is the IEEE-754 sum",
                lambda a, b, result: _same(result, a + b),
            ),
        ],
        properties=[
            AlgebraicProperty(
                "commutativity", "add(a, b) == add(b, a)", 2,
                lambda calc, a, b: calc.add(a, b) == calc.add(b, a),
            ),
            AlgebraicProperty(
                "identity", "add(a, 0) == a", 1,
                lambda calc, a: calc.add(a, 0) == a,
            ),
        ],
    )

    # ------------------------------------------------------------- subtract
    subtract = OperationContract(
        Operation.SUBTRACT,
        error_conditions=[
            _operand_condition(),
            *_range_conditions(bounds, lambda a, b: a - b),
        ],
        postconditions=[
            _in_bounds(bounds),
            Postcondition(
                "result_correct",
                "Result is the IEEE-754 difference",
                lambda a, b, result: _same(result, a - b),
            ),
        ],
        properties=[
            AlgebraicProperty(
                "self_inverse", "subtract(a, a) == 0", 1,
                lambda calc, a: calc.subtract(a, a) == 0,
            ),
            AlgebraicProperty(
                "anti_commutativity", "subtract(a, b) == -subtract(b, a)", 2,
                lambda calc, a, b: calc.subtract(a, b) == -calc.subtract(b, a),
            ),
        ],
    )

    # ------------------------------------------------------------- multiply
    multiply = OperationContract(
        Operation.MULTIPLY,
        error_conditions=[
            _operand_condition(),
            *_range_conditions(bounds, lambda a, b: a * b),
        ],
        postconditions=[
            _in_bounds(bounds),
            Postcondition(
                "result_correct",
                "Result is the IEEE-754 product",
                lambda a, b, result: _same(result, a * b),
            ),
        ],
        properties=[
            AlgebraicProperty(
                "commutativity", "multiply(a, b) == multiply(b, a)", 2,
                lambda calc, a, b: calc.multiply(a, b) == calc.multiply(b, a),
            ),
            AlgebraicProperty(
                "identity", "multiply(a, 1) == a", 1,
                lambda calc, a: calc.multiply(a, 1) == a,
            ),
            AlgebraicProperty(
                "zero", "multiply(a, 0) == 0", 1,
                lambda calc, a: calc.multiply(a, 0) == 0,
            ),
        ],
    )

    # --------------------------------------------------------------- divide
    divide = OperationContract(
        Operation.DIVIDE,
        error_conditions=[
            _operand_condition(),
            ErrorCondition(
                "division_by_zero",
                "DivisionByZeroError when the divisor is zero",
                lambda a, b: b == 0,
                DivisionByZeroError,
            ),
            *_range_conditions(bounds, lambda a, b: a / b),
        ],
        postconditions=[
            _in_bounds(bounds),
            Postcondition(
                "result_correct",
                "Result is the IEEE-754 quotient",
                lambda a, b, result: _same(result, a / b),
            ),
        ],
        properties=[
            AlgebraicProperty(
                "identity", "divide(a, 1) == a", 1,
                lambda calc, a: calc.divide(a, 1) == a,
            ),
            AlgebraicProperty(
                "self", "divide(a, a) == 1 for a != 0", 1,
                lambda calc, a: a == 0 or calc.divide(a, a) == 1,
            ),
        ],
    )

    # ---------------------------------------------------------------- power
    power = OperationContract(
        Operation.POWER,
        error_conditions=[
            _operand_condition(),
            *_range_conditions(bounds, ieee_pow),
        ],
        postconditions=[
            _in_bounds(bounds),
            Postcondition(
                "result_correct",
                "Result is the IEEE-754 power",
                lambda a, b, result: _same(result, ieee_pow(a, b)),
            ),
        ],
        properties=[
            AlgebraicProperty(
                "zero_exponent", "power(a, 0) == 1", 1,
                lambda calc, a: calc.power(a, 0) == 1,
            ),
            AlgebraicProperty(
                "unit_exponent", "power(a, 1) == a", 1,
                lambda calc, a: calc.power(a, 1) == a,
            ),
        ],
    )

    # --------------------------------------------------------------- modulo
    modulo = OperationContract(
        Operation.MODULO,
        error_conditions=[
            _operand_condition(),
            ErrorCondition(
                "modulo_by_zero",
                "ModuloByZeroError when the divisor is zero",
                lambda a, b: b == 0,
                ModuloByZeroError,
            ),
        ],
        postconditions=[
            Postcondition(
                "smaller_than_divisor",
                "|result| < |b|",
                lambda a, b, result: abs(result) < abs(b),
            ),
            Postcondition(
                "sign_of_dividend",
                "Result is zero or has the sign of the dividend",
                lambda a, b, result: result == 0 or (result < 0) == (a < 0),
            ),
        ],
        properties=[
            AlgebraicProperty(
                "divisor_sign_irrelevant", "modulo(a, b) == modulo(a, -b)", 2,
                lambda calc, a, b: b == 0 or calc.modulo(a, b) == calc.modulo(a, -b),
            ),
        ],
    )

    # ----------------------------------------------------------------- sqrt
    sqrt = OperationContract(
        Operation.SQRT,
        error_conditions=[
            _operand_condition(),
            ErrorCondition(
                "negative_operand",
                "InvalidOperationError when the operand is negative",
                lambda x: x < 0,
                InvalidOperationError,
            ),
        ],
        postconditions=[
            Postcondition(
                "non_negative", "Result is >= 0", lambda x, result: result >= 0
            ),
            Postcondition(
                "squares_back",
                "result * result is close to the operand",
                lambda x, result: math.isclose(
                    result * result, x, rel_tol=1e-12, abs_tol=1e-300
                ),
            ),
        ],
        properties=[
            AlgebraicProperty(
                "perfect_square", "sqrt(a * a) == |a| for small integers", 1,
                lambda calc, a: (
                    abs(a) > 2**26 or not float(a).is_integer()
                    or calc.sqrt(a * a) == abs(a)
                ),
            ),
        ],
    )

    # ------------------------------------------------------------ factorial
    factorial = OperationContract(
        Operation.FACTORIAL,
        error_conditions=[
            _operand_condition(),
            ErrorCondition(
                "negative_operand",
                "InvalidOperationError when the operand is negative",
                lambda n: n < 0,
                InvalidOperationError,
            ),
            ErrorCondition(
                "fractional_operand",
                "InvalidOperandError when the operand has a fractional part",
                lambda n: not float(n).is_integer(),
                InvalidOperandError,
            ),
            ErrorCondition(
                "operand_too_large",
                f"InvalidOperationError when the operand exceeds {FACTORIAL_MAX_INPUT}",
                lambda n: n > FACTORIAL_MAX_INPUT,
                InvalidOperationError,
            ),
        ],
        postconditions=[
            Postcondition(
                "finite", "Result is finite", lambda n, result: math.isfinite(result)
            ),
            Postcondition(
                "result_correct",
                "Result is close to the exact factorial",
                lambda n, result: math.isclose(
                    result, math.factorial(int(n)), rel_tol=1e-12
                ),
            ),
        ],
        properties=[
            AlgebraicProperty(
                "recurrence", "factorial(n) == n * factorial(n - 1) for 1 <= n <= 170", 1,
                lambda calc, n: (
                    not (1 <= n <= FACTORIAL_MAX_INPUT) or not float(n).is_integer()
                    or calc.factorial(n) == n * calc.factorial(n - 1)
                ),
            ),
        ],
    )

    # ------------------------------------------------------------- absolute
    absolute = OperationContract(
        Operation.ABSOLUTE,
        error_conditions=[_operand_condition()],
        postconditions=[
            Postcondition(
                "result_correct", "Result is |x|",
                lambda x, result: result == abs(x) and result >= 0,
            ),
        ],
        properties=[
            AlgebraicProperty(
                "idempotence", "absolute(absolute(a)) == absolute(a)", 1,
                lambda calc, a: calc.absolute(calc.absolute(a)) == calc.absolute(a),
            ),
            AlgebraicProperty(
                "symmetry", "absolute(-a) == absolute(a)", 1,
                lambda calc, a: calc.absolute(-a) == calc.absolute(a),
            ),
        ],
    )

    # -------------------------------------------------------------- ceiling
    ceiling = OperationContract(
        Operation.CEILING,
        error_conditions=[_operand_condition()],
        # A non-integral x is below 2**52, so result - 1 is exact there.
        postconditions=[
            _integral_result(),
            Postcondition(
                "smallest_above",
                "x <= result < x + 1, compared without rounding",
                lambda x, result: x <= result and (result == x or result - 1 < x),
            ),
        ],
        properties=[
            AlgebraicProperty(
                "floor_duality", "ceiling(a) == -floor(-a)", 1,
                lambda calc, a: calc.ceiling(a) == -calc.floor(-a),
            ),
        ],
    )

    # ---------------------------------------------------------------- floor
    floor = OperationContract(
        Operation.FLOOR,
        error_conditions=[_operand_condition()],
        postconditions=[
            _integral_result(),
            Postcondition(
                "largest_below",
                "x - 1 < result <= x, compared without rounding",
                lambda x, result: result <= x and (result == x or x < result + 1),
            ),
        ],
        properties=[
            AlgebraicProperty(
                "idempotence", "floor(floor(a)) == floor(a)", 1,
                lambda calc, a: calc.floor(calc.floor(a)) == calc.floor(a),
            ),
        ],
    )

    # ---------------------------------------------------------------- round
    round_ = OperationContract(
        Operation.ROUND,
        error_conditions=[_operand_condition()],
        postconditions=[
            _integral_result(),
            Postcondition(
                "nearest",
                "|result - x| <= 0.5",
                lambda x, result: abs(result - x) <= 0.5,
            ),
            Postcondition(
                "ties_up",
                "A tie rounds towards +inf",
                lambda x, result: abs(result - x) != 0.5 or result > x,
            ),
        ],
        properties=[
            AlgebraicProperty(
                "between_floor_and_ceiling", "floor(a) <= round(a) <= ceiling(a)", 1,
                lambda calc, a: calc.floor(a) <= calc.round(a) <= calc.ceiling(a),
            ),
        ],
    )

    return CalculatorContract(
        bounds=bounds,
        operations={
            contract.operation: contract
            for contract in (
                add, subtract, multiply, divide, power, modulo,
                sqrt, factorial, absolute, ceiling, floor, round_,
            )
        },
        branches=BRANCHES,
    )
