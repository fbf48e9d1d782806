"""FastAPI REST endpoints for the calculator.

Routes
------
GET    /calculator/operations     List operations with their arity
GET    /calculator/{operation}    Operands as query params (?a=&b= or ?value=)
POST   /calculator/{operation}    Operands as a JSON body ({a, b} or {value})

Both calculation routes accept ``?decorated=true`` to receive a
``CalculationRecord`` instead of the plain response.  Operands arrive
untyped and pass through ``Validator.parse`` exactly once here; the
arithmetic core only ever sees floats.

Failures are raised as ``CalculatorError`` and rendered by the handlers
that ``register_error_handlers`` installs on the app.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from calculator import RecordingCalculator, operand_error
from errors import CalculatorError, InvalidOperandError, unexpected_payload
from models import (
    BinaryOperationRequest,
    BinaryOperationResponse,
    CalculationRecord,
    CalculatorResponse,
    ErrorResponse,
    Operation,
    OperationInfo,
    UnaryOperationRequest,
    UnaryOperationResponse,
)
from validation import FIRST_OPERAND, OPERAND, SECOND_OPERAND

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/calculator",
    tags=["calculator"],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)

# The calculator instance is injected by the app factory (see app.py).
_calculator: RecordingCalculator | None = None


def set_calculator(calculator: RecordingCalculator) -> None:
    """Inject the calculator instance. Called once at app startup."""
    global _calculator
    _calculator = calculator


def get_calculator() -> RecordingCalculator:
    assert _calculator is not None, "Calculator not initialized"
    return _calculator


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _operation(name: str) -> Operation:
    try:
        return Operation(name)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown operation: {name}")


def _parse(value: Any, label: str, operation: Operation) -> float:
    validator = get_calculator().calculator.validator
    verdict = validator.parse(value, label)
    if not verdict.valid:
        raise operand_error(verdict, label, operation.label, value)
    return verdict.value


def _run(
    operation: Operation, operands: tuple[float, ...], decorated: bool
) -> tuple[float, CalculationRecord | None]:
    recorder = get_calculator()
    if decorated:
        record = recorder.execute(operation, *operands)
        return record.result, record
    return recorder.calculator.execute(operation, *operands), None


def _operands(operation: Operation, a: Any, b: Any, value: Any) -> tuple[float, ...]:
    if operation.arity == 2:
        return (
            _parse(a, FIRST_OPERAND, operation),
            _parse(b, SECOND_OPERAND, operation),
        )
    return (_parse(value, OPERAND, operation),)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/operations", response_model=list[OperationInfo])
def list_operations() -> list[OperationInfo]:
    """All supported operations."""
    return [
        OperationInfo(name=op, label=op.label, arity=op.arity) for op in Operation
    ]


@router.get("/{operation}", response_model=None)
def calculate_query(
    operation: str,
    a: str | None = Query(default=None, description="First operand"),
    b: str | None = Query(default=None, description="Second operand"),
    value: str | None = Query(default=None, description="Operand of unary operations"),
    decorated: bool = Query(default=False, description="Return a CalculationRecord"),
) -> BinaryOperationResponse | UnaryOperationResponse | CalculationRecord:
    op = _operation(operation)
    operands = _operands(op, a, b, value)
    result, record = _run(op, operands, decorated)
    if record is not None:
        return record
    if op.arity == 2:
        return BinaryOperationResponse(
            operation=op.value, a=operands[0], b=operands[1], result=result
        )
    return UnaryOperationResponse(operation=op.value, value=operands[0], result=result)


@router.post("/{operation}", response_model=None)
def calculate_body(
    operation: str,
    payload: dict[str, Any] | None = Body(default=None),
    decorated: bool = Query(default=False, description="Return a CalculationRecord"),
) -> CalculatorResponse | CalculationRecord:
    op = _operation(operation)
    payload = payload or {}
    if op.arity == 2:
        body = BinaryOperationRequest(**payload)
        operands = _operands(op, body.a, body.b, None)
    else:
        unary = UnaryOperationRequest(**payload)
        operands = _operands(op, None, None, unary.value)
    result, record = _run(op, operands, decorated)
    if record is not None:
        return record
    return CalculatorResponse(result=result, operation=op.value)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------

def _request_fields(request: Request) -> dict[str, str]:
    return {"path": request.url.path, "method": request.method}


async def calculator_error_handler(
    request: Request, exc: CalculatorError
) -> JSONResponse:
    body = {**exc.to_payload(), **_request_fields(request)}
    logger.error(
        "Calculator error: %s - %s %s",
        exc.message, request.method, request.url.path,
        extra={
            "operation": exc.operation,
            "error_code": exc.code.value,
            "kind": exc.kind.value,
            **_request_fields(request),
        },
    )
    return JSONResponse(status_code=exc.status_code, content=body)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed requests are operand errors, rendered like any other."""
    try:
        operation = Operation(request.path_params.get("operation")).label
    except ValueError:
        operation = "validation"
    reason = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    error = InvalidOperandError(
        "Request", f"Invalid request: {reason}", operation=operation
    )
    return await calculator_error_handler(request, error)


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    body = {**unexpected_payload(exc), **_request_fields(request)}
    logger.error(
        "Unexpected error: %s - %s %s",
        exc, request.method, request.url.path,
        exc_info=exc,
        extra={"operation": "system", "error_code": body["errorCode"]},
    )
    return JSONResponse(status_code=500, content=body)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CalculatorError, calculator_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
