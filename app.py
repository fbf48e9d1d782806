"""Application factory and entry point.

Run with:
    uvicorn app:app --reload
"""

from __future__ import annotations

from fastapi import FastAPI

from api import register_error_handlers, router, set_calculator
from calculator import RecordingCalculator
from config import Settings, get_settings
from logs import setup_logging


def create_app(
    calculator: RecordingCalculator | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    Accepts an optional calculator and settings for testing; falls back
    to a default calculator and the environment settings if omitted.
    """
    if settings is None:
        settings = get_settings()
    if calculator is None:
        calculator = RecordingCalculator()

    setup_logging(settings.log_level, settings.log_format)
    set_calculator(calculator)

    app = FastAPI(
        title=settings.title,
        description=(
            "Validated arithmetic over IEEE-754 doubles. Operands and results "
            "are checked against the safe-integer range and every failure is "
            "reported as a structured error with a stable error code."
        ),
        version=settings.version,
    )
    app.include_router(router)
    register_error_handlers(app)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


# Default app instance for `uvicorn app:app`
app = create_app()
