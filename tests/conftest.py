"""Shared fixtures for calculator tests."""

from __future__ import annotations

import os
import sys
from datetime import datetime, timezone

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from fastapi.testclient import TestClient

from app import create_app
from calculator import Calculator, RecordingCalculator
from config import Settings
from formatter import ResultFormatter, epoch_millis
from validation import Validator

FIXED_NOW = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)


@pytest.fixture
def validator() -> Validator:
    return Validator()


@pytest.fixture
def calc() -> Calculator:
    return Calculator()


@pytest.fixture
def recorder(calc) -> RecordingCalculator:
    return RecordingCalculator(calculator=calc)


@pytest.fixture
def fixed_formatter() -> ResultFormatter:
    """Formatter with a pinned clock and a deterministic id."""
    return ResultFormatter(
        clock=lambda: FIXED_NOW,
        id_factory=lambda now: f"calc_{epoch_millis(now)}_fixed",
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(log_level="DEBUG", log_format="text", title="SafeCalc Test")


@pytest.fixture
def client(settings) -> TestClient:
    app = create_app(calculator=RecordingCalculator(), settings=settings)
    return TestClient(app)
