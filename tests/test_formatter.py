"""Tests for result decoration and the recording calculator."""

from __future__ import annotations

import re
from datetime import datetime, timezone

import pytest

from calculator import Calculator, RecordingCalculator
from errors import DivisionByZeroError, InvalidOperandError
from formatter import ResultFormatter, epoch_millis, iso_timestamp
from models import CalculationRecord, Operation

ID_PATTERN = re.compile(r"^calc_\d+_[0-9a-f]{12}$")


class TestResultFormatter:

    def test_format_pinned(self, fixed_formatter):
        record = fixed_formatter.format(8.0, Operation.ADD)
        assert record == CalculationRecord(
            result=8.0,
            operation=Operation.ADD,
            timestamp="2024-01-02T03:04:05.678Z",
            calculation_id="calc_1704164645678_fixed",
        )

    def test_operation_name_accepted(self, fixed_formatter):
        assert fixed_formatter.format(1.0, "sqrt").operation is Operation.SQRT

    def test_unknown_operation_rejected(self, fixed_formatter):
        with pytest.raises(ValueError):
            fixed_formatter.format(1.0, "cube")

    def test_default_id_shape(self):
        record = ResultFormatter().format(1.0, Operation.ADD)
        assert ID_PATTERN.match(record.calculation_id)
        assert record.timestamp.endswith("Z")

    def test_id_embeds_timestamp_millis(self):
        record = ResultFormatter().format(1.0, Operation.ADD)
        millis = int(record.calculation_id.split("_")[1])
        stamp = datetime.fromisoformat(record.timestamp.replace("Z", "+00:00"))
        assert millis == epoch_millis(stamp)

    def test_distinct_ids(self):
        formatter = ResultFormatter()
        ids = {formatter.format(1.0, Operation.ADD).calculation_id for _ in range(100)}
        assert len(ids) == 100

    def test_iso_timestamp(self):
        now = datetime(2024, 5, 6, 7, 8, 9, 123456, tzinfo=timezone.utc)
        assert iso_timestamp(now) == "2024-05-06T07:08:09.123Z"

    def test_record_serializes_with_alias(self, fixed_formatter):
        data = fixed_formatter.format(2.0, Operation.FLOOR).model_dump(
            by_alias=True, mode="json"
        )
        assert data == {
            "result": 2.0,
            "operation": "floor",
            "timestamp": "2024-01-02T03:04:05.678Z",
            "calculationId": "calc_1704164645678_fixed",
        }


class TestRecordingCalculator:

    def test_named_methods(self, fixed_formatter):
        recorder = RecordingCalculator(formatter=fixed_formatter)
        assert recorder.add(5, 3).result == 8
        assert recorder.subtract(5, 3).result == 2
        assert recorder.multiply(5, 3).result == 15
        assert recorder.divide(6, 3).result == 2
        assert recorder.power(2, 3).result == 8
        assert recorder.modulo(7, 3).result == 1
        assert recorder.sqrt(9).result == 3
        assert recorder.factorial(4).result == 24
        assert recorder.absolute(-2).result == 2
        assert recorder.ceiling(1.2).result == 2
        assert recorder.floor(1.8).result == 1
        assert recorder.round(1.5).result == 2

    def test_record_operation_matches(self, recorder):
        record = recorder.execute("modulo", 7, 3)
        assert record.operation is Operation.MODULO

    def test_errors_propagate_undecorated(self, recorder):
        with pytest.raises(DivisionByZeroError):
            recorder.divide(1, 0)
        with pytest.raises(InvalidOperandError):
            recorder.sqrt(None)

    def test_agrees_with_raw(self):
        calc = Calculator()
        recorder = RecordingCalculator(calculator=calc)
        assert recorder.divide(1, 3).result == calc.divide(1, 3)

    def test_two_calls_distinct_ids(self, recorder):
        first = recorder.add(1, 1)
        second = recorder.add(1, 1)
        assert first.result == second.result
        assert first.calculation_id != second.calculation_id
