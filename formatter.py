"""Decoration of successful results with audit metadata."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable

from models import CalculationRecord, Operation


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def epoch_millis(now: datetime) -> int:
    return (now - _EPOCH) // timedelta(milliseconds=1)


def _new_id(now: datetime) -> str:
    millis = epoch_millis(now)
    return f"calc_{millis}_{uuid.uuid4().hex[:12]}"


def iso_timestamp(now: datetime) -> str:
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class ResultFormatter:
    """Wraps a raw result into a ``CalculationRecord``.

    ``clock`` and ``id_factory`` are injectable so tests can pin time and
    identifiers.  The id factory receives the same instant that is written
    into the record's timestamp.
    """

    clock: Callable[[], datetime] = field(default=_utcnow)
    id_factory: Callable[[datetime], str] = field(default=_new_id)

    def format(self, result: float, operation: Operation | str) -> CalculationRecord:
        now = self.clock()
        return CalculationRecord(
            result=result,
            operation=Operation(operation),
            timestamp=iso_timestamp(now),
            calculation_id=self.id_factory(now),
        )
