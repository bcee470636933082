"""Consumption resolution from cumulative meter readings."""

import logging
from datetime import date

from utilbill.schemas.billing import ConsumptionResult, MeterReadingRecord
from utilbill.services.errors import NotFoundError, ValidationError
from utilbill.services.sources import MeterReadingStore

logger = logging.getLogger(__name__)


def dedupe_readings(readings: list[MeterReadingRecord]) -> list[MeterReadingRecord]:
    """Collapse repeated readings, keeping one record per reading date.

    Stores replaying live updates can return the same reading twice. When
    two records share a date the one with the higher id (the later write)
    wins. The result is sorted by reading date.
    """
    by_date: dict[date, MeterReadingRecord] = {}
    for reading in readings:
        kept = by_date.get(reading.reading_date)
        if kept is None or (reading.id or 0) >= (kept.id or 0):
            by_date[reading.reading_date] = reading
    return [by_date[d] for d in sorted(by_date)]


def compute_consumption(
    current: MeterReadingRecord,
    previous: MeterReadingRecord | None,
) -> ConsumptionResult:
    """Derive consumption from a current reading and its predecessor.

    Without a predecessor the whole current reading counts as consumption.
    A current reading below the previous one is rejected, never clamped.
    """
    if current.current_reading < 0:
        raise ValidationError(
            f"Reading for unit {current.unit_id} on {current.reading_date} is negative"
        )

    if previous is None:
        logger.debug(
            "First reading for unit %s utility %s", current.unit_id, current.utility_type_id
        )
        return ConsumptionResult(
            unit_id=current.unit_id,
            utility_type_id=current.utility_type_id,
            reading_date=current.reading_date,
            current_reading=current.current_reading,
            previous_reading=None,
            consumption=current.current_reading,
            is_first_reading=True,
        )

    consumption = current.current_reading - previous.current_reading
    if consumption < 0:
        raise ValidationError(
            f"Current reading {current.current_reading} for unit {current.unit_id} "
            f"is below previous reading {previous.current_reading}"
        )
    return ConsumptionResult(
        unit_id=current.unit_id,
        utility_type_id=current.utility_type_id,
        reading_date=current.reading_date,
        current_reading=current.current_reading,
        previous_reading=previous.current_reading,
        consumption=consumption,
        is_first_reading=False,
    )


def resolve_consumption(
    readings: MeterReadingStore,
    unit_id: int,
    utility_type_id: int,
    period_end: date,
    period_start: date | None = None,
) -> ConsumptionResult:
    """Resolve consumption for a unit and utility type up to period_end.

    The current reading is the latest one dated on or before period_end
    (and on or after period_start when given). The previous reading is the
    latest one dated strictly before the current reading.
    """
    history = dedupe_readings(
        [
            r
            for r in readings.list_readings(unit_id, utility_type_id, period_end)
            if r.unit_id == unit_id
            and r.utility_type_id == utility_type_id
            and r.reading_date <= period_end
        ]
    )

    in_period = [r for r in history if period_start is None or r.reading_date >= period_start]
    if not in_period:
        raise NotFoundError(
            f"No reading for unit {unit_id} utility type {utility_type_id} "
            f"on or before {period_end}"
        )

    current = in_period[-1]
    earlier = [r for r in history if r.reading_date < current.reading_date]
    previous = earlier[-1] if earlier else None
    return compute_consumption(current, previous)
