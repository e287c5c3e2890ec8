"""Imputation and input reliability for days without logged data."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from shiftvitals.domains.vitals.domain_logic.models import (
    RELIABILITY_HORIZON_DAYS,
    USABLE_MAX_GAP_DAYS,
    USABLE_MIN_RELIABILITY,
    DailyRecord,
)

if TYPE_CHECKING:
    from shiftvitals.domains.vitals.domain_logic.models import DailyVital

# Habitual fields that are reasonable to assume persist for a few days.
# Events (symptoms, menstrual status/flow, overtime, notes) are never carried.
CARRY_FORWARD_FIELDS = (
    "sleep_hours",
    "nap_hours",
    "sleep_quality",
    "sleep_timing",
    "stress",
    "activity",
    "caffeine_mg",
    "caffeine_last_at",
    "fatigue_level",
    "mood",
)


def reliability_from_gap(gap: int) -> float:
    """Confidence in imputed inputs ``gap`` days after the last real log.

    1.0 at gap 0, strictly decreasing, exactly 0.0 from the horizon on::

        gap:  0     1     2     3     4     5     6     7
              1.00  0.79  0.60  0.43  0.28  0.15  0.05  0.00
    """
    if gap <= 0:
        return 1.0
    remaining = max(0.0, 1.0 - gap / RELIABILITY_HORIZON_DAYS)
    return remaining ** 1.5


def merge_known(known: DailyRecord | None, record: DailyRecord) -> DailyRecord:
    """Fold a logged record's carry-forward fields into the last-known record."""
    if known is None:
        return record
    updates = {
        name: getattr(record, name)
        for name in CARRY_FORWARD_FIELDS
        if getattr(record, name) is not None
    }
    return replace(known, date_iso=record.date_iso, shift=record.shift, **updates)


def estimate_reliability(
    record: DailyRecord,
    last_known: DailyRecord | None,
    gap: int,
    *,
    logged: bool,
) -> tuple[DailyRecord, float, int]:
    """Return ``(record_used, input_reliability, days_since_any_input)``.

    Logged days pass through untouched with full reliability. For unlogged
    days every carry-forward field missing from ``record`` is copied from
    ``last_known``; date, shift and day-specific events stay the day's own.
    """
    if logged:
        return record, 1.0, 0

    gap = max(1, gap)
    if last_known is None:
        return record, reliability_from_gap(gap), gap

    updates = {
        name: getattr(last_known, name)
        for name in CARRY_FORWARD_FIELDS
        if getattr(record, name) is None and getattr(last_known, name) is not None
    }
    return replace(record, **updates), reliability_from_gap(gap), gap


def is_usable_day(vital: DailyVital) -> bool:
    """Caller contract for 7-day windows: recent enough and confident enough."""
    return (
        vital.engine.input_reliability >= USABLE_MIN_RELIABILITY
        and vital.engine.days_since_any_input <= USABLE_MAX_GAP_DAYS
    )
