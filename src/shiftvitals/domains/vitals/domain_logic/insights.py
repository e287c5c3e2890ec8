"""Read-only aggregations over computed vitals for insight views."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, Literal, Sequence

from shiftvitals.domains.vitals.domain_logic.factors import FACTOR_KEYS, FACTOR_LABELS
from shiftvitals.domains.vitals.domain_logic.models import DailyVital, Shift, StateSnapshot
from shiftvitals.domains.vitals.domain_logic.record_aggregator import (
    aggregate_record,
    has_logged_input,
)
from shiftvitals.domains.vitals.domain_logic.reliability import is_usable_day

MIN_RECORDED_DAYS = 3
MIN_SUMMARY_DAYS = 3

Grade = Literal["S", "A", "B", "C", "D"]


def _avg(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _battery(vital: DailyVital) -> float:
    """The weaker of the two batteries; what limits the day."""
    return min(vital.body.value, vital.mental.value)


def usable_vitals(vitals: Iterable[DailyVital]) -> list[DailyVital]:
    return [v for v in vitals if is_usable_day(v)]


# ---------------------------------------------------------------------------
# Shift statistics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ShiftStat:
    shift: Shift
    days: int
    avg_mental: float
    avg_body: float

    def to_dict(self) -> dict:
        return {
            "shift": self.shift.value,
            "days": self.days,
            "avg_mental": self.avg_mental,
            "avg_body": self.avg_body,
        }


def compute_shift_stats(vitals: Sequence[DailyVital]) -> list[ShiftStat]:
    """Per-shift battery averages, highest mental average first.

    Every shift code gets a row; shifts with no days report zeros.
    """
    rows = []
    for shift in Shift:
        days = [v for v in vitals if v.shift is shift]
        rows.append(
            ShiftStat(
                shift=shift,
                days=len(days),
                avg_mental=round(_avg([v.mental.value for v in days]), 1),
                avg_body=round(_avg([v.body.value for v in days]), 1),
            )
        )
    rows.sort(key=lambda row: -row.avg_mental)
    return rows


def best_and_worst_day(
    vitals: Sequence[DailyVital],
) -> tuple[DailyVital | None, DailyVital | None]:
    """Days with the highest and lowest Body + Mental total (first wins ties)."""
    if not vitals:
        return None, None
    best = worst = vitals[0]
    for vital in vitals[1:]:
        total = vital.body.value + vital.mental.value
        if total > best.body.value + best.mental.value:
            best = vital
        if total < worst.body.value + worst.mental.value:
            worst = vital
    return best, worst


def grade_from_score(score: float) -> Grade:
    if score >= 90:
        return "S"
    if score >= 80:
        return "A"
    if score >= 70:
        return "B"
    if score >= 60:
        return "C"
    return "D"


# ---------------------------------------------------------------------------
# Windows and gates
# ---------------------------------------------------------------------------

def last_completed_week_range(today: date | str) -> tuple[date, date]:
    """Monday..Sunday of the most recent week that has fully ended by ``today``.

    A Sunday counts as the end of its own week.
    """
    day = today if isinstance(today, date) else date.fromisoformat(today)
    sunday = day + timedelta(days=6 - day.weekday())
    if sunday > day:
        sunday -= timedelta(days=7)
    return sunday - timedelta(days=6), sunday


def count_recorded_days(snapshot: StateSnapshot, start: date | str, end: date | str) -> int:
    """Days in ``[start, end]`` with any real health input."""
    day = start if isinstance(start, date) else date.fromisoformat(start)
    last = end if isinstance(end, date) else date.fromisoformat(end)
    count = 0
    while day <= last:
        if has_logged_input(aggregate_record(snapshot, day.isoformat())):
            count += 1
        day += timedelta(days=1)
    return count


def has_enough_records(snapshot: StateSnapshot, start: date | str, end: date | str) -> bool:
    return count_recorded_days(snapshot, start, end) >= MIN_RECORDED_DAYS


# ---------------------------------------------------------------------------
# Weekly summary
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WeeklySummary:
    """Numeric weekly digest; phrasing is left to the presentation layer."""

    avg_battery: int
    prev_avg_battery: int
    delta: int
    top_drains: list[dict] = field(default_factory=list)
    nap_diff: float | None = None
    off_diff: float | None = None

    def to_dict(self) -> dict:
        return {
            "avg_battery": self.avg_battery,
            "prev_avg_battery": self.prev_avg_battery,
            "delta": self.delta,
            "top_drains": list(self.top_drains),
            "nap_diff": self.nap_diff,
            "off_diff": self.off_diff,
        }


def weekly_summary(
    vitals7: Sequence[DailyVital],
    prev_week: Sequence[DailyVital] = (),
) -> WeeklySummary | None:
    """Summarise a week of usable days against the week before.

    Returns None with fewer than three usable days. ``nap_diff`` compares
    Body on nap vs no-nap days (two of each needed); ``off_diff`` compares
    Body on OFF/VAC vs working days (one of each needed).
    """
    week = usable_vitals(vitals7)
    if len(week) < MIN_SUMMARY_DAYS:
        return None

    avg_battery = round(_avg([_battery(v) for v in week]))
    prev = usable_vitals(prev_week)
    prev_avg = round(_avg([_battery(v) for v in prev])) if len(prev) >= MIN_SUMMARY_DAYS else avg_battery

    mean_impacts = {
        key: _avg([float(v.factors.get(key, 0.0)) for v in week]) for key in FACTOR_KEYS
    }
    drains = sorted(
        ((value, FACTOR_KEYS.index(key), key) for key, value in mean_impacts.items() if value > 0.01),
        key=lambda row: (-row[0], row[1]),
    )[:3]
    top_drains = [
        {"key": key, "label": FACTOR_LABELS[key], "pct": round(value * 100)}
        for value, _, key in drains
    ]

    nap_days = [v.body.value for v in week if (v.inputs.nap_hours or 0) > 0]
    no_nap_days = [v.body.value for v in week if (v.inputs.nap_hours or 0) == 0]
    nap_diff = None
    if len(nap_days) >= 2 and len(no_nap_days) >= 2:
        nap_diff = round(_avg(nap_days) - _avg(no_nap_days), 1)

    off_days = [v.body.value for v in week if not v.shift.is_work]
    work_days = [v.body.value for v in week if v.shift.is_work]
    off_diff = None
    if off_days and work_days:
        off_diff = round(_avg(off_days) - _avg(work_days), 1)

    return WeeklySummary(
        avg_battery=avg_battery,
        prev_avg_battery=prev_avg,
        delta=avg_battery - prev_avg,
        top_drains=top_drains,
        nap_diff=nap_diff,
        off_diff=off_diff,
    )
