"""Deterministic sub-index computation: one day's record + carried state -> indices.

Each index is bounded to [0, 1]:

    SRI  sleep recovery       1 = fully restorative sleep
    CIF  caffeine interference 1 = no caffeine left at sleep onset
    CSI  circadian strain     0 = no shift-rhythm pressure
    SLF  sleep loss           0 = slept at least the recent average
    MIF  menstrual impact     1 = no negative impact

Nothing here mutates the rolling state; the orchestrator applies the
returned values.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Mapping

from shiftvitals.domains.vitals.domain_logic.menstrual import PHASE_CONTRIBUTION
from shiftvitals.domains.vitals.domain_logic.models import (
    IRREGULARITY_WINDOW_DAYS,
    NAP_WEIGHT,
    NIGHTS_WINDOW_DAYS,
    SHIFT_WINDOWS,
    SLEEP_DEBT_CAP_HOURS,
    SLEEP_DEBT_DECAY,
    TARGET_SLEEP_HOURS,
    DailyRecord,
    EngineProfile,
    MenstrualContext,
    RollingState,
    Shift,
    clamp,
)

CAFFEINE_HALF_LIFE_HOURS = 5.0
QUICK_RETURN_HOURS = 11.0
LONG_SHIFT_HOURS = 12.0

_TIMING_FACTOR = {"night": 1.0, "mixed": 0.9, "day": 0.8}

# Hours between last caffeine and sleep when the time was not logged
_DEFAULT_CAFFEINE_GAP = {
    Shift.DAY: 6.0,
    Shift.EVENING: 4.0,
    Shift.NIGHT: 2.0,
    Shift.MIDDLE: 5.0,
}


@dataclass(frozen=True)
class DayIndices:
    """Indices and next-state values produced for one day."""

    sleep_debt_hours: float
    debt_n: float
    night_streak: int
    effective_sleep: float | None
    sri: float
    cif: float
    csi: float
    slf: float
    mif: float
    menstrual_phase: str
    caffeine_remaining_mg: float


# ---------------------------------------------------------------------------
# Sleep
# ---------------------------------------------------------------------------

def effective_sleep_hours(record: DailyRecord) -> float | None:
    """Main sleep plus weighted naps; None when main sleep was not logged."""
    if record.sleep_hours is None:
        return None
    return clamp(record.sleep_hours + NAP_WEIGHT * (record.nap_hours or 0.0), 0.0, 14.0)


def update_sleep_debt(prev_debt: float, effective_sleep: float | None) -> float:
    """Accumulate the deficit vs target; well-rested days decay and repay debt."""
    if effective_sleep is None:
        return prev_debt
    deficit = TARGET_SLEEP_HOURS - effective_sleep
    if deficit >= 0:
        debt = prev_debt + deficit
    else:
        debt = prev_debt * SLEEP_DEBT_DECAY + deficit
    return clamp(debt, 0.0, SLEEP_DEBT_CAP_HOURS)


def resolve_sleep_timing(record: DailyRecord) -> str:
    if record.sleep_timing in ("night", "day", "mixed"):
        return record.sleep_timing
    return "day" if record.shift is Shift.NIGHT else "night"


def compute_sri(record: DailyRecord, effective_sleep: float | None, debt_n: float) -> float:
    """Sleep recovery: quantity x quality x timing, discounted by debt."""
    hours = TARGET_SLEEP_HOURS if effective_sleep is None else effective_sleep
    hours_norm = clamp(hours / 8.0)
    quality_norm = 0.8 if record.sleep_quality is None else clamp(record.sleep_quality / 5.0, 0.4, 1.0)
    timing = _TIMING_FACTOR[resolve_sleep_timing(record)]
    return clamp(hours_norm * quality_norm * timing * (1.0 - 0.3 * debt_n))


def compute_slf(effective_sleep: float | None, recent_sleep: list[float]) -> float:
    """Acute sleep loss vs the trailing average; rises steeply with the shortfall."""
    if effective_sleep is None:
        return 0.0
    baseline = sum(recent_sleep) / len(recent_sleep) if recent_sleep else TARGET_SLEEP_HOURS
    if baseline <= 0:
        return 0.0
    shortfall = max(0.0, (baseline - effective_sleep) / baseline)
    return clamp(1.0 - math.exp(-4.0 * shortfall))


# ---------------------------------------------------------------------------
# Caffeine
# ---------------------------------------------------------------------------

def _sleep_onset_hour(shift: Shift, timing: str) -> float:
    if timing == "day":
        return 9.0
    if timing == "mixed":
        return 1.0
    if shift is Shift.EVENING:
        return 1.0
    if shift is Shift.MIDDLE:
        return 0.0
    return 23.0


def caffeine_at_sleep(record: DailyRecord, caffeine_sensitivity: float = 1.0) -> float:
    """Milligrams of caffeine still active at sleep onset (exponential half-life)."""
    mg = record.caffeine_mg or 0.0
    if mg <= 0:
        return 0.0
    half_life = CAFFEINE_HALF_LIFE_HOURS * clamp(caffeine_sensitivity, 0.5, 1.5)
    onset = _sleep_onset_hour(record.shift, resolve_sleep_timing(record))

    if record.caffeine_last_at:
        hh, mm = record.caffeine_last_at.split(":")
        gap = onset - (int(hh) + int(mm) / 60.0)
        if gap < 0:
            gap += 24.0
    else:
        gap = _DEFAULT_CAFFEINE_GAP.get(record.shift, 5.0)
    return max(0.0, mg * 0.5 ** (gap / half_life))


def compute_cif(remaining_mg: float) -> float:
    """Caffeine interference: 100 mg active at sleep onset costs 0.5."""
    return clamp(1.0 - 0.5 * (remaining_mg / 100.0), 0.4, 1.0)


# ---------------------------------------------------------------------------
# Circadian strain
# ---------------------------------------------------------------------------

def _shift_on(schedule: Mapping[str, Shift], day: date) -> Shift:
    return schedule.get(day.isoformat(), Shift.OFF)


def shift_irregularity(schedule: Mapping[str, Shift], iso: str) -> float:
    """Circular variance of working-shift start hours over the trailing week.

    0 when every working day starts at the same hour, 1 for an evenly
    rotating D/E/N pattern. Days off are ignored.
    """
    today = date.fromisoformat(iso)
    angles = []
    for offset in range(IRREGULARITY_WINDOW_DAYS):
        shift = _shift_on(schedule, today - timedelta(days=offset))
        if shift in SHIFT_WINDOWS:
            angles.append(2 * math.pi * SHIFT_WINDOWS[shift][0] / 24.0)
    if len(angles) < 2:
        return 0.0
    c = sum(math.cos(a) for a in angles) / len(angles)
    s = sum(math.sin(a) for a in angles) / len(angles)
    return clamp(1.0 - math.hypot(c, s))


def quick_return_hours(schedule: Mapping[str, Shift], iso: str) -> float | None:
    """Hours between the end of yesterday's shift and the start of today's."""
    today = date.fromisoformat(iso)
    current = _shift_on(schedule, today)
    previous = _shift_on(schedule, today - timedelta(days=1))
    if current not in SHIFT_WINDOWS or previous not in SHIFT_WINDOWS:
        return None
    prev_start, prev_len = SHIFT_WINDOWS[previous]
    prev_end = prev_start + prev_len - 24.0  # relative to today's midnight
    return SHIFT_WINDOWS[current][0] - prev_end


def nights_in_window(schedule: Mapping[str, Shift], iso: str, days: int = NIGHTS_WINDOW_DAYS) -> int:
    today = date.fromisoformat(iso)
    return sum(
        1 for offset in range(days)
        if _shift_on(schedule, today - timedelta(days=offset)) is Shift.NIGHT
    )


def compute_csi(
    record: DailyRecord,
    night_streak: int,
    schedule: Mapping[str, Shift],
    chronotype: float = 0.5,
) -> float:
    """Circadian strain from night streaks, rotation irregularity and schedule load.

    Sub-terms:
        Night load: 0.45 on a first night, +20% per consecutive night (up to 5)
        Irregularity (x0.35): circular variance of the week's start hours
        Quick return: +0.10 when under 11h separate two shifts
        Monthly nights: +0.05 above 8, +0.10 above 15 in 30 days
        Long shift: +0.05 when shift plus overtime reaches 12h

    Morning chronotypes (0) take 10% more strain, evening types (1) 10% less.
    """
    iso = record.date_iso
    strain = 0.0
    if record.shift is Shift.NIGHT:
        strain += 0.45 * (1.0 + 0.2 * (min(night_streak, 5) - 1))

    strain += 0.35 * shift_irregularity(schedule, iso)

    gap = quick_return_hours(schedule, iso)
    if gap is not None and gap < QUICK_RETURN_HOURS:
        strain += 0.10

    nights = nights_in_window(schedule, iso)
    if nights > 15:
        strain += 0.10
    elif nights > 8:
        strain += 0.05

    if record.shift in SHIFT_WINDOWS:
        length = SHIFT_WINDOWS[record.shift][1] + (record.shift_overtime_hours or 0.0)
        if length >= LONG_SHIFT_HOURS:
            strain += 0.05

    chrono_adj = 1.1 - 0.2 * clamp(chronotype)
    return clamp(strain * chrono_adj)


# ---------------------------------------------------------------------------
# Menstrual impact
# ---------------------------------------------------------------------------

def compute_mif(record: DailyRecord, menstrual: MenstrualContext) -> tuple[float, str]:
    """Return ``(MIF, effective_phase)``.

    Logged period or PMS overrides the predicted phase. Disabled tracking
    is always neutral.
    """
    if not menstrual.enabled:
        return 1.0, "none"

    if (record.menstrual_flow or 0) > 0 or record.menstrual_status == "period":
        phase = "period"
    elif record.menstrual_status == "pms":
        phase = "pms"
    else:
        phase = menstrual.phase

    mif = 1.0 - PHASE_CONTRIBUTION.get(phase, 0.0)
    mif -= 0.05 * (record.symptom_severity or 0)
    if record.shift is Shift.NIGHT and phase in ("period", "pms"):
        mif -= 0.05
    return clamp(mif, 0.6, 1.0), phase


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

def compute_indices(
    record: DailyRecord,
    state: RollingState,
    menstrual: MenstrualContext,
    *,
    schedule: Mapping[str, Shift],
    profile: EngineProfile | None = None,
    reliability: float = 1.0,
) -> DayIndices:
    """Compute every sub-index for one day from the prior day's state.

    ``reliability`` below 1 marks imputed sleep: it moves sleep debt and
    acute sleep loss only in proportion, so a stale carried-forward log
    stops accumulating debt once reliability reaches 0.
    """
    profile = profile or EngineProfile()

    night_streak = state.night_streak + 1 if record.shift is Shift.NIGHT else 0

    sleep = effective_sleep_hours(record)
    weight = clamp(reliability)
    prev_debt = state.sleep_debt_hours
    debt = prev_debt + weight * (update_sleep_debt(prev_debt, sleep) - prev_debt)
    debt_n = clamp(debt / 10.0)

    remaining = caffeine_at_sleep(record, profile.caffeine_sensitivity)
    mif, phase = compute_mif(record, menstrual)

    return DayIndices(
        sleep_debt_hours=debt,
        debt_n=debt_n,
        night_streak=night_streak,
        effective_sleep=sleep,
        sri=compute_sri(record, sleep, debt_n),
        cif=compute_cif(remaining),
        csi=compute_csi(record, night_streak, schedule, profile.chronotype),
        slf=weight * compute_slf(sleep, state.recent_sleep),
        mif=mif,
        menstrual_phase=phase,
        caffeine_remaining_mg=remaining,
    )
