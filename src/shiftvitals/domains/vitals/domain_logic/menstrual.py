"""Menstrual cycle phase resolution.

Phase prediction is deliberately conservative: it only ever runs forward
from a user-supplied period start date and never invents a cycle when
tracking is off.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from typing import Any, Mapping

from shiftvitals.domains.vitals.domain_logic.models import (
    MenstrualConfig,
    MenstrualContext,
    MenstrualPhase,
)

# Recovery impact of each phase, fed into MIF (1 - contribution)
PHASE_CONTRIBUTION: dict[str, float] = {
    "period": 0.20,
    "pms": 0.15,
    "luteal": 0.05,
    "ovulation": 0.0,
    "follicular": 0.0,
    "none": 0.0,
}

PHASE_LABELS: dict[str, str] = {
    "period": "Period",
    "pms": "Pre-period (PMS)",
    "ovulation": "Stable window",
    "follicular": "Stable window",
    "luteal": "Variable-condition window",
    "none": "Cycle",
}


def _clamp_int(value: Any, lo: int, hi: int, default: int) -> int:
    try:
        v = int(value)
    except (TypeError, ValueError):
        v = default
    return max(lo, min(hi, v))


def _parse_date(iso: str | date | None) -> date | None:
    if iso is None:
        return None
    if isinstance(iso, date):
        return iso
    try:
        return date.fromisoformat(iso)
    except ValueError:
        return None


def _untracked(enabled: bool = False) -> MenstrualContext:
    return MenstrualContext(
        enabled=enabled,
        phase="none",
        label=PHASE_LABELS["none"],
        day_in_cycle=None,
        contribution=0.0,
    )


def ovulation_day_index(cycle_length: int) -> int:
    """Zero-based cycle day of (approximate) ovulation."""
    return max(6, min(cycle_length - 8, cycle_length - 14))


def resolve_menstrual_phase(config: MenstrualConfig | None, target: str | date) -> MenstrualContext:
    """Resolve the predicted cycle phase for ``target``.

    Returns phase ``none`` with zero contribution when tracking is disabled,
    when no period start is known, or for dates before that start. Only the
    last case still reports tracking as enabled.
    """
    if config is None or not config.enabled:
        return _untracked()
    last = _parse_date(config.last_period_start)
    day = _parse_date(target)
    if last is None or day is None:
        return _untracked()

    delta = (day - last).days
    if delta < 0:
        return _untracked(enabled=True)

    cycle_length = _clamp_int(config.cycle_length, 20, 45, 28)
    period_length = _clamp_int(config.period_length, 2, 10, 5)
    pms_days = _clamp_int(config.pms_days, 2, 10, 4)

    cycle_day = delta % cycle_length
    ovulation = ovulation_day_index(cycle_length)
    pms_start = max(0, cycle_length - pms_days)

    phase: MenstrualPhase
    if cycle_day < period_length:
        phase = "period"
    elif cycle_day >= pms_start:
        phase = "pms"
    elif cycle_day == ovulation:
        phase = "ovulation"
    elif cycle_day < ovulation:
        phase = "follicular"
    else:
        phase = "luteal"

    return MenstrualContext(
        enabled=True,
        phase=phase,
        label=PHASE_LABELS[phase],
        day_in_cycle=cycle_day + 1,
        contribution=PHASE_CONTRIBUTION[phase],
    )


def menstrual_contribution(phase: str) -> float:
    """Recovery impact (0..0.2) of a phase tag."""
    return PHASE_CONTRIBUTION.get(phase, 0.0)


# ---------------------------------------------------------------------------
# Settings auto-adjustment from logged periods
# ---------------------------------------------------------------------------

def _flow(bio: Mapping[str, Any] | None) -> int:
    if not bio:
        return 0
    return _clamp_int(bio.get("menstrualFlow", bio.get("menstrual_flow")) or 0, 0, 3, 0)


def _status(bio: Mapping[str, Any] | None) -> str | None:
    if not bio:
        return None
    raw = bio.get("menstrualStatus", bio.get("menstrual_status"))
    return raw if raw in ("none", "pms", "period") else None


def _is_period(bio: Mapping[str, Any] | None) -> bool:
    return _flow(bio) > 0 or _status(bio) == "period"


def auto_adjust_menstrual_config(
    config: MenstrualConfig,
    iso: str,
    bio: Mapping[str, Any] | None,
    prev_bio: Mapping[str, Any] | None = None,
    bio_map: Mapping[str, Mapping[str, Any]] | None = None,
) -> MenstrualConfig | None:
    """Learn cycle settings from what the user logged on ``iso``.

    Returns the adjusted config, or None when nothing changed. Observed
    lengths are blended 70/30 with the current setting so one irregular
    cycle cannot swing predictions.
    """
    if not bio:
        return None

    today = _parse_date(iso)
    if today is None:
        return None

    is_period = _is_period(bio)
    was_period = _is_period(prev_bio)
    started = is_period and not was_period
    ended = not is_period and was_period

    current = MenstrualConfig(
        enabled=config.enabled,
        last_period_start=config.last_period_start,
        cycle_length=_clamp_int(config.cycle_length, 20, 45, 28),
        period_length=_clamp_int(config.period_length, 2, 10, 5),
        pms_days=_clamp_int(config.pms_days, 2, 10, 4),
    )
    updated = current

    if is_period and not updated.enabled:
        updated = replace(updated, enabled=True)

    if started:
        last = _parse_date(updated.last_period_start)
        if last is not None:
            observed = (today - last).days
            if 20 <= observed <= 45:
                blended = round(updated.cycle_length * 0.7 + observed * 0.3)
                updated = replace(updated, cycle_length=_clamp_int(blended, 20, 45, 28))
        updated = replace(updated, last_period_start=today.isoformat())

    if ended and bio_map is not None:
        length = 0
        cursor = today - timedelta(days=1)
        while length < 15 and _is_period(bio_map.get(cursor.isoformat())):
            length += 1
            cursor -= timedelta(days=1)
        if 2 <= length <= 10:
            blended = round(updated.period_length * 0.7 + length * 0.3)
            updated = replace(updated, period_length=_clamp_int(blended, 2, 10, 5))

    if _status(bio) == "pms" and updated.pms_days < 4:
        updated = replace(updated, pms_days=4)

    return updated if updated != current else None
