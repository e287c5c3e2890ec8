"""Structured numeric context for the recovery recommendation layer.

The text service that phrases recommendations only ever receives what
``build_recovery_context`` returns: numbers and enum codes, no prose.
"""

from __future__ import annotations

from typing import Any, Sequence

from shiftvitals.domains.vitals.domain_logic.factors import (
    compute_personalization_accuracy,
    top_factors,
)
from shiftvitals.domains.vitals.domain_logic.insights import weekly_summary
from shiftvitals.domains.vitals.domain_logic.models import (
    SEVERITY_TONE,
    DailyVital,
    Shift,
    StateSnapshot,
)

COMPOUND_MIN_FACTORS = 2


def compound_alert_factors(today: DailyVital) -> list[str]:
    """Risk codes active on ``today``; an alert needs two or more."""
    factors = []
    if today.engine.night_streak >= 2:
        factors.append("night_streak")
    if today.engine.sleep_debt_hours >= 4:
        factors.append("sleep_debt")
    if today.menstrual.phase in ("period", "pms"):
        factors.append(today.menstrual.phase)
    stress = today.inputs.stress if today.inputs.stress is not None else 1
    if stress >= 3:
        factors.append("high_stress")
    if today.body.value < 25:
        factors.append("low_body")
    if today.mental.value < 25:
        factors.append("low_mental")
    return factors


def build_recovery_context(
    today: DailyVital | None,
    vitals7: Sequence[DailyVital],
    prev_week: Sequence[DailyVital] = (),
    next_shift: Shift | str | None = None,
    snapshot: StateSnapshot | None = None,
) -> dict[str, Any]:
    """Assemble the recommendation payload for one day.

    Args:
        today: The day to prescribe for; None when nothing is available.
        vitals7: The trailing week ending on ``today``.
        prev_week: The week before, for the weekly comparison.
        next_shift: Upcoming shift code, if known.
        snapshot: Source state, used to refine input coverage.

    Returns:
        A JSON-compatible dict. ``available`` is False when ``today`` is None.
    """
    if today is None:
        return {"available": False}

    severity = today.severity
    factors = compound_alert_factors(today)
    summary = weekly_summary(vitals7, prev_week)

    return {
        "available": True,
        "date": today.date_iso,
        "shift": today.shift.value,
        "next_shift": Shift.parse(next_shift).value if next_shift is not None else None,
        "body": today.body.value,
        "mental": today.mental.value,
        "vital": today.vital,
        "severity": severity,
        "severity_tone": SEVERITY_TONE[severity],
        "engine": today.engine.to_dict(),
        "inputs": {
            "sleep_hours": today.inputs.sleep_hours,
            "nap_hours": today.inputs.nap_hours,
            "stress": today.inputs.stress,
            "activity": today.inputs.activity,
            "caffeine_mg": today.inputs.caffeine_mg,
            "mood": today.inputs.mood,
        },
        "menstrual_phase": today.menstrual.phase,
        "compound_alert": factors if len(factors) >= COMPOUND_MIN_FACTORS else [],
        "top_factors": [f.to_dict() for f in top_factors(vitals7, 3)],
        "accuracy": compute_personalization_accuracy(vitals7, snapshot).percent,
        "weekly_summary": summary.to_dict() if summary is not None else None,
    }
