"""Body and Mental battery scoring, tones and severity classification."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from shiftvitals.domains.vitals.domain_logic.models import (
    BODY_SMOOTHING_DAYS,
    MENTAL_EMA_ALPHA,
    NEUTRAL_SCORE,
    TONE_GREEN_MIN,
    TONE_RED_BELOW,
    DailyRecord,
    EngineIndices,
    Severity,
    Tone,
    clamp,
)

if TYPE_CHECKING:
    from shiftvitals.domains.vitals.domain_logic.circadian import DayIndices
    from shiftvitals.domains.vitals.domain_logic.models import DailyVital


# Severity thresholds (inclusive). Downstream recommendation rules depend on
# these exact values.
WARNING_THRESHOLDS = {
    "vital_max": 45,
    "sleep_debt_min": 7.0,
    "night_streak_min": 2,
    "night_csi_min": 0.6,
    "night_sri_max": 0.55,
    "cif_max": 0.7,
    "slf_min": 0.75,
    "mif_max": 0.75,
}

CAUTION_THRESHOLDS = {
    "vital_max": 60,
    "sleep_debt_min": 3.0,
    "csi_min": 0.45,
    "sri_max": 0.7,
    "cif_max": 0.85,
    "slf_min": 0.55,
    "mif_max": 0.85,
}


def round1(value: float) -> float:
    return round(value * 10) / 10


def tone_from_score(score: float) -> Tone:
    """Map a 0-100 battery to green / orange / red."""
    if score < TONE_RED_BELOW:
        return "red"
    if score < TONE_GREEN_MIN:
        return "orange"
    return "green"


# ---------------------------------------------------------------------------
# Body battery (slow: trailing-window smoothing)
# ---------------------------------------------------------------------------

def body_target(indices: DayIndices, record: DailyRecord) -> float:
    """Physiological capacity for the day before smoothing.

    Weights:
        SRI (45%), sleep debt (25%), circadian strain (20%), acute sleep loss (10%)
    minus up to 8 points for heavy activity and up to 20 for menstrual impact.
    """
    activity_n = (record.activity if record.activity is not None else 1) / 3.0
    capacity = (
        0.45 * indices.sri
        + 0.25 * (1.0 - indices.debt_n)
        + 0.20 * (1.0 - indices.csi)
        + 0.10 * (1.0 - indices.slf)
    )
    target = 100.0 * capacity - 8.0 * activity_n - 50.0 * (1.0 - indices.mif)
    return clamp(target, 0.0, 100.0)


def score_body(target: float, previous_targets: list[float]) -> float:
    """Mean of today's target and the preceding ones in the smoothing window."""
    window = [*previous_targets[-(BODY_SMOOTHING_DAYS - 1):], target]
    return clamp(round1(sum(window) / len(window)), 0.0, 100.0)


# ---------------------------------------------------------------------------
# Mental battery (fast: EMA)
# ---------------------------------------------------------------------------

def mental_raw(indices: DayIndices, record: DailyRecord) -> float:
    """Same-day mental signal from mood, stress, caffeine, cycle and fatigue."""
    mood_n = ((record.mood if record.mood is not None else 3) - 1) / 4.0
    stress_n = (record.stress if record.stress is not None else 1) / 3.0
    fatigue_n = clamp((record.fatigue_level or 0.0) / 10.0)
    cif_n = clamp((indices.cif - 0.4) / 0.6)
    mif_n = clamp((indices.mif - 0.6) / 0.4)
    signal = (
        0.35 * mood_n
        + 0.30 * (1.0 - stress_n)
        + 0.15 * cif_n
        + 0.10 * mif_n
        + 0.10 * (1.0 - fatigue_n)
    )
    return clamp(100.0 * signal, 0.0, 100.0)


def score_mental(raw: float, ema_prev: float | None) -> float:
    prev = NEUTRAL_SCORE if ema_prev is None else ema_prev
    ema = MENTAL_EMA_ALPHA * raw + (1.0 - MENTAL_EMA_ALPHA) * prev
    return clamp(round1(ema), 0.0, 100.0)


def regress_to_neutral(target: float, reliability: float, *, has_history: bool) -> float:
    """Pull an imputed day's target toward neutral as confidence decays."""
    if not has_history:
        return NEUTRAL_SCORE
    return NEUTRAL_SCORE + clamp(reliability) * (target - NEUTRAL_SCORE)


def change(today: float, yesterday: float | None) -> float | None:
    if yesterday is None:
        return None
    return round1(today - yesterday)


# ---------------------------------------------------------------------------
# Severity
# ---------------------------------------------------------------------------

def combined_vital(body: float, mental: float) -> int:
    """Average of both batteries, rounded half up."""
    return int(math.floor((body + mental) / 2.0 + 0.5))


def severity_for(vital: float, engine: EngineIndices) -> Severity:
    """Three-level classification from the combined score and engine indices."""
    w = WARNING_THRESHOLDS
    if (
        vital <= w["vital_max"]
        or engine.sleep_debt_hours >= w["sleep_debt_min"]
        or (
            engine.night_streak >= w["night_streak_min"]
            and (engine.csi >= w["night_csi_min"] or engine.sri <= w["night_sri_max"])
        )
        or engine.cif <= w["cif_max"]
        or engine.slf >= w["slf_min"]
        or engine.mif <= w["mif_max"]
    ):
        return "warning"

    c = CAUTION_THRESHOLDS
    if (
        vital <= c["vital_max"]
        or engine.sleep_debt_hours >= c["sleep_debt_min"]
        or engine.csi >= c["csi_min"]
        or engine.sri <= c["sri_max"]
        or engine.cif <= c["cif_max"]
        or engine.slf >= c["slf_min"]
        or engine.mif <= c["mif_max"]
    ):
        return "caution"

    return "stable"


def classify_severity(vital: DailyVital) -> Severity:
    return severity_for(vital.vital, vital.engine)
