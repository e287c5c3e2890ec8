"""Factor attribution and personalization accuracy over a set of daily vitals."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from shiftvitals.domains.vitals.domain_logic.models import (
    USABLE_MIN_RELIABILITY,
    DailyRecord,
    DailyVital,
    EngineIndices,
    StateSnapshot,
    clamp,
)

# Category order doubles as the tie-break priority for ranking.
FACTOR_KEYS: tuple[str, ...] = (
    "sleep",
    "shift",
    "caffeine",
    "menstrual",
    "stress",
    "activity",
    "mood",
)

FACTOR_LABELS: dict[str, str] = {
    "sleep": "Sleep shortfall",
    "shift": "Shift rhythm",
    "caffeine": "Residual caffeine",
    "menstrual": "PMS / period",
    "stress": "Work stress",
    "activity": "Activity load",
    "mood": "Low mood",
}

FACTOR_IMPORTANCE: dict[str, float] = {
    "sleep": 1.0,
    "shift": 0.9,
    "caffeine": 0.8,
    "menstrual": 0.7,
    "stress": 0.7,
    "activity": 0.5,
    "mood": 0.6,
}

# Fallback weights when no factor shows any depletion
DEFAULT_PERSONALIZATION_WEIGHTS: dict[str, float] = {
    "shift": 0.25,
    "sleep": 0.20,
    "stress": 0.15,
    "activity": 0.10,
    "caffeine": 0.10,
    "menstrual": 0.10,
    "mood": 0.10,
}

_PRIORITY = {key: i for i, key in enumerate(FACTOR_KEYS)}


@dataclass(frozen=True)
class FactorShare:
    """One ranked depletion factor; ``pct`` is a percentage of the total."""

    key: str
    label: str
    pct: float

    def to_dict(self) -> dict:
        return {"key": self.key, "label": self.label, "pct": self.pct}


@dataclass(frozen=True)
class PersonalizationAccuracy:
    """How well the window's real inputs cover the factors that matter."""

    percent: int
    reliable_ratio: float
    weights: dict[str, float] = field(default_factory=dict)
    coverage: dict[str, float] = field(default_factory=dict)
    missing_top: list[dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "percent": self.percent,
            "reliable_ratio": self.reliable_ratio,
            "weights": dict(self.weights),
            "coverage": dict(self.coverage),
            "missing_top": list(self.missing_top),
        }


# ---------------------------------------------------------------------------
# Per-day impacts
# ---------------------------------------------------------------------------

def day_factor_impacts(engine: EngineIndices, inputs: DailyRecord) -> dict[str, float]:
    """Raw (unweighted) deviation of each factor from its neutral value.

    Input-driven factors contribute 0 when the input is unknown.
    """
    return {
        "sleep": round(clamp((1.0 - engine.sri) + engine.debt_n, 0.0, 2.0), 4),
        "shift": round(engine.csi, 4),
        "caffeine": round(1.0 - engine.cif, 4),
        "menstrual": round(1.0 - engine.mif, 4),
        "stress": round(inputs.stress / 3.0, 4) if inputs.stress is not None else 0.0,
        "activity": round(inputs.activity / 3.0, 4) if inputs.activity is not None else 0.0,
        "mood": round((5 - inputs.mood) / 4.0, 4) if inputs.mood is not None else 0.0,
    }


# ---------------------------------------------------------------------------
# Aggregation and ranking
# ---------------------------------------------------------------------------

def aggregate_factors(vitals: Iterable[DailyVital]) -> dict[str, float]:
    """Importance-weighted share of total depletion per factor.

    Shares sum to 1, or are all 0 when nothing depleted the window.
    """
    totals = dict.fromkeys(FACTOR_KEYS, 0.0)
    for vital in vitals:
        for key in FACTOR_KEYS:
            totals[key] += FACTOR_IMPORTANCE[key] * float(vital.factors.get(key, 0.0))

    grand = sum(totals.values())
    if grand <= 0:
        return totals
    return {key: value / grand for key, value in totals.items()}


def top_factors(vitals: Sequence[DailyVital], n: int = 3) -> list[FactorShare]:
    """Rank the biggest recovery drains.

    Args:
        vitals: Days to attribute over.
        n: Maximum entries to return.

    Returns:
        Up to ``n`` factors with a positive share, sorted by percentage
        descending, ties broken by category priority. Percentages are
        floored to one decimal so they never sum past 100.
    """
    if n <= 0:
        return []
    shares = aggregate_factors(vitals)
    rows = [
        FactorShare(key=key, label=FACTOR_LABELS[key], pct=math.floor(share * 1000) / 10)
        for key, share in shares.items()
        if share > 0
    ]
    rows = [row for row in rows if row.pct > 0]
    rows.sort(key=lambda row: (-row.pct, _PRIORITY[row.key]))
    return rows[:n]


# ---------------------------------------------------------------------------
# Personalization accuracy
# ---------------------------------------------------------------------------

def _input_coverage(vitals: Sequence[DailyVital], snapshot: StateSnapshot | None) -> dict[str, float]:
    days = max(1, len(vitals))
    counts = dict.fromkeys(FACTOR_KEYS, 0)
    menstrual_on = bool(
        snapshot is not None
        and snapshot.menstrual.enabled
        and snapshot.menstrual.last_period_start
    )

    for vital in vitals:
        if snapshot is None or vital.date_iso in snapshot.schedule:
            counts["shift"] += 1
        if vital.imputed:
            continue
        inputs = vital.inputs
        if inputs.sleep_hours is not None:
            counts["sleep"] += 1
        if inputs.stress is not None:
            counts["stress"] += 1
        if inputs.activity is not None:
            counts["activity"] += 1
        if inputs.caffeine_mg is not None:
            counts["caffeine"] += 1
        if inputs.symptom_severity is not None or inputs.menstrual_status is not None:
            counts["menstrual"] += 1
        if inputs.mood is not None:
            counts["mood"] += 1

    coverage = {key: clamp(count / days) for key, count in counts.items()}
    if menstrual_on:
        coverage["menstrual"] = 1.0
    return coverage


def compute_personalization_accuracy(
    vitals: Sequence[DailyVital],
    snapshot: StateSnapshot | None = None,
) -> PersonalizationAccuracy:
    """Confidence in the window's scores, driven by real-input density.

    ``percent = round(100 * (0.7 * reliable_ratio + 0.3 * weighted_coverage))``
    where ``reliable_ratio`` is the share of days with reliability >= 0.45.
    Without a snapshot every day counts as having a known shift.
    """
    if not vitals:
        return PersonalizationAccuracy(
            percent=0,
            reliable_ratio=0.0,
            weights=dict(DEFAULT_PERSONALIZATION_WEIGHTS),
            coverage=dict.fromkeys(FACTOR_KEYS, 0.0),
            missing_top=[],
        )

    reliable = sum(1 for v in vitals if v.engine.input_reliability >= USABLE_MIN_RELIABILITY)
    reliable_ratio = reliable / len(vitals)

    shares = aggregate_factors(vitals)
    weights = shares if sum(shares.values()) > 0 else dict(DEFAULT_PERSONALIZATION_WEIGHTS)
    coverage = _input_coverage(vitals, snapshot)
    weighted_coverage = clamp(sum(weights[k] * coverage[k] for k in FACTOR_KEYS))

    percent = int(math.floor(100 * clamp(0.7 * reliable_ratio + 0.3 * weighted_coverage) + 0.5))

    gaps = sorted(
        ((weights[k] * (1.0 - coverage[k]), _PRIORITY[k], k) for k in FACTOR_KEYS),
        key=lambda row: (-row[0], row[1]),
    )
    missing_top = [
        {"key": key, "label": FACTOR_LABELS[key]}
        for score, _, key in gaps
        if score > 0.02
    ][:2]

    return PersonalizationAccuracy(
        percent=percent,
        reliable_ratio=round(reliable_ratio, 4),
        weights={k: round(weights[k], 4) for k in FACTOR_KEYS},
        coverage={k: round(coverage[k], 4) for k in FACTOR_KEYS},
        missing_top=missing_top,
    )
