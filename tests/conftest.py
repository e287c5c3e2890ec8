"""Shared test fixtures for ShiftVitals tests."""

from __future__ import annotations

import sys
from datetime import date, timedelta
from pathlib import Path
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SNAPSHOT_PATH", "")
    monkeypatch.setenv("LOOKBACK_DAYS", "14")
    monkeypatch.setenv("DEFAULT_WINDOW_DAYS", "14")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from shiftvitals.domains.vitals.domain_logic.battery import tone_from_score  # noqa: E402
from shiftvitals.domains.vitals.domain_logic.models import (  # noqa: E402
    BatteryReading,
    DailyRecord,
    DailyVital,
    EngineIndices,
    MenstrualContext,
    Shift,
    StateSnapshot,
)
from shiftvitals.domains.vitals.domain_logic.record_aggregator import (  # noqa: E402
    snapshot_from_dict,
)

START = date(2026, 3, 2)  # a Monday


def iso(offset: int, start: date = START) -> str:
    """ISO date ``offset`` days after ``start``."""
    return (start + timedelta(days=offset)).isoformat()


def make_state(
    shifts: list[str] | None = None,
    bio: list[dict[str, Any] | None] | None = None,
    moods: list[int | None] | None = None,
    *,
    start: date = START,
    menstrual: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a host-format state dict from per-day lists starting at ``start``."""
    state: dict[str, Any] = {"schedule": {}, "bio": {}, "emotions": {}, "notes": {}}
    for i, code in enumerate(shifts or []):
        state["schedule"][iso(i, start)] = code
    for i, entry in enumerate(bio or []):
        if entry is not None:
            state["bio"][iso(i, start)] = entry
    for i, mood in enumerate(moods or []):
        if mood is not None:
            state["emotions"][iso(i, start)] = {"mood": mood, "tags": []}
    if menstrual is not None:
        state["settings"] = {"menstrual": menstrual}
    return state


def make_snapshot(*args: Any, **kwargs: Any) -> StateSnapshot:
    return snapshot_from_dict(make_state(*args, **kwargs))


@pytest.fixture
def empty_snapshot() -> StateSnapshot:
    return StateSnapshot()


@pytest.fixture
def off_week_snapshot() -> StateSnapshot:
    """Seven scheduled OFF days with nothing logged anywhere."""
    return make_snapshot(["OFF"] * 7)


@pytest.fixture
def night_run_snapshot() -> StateSnapshot:
    """Three nights on 4h sleep with late caffeine."""
    return make_snapshot(
        ["N", "N", "N"],
        [
            {"sleepHours": 4, "caffeineMg": 200, "caffeineLastAt": "06:00", "stress": 2},
            {"sleepHours": 4, "caffeineMg": 200, "caffeineLastAt": "06:00", "stress": 2},
            {"sleepHours": 4, "caffeineMg": 200, "caffeineLastAt": "06:00", "stress": 2},
        ],
    )


@pytest.fixture
def steady_snapshot() -> StateSnapshot:
    """Two logged weeks of day shifts and rest with healthy inputs."""
    shifts = ["D", "D", "D", "D", "D", "OFF", "OFF"] * 2
    healthy = {"sleepHours": 8, "sleepQuality": 5, "stress": 0, "activity": 1}
    return make_snapshot(shifts, [dict(healthy) for _ in shifts], [4] * len(shifts))


@pytest.fixture
def state_factory():
    """Build host-format state dicts: ``state_factory(shifts, bio, moods, ...)``."""
    return make_state


@pytest.fixture
def snapshot_factory():
    """Build snapshots: ``snapshot_factory(shifts, bio, moods, ...)``."""
    return make_snapshot


def make_vital(
    day: str = "2026-03-02",
    *,
    shift: str = "OFF",
    body: float = 50.0,
    mental: float = 50.0,
    reliability: float = 1.0,
    gap: int = 0,
    factors: dict[str, float] | None = None,
    imputed: bool = False,
    **inputs: Any,
) -> DailyVital:
    """A hand-built vital with calm engine indices, for aggregation tests."""
    return DailyVital(
        date_iso=day,
        shift=Shift.parse(shift),
        body=BatteryReading(value=body, tone=tone_from_score(body), change=None),
        mental=BatteryReading(value=mental, tone=tone_from_score(mental), change=None),
        engine=EngineIndices(
            sleep_debt_hours=0.0,
            night_streak=0,
            csi=0.0,
            sri=1.0,
            cif=1.0,
            slf=0.0,
            mif=1.0,
            debt_n=0.0,
            input_reliability=reliability,
            days_since_any_input=gap,
        ),
        inputs=DailyRecord(date_iso=day, shift=Shift.parse(shift), **inputs),
        menstrual=MenstrualContext(
            enabled=False, phase="none", label="Cycle", day_in_cycle=None, contribution=0.0
        ),
        factors=dict(factors or {}),
        imputed=imputed,
    )


@pytest.fixture
def vital_factory():
    """Build hand-made vitals: ``vital_factory(day, shift=..., body=..., factors=...)``."""
    return make_vital
