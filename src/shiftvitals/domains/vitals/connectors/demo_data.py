"""Deterministic demo history for development and testing.

The demo user is a rotating-shift nurse: two day shifts, two evenings,
two nights, then two days off. Inputs follow the rotation the way a real
log tends to: short daytime sleep after nights, more caffeine late in
the rotation, the odd unlogged day. The same ``today`` always yields the same state.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

DEMO_ROTATION = ("D", "D", "E", "E", "N", "N", "OFF", "OFF")

# Per-rotation-slot inputs: (sleep, nap, quality, stress, activity, caffeine_mg, caffeine_at, mood)
_SLOT_INPUTS: dict[int, tuple[float, float, int, int, int, int, str, int]] = {
    0: (6.5, 0.0, 4, 1, 2, 100, "07:30", 4),
    1: (6.0, 0.0, 3, 2, 2, 150, "09:00", 3),
    2: (7.5, 0.0, 4, 1, 1, 100, "15:30", 4),
    3: (7.0, 0.5, 3, 2, 2, 150, "19:00", 3),
    4: (5.0, 1.0, 3, 2, 2, 200, "02:00", 3),
    5: (4.5, 1.0, 2, 3, 2, 250, "04:00", 2),
    6: (8.5, 1.0, 3, 1, 0, 50, "10:00", 3),
    7: (8.0, 0.0, 4, 0, 1, 0, "", 5),
}

# Every 9th day is left unlogged so imputation shows up in the demo
_SKIP_EVERY = 9


def build_demo_state(today: date, days: int = 28) -> dict[str, Any]:
    """Build a host-format state dict covering ``days`` days ending on ``today``.

    Args:
        today: Last day of the generated history.
        days: Number of days of history.

    Returns:
        A dict with ``schedule``, ``bio``, ``emotions``, ``notes`` and
        ``settings`` keys, suitable for ``snapshot_from_dict``.
    """
    schedule: dict[str, str] = {}
    bio: dict[str, dict[str, Any]] = {}
    emotions: dict[str, dict[str, Any]] = {}
    notes: dict[str, str] = {}

    first = today - timedelta(days=days - 1)
    for i in range(days):
        day = first + timedelta(days=i)
        iso = day.isoformat()
        slot = i % len(DEMO_ROTATION)
        schedule[iso] = DEMO_ROTATION[slot]

        if i % _SKIP_EVERY == _SKIP_EVERY - 1:
            continue

        sleep, nap, quality, stress, activity, caffeine, caffeine_at, mood = _SLOT_INPUTS[slot]
        entry: dict[str, Any] = {
            "sleepHours": sleep,
            "napHours": nap,
            "sleepQuality": quality,
            "stress": stress,
            "activity": activity,
            "caffeineMg": caffeine,
        }
        if caffeine_at:
            entry["caffeineLastAt"] = caffeine_at
        bio[iso] = entry
        emotions[iso] = {"mood": mood, "tags": ["#busy"] if stress >= 2 else []}

    notes[(today - timedelta(days=3)).isoformat()] = "Handover ran late."

    return {
        "schedule": schedule,
        "bio": bio,
        "emotions": emotions,
        "notes": notes,
        "settings": {
            "menstrual": {
                "enabled": True,
                "lastPeriodStart": (today - timedelta(days=12)).isoformat(),
                "cycleLength": 28,
                "periodLength": 5,
                "pmsDays": 4,
            },
            "profile": {"chronotype": 0.5, "caffeineSensitivity": 1.0},
        },
    }
