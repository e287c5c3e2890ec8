"""Record aggregation: raw host state -> typed daily records.

The host application stores one loosely-typed ``bio`` dict per date, with
keys that were added (and deprecated) over several releases. Everything here
normalizes rather than fails: unknown keys are ignored, out-of-range numbers
are clamped, and junk values read as "not logged".
"""

from __future__ import annotations

import re
from datetime import date
from typing import Any, Mapping

from shiftvitals.domains.vitals.domain_logic.models import (
    DailyRecord,
    EmotionEntry,
    EngineProfile,
    MenstrualConfig,
    Shift,
    StateSnapshot,
    clamp,
)

_HHMM = re.compile(r"^(\d{1,2}):(\d{2})$")
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_SLEEP_TIMINGS = ("auto", "night", "day", "mixed")
_MENSTRUAL_STATUSES = ("none", "pms", "period")


def _num(val: Any, lo: float, hi: float) -> float | None:
    """Convert to a clamped float, returning None for missing or non-numeric values."""
    if val is None or isinstance(val, bool):
        return None
    try:
        f = float(val)
    except (TypeError, ValueError):
        return None
    if f != f:  # NaN
        return None
    return clamp(f, lo, hi)


def _int(val: Any, lo: int, hi: int) -> int | None:
    f = _num(val, lo, hi)
    return None if f is None else int(round(f))


def _time(val: Any) -> str | None:
    if not isinstance(val, str):
        return None
    match = _HHMM.match(val.strip())
    if not match:
        return None
    hh, mm = int(match.group(1)), int(match.group(2))
    if hh > 23 or mm > 59:
        return None
    return f"{hh:02d}:{mm:02d}"


def _choice(val: Any, options: tuple[str, ...]) -> Any:
    return val if isinstance(val, str) and val in options else None


def _is_iso_date(key: Any) -> bool:
    if not isinstance(key, str) or not _ISO_DATE.match(key):
        return False
    try:
        date.fromisoformat(key)
    except ValueError:
        return False
    return True


# ---------------------------------------------------------------------------
# Per-day parsing
# ---------------------------------------------------------------------------

def parse_bio_inputs(bio: Mapping[str, Any] | None) -> dict[str, Any]:
    """Normalize one raw bio dict into ``DailyRecord`` field values.

    Accepts both the host's camelCase keys and snake_case keys.
    """
    if not bio:
        return {}

    def pick(camel: str, snake: str) -> Any:
        return bio.get(camel, bio.get(snake))

    return {
        "sleep_hours": _num(pick("sleepHours", "sleep_hours"), 0, 16),
        "nap_hours": _num(pick("napHours", "nap_hours"), 0, 4),
        "sleep_quality": _int(pick("sleepQuality", "sleep_quality"), 1, 5),
        "sleep_timing": _choice(pick("sleepTiming", "sleep_timing"), _SLEEP_TIMINGS),
        "stress": _int(bio.get("stress"), 0, 3),
        "activity": _int(bio.get("activity"), 0, 3),
        "caffeine_mg": _num(pick("caffeineMg", "caffeine_mg"), 0, 1000),
        "caffeine_last_at": _time(pick("caffeineLastAt", "caffeine_last_at")),
        "fatigue_level": _num(pick("fatigueLevel", "fatigue_level"), 0, 10),
        "symptom_severity": _int(pick("symptomSeverity", "symptom_severity"), 0, 3),
        "menstrual_status": _choice(
            pick("menstrualStatus", "menstrual_status"), _MENSTRUAL_STATUSES
        ),
        "menstrual_flow": _int(pick("menstrualFlow", "menstrual_flow"), 0, 3),
        "shift_overtime_hours": _num(
            pick("shiftOvertimeHours", "shift_overtime_hours"), 0, 8
        ),
        # Legacy: mood used to live in the bio dict
        "mood": _int(bio.get("mood"), 1, 5),
    }


def parse_emotion(raw: Any) -> EmotionEntry | None:
    """Parse an emotion entry; entries without a usable mood are dropped."""
    if isinstance(raw, EmotionEntry):
        return raw
    if not isinstance(raw, Mapping):
        return None
    mood = _int(raw.get("mood"), 1, 5)
    if mood is None:
        return None
    tags = raw.get("tags") or ()
    return EmotionEntry(
        mood=mood,
        tags=tuple(str(t) for t in tags if isinstance(t, str)),
        note=raw.get("note") if isinstance(raw.get("note"), str) else None,
    )


def has_logged_input(record: DailyRecord) -> bool:
    """Whether the user actually logged anything health-related for the day.

    Zero-valued event fields (symptoms, flow, overtime) and the default
    ``auto`` sleep timing do not count as input.
    """
    if any(
        v is not None
        for v in (
            record.sleep_hours,
            record.nap_hours,
            record.sleep_quality,
            record.stress,
            record.activity,
            record.caffeine_mg,
            record.caffeine_last_at,
            record.fatigue_level,
            record.mood,
        )
    ):
        return True
    if record.sleep_timing not in (None, "auto"):
        return True
    if (record.symptom_severity or 0) > 0:
        return True
    if record.menstrual_status not in (None, "none"):
        return True
    if (record.menstrual_flow or 0) > 0:
        return True
    return (record.shift_overtime_hours or 0) > 0


def aggregate_record(snapshot: StateSnapshot, iso: str) -> DailyRecord:
    """Build the typed record for one date. Never raises on missing keys."""
    fields = parse_bio_inputs(snapshot.bio.get(iso))
    emotion = snapshot.emotions.get(iso)
    if emotion is not None:
        fields["mood"] = emotion.mood
    return DailyRecord(
        date_iso=iso,
        shift=snapshot.schedule.get(iso, Shift.OFF),
        note=snapshot.notes.get(iso),
        **fields,
    )


# ---------------------------------------------------------------------------
# Snapshot construction
# ---------------------------------------------------------------------------

def _menstrual_config(raw: Any) -> MenstrualConfig:
    if not isinstance(raw, Mapping):
        return MenstrualConfig()
    last = raw.get("lastPeriodStart", raw.get("last_period_start", raw.get("startISO")))
    cycle = _int(raw.get("cycleLength", raw.get("cycle_length")), 20, 45)
    period = _int(raw.get("periodLength", raw.get("period_length")), 2, 10)
    pms = _int(raw.get("pmsDays", raw.get("pms_days")), 2, 10)
    return MenstrualConfig(
        enabled=bool(raw.get("enabled", False)),
        last_period_start=last if isinstance(last, str) and last else None,
        cycle_length=cycle if cycle is not None else 28,
        period_length=period if period is not None else 5,
        pms_days=pms if pms is not None else 4,
    )


def _profile(raw: Any) -> EngineProfile:
    if not isinstance(raw, Mapping):
        return EngineProfile()
    chrono = _num(raw.get("chronotype"), 0, 1)
    sens = _num(raw.get("caffeineSensitivity", raw.get("caffeine_sensitivity")), 0.5, 1.5)
    return EngineProfile(
        chronotype=0.5 if chrono is None else chrono,
        caffeine_sensitivity=1.0 if sens is None else sens,
    )


def snapshot_from_dict(state: Mapping[str, Any] | None) -> StateSnapshot:
    """Build an immutable snapshot from the host's JSON state.

    Expected (all optional) keys: ``schedule``, ``bio``, ``emotions``,
    ``notes`` and ``settings`` with ``menstrual`` / ``profile`` sub-objects.
    Date-keyed entries whose key is not a ``YYYY-MM-DD`` date are dropped.
    """
    state = state or {}
    settings = state.get("settings") or {}

    schedule = {
        iso: Shift.parse(code)
        for iso, code in (state.get("schedule") or {}).items()
        if code is not None and _is_iso_date(iso)
    }
    bio = {
        iso: dict(raw)
        for iso, raw in (state.get("bio") or {}).items()
        if isinstance(raw, Mapping) and _is_iso_date(iso)
    }
    emotions = {}
    for iso, raw in (state.get("emotions") or {}).items():
        if not _is_iso_date(iso):
            continue
        entry = parse_emotion(raw)
        if entry is not None:
            emotions[iso] = entry
    notes = {
        iso: text
        for iso, text in (state.get("notes") or {}).items()
        if isinstance(text, str) and text and _is_iso_date(iso)
    }

    return StateSnapshot(
        schedule=schedule,
        bio=bio,
        emotions=emotions,
        notes=notes,
        menstrual=_menstrual_config(settings.get("menstrual")),
        profile=_profile(settings.get("profile")),
    )
