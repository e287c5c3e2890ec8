"""Daily vitals domain models and engine constants."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Literal


# ---------------------------------------------------------------------------
# Shift calendar
# ---------------------------------------------------------------------------

class Shift(str, Enum):
    """Work-shift code for one calendar day."""

    DAY = "D"
    EVENING = "E"
    NIGHT = "N"
    MIDDLE = "M"
    OFF = "OFF"
    VACATION = "VAC"

    @classmethod
    def parse(cls, raw: Any) -> Shift:
        """Normalize a raw schedule value; anything unknown is a day off."""
        if isinstance(raw, Shift):
            return raw
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            return cls.OFF

    @property
    def is_work(self) -> bool:
        return self not in (Shift.OFF, Shift.VACATION)


# (start_hour, length_hours) of each working shift
SHIFT_WINDOWS: dict[Shift, tuple[int, int]] = {
    Shift.DAY: (7, 8),
    Shift.MIDDLE: (11, 8),
    Shift.EVENING: (15, 8),
    Shift.NIGHT: (23, 8),
}


# ---------------------------------------------------------------------------
# Engine constants
# ---------------------------------------------------------------------------

TARGET_SLEEP_HOURS = 7.5
SLEEP_DEBT_CAP_HOURS = 20.0
SLEEP_DEBT_DECAY = 0.85          # carried share of debt on a well-rested day
NAP_WEIGHT = 0.6                 # a nap hour counts as 0.6 of a night hour

NEUTRAL_SCORE = 50.0             # seed for both batteries
MENTAL_EMA_ALPHA = 0.35
BODY_SMOOTHING_DAYS = 3
SLEEP_AVERAGE_DAYS = 7
IRREGULARITY_WINDOW_DAYS = 7
NIGHTS_WINDOW_DAYS = 30

DEFAULT_LOOKBACK_DAYS = 14

# Reliability contract shared with weekly aggregation callers
RELIABILITY_HORIZON_DAYS = 7
USABLE_MIN_RELIABILITY = 0.45
USABLE_MAX_GAP_DAYS = 2

TONE_GREEN_MIN = 60.0
TONE_RED_BELOW = 40.0

Tone = Literal["green", "orange", "red"]
Severity = Literal["stable", "caution", "warning"]
MenstrualPhase = Literal["period", "pms", "ovulation", "follicular", "luteal", "none"]
SleepTiming = Literal["auto", "night", "day", "mixed"]
MenstrualStatus = Literal["none", "pms", "period"]

SEVERITY_TONE: dict[str, str] = {
    "stable": "green",
    "caution": "orange",
    "warning": "red",
}


def clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    """Clamp a value to [lo, hi]."""
    return max(lo, min(hi, value))


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EmotionEntry:
    """A mood log for one day."""

    mood: int                     # 1-5
    tags: tuple[str, ...] = ()
    note: str | None = None


@dataclass(frozen=True)
class DailyRecord:
    """Normalized inputs for one day. ``None`` means "not logged"."""

    date_iso: str
    shift: Shift = Shift.OFF
    sleep_hours: float | None = None
    nap_hours: float | None = None
    sleep_quality: int | None = None          # 1-5
    sleep_timing: SleepTiming | None = None
    stress: int | None = None                 # 0-3
    activity: int | None = None               # 0-3
    caffeine_mg: float | None = None          # 0-1000
    caffeine_last_at: str | None = None       # "HH:MM"
    fatigue_level: float | None = None        # 0-10
    symptom_severity: int | None = None       # 0-3
    menstrual_status: MenstrualStatus | None = None
    menstrual_flow: int | None = None         # 0-3
    shift_overtime_hours: float | None = None  # 0-8
    mood: int | None = None                   # 1-5
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["shift"] = self.shift.value
        return data


@dataclass(frozen=True)
class MenstrualConfig:
    """Cycle settings owned by the user; read-only to the engine."""

    enabled: bool = False
    last_period_start: str | None = None
    cycle_length: int = 28
    period_length: int = 5
    pms_days: int = 4


@dataclass(frozen=True)
class EngineProfile:
    """Personal modifiers: chronotype (0 morning .. 1 evening) and caffeine half-life multiplier."""

    chronotype: float = 0.5
    caffeine_sensitivity: float = 1.0


@dataclass(frozen=True)
class StateSnapshot:
    """Immutable view of the host application's state.

    Maps are keyed by ISO date (``YYYY-MM-DD``). ``bio`` values are raw
    dicts as stored by the host; the record aggregator normalizes them.
    """

    schedule: dict[str, Shift] = field(default_factory=dict)
    bio: dict[str, dict[str, Any]] = field(default_factory=dict)
    emotions: dict[str, EmotionEntry] = field(default_factory=dict)
    notes: dict[str, str] = field(default_factory=dict)
    menstrual: MenstrualConfig = field(default_factory=MenstrualConfig)
    profile: EngineProfile = field(default_factory=EngineProfile)

    def earliest_date(self) -> str | None:
        """Return the earliest date that has any schedule, bio or emotion data."""
        keys = [*self.schedule, *self.bio, *self.emotions]
        return min(keys) if keys else None


# ---------------------------------------------------------------------------
# Engine state and outputs
# ---------------------------------------------------------------------------

@dataclass
class RollingState:
    """Recurrence state threaded day by day through one range computation."""

    sleep_debt_hours: float = 0.0
    night_streak: int = 0
    mental_ema_prev: float = NEUTRAL_SCORE
    body_targets: list[float] = field(default_factory=list)
    recent_sleep: list[float] = field(default_factory=list)
    last_known_record: DailyRecord | None = None
    last_logged_iso: str | None = None
    prev_body: float | None = None
    prev_mental: float | None = None


@dataclass(frozen=True)
class MenstrualContext:
    """Resolved cycle position for one date."""

    enabled: bool
    phase: MenstrualPhase
    label: str
    day_in_cycle: int | None      # 1..cycle_length, None when not tracked
    contribution: float           # 0 (no impact) .. 0.2 (period)


@dataclass(frozen=True)
class EngineIndices:
    """Per-day sub-indices and hidden state exposed for explanation.

    Values are kept at full precision so severity thresholds see the exact
    engine output.
    """

    sleep_debt_hours: float
    night_streak: int
    csi: float
    sri: float
    cif: float
    slf: float
    mif: float
    debt_n: float
    input_reliability: float
    days_since_any_input: int

    def to_dict(self) -> dict[str, Any]:
        """Serialize with display rounding; the stored values stay exact."""
        return {
            "sleep_debt_hours": round(self.sleep_debt_hours, 2),
            "night_streak": self.night_streak,
            "csi": round(self.csi, 3),
            "sri": round(self.sri, 3),
            "cif": round(self.cif, 3),
            "slf": round(self.slf, 3),
            "mif": round(self.mif, 3),
            "debt_n": round(self.debt_n, 3),
            "input_reliability": round(self.input_reliability, 3),
            "days_since_any_input": self.days_since_any_input,
        }


@dataclass(frozen=True)
class BatteryReading:
    """One battery value with its tone and day-over-day change."""

    value: float
    tone: Tone
    change: float | None
    raw: float | None = None

    @property
    def ema(self) -> float:
        """Alias used for the smoothed Mental battery."""
        return self.value


@dataclass(frozen=True)
class DailyVital:
    """Engine output for one calendar day."""

    date_iso: str
    shift: Shift
    body: BatteryReading
    mental: BatteryReading
    engine: EngineIndices
    inputs: DailyRecord
    menstrual: MenstrualContext
    factors: dict[str, float]
    imputed: bool = False
    emotion: EmotionEntry | None = None
    note: str | None = None

    @property
    def day(self) -> date:
        return date.fromisoformat(self.date_iso)

    @property
    def vital(self) -> int:
        """Combined Body+Mental score on 0-100, rounded half up."""
        from shiftvitals.domains.vitals.domain_logic.battery import combined_vital

        return combined_vital(self.body.value, self.mental.value)

    @property
    def severity(self) -> Severity:
        from shiftvitals.domains.vitals.domain_logic.battery import classify_severity

        return classify_severity(self)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain JSON-compatible types."""
        severity = self.severity
        return {
            "date": self.date_iso,
            "shift": self.shift.value,
            "body": {
                "value": self.body.value,
                "tone": self.body.tone,
                "change": self.body.change,
            },
            "mental": {
                "ema": self.mental.value,
                "raw": self.mental.raw,
                "tone": self.mental.tone,
                "change": self.mental.change,
            },
            "vital": self.vital,
            "severity": severity,
            "severity_tone": SEVERITY_TONE[severity],
            "engine": self.engine.to_dict(),
            "inputs": self.inputs.to_dict(),
            "menstrual": {
                "enabled": self.menstrual.enabled,
                "phase": self.menstrual.phase,
                "label": self.menstrual.label,
                "day_in_cycle": self.menstrual.day_in_cycle,
            },
            "factors": dict(self.factors),
            "imputed": self.imputed,
            "emotion": (
                {"mood": self.emotion.mood, "tags": list(self.emotion.tags)}
                if self.emotion is not None
                else None
            ),
            "note": self.note,
        }
