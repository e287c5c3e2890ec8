"""Range orchestration: the single engine entry point.

Drives aggregation, imputation, index calculation and battery scoring
day by day over ``[start, end]``, threading the rolling state forward.
State is seeded by running the same pipeline over a bounded lookback
window before ``start``; anything older than the lookback is ignored
except for the last logged record, which seeds imputation.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Iterable

from shiftvitals.domains.vitals.domain_logic.battery import (
    body_target,
    change,
    mental_raw,
    regress_to_neutral,
    round1,
    score_body,
    score_mental,
    tone_from_score,
)
from shiftvitals.domains.vitals.domain_logic.circadian import compute_indices
from shiftvitals.domains.vitals.domain_logic.factors import day_factor_impacts
from shiftvitals.domains.vitals.domain_logic.menstrual import (
    PHASE_CONTRIBUTION,
    PHASE_LABELS,
    resolve_menstrual_phase,
)
from shiftvitals.domains.vitals.domain_logic.models import (
    BODY_SMOOTHING_DAYS,
    DEFAULT_LOOKBACK_DAYS,
    SLEEP_AVERAGE_DAYS,
    BatteryReading,
    DailyRecord,
    DailyVital,
    EngineIndices,
    RollingState,
    StateSnapshot,
)
from shiftvitals.domains.vitals.domain_logic.record_aggregator import (
    aggregate_record,
    has_logged_input,
)
from shiftvitals.domains.vitals.domain_logic.reliability import (
    estimate_reliability,
    merge_known,
)

logger = logging.getLogger(__name__)


def _as_date(value: date | str) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def _safe_date(iso: str | None) -> date | None:
    if not iso:
        return None
    try:
        return date.fromisoformat(iso)
    except ValueError:
        return None


def _last_logged_before(snapshot: StateSnapshot, before: date) -> DailyRecord | None:
    """Most recent record with real input strictly before ``before``."""
    cutoff = before.isoformat()
    candidates = sorted(
        {iso for iso in (*snapshot.bio, *snapshot.emotions) if iso < cutoff},
        reverse=True,
    )
    for iso in candidates:
        if _safe_date(iso) is None:
            continue
        record = aggregate_record(snapshot, iso)
        if has_logged_input(record):
            return record
    return None


def _computation_start(snapshot: StateSnapshot, start: date, lookback_days: int) -> date:
    begin = start - timedelta(days=max(0, lookback_days))
    earliest = _safe_date(snapshot.earliest_date())
    if earliest is None:
        return start
    return min(start, max(begin, earliest))


def compute_vitals_range(
    snapshot: StateSnapshot,
    start: date | str,
    end: date | str,
    *,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> list[DailyVital]:
    """Compute one ``DailyVital`` per calendar day in ``[start, end]``.

    Args:
        snapshot: Immutable host state. Never mutated.
        start: First day to return (``date`` or ISO string).
        end: Last day to return, inclusive.
        lookback_days: Days before ``start`` replayed to seed the rolling state.

    Returns:
        Vitals in ascending date order; empty when ``start > end``.

    Raises:
        ValueError: If ``start`` or ``end`` is not a valid ISO date.
    """
    start_day = _as_date(start)
    end_day = _as_date(end)
    if start_day > end_day:
        return []

    begin = _computation_start(snapshot, start_day, lookback_days)
    logger.debug(
        "Computing vitals %s..%s (replay from %s)", start_day, end_day, begin
    )

    state = RollingState()
    seed = _last_logged_before(snapshot, begin)
    if seed is not None:
        state.last_known_record = seed
        state.last_logged_iso = seed.date_iso
        logger.debug("Seeded imputation from %s", seed.date_iso)

    vitals: list[DailyVital] = []
    day = begin
    while day <= end_day:
        vital = _compute_day(snapshot, day, begin, state)
        if day >= start_day:
            vitals.append(vital)
        day += timedelta(days=1)
    return vitals


def _compute_day(
    snapshot: StateSnapshot,
    day: date,
    begin: date,
    state: RollingState,
) -> DailyVital:
    """Score one day and advance ``state`` in place."""
    iso = day.isoformat()
    record = aggregate_record(snapshot, iso)
    logged = has_logged_input(record)

    if logged:
        gap = 0
    elif state.last_logged_iso is not None:
        gap = (day - date.fromisoformat(state.last_logged_iso)).days
    else:
        gap = (day - begin).days + 1

    used, reliability, gap = estimate_reliability(
        record, state.last_known_record, gap, logged=logged
    )
    has_history = logged or state.last_known_record is not None

    menstrual = resolve_menstrual_phase(snapshot.menstrual, iso)
    indices = compute_indices(
        used,
        state,
        menstrual,
        schedule=snapshot.schedule,
        profile=snapshot.profile,
        reliability=reliability,
    )

    target = body_target(indices, used)
    raw = mental_raw(indices, used)
    if not logged:
        target = regress_to_neutral(target, reliability, has_history=has_history)
        raw = regress_to_neutral(raw, reliability, has_history=has_history)

    body_value = score_body(target, state.body_targets)
    mental_value = score_mental(raw, state.mental_ema_prev)

    engine = EngineIndices(
        sleep_debt_hours=indices.sleep_debt_hours,
        night_streak=indices.night_streak,
        csi=indices.csi,
        sri=indices.sri,
        cif=indices.cif,
        slf=indices.slf,
        mif=indices.mif,
        debt_n=indices.debt_n,
        input_reliability=reliability,
        days_since_any_input=gap,
    )

    phase = indices.menstrual_phase
    if menstrual.enabled and phase != menstrual.phase:
        menstrual = replace(
            menstrual,
            phase=phase,
            label=PHASE_LABELS[phase],
            contribution=PHASE_CONTRIBUTION[phase],
        )

    vital = DailyVital(
        date_iso=iso,
        shift=record.shift,
        body=BatteryReading(
            value=body_value,
            tone=tone_from_score(body_value),
            change=change(body_value, state.prev_body),
            raw=round1(target),
        ),
        mental=BatteryReading(
            value=mental_value,
            tone=tone_from_score(mental_value),
            change=change(mental_value, state.prev_mental),
            raw=round1(raw),
        ),
        engine=engine,
        inputs=used,
        menstrual=menstrual,
        factors=day_factor_impacts(engine, used),
        imputed=not logged,
        emotion=snapshot.emotions.get(iso),
        note=record.note,
    )

    state.sleep_debt_hours = indices.sleep_debt_hours
    state.night_streak = indices.night_streak
    state.mental_ema_prev = mental_value
    state.body_targets = [*state.body_targets, target][-BODY_SMOOTHING_DAYS:]
    if logged:
        if indices.effective_sleep is not None:
            state.recent_sleep = [*state.recent_sleep, indices.effective_sleep][-SLEEP_AVERAGE_DAYS:]
        state.last_known_record = merge_known(state.last_known_record, record)
        state.last_logged_iso = iso
    state.prev_body = body_value
    state.prev_mental = mental_value
    return vital


def vital_map_by_iso(vitals: Iterable[DailyVital]) -> dict[str, DailyVital]:
    """Index a vitals list by ISO date."""
    return {v.date_iso: v for v in vitals}
