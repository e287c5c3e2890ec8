"""MCP tools for daily vitals computation and insights.

Every tool reads the host state either from an inline ``state`` object in
the call or, when none is given, from the configured snapshot provider.
The engine itself is pure; these tools only parse arguments, run it and
serialize the result.
"""

from __future__ import annotations

import json
import logging
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from shiftvitals.domains.vitals.connectors import SnapshotProvider

from shiftvitals.domains.vitals.domain_logic.factors import (
    compute_personalization_accuracy,
    top_factors,
)
from shiftvitals.domains.vitals.domain_logic.insights import (
    best_and_worst_day,
    compute_shift_stats,
    count_recorded_days,
    grade_from_score,
    has_enough_records,
    last_completed_week_range,
    usable_vitals,
    weekly_summary,
)
from shiftvitals.domains.vitals.domain_logic.models import Shift, StateSnapshot
from shiftvitals.domains.vitals.domain_logic.record_aggregator import snapshot_from_dict
from shiftvitals.domains.vitals.domain_logic.recovery_context import build_recovery_context
from shiftvitals.domains.vitals.domain_logic.vitals_range import (
    compute_vitals_range,
    vital_map_by_iso,
)

logger = logging.getLogger(__name__)

MAX_RANGE_DAYS = 366


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _parse_iso(value: str | None, name: str, default: date) -> date:
    """Validate an optional ISO date argument."""
    if value in (None, ""):
        return default
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an ISO date (YYYY-MM-DD), got {value!r}") from None


def _resolve_window(
    start: str | None,
    end: str | None,
    window_days: int,
) -> tuple[date, date]:
    end_day = _parse_iso(end, "end", date.today())
    start_day = _parse_iso(start, "start", end_day - timedelta(days=window_days - 1))
    if start_day > end_day:
        raise ValueError("start must not be after end")
    if (end_day - start_day).days + 1 > MAX_RANGE_DAYS:
        raise ValueError(f"range must not exceed {MAX_RANGE_DAYS} days")
    return start_day, end_day


def _validate_lookback(value: int | None, default: int) -> int:
    if value is None:
        return default
    if value < 0 or value > 90:
        raise ValueError("lookback_days must be between 0 and 90")
    return value


def _validate_next_shift(value: str | None) -> Shift | None:
    if value in (None, ""):
        return None
    try:
        return Shift(str(value).strip().upper())
    except ValueError:
        raise ValueError("next_shift must be one of: D | E | N | M | OFF | VAC") from None


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def register_vitals_tools(
    mcp: FastMCP,
    provider: SnapshotProvider,
    *,
    default_lookback_days: int = 14,
    window_days: int = 14,
) -> None:
    """Register the vitals engine tools on the MCP server."""

    def _snapshot(state: dict[str, Any] | None) -> tuple[StateSnapshot, dict[str, str]]:
        if state is not None:
            return snapshot_from_dict(state), {"data_source": "inline"}
        return provider.get_snapshot(), provider.get_provenance()

    @mcp.tool
    async def compute_vitals(
        ctx: Context,
        start: str = "",
        end: str = "",
        state: dict[str, Any] | None = None,
        lookback_days: int | None = None,
    ) -> str:
        """Compute Body and Mental battery scores for every day in a date range.

        Each day includes both battery values with tone and day-over-day
        change, the combined vital score, a stable / caution / warning
        severity, the engine sub-indices (sleep debt, night streak, CSI,
        SRI, CIF, SLF, MIF), input reliability and per-factor impacts.

        Args:
            start: First day (ISO 8601). Defaults to the configured window before ``end``.
            end: Last day, inclusive (ISO 8601). Defaults to today.
            state: Optional host state object; the configured snapshot is used when omitted.
            lookback_days: Days replayed before ``start`` to seed state (0-90).
                Defaults to the server setting.
        """
        start_day, end_day = _resolve_window(start, end, window_days)
        lookback = _validate_lookback(lookback_days, default_lookback_days)
        snapshot, provenance = _snapshot(state)

        vitals = compute_vitals_range(snapshot, start_day, end_day, lookback_days=lookback)
        logger.info(
            "compute_vitals: %d days (%s..%s) from %s",
            len(vitals),
            start_day,
            end_day,
            provenance.get("data_source"),
        )
        return json.dumps({
            "start": start_day.isoformat(),
            "end": end_day.isoformat(),
            "days": len(vitals),
            "vitals": [v.to_dict() for v in vitals],
            **provenance,
        })

    @mcp.tool
    async def vitals_insights(
        ctx: Context,
        start: str = "",
        end: str = "",
        state: dict[str, Any] | None = None,
        top_n: int = 3,
    ) -> str:
        """Summarise a window of vitals: top recovery drains, accuracy and shift patterns.

        Only days that pass the reliability contract (reliability >= 0.45 and
        at most 2 days since real input) feed the averages; factor ranking
        and accuracy use every day in the window.

        Args:
            start: First day (ISO 8601). Defaults to the configured window before ``end``.
            end: Last day, inclusive (ISO 8601). Defaults to today.
            state: Optional host state object; the configured snapshot is used when omitted.
            top_n: Number of top factors to return (1-7).
        """
        if top_n < 1 or top_n > 7:
            raise ValueError("top_n must be between 1 and 7")
        start_day, end_day = _resolve_window(start, end, window_days)
        snapshot, provenance = _snapshot(state)

        vitals = compute_vitals_range(
            snapshot, start_day, end_day, lookback_days=default_lookback_days
        )
        usable = usable_vitals(vitals)
        best, worst = best_and_worst_day(usable)
        avg_vital = round(sum(v.vital for v in usable) / len(usable), 1) if usable else None

        week_start, week_end = last_completed_week_range(end_day)
        week = compute_vitals_range(
            snapshot,
            week_start - timedelta(days=7),
            week_end,
            lookback_days=default_lookback_days,
        )
        summary = weekly_summary(week[7:], week[:7])

        return json.dumps({
            "start": start_day.isoformat(),
            "end": end_day.isoformat(),
            "days": len(vitals),
            "usable_days": len(usable),
            "recorded_days": count_recorded_days(snapshot, start_day, end_day),
            "has_enough_records": has_enough_records(snapshot, start_day, end_day),
            "average_vital": avg_vital,
            "grade": grade_from_score(avg_vital) if avg_vital is not None else None,
            "top_factors": [f.to_dict() for f in top_factors(vitals, top_n)],
            "accuracy": compute_personalization_accuracy(vitals, snapshot).to_dict(),
            "shift_stats": [s.to_dict() for s in compute_shift_stats(usable) if s.days > 0],
            "best_day": best.date_iso if best is not None else None,
            "worst_day": worst.date_iso if worst is not None else None,
            "weekly_summary": {
                "week_start": week_start.isoformat(),
                "week_end": week_end.isoformat(),
                **summary.to_dict(),
            } if summary is not None else None,
            **provenance,
        })

    @mcp.tool
    async def recovery_context(
        ctx: Context,
        day: str = "",
        state: dict[str, Any] | None = None,
        next_shift: str | None = None,
    ) -> str:
        """Build the structured recovery context for one day.

        Returns numbers and codes only (scores, indices, severity,
        compound-alert factors, top drains, weekly comparison) for a
        recommendation layer to phrase. No advice text is generated here.

        Args:
            day: Day to build context for (ISO 8601). Defaults to today.
            state: Optional host state object; the configured snapshot is used when omitted.
            next_shift: Upcoming shift code (D, E, N, M, OFF, VAC). Defaults to the
                scheduled shift for the following day, if any.
        """
        target = _parse_iso(day, "day", date.today())
        shift = _validate_next_shift(next_shift)
        snapshot, provenance = _snapshot(state)

        if shift is None:
            shift = snapshot.schedule.get((target + timedelta(days=1)).isoformat())

        vitals = compute_vitals_range(
            snapshot,
            target - timedelta(days=13),
            target,
            lookback_days=default_lookback_days,
        )
        context = build_recovery_context(
            vital_map_by_iso(vitals).get(target.isoformat()),
            vitals[-7:],
            vitals[:-7],
            shift,
            snapshot,
        )
        return json.dumps({**context, **provenance})
