"""Tests for insight aggregations over computed vitals."""

from __future__ import annotations

from datetime import date

import pytest

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
from shiftvitals.domains.vitals.domain_logic.models import Shift


class TestGrades:
    @pytest.mark.parametrize(
        "score, grade",
        [(100, "S"), (90, "S"), (89.9, "A"), (80, "A"), (70, "B"), (60, "C"), (59.9, "D"), (0, "D")],
    )
    def test_boundaries(self, score, grade):
        assert grade_from_score(score) == grade


class TestLastCompletedWeek:
    def test_midweek(self):
        assert last_completed_week_range(date(2026, 3, 11)) == (date(2026, 3, 2), date(2026, 3, 8))

    def test_sunday_closes_its_own_week(self):
        assert last_completed_week_range(date(2026, 3, 8)) == (date(2026, 3, 2), date(2026, 3, 8))

    def test_monday(self):
        assert last_completed_week_range(date(2026, 3, 9)) == (date(2026, 3, 2), date(2026, 3, 8))

    def test_accepts_iso_string(self):
        assert last_completed_week_range("2026-03-11") == (date(2026, 3, 2), date(2026, 3, 8))


class TestRecordedDays:
    def test_counts_bio_and_mood_days(self, snapshot_factory):
        snapshot = snapshot_factory(
            ["D"] * 5,
            [{"sleepHours": 7}, None, {"stress": 1}, None, None],
            [None, None, None, None, 4],
        )
        assert count_recorded_days(snapshot, "2026-03-02", "2026-03-06") == 3
        assert has_enough_records(snapshot, "2026-03-02", "2026-03-06") is True

    def test_not_enough(self, snapshot_factory):
        snapshot = snapshot_factory(["D"] * 4, [{"sleepHours": 7}, None, {"stress": 1}])
        assert count_recorded_days(snapshot, date(2026, 3, 2), date(2026, 3, 5)) == 2
        assert has_enough_records(snapshot, date(2026, 3, 2), date(2026, 3, 5)) is False

    def test_schedule_alone_is_not_a_record(self, off_week_snapshot):
        assert count_recorded_days(off_week_snapshot, "2026-03-02", "2026-03-08") == 0


class TestUsableVitals:
    def test_filters_on_reliability_and_gap(self, vital_factory):
        keep = vital_factory("2026-03-02", reliability=0.5, gap=2)
        weak = vital_factory("2026-03-03", reliability=0.44, gap=1)
        stale = vital_factory("2026-03-04", reliability=0.9, gap=3)
        assert usable_vitals([keep, weak, stale]) == [keep]


class TestShiftStats:
    def test_averages_and_order(self, vital_factory):
        vitals = [
            vital_factory("2026-03-02", shift="D", body=60, mental=70),
            vital_factory("2026-03-03", shift="D", body=40, mental=50),
            vital_factory("2026-03-04", shift="N", body=30, mental=20),
        ]

        stats = compute_shift_stats(vitals)

        assert len(stats) == len(Shift)
        assert stats[0].shift is Shift.DAY
        assert stats[0].days == 2
        assert stats[0].avg_mental == 60.0
        assert stats[0].avg_body == 50.0
        assert stats[1].shift is Shift.NIGHT
        assert stats[1].avg_mental == 20.0

    def test_empty_shifts_report_zero(self, vital_factory):
        stats = {s.shift: s for s in compute_shift_stats([vital_factory(shift="D", body=60)])}
        assert stats[Shift.VACATION].days == 0
        assert stats[Shift.VACATION].avg_body == 0.0
        assert stats[Shift.DAY].to_dict()["shift"] == "D"


class TestBestAndWorst:
    def test_picks_extremes(self, vital_factory):
        a = vital_factory("2026-03-02", body=50, mental=50)
        b = vital_factory("2026-03-03", body=60, mental=70)
        c = vital_factory("2026-03-04", body=40, mental=40)
        assert best_and_worst_day([a, b, c]) == (b, c)

    def test_first_wins_ties(self, vital_factory):
        a = vital_factory("2026-03-02", body=50, mental=50)
        b = vital_factory("2026-03-03", body=60, mental=40)
        assert best_and_worst_day([a, b]) == (a, a)

    def test_empty(self):
        assert best_and_worst_day([]) == (None, None)


class TestWeeklySummary:
    @pytest.fixture
    def week(self, vital_factory):
        return [
            vital_factory(
                "2026-03-02", shift="OFF", body=60, mental=70, nap_hours=1,
                factors={"sleep": 0.5, "stress": 0.2},
            ),
            vital_factory(
                "2026-03-03", shift="D", body=50, mental=40, nap_hours=1,
                factors={"sleep": 0.3, "shift": 0.2},
            ),
            vital_factory("2026-03-04", shift="D", body=80, mental=90),
            vital_factory("2026-03-05", shift="D", body=72, mental=75),
        ]

    def test_too_few_usable_days(self, vital_factory):
        vitals = [
            vital_factory("2026-03-02"),
            vital_factory("2026-03-03"),
            vital_factory("2026-03-04", reliability=0.1, gap=5, imputed=True),
        ]
        assert weekly_summary(vitals) is None

    def test_average_uses_weaker_battery(self, week):
        summary = weekly_summary(week)
        assert summary.avg_battery == 63
        assert summary.prev_avg_battery == 63
        assert summary.delta == 0

    def test_delta_against_previous_week(self, week, vital_factory):
        prev = [vital_factory(f"2026-02-2{i}", body=50, mental=55) for i in range(3, 6)]
        summary = weekly_summary(week, prev)
        assert summary.prev_avg_battery == 50
        assert summary.delta == 13

    def test_top_drains(self, week):
        drains = weekly_summary(week).top_drains
        assert [d["key"] for d in drains] == ["sleep", "shift", "stress"]
        assert drains[0]["pct"] == 20
        assert drains[1]["pct"] == 5

    def test_nap_and_off_comparisons(self, week):
        summary = weekly_summary(week)
        assert summary.nap_diff == -21.0
        assert summary.off_diff == -7.3

    def test_comparisons_need_both_kinds(self, vital_factory):
        vitals = [
            vital_factory("2026-03-02", shift="D", body=60, nap_hours=1),
            vital_factory("2026-03-03", shift="D", body=50),
            vital_factory("2026-03-04", shift="E", body=40),
        ]
        summary = weekly_summary(vitals)
        assert summary.nap_diff is None
        assert summary.off_diff is None

    def test_serializable(self, week):
        data = weekly_summary(week).to_dict()
        assert set(data) == {
            "avg_battery", "prev_avg_battery", "delta", "top_drains", "nap_diff", "off_diff",
        }
