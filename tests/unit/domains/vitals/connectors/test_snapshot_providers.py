"""Tests for the demo and file snapshot providers."""

from __future__ import annotations

import json
import os
from datetime import date

import pytest

from shiftvitals.domains.vitals.connectors import SnapshotProvider
from shiftvitals.domains.vitals.connectors.demo_data import DEMO_ROTATION, build_demo_state
from shiftvitals.domains.vitals.connectors.providers import (
    DemoSnapshotProvider,
    FileSnapshotProvider,
)
from shiftvitals.domains.vitals.connectors.snapshot_file import SnapshotLoadError
from shiftvitals.domains.vitals.domain_logic.models import Shift

TODAY = date(2026, 3, 15)


class TestDemoState:
    def test_covers_requested_days(self):
        state = build_demo_state(TODAY, 28)
        assert len(state["schedule"]) == 28
        assert max(state["schedule"]) == "2026-03-15"
        assert min(state["schedule"]) == "2026-02-16"

    def test_follows_rotation(self):
        state = build_demo_state(TODAY, 8)
        assert tuple(state["schedule"].values()) == DEMO_ROTATION

    def test_leaves_some_days_unlogged(self):
        state = build_demo_state(TODAY, 28)
        assert len(state["bio"]) == 25
        assert len(state["emotions"]) == 25

    def test_deterministic(self):
        assert build_demo_state(TODAY) == build_demo_state(TODAY)

    def test_note_and_cycle(self):
        state = build_demo_state(TODAY)
        assert state["notes"] == {"2026-03-12": "Handover ran late."}
        assert state["settings"]["menstrual"]["lastPeriodStart"] == "2026-03-03"


class TestDemoSnapshotProvider:
    def test_implements_protocol(self):
        assert isinstance(DemoSnapshotProvider(TODAY), SnapshotProvider)
        assert DemoSnapshotProvider(TODAY).is_connected() is True

    def test_snapshot(self):
        snapshot = DemoSnapshotProvider(TODAY).get_snapshot()
        assert snapshot.schedule["2026-03-15"] is Shift.EVENING
        assert snapshot.menstrual.enabled is True

    def test_provenance(self):
        provenance = DemoSnapshotProvider(TODAY).get_provenance()
        assert provenance["data_source"] == "demo"
        assert "SNAPSHOT_PATH" in provenance["data_source_note"]


class TestFileSnapshotProvider:
    @pytest.fixture
    def state_path(self, tmp_path, state_factory):
        path = tmp_path / "state.json"
        path.write_text(json.dumps(state_factory(["D", "N"])), encoding="utf-8")
        return path

    def test_implements_protocol(self, state_path):
        assert isinstance(FileSnapshotProvider(state_path), SnapshotProvider)

    def test_loads_file(self, state_path):
        provider = FileSnapshotProvider(state_path)
        assert provider.is_connected() is True
        assert provider.get_snapshot().schedule["2026-03-03"] is Shift.NIGHT

    def test_caches_until_modified(self, state_path, state_factory):
        provider = FileSnapshotProvider(state_path)
        first = provider.get_snapshot()
        assert provider.get_snapshot() is first

        stat = state_path.stat()
        state_path.write_text(json.dumps(state_factory(["E"])), encoding="utf-8")
        os.utime(state_path, (stat.st_atime, stat.st_mtime + 10))

        reloaded = provider.get_snapshot()
        assert reloaded is not first
        assert reloaded.schedule == {"2026-03-02": Shift.EVENING}

    def test_missing_file(self, tmp_path):
        provider = FileSnapshotProvider(tmp_path / "gone.json")
        assert provider.is_connected() is False
        with pytest.raises(SnapshotLoadError):
            provider.get_snapshot()

    def test_provenance(self, state_path):
        provenance = FileSnapshotProvider(state_path).get_provenance()
        assert provenance["data_source"] == "file"
        assert provenance["snapshot_path"] == str(state_path)
