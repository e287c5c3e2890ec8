"""Concrete SnapshotProvider implementations."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

from shiftvitals.domains.vitals.connectors.demo_data import build_demo_state
from shiftvitals.domains.vitals.connectors.snapshot_file import load_snapshot_file
from shiftvitals.domains.vitals.domain_logic.models import StateSnapshot
from shiftvitals.domains.vitals.domain_logic.record_aggregator import snapshot_from_dict

logger = logging.getLogger(__name__)


class DemoSnapshotProvider:
    """Uses the deterministic demo history. Always available."""

    def __init__(self, today: date | None = None, days: int = 28) -> None:
        self._today = today
        self._days = days

    def get_snapshot(self) -> StateSnapshot:
        return snapshot_from_dict(build_demo_state(self._today or date.today(), self._days))

    def is_connected(self) -> bool:
        return True

    @property
    def data_source(self) -> str:
        return "demo"

    def get_provenance(self) -> dict[str, str]:
        return {
            "data_source": self.data_source,
            "data_source_note": (
                "Using simulated shift-work history. "
                "Set SNAPSHOT_PATH to an exported state file for real data."
            ),
        }


class FileSnapshotProvider:
    """SnapshotProvider backed by an exported JSON or YAML state file.

    The file is re-read when its modification time changes, so a host that
    re-exports in place is picked up without restarting the server.

    Usage::

        provider = FileSnapshotProvider("/path/to/state.json")
        snapshot = provider.get_snapshot()
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()
        self._cached: StateSnapshot | None = None
        self._mtime: float | None = None

    def get_snapshot(self) -> StateSnapshot:
        """Return the file's snapshot, reloading when it changed on disk.

        Raises:
            SnapshotLoadError: If the file is missing or malformed.
        """
        try:
            mtime = self._path.stat().st_mtime
        except OSError:
            mtime = None
        if self._cached is None or mtime != self._mtime:
            self._cached = load_snapshot_file(self._path)
            self._mtime = mtime
        return self._cached

    def is_connected(self) -> bool:
        return self._path.is_file()

    @property
    def data_source(self) -> str:
        return "file"

    def get_provenance(self) -> dict[str, str]:
        return {
            "data_source": self.data_source,
            "data_source_note": "State exported from the host application.",
            "snapshot_path": str(self._path),
        }
