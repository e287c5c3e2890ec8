"""Snapshot connectors: where the host application's state comes from."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from shiftvitals.domains.vitals.domain_logic.models import StateSnapshot


@runtime_checkable
class SnapshotProvider(Protocol):
    """Read-only source of the host application's state.

    Tools call ``get_snapshot`` without knowing whether the state comes from
    an exported file or the built-in demo history.
    """

    def get_snapshot(self) -> StateSnapshot:
        """Return an immutable snapshot of the current state."""
        ...

    def is_connected(self) -> bool:
        """Whether the source can currently produce a snapshot."""
        ...

    @property
    def data_source(self) -> str:
        """Label for the active data source: 'file' or 'demo'."""
        ...

    def get_provenance(self) -> dict[str, str]:
        """Return provenance metadata suitable for merging into tool output."""
        ...
