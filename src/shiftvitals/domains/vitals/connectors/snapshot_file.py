"""Snapshot file loading: reads an exported host state from JSON or YAML.

The host application exports its state as one JSON object with
``schedule``, ``bio``, ``emotions``, ``notes`` and ``settings`` keys.
Hand-written fixtures may use YAML with the same shape.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from shiftvitals.domains.vitals.domain_logic.models import StateSnapshot
from shiftvitals.domains.vitals.domain_logic.record_aggregator import snapshot_from_dict

logger = logging.getLogger(__name__)

_JSON_SUFFIXES = {".json"}
_YAML_SUFFIXES = {".yaml", ".yml"}


class SnapshotLoadError(Exception):
    """Raised when a snapshot file cannot be read or parsed."""


def read_state_file(path: str | Path) -> dict[str, Any]:
    """Read a raw state dict from a JSON or YAML file."""
    path = Path(path).expanduser()
    if not path.is_file():
        raise SnapshotLoadError(f"Snapshot file not found: {path}")

    suffix = path.suffix.lower()
    if suffix not in _JSON_SUFFIXES | _YAML_SUFFIXES:
        raise SnapshotLoadError(
            f"Unsupported snapshot format {suffix!r}; expected .json, .yaml or .yml"
        )

    try:
        with open(path, encoding="utf-8") as f:
            if suffix in _JSON_SUFFIXES:
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise SnapshotLoadError(f"Invalid snapshot file {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SnapshotLoadError(
            f"Snapshot file {path} must contain an object, got {type(data).__name__}"
        )
    # Some exports wrap the state under a top-level "state" key
    if isinstance(data.get("state"), dict):
        data = data["state"]
    return data


def load_snapshot_file(path: str | Path) -> StateSnapshot:
    """Load and normalize a snapshot file into a ``StateSnapshot``."""
    data = read_state_file(path)
    snapshot = snapshot_from_dict(data)
    logger.info(
        "Loaded snapshot from %s (%d schedule days, %d bio days)",
        path,
        len(snapshot.schedule),
        len(snapshot.bio),
    )
    return snapshot
