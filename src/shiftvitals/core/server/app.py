"""ShiftVitals MCP Server application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery (`fastmcp run ...app.py:mcp`)
"""

from __future__ import annotations

import logging

from fastmcp import FastMCP

from shiftvitals.core.config.settings import get_settings
from shiftvitals.domains.vitals.connectors import SnapshotProvider
from shiftvitals.domains.vitals.connectors.providers import (
    DemoSnapshotProvider,
    FileSnapshotProvider,
)
from shiftvitals.domains.vitals.connectors.snapshot_file import SnapshotLoadError
from shiftvitals.domains.vitals.prompts.recovery_prompts import register_recovery_prompts
from shiftvitals.domains.vitals.resources.thresholds import register_threshold_resources
from shiftvitals.domains.vitals.tools.vitals_tools import register_vitals_tools

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def _configured_provider(snapshot_path: str) -> SnapshotProvider:
    """File provider when a readable snapshot is configured, demo data otherwise."""
    if not snapshot_path:
        logger.info("No SNAPSHOT_PATH configured, using demo snapshot provider")
        return DemoSnapshotProvider()

    provider = FileSnapshotProvider(snapshot_path)
    try:
        provider.get_snapshot()
    except SnapshotLoadError as exc:
        logger.error("Failed to load snapshot: %s", exc)
        logger.warning("Falling back to demo snapshot provider")
        return DemoSnapshotProvider()
    logger.info("Using snapshot file %s", snapshot_path)
    return provider


def create_app(
    *,
    snapshot_provider_override: SnapshotProvider | None = None,
) -> FastMCP:
    """Create and configure the ShiftVitals MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Initializes the snapshot provider (file, or demo data)
    3. Registers all tools, resources, and prompts
    """
    settings = get_settings()

    # --- Server instance ---
    server = FastMCP(
        "ShiftVitals",
        instructions=(
            "Daily vitals engine for shift workers. Computes Body and Mental "
            "battery scores, severity and factor attribution from sleep, shift, "
            "caffeine, stress, mood and menstrual-cycle records. Outputs are "
            "heuristic self-management scores, not clinical measurements."
        ),
    )

    # --- Initialize snapshot provider ---
    if snapshot_provider_override is not None:
        provider = snapshot_provider_override
    else:
        provider = _configured_provider(settings.snapshot_path)

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": "ShiftVitals",
            "version": VERSION,
            "data_source": provider.data_source,
            "data_connected": provider.is_connected(),
            "lookback_days": settings.lookback_days,
            "default_window_days": settings.default_window_days,
        }

    register_vitals_tools(
        server,
        provider,
        default_lookback_days=settings.lookback_days,
        window_days=settings.default_window_days,
    )
    logger.info("Vitals tools registered (data source: %s)", provider.data_source)

    # --- Register resources ---
    register_threshold_resources(server)

    # --- Register prompts ---
    register_recovery_prompts(server)

    return server


# Module-level instance for FastMCP discovery (`fastmcp run src/shiftvitals/core/server/app.py:mcp`).
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
