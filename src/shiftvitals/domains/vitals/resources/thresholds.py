"""MCP Resources for severity threshold discovery."""

from __future__ import annotations

import json

from fastmcp import FastMCP

from shiftvitals.domains.vitals.domain_logic.battery import (
    CAUTION_THRESHOLDS,
    WARNING_THRESHOLDS,
)
from shiftvitals.domains.vitals.domain_logic.models import (
    SEVERITY_TONE,
    TONE_GREEN_MIN,
    TONE_RED_BELOW,
    USABLE_MAX_GAP_DAYS,
    USABLE_MIN_RELIABILITY,
)


def register_threshold_resources(mcp: FastMCP) -> None:
    """Register severity and reliability threshold resources on the MCP server."""

    @mcp.resource("vitals://severity/thresholds")
    def severity_thresholds_resource() -> str:
        """The exact thresholds behind tones, severity and usable-day filtering."""
        return json.dumps(
            {
                "battery_tone": {
                    "green_min": TONE_GREEN_MIN,
                    "red_below": TONE_RED_BELOW,
                },
                "severity": {
                    "warning": WARNING_THRESHOLDS,
                    "caution": CAUTION_THRESHOLDS,
                    "tones": SEVERITY_TONE,
                },
                "usable_day": {
                    "min_input_reliability": USABLE_MIN_RELIABILITY,
                    "max_days_since_input": USABLE_MAX_GAP_DAYS,
                },
            },
            indent=2,
        )
