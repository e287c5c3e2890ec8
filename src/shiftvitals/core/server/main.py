"""ShiftVitals server entry point: ``python -m shiftvitals.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from shiftvitals.core.config.settings import Settings, get_settings
from shiftvitals.core.server.app import create_app

logger = logging.getLogger(__name__)


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def _check_bind(settings: Settings) -> None:
    """Vitals history is personal data; only serve it off-box when told to."""
    if settings.sv_allow_insecure_bind or _is_loopback_host(settings.sv_host):
        return
    raise RuntimeError(
        f"Refusing to serve shift-work vitals on non-loopback host {settings.sv_host!r}. "
        "Set SV_ALLOW_INSECURE_BIND=true to override (unsafe)."
    )


def run() -> None:
    """Start the ShiftVitals MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.sv_log_level.upper(), logging.INFO))

    _check_bind(settings)
    logger.info(
        "Serving vitals from %s (lookback %d days, default window %d days)",
        settings.snapshot_path or "demo data",
        settings.lookback_days,
        settings.default_window_days,
    )
    logger.info("Starting ShiftVitals server on %s:%d", settings.sv_host, settings.sv_port)

    mcp = create_app()
    mcp.run(transport="streamable-http", host=settings.sv_host, port=settings.sv_port)


if __name__ == "__main__":
    run()
