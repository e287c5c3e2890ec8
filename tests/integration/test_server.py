"""Integration tests for the ShiftVitals MCP server."""

from __future__ import annotations

import asyncio
import json
from datetime import date

import pytest
from fastmcp import Client
from fastmcp.exceptions import ToolError

from shiftvitals.core.server.app import create_app
from shiftvitals.domains.vitals.connectors.providers import DemoSnapshotProvider


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _payload(result) -> dict:
    return json.loads(result.content[0].text)


ALL_EXPECTED_TOOLS = [
    "health_check",
    "compute_vitals",
    "vitals_insights",
    "recovery_context",
]


@pytest.fixture
def client():
    """Create an MCP client connected to the server with a fixed demo history."""
    mcp = create_app(snapshot_provider_override=DemoSnapshotProvider(today=date(2026, 3, 15)))
    return Client(mcp)


def test_server_starts_and_lists_tools(client):
    """Server should start and expose all registered tools."""
    async def _check():
        async with client:
            tools = await client.list_tools()
            tool_names = [t.name for t in tools]
            for expected in ALL_EXPECTED_TOOLS:
                assert expected in tool_names, f"Missing tool: {expected}"
    _run(_check())


def test_health_check_returns_ok(client):
    """health_check tool should return status ok and the data source."""
    async def _check():
        async with client:
            result = await client.call_tool("health_check", {})
            result_text = str(result)
            assert "ok" in result_text
            assert "demo" in result_text
    _run(_check())


# ---------------------------------------------------------------------------
# compute_vitals
# ---------------------------------------------------------------------------

def test_compute_vitals_over_range(client):
    async def _check():
        async with client:
            result = await client.call_tool(
                "compute_vitals", {"start": "2026-03-02", "end": "2026-03-15"}
            )
            data = _payload(result)
            assert data["days"] == 14
            assert data["data_source"] == "demo"
            assert [v["date"] for v in data["vitals"]][0] == "2026-03-02"
            assert data["vitals"][-1]["date"] == "2026-03-15"
            for vital in data["vitals"]:
                assert 0 <= vital["body"]["value"] <= 100
                assert 0 <= vital["mental"]["ema"] <= 100
                assert vital["severity"] in ("stable", "caution", "warning")
    _run(_check())


def test_compute_vitals_is_deterministic(client):
    async def _check():
        async with client:
            args = {"start": "2026-03-09", "end": "2026-03-15"}
            first = _payload(await client.call_tool("compute_vitals", args))
            second = _payload(await client.call_tool("compute_vitals", args))
            assert first == second
    _run(_check())


def test_compute_vitals_inline_state(client, state_factory):
    async def _check():
        async with client:
            state = state_factory(["N", "N", "N"], [{"sleepHours": 4, "stress": 2}] * 3)
            result = await client.call_tool(
                "compute_vitals",
                {"start": "2026-03-02", "end": "2026-03-04", "state": state},
            )
            data = _payload(result)
            assert data["data_source"] == "inline"
            assert [v["engine"]["night_streak"] for v in data["vitals"]] == [1, 2, 3]
    _run(_check())


def test_compute_vitals_rejects_bad_date(client):
    async def _check():
        async with client:
            with pytest.raises(ToolError, match="ISO date"):
                await client.call_tool("compute_vitals", {"start": "03/02/2026", "end": "2026-03-15"})
    _run(_check())


def test_compute_vitals_rejects_reversed_range(client):
    async def _check():
        async with client:
            with pytest.raises(ToolError, match="after end"):
                await client.call_tool("compute_vitals", {"start": "2026-03-15", "end": "2026-03-01"})
    _run(_check())


def test_compute_vitals_rejects_bad_lookback(client):
    async def _check():
        async with client:
            with pytest.raises(ToolError, match="lookback_days"):
                await client.call_tool(
                    "compute_vitals",
                    {"start": "2026-03-02", "end": "2026-03-15", "lookback_days": 365},
                )
    _run(_check())


def test_compute_vitals_lookback_argument(client):
    async def _check():
        async with client:
            args = {"start": "2026-03-09", "end": "2026-03-15"}
            default = _payload(await client.call_tool("compute_vitals", args))
            explicit = _payload(
                await client.call_tool("compute_vitals", {**args, "lookback_days": 14})
            )
            fresh = _payload(
                await client.call_tool("compute_vitals", {**args, "lookback_days": 0})
            )
            assert default == explicit
            assert fresh["days"] == 7
            assert fresh["vitals"][0]["mental"]["change"] is None
    _run(_check())


# ---------------------------------------------------------------------------
# vitals_insights
# ---------------------------------------------------------------------------

def test_vitals_insights(client):
    async def _check():
        async with client:
            result = await client.call_tool(
                "vitals_insights", {"start": "2026-03-02", "end": "2026-03-15"}
            )
            data = _payload(result)
            assert data["days"] == 14
            assert data["has_enough_records"] is True
            assert 0 < len(data["top_factors"]) <= 3
            assert 0 <= data["accuracy"]["percent"] <= 100
            assert data["grade"] in ("S", "A", "B", "C", "D")
            assert data["weekly_summary"]["week_start"] == "2026-03-09"
            assert data["weekly_summary"]["week_end"] == "2026-03-15"
            assert all(row["days"] > 0 for row in data["shift_stats"])
    _run(_check())


def test_vitals_insights_rejects_bad_top_n(client):
    async def _check():
        async with client:
            with pytest.raises(ToolError, match="top_n"):
                await client.call_tool("vitals_insights", {"end": "2026-03-15", "top_n": 0})
    _run(_check())


def test_vitals_insights_without_records(client):
    async def _check():
        async with client:
            result = await client.call_tool(
                "vitals_insights",
                {"start": "2026-03-02", "end": "2026-03-08", "state": {}},
            )
            data = _payload(result)
            assert data["recorded_days"] == 0
            assert data["has_enough_records"] is False
    _run(_check())


# ---------------------------------------------------------------------------
# recovery_context
# ---------------------------------------------------------------------------

def test_recovery_context_uses_next_scheduled_shift(client):
    async def _check():
        async with client:
            result = await client.call_tool("recovery_context", {"day": "2026-03-14"})
            data = _payload(result)
            assert data["available"] is True
            assert data["date"] == "2026-03-14"
            assert data["next_shift"] == "E"
            assert data["severity_tone"] in ("green", "orange", "red")
    _run(_check())


def test_recovery_context_explicit_next_shift(client):
    async def _check():
        async with client:
            result = await client.call_tool(
                "recovery_context", {"day": "2026-03-15", "next_shift": "n"}
            )
            assert _payload(result)["next_shift"] == "N"
    _run(_check())


def test_recovery_context_rejects_unknown_shift(client):
    async def _check():
        async with client:
            with pytest.raises(ToolError, match="next_shift"):
                await client.call_tool(
                    "recovery_context", {"day": "2026-03-15", "next_shift": "X"}
                )
    _run(_check())


# ---------------------------------------------------------------------------
# Resources and prompts
# ---------------------------------------------------------------------------

def test_thresholds_resource(client):
    async def _check():
        async with client:
            contents = await client.read_resource("vitals://severity/thresholds")
            data = json.loads(contents[0].text)
            assert data["severity"]["warning"]["vital_max"] == 45
            assert data["severity"]["caution"]["vital_max"] == 60
            assert data["usable_day"]["min_input_reliability"] == 0.45
    _run(_check())


def test_prompts_registered(client):
    async def _check():
        async with client:
            prompts = await client.list_prompts()
            names = [p.name for p in prompts]
            assert "recovery_prescription_prompt" in names
            assert "weekly_review_prompt" in names

            result = await client.get_prompt(
                "recovery_prescription_prompt", {"day": "2026-03-15", "next_shift": "N"}
            )
            text = result.messages[0].content.text
            assert "recovery_context" in text
            assert "My next shift is N." in text
    _run(_check())
