"""MCP prompts: interaction templates for shift-work recovery journeys."""

from __future__ import annotations

from fastmcp import FastMCP


def register_recovery_prompts(mcp: FastMCP) -> None:
    """Register recovery MCP prompts."""

    @mcp.prompt()
    def recovery_prescription_prompt(day: str = "today", next_shift: str = "") -> str:
        """Prompt template for a recovery plan built from the day's vitals."""
        upcoming = f" My next shift is {next_shift}." if next_shift else ""
        return f"""I'd like a recovery plan for {day}.{upcoming}

Please call the recovery_context tool for that day and use only the numbers it returns:

1. Start from the severity (stable / caution / warning) and the weaker of my two batteries
2. If a compound alert is listed, address those factors together first
3. Cover the top recovery drains in order, with one concrete action each
4. Fit sleep and caffeine advice around my next shift
5. If input reliability is low, say so and ask me to log today's sleep and mood

This is self-management support, not a medical assessment. Keep it short and practical."""

    @mcp.prompt()
    def weekly_review_prompt(week_ending: str = "last Sunday") -> str:
        """Prompt template for reviewing a completed week of vitals."""
        return f"""Let's review my week ending {week_ending}. Please use the vitals_insights tool to:

1. Compare this week's average battery with the week before
2. Name my top recovery drains and how much each contributed
3. Point out which shifts were hardest on me
4. Tell me which inputs I should log more often to improve accuracy

Please be honest but encouraging."""
