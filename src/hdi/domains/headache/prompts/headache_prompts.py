"""MCP Prompts — pre-built interaction templates for headache diary journeys."""

from __future__ import annotations

from fastmcp import FastMCP


def register_headache_prompts(mcp: FastMCP) -> None:
    """Register headache domain MCP prompts."""

    @mcp.prompt()
    def weekly_headache_review_prompt(time_period: str = "the last week") -> str:
        """Prompt template for reviewing headaches and risk over a period."""
        return f"""Let's review my headaches for {time_period}. I'd like to:

1. See how many headaches I had and how intense they were
2. Understand which factors and trigger combinations line up with them
3. Know my headache risk for the coming days
4. Get specific, prioritized steps to prevent the next one

Please run a headache analysis and explain the results in plain language.
If there isn't enough data yet, tell me what to log and for how long."""

    @mcp.prompt()
    def trigger_check_in_prompt() -> str:
        """Prompt template for a quick daily trigger check-in."""
        return """Quick headache check-in for today. Please:

1. Tell me today's headache risk and the main factors behind it
2. Flag any upcoming high-risk days this week
3. Remind me what I should log today so the predictions keep improving

Keep it short and practical."""
