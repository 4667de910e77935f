"""MCP prompts: interaction templates for the daily selfie check-in."""

from __future__ import annotations

from fastmcp import FastMCP


def register_wellness_prompts(mcp: FastMCP) -> None:
    """Register wellness domain MCP prompts."""

    @mcp.prompt()
    def selfie_checkin_prompt() -> str:
        """Prompt template for a guided daily selfie check-in."""
        return """Let's do my daily face check-in:

1. Ask me about last night's sleep, water, exercise, screen time, stress and mood, then log them
2. Turn on the camera and tell me when my face is in frame
3. Take the selfie and analyze it
4. Show my wellness score and what today's habits may have to do with it

Keep it short and encouraging."""

    @mcp.prompt()
    def progress_review_prompt(time_period: str = "last two weeks") -> str:
        """Prompt template for reviewing past scans."""
        return f"""Let's review my face scans from the {time_period}. I'd like to:

1. See how my wellness score has moved
2. Spot which metrics (eye bags, dark circles, wrinkles) changed
3. Hear which habits seem to help or hurt

Please use my scan history and insights."""
