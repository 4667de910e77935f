"""MCP tools for wellness scoring, habit logging and insights."""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import TYPE_CHECKING, Any

from fastmcp import FastMCP

from facewell.core.api.client import WellnessAPIError
from facewell.domains.wellness.domain_logic.insight_engine import generate_insights
from facewell.domains.wellness.domain_logic.wellness_models import HabitLog
from facewell.domains.wellness.domain_logic.wellness_scorer import score_breakdown

if TYPE_CHECKING:
    from facewell.core.api.client import WellnessAPIClient
    from facewell.domains.wellness.connectors.habit_journal import HabitJournal

logger = logging.getLogger(__name__)


def register_wellness_tools(
    mcp: FastMCP,
    api_client: WellnessAPIClient,
    journal: HabitJournal,
) -> None:
    """Register scoring, habit and history tools on the MCP server."""

    @mcp.tool
    def wellness_score(analysis: dict[str, Any]) -> str:
        """Wellness score (0-100) for a face-analysis result.

        Args:
            analysis: The analysis payload, either ``{"results": {...}}`` or
                the bare metric mapping.
        """
        score, deductions = score_breakdown(analysis)
        return json.dumps({"wellness_score": score, "deductions": deductions})

    @mcp.tool
    def habit_insights(
        analysis: dict[str, Any] | None = None,
        habits: dict[str, Any] | None = None,
        use_logged_habits: bool = True,
    ) -> str:
        """Insights correlating a day's habits with a face-analysis result.

        Args:
            analysis: Face-analysis payload, if one is available.
            habits: Habit log fields. When omitted and ``use_logged_habits``
                is true, today's logged habits are used.
            use_logged_habits: Fall back to today's journal entry.
        """
        habit_source: Any = habits
        if habit_source is None and use_logged_habits:
            habit_source = journal.today()
        insights = generate_insights(analysis, habit_source)
        return json.dumps({"insights": [i.to_dict() for i in insights]})

    @mcp.tool
    async def log_habits(
        sleep_hours: float | None = None,
        water_glasses: int | None = None,
        exercise_minutes: int | None = None,
        screen_time_hours: float | None = None,
        stress_level: int | None = None,
        mood: str | None = None,
        notes: str = "",
        log_date: str = "",
    ) -> str:
        """Save today's habits. Saving again the same day replaces the entry.

        Args:
            sleep_hours: Hours slept last night.
            water_glasses: Glasses of water today.
            exercise_minutes: Minutes of exercise today.
            screen_time_hours: Hours of screen time today.
            stress_level: Stress from 1 (calm) to 10 (very stressed).
            mood: One of great | good | okay | low | bad.
            notes: Free-text notes.
            log_date: ISO date (defaults to today).
        """
        try:
            log = HabitLog(
                date=log_date or date.today().isoformat(),
                sleep_hours=sleep_hours,
                water_glasses=water_glasses,
                exercise_minutes=exercise_minutes,
                screen_time_hours=screen_time_hours,
                stress_level=stress_level,
                mood=mood,
                notes=notes,
            )
        except ValueError as exc:
            return json.dumps({"status": "invalid", "message": str(exc)})

        try:
            stored = await journal.save(log)
        except WellnessAPIError as exc:
            logger.warning("Habit log could not be saved: %s", exc)
            return json.dumps({"status": "error", "message": str(exc)})

        return json.dumps({"status": "saved", "habit_log": stored.to_dict()})

    @mcp.tool
    async def wellness_history(limit: int = 20) -> str:
        """Past analyses with their wellness scores, newest first.

        Args:
            limit: Maximum number of entries to return.
        """
        try:
            entries = await api_client.get_history()
        except WellnessAPIError as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        history = []
        for entry in entries[: max(0, limit)]:
            score, _ = score_breakdown(entry.analysis)
            history.append({
                "analysis_id": entry.analysis.analysis_id,
                "created_at": entry.created_at,
                "wellness_score": score,
                "eye_pouch": entry.analysis.value("eye_pouch", 0),
                "dark_circle": entry.analysis.value("dark_circle", 0),
                "forehead_wrinkle": entry.analysis.value("forehead_wrinkle", 0),
                "skin_age": entry.analysis.value("skin_age"),
            })
        return json.dumps({"status": "ok", "history": history})

    @mcp.tool
    async def wellness_insights_summary() -> str:
        """Averages and insights the backend computed across your past scans."""
        try:
            summary = await api_client.get_insights()
        except WellnessAPIError as exc:
            return json.dumps({"status": "error", "message": str(exc)})
        return json.dumps({
            "status": "ok",
            "averages": summary.averages,
            "insights": summary.insights,
        })
