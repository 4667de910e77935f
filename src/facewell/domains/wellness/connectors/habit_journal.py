"""Habit journal: today's habit log as the backend round-tripped it.

The backend owns persistence. This keeps the most recent saved log per day
in memory so insights can pair it with the next analysis result.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from facewell.domains.wellness.domain_logic.wellness_models import HabitLog

if TYPE_CHECKING:
    from facewell.core.api.client import WellnessAPIClient

logger = logging.getLogger(__name__)


class HabitJournal:
    """At most one habit log per day; saving again overwrites that day."""

    def __init__(self, api_client: WellnessAPIClient | None = None) -> None:
        self._api = api_client
        self._logs: dict[str, HabitLog] = {}

    async def save(self, log: HabitLog) -> HabitLog:
        """Send the log to the backend (when configured) and remember the result."""
        stored = log
        if self._api is not None:
            echoed = await self._api.log_habits(log.to_dict())
            stored = HabitLog.from_dict({"date": log.date, **echoed})
        if stored.date in self._logs:
            logger.info("Overwriting habit log for %s", stored.date)
        self._logs[stored.date] = stored
        return stored

    def clear(self) -> None:
        self._logs.clear()

    def get(self, day: str) -> HabitLog | None:
        return self._logs.get(day)

    def today(self) -> HabitLog | None:
        return self._logs.get(date.today().isoformat())

    def __len__(self) -> int:
        return len(self._logs)
