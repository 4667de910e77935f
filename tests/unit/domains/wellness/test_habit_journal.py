"""Tests for HabitLog validation and the per-day habit journal."""

from __future__ import annotations

import asyncio
from datetime import date

import httpx
import pytest

from facewell.core.api.client import APIRequestError
from facewell.domains.wellness.connectors.habit_journal import HabitJournal
from facewell.domains.wellness.domain_logic.wellness_models import HabitLog


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


class TestHabitLog:
    def test_all_fields_optional(self):
        log = HabitLog(date="2026-10-19")
        assert log.sleep_hours is None
        assert log.notes == ""

    @pytest.mark.parametrize(
        "fields",
        [
            {"sleep_hours": -1},
            {"sleep_hours": 25},
            {"water_glasses": -2},
            {"stress_level": 0},
            {"stress_level": 11},
            {"mood": "ecstatic"},
        ],
    )
    def test_invalid_values_rejected(self, fields):
        with pytest.raises(ValueError):
            HabitLog(date="2026-10-19", **fields)

    def test_from_dict_is_tolerant(self):
        log = HabitLog.from_dict({
            "date": "2026-10-18",
            "sleep_hours": "7.5",
            "water_glasses": "abc",
            "stress_level": 42,
            "screen_time": 3,
            "mood": "good",
        })
        assert log.sleep_hours == 7.5
        assert log.water_glasses is None
        assert log.stress_level is None
        assert log.screen_time_hours == 3.0
        assert log.mood == "good"

    @pytest.mark.parametrize("bad", ["nan", float("inf"), float("-inf"), "1e400", float("nan")])
    def test_from_dict_drops_non_finite_numbers(self, bad):
        log = HabitLog.from_dict({
            "date": "2026-10-19",
            "sleep_hours": bad,
            "water_glasses": bad,
            "exercise_minutes": bad,
            "screen_time_hours": bad,
            "stress_level": bad,
        })
        assert log.sleep_hours is None
        assert log.water_glasses is None
        assert log.exercise_minutes is None
        assert log.screen_time_hours is None
        assert log.stress_level is None

    def test_non_finite_values_rejected_on_construction(self):
        with pytest.raises(ValueError):
            HabitLog(date="2026-10-19", sleep_hours=float("nan"))

    def test_from_dict_defaults_to_today(self):
        assert HabitLog.from_dict({}).date == date.today().isoformat()

    def test_to_dict_round_trips(self):
        log = HabitLog(date="2026-10-19", sleep_hours=8, stress_level=3, mood="great")
        assert HabitLog.from_dict(log.to_dict()) == log


class TestHabitJournal:
    def test_save_without_backend(self):
        journal = HabitJournal()
        log = HabitLog(date="2026-10-19", sleep_hours=6)
        assert _run(journal.save(log)) is log
        assert journal.get("2026-10-19") is log
        assert len(journal) == 1

    def test_same_day_overwrites(self):
        journal = HabitJournal()
        _run(journal.save(HabitLog(date="2026-10-19", sleep_hours=6)))
        _run(journal.save(HabitLog(date="2026-10-19", sleep_hours=8)))
        assert len(journal) == 1
        assert journal.get("2026-10-19").sleep_hours == 8

    def test_today(self):
        journal = HabitJournal()
        _run(journal.save(HabitLog(date=date.today().isoformat(), water_glasses=4)))
        assert journal.today().water_glasses == 4

    def test_save_goes_through_backend(self, api_client, mock_backend):
        journal = HabitJournal(api_client)
        stored = _run(journal.save(HabitLog(date="2026-10-19", exercise_minutes=40)))
        assert stored.exercise_minutes == 40
        assert mock_backend.last("/api/habits/log").headers["session-token"] == "tok_test"

    def test_backend_failure_is_not_recorded(self, api_client, mock_backend):
        mock_backend.set_route(
            "POST", "/api/habits/log", lambda r: httpx.Response(503, json={"detail": "down"})
        )
        journal = HabitJournal(api_client)
        with pytest.raises(APIRequestError):
            _run(journal.save(HabitLog(date="2026-10-19")))
        assert len(journal) == 0

    def test_backend_echo_with_nan_is_tolerated(self, api_client, mock_backend):
        mock_backend.set_route(
            "POST", "/api/habits/log",
            lambda r: httpx.Response(
                200,
                content=b'{"habit_log": {"exercise_minutes": NaN, "sleep_hours": Infinity}}',
                headers={"content-type": "application/json"},
            ),
        )
        journal = HabitJournal(api_client)
        stored = _run(journal.save(HabitLog(date="2026-10-19", exercise_minutes=40)))
        assert stored.exercise_minutes is None
        assert stored.sleep_hours is None
        assert journal.get("2026-10-19") is stored
