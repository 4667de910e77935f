"""Tests for the habit/face-metric insight rules."""

from __future__ import annotations

import pytest

from facewell.domains.wellness.domain_logic.insight_engine import (
    BALANCED,
    MISSING_ANALYSIS,
    MISSING_BOTH,
    MISSING_HABITS,
    generate_insights,
)
from facewell.domains.wellness.domain_logic.wellness_models import HabitLog


def _analysis(**values) -> dict:
    return {"results": {name: {"value": v} for name, v in values.items()}}


def _log(**fields) -> HabitLog:
    return HabitLog(date="2026-10-19", **fields)


class TestMissingInputs:
    def test_nothing_provided(self):
        insights = generate_insights(None, None)
        assert insights == [MISSING_BOTH]
        assert insights[0].kind == "info"

    def test_missing_analysis(self):
        assert generate_insights(None, _log(sleep_hours=8)) == [MISSING_ANALYSIS]

    def test_missing_habits(self):
        assert generate_insights(_analysis(eye_pouch=1), None) == [MISSING_HABITS]


class TestSleepRules:
    def test_low_sleep_with_eye_bags(self):
        insights = generate_insights(_analysis(eye_pouch=1), _log(sleep_hours=5))
        assert insights[0].kind == "correlation"
        assert insights[0].confidence == "high"
        assert "5 hours" in insights[0].message
        assert len(insights) == 1

    def test_rested_without_eye_bags(self):
        insights = generate_insights(_analysis(eye_pouch=0), _log(sleep_hours=9))
        assert insights[0].kind == "positive"
        assert insights[0].confidence == "high"
        assert not any(i.kind == "correlation" for i in insights)

    def test_middle_sleep_fires_neither(self):
        insights = generate_insights(_analysis(eye_pouch=1), _log(sleep_hours=7.5))
        assert insights == [BALANCED]

    def test_sleep_rules_need_eye_pouch_metric(self):
        assert generate_insights(_analysis(), _log(sleep_hours=9)) == [BALANCED]
        assert generate_insights(_analysis(), _log(sleep_hours=4)) == [BALANCED]


class TestOtherRules:
    @pytest.mark.parametrize(
        "skin_type",
        [{"value": 1}, {"skin_type": 1}, {"value": "dry"}, "Dry", {"type": "DRY"}],
    )
    def test_low_water_with_dry_skin(self, skin_type):
        analysis = {"results": {"skin_type": skin_type}}
        insights = generate_insights(analysis, _log(water_glasses=3))
        assert insights[0].kind == "correlation"
        assert insights[0].confidence == "medium"

    def test_low_water_with_oily_skin(self):
        analysis = {"results": {"skin_type": {"skin_type": 0}}}
        assert generate_insights(analysis, _log(water_glasses=3)) == [BALANCED]

    def test_high_stress_with_forehead_lines(self):
        insights = generate_insights(_analysis(forehead_wrinkle=1), _log(stress_level=8))
        assert len(insights) == 1
        assert insights[0].kind == "correlation"
        assert "8/10" in insights[0].message

    def test_stress_of_six_is_not_high(self):
        assert generate_insights(_analysis(forehead_wrinkle=1), _log(stress_level=6)) == [BALANCED]

    def test_exercise_is_independent_of_face_metrics(self):
        insights = generate_insights(_analysis(), _log(exercise_minutes=30))
        assert len(insights) == 1
        assert insights[0].kind == "positive"
        assert insights[0].confidence == "high"

    def test_all_applicable_rules_fire_in_order(self):
        analysis = {
            "results": {
                "eye_pouch": {"value": 1},
                "forehead_wrinkle": {"value": 1},
                "skin_type": {"skin_type": 1},
            }
        }
        log = _log(sleep_hours=5, water_glasses=2, stress_level=9, exercise_minutes=45)
        insights = generate_insights(analysis, log)
        assert [i.kind for i in insights] == [
            "correlation", "correlation", "correlation", "positive",
        ]
        assert "slept" in insights[0].message
        assert "water" in insights[1].message
        assert "stress" in insights[2].message.lower()
        assert "exercise" in insights[3].message


class TestFallback:
    def test_never_empty_when_both_present(self):
        assert generate_insights({}, _log()) == [BALANCED]
        assert BALANCED.kind == "positive"
        assert BALANCED.confidence == "medium"

    def test_accepts_habit_mapping(self):
        insights = generate_insights(_analysis(eye_pouch=0), {"sleep_hours": "9"})
        assert insights[0].kind == "positive"

    @pytest.mark.parametrize(
        "habits",
        [
            {"sleep_hours": 5, "water_glasses": float("inf")},
            {"sleep_hours": 5, "stress_level": "nan"},
            {"sleep_hours": float("nan"), "exercise_minutes": "-inf"},
        ],
    )
    def test_non_finite_habit_values_do_not_raise(self, habits):
        insights = generate_insights(_analysis(eye_pouch=1), habits)
        assert insights
        assert all(i.kind in ("correlation", "positive") for i in insights)

    def test_malformed_metric_does_not_fire(self):
        analysis = {"results": {"eye_pouch": {"value": "lots"}}}
        assert generate_insights(analysis, _log(sleep_hours=4)) == [BALANCED]

    def test_to_dict(self):
        assert BALANCED.to_dict() == {
            "kind": "positive",
            "message": BALANCED.message,
            "confidence": "medium",
        }
        assert "confidence" not in MISSING_BOTH.to_dict()
