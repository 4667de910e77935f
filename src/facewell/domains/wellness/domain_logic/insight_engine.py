"""Rule-based insights pairing a day's habits with face-analysis metrics.

Every rule is evaluated independently and all that apply contribute one
insight, in rule order. A rule whose habit field or face metric is missing
does not fire.
"""

from __future__ import annotations

from typing import Any, Mapping

from facewell.core.api.models import AnalysisResult
from facewell.domains.wellness.domain_logic.wellness_models import (
    ACTIVE_EXERCISE_MINUTES,
    DRY_SKIN_TYPE_CODE,
    HIGH_STRESS_LEVEL,
    LOW_SLEEP_HOURS,
    LOW_WATER_GLASSES,
    RESTED_SLEEP_HOURS,
    HabitLog,
    Insight,
)
from facewell.domains.wellness.domain_logic.wellness_scorer import metrics_of

MISSING_BOTH = Insight(
    kind="info",
    message="Log today's habits and take a selfie scan to see how your habits show on your face.",
)
MISSING_ANALYSIS = Insight(
    kind="info",
    message="Take a selfie scan to connect today's habits with your skin.",
)
MISSING_HABITS = Insight(
    kind="info",
    message="Log today's sleep, water, exercise and stress to unlock personalized insights.",
)
BALANCED = Insight(
    kind="positive",
    message="Your habits look balanced today. Keep it up!",
    confidence="medium",
)


def _metric_flag(metrics: Mapping[str, Any], name: str) -> bool | None:
    """True/False for a present 0/1 metric, None when absent or malformed."""
    payload = metrics.get(name)
    if not isinstance(payload, Mapping) or "value" not in payload:
        return None
    value = payload.get("value")
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value) >= 1
    except (TypeError, ValueError):
        return None


def _is_dry_skin(metrics: Mapping[str, Any]) -> bool:
    payload = metrics.get("skin_type")
    if isinstance(payload, str):
        return payload.strip().lower() == "dry"
    if not isinstance(payload, Mapping):
        return False
    for key in ("value", "skin_type", "type"):
        raw = payload.get(key)
        if isinstance(raw, str):
            if raw.strip().lower() == "dry":
                return True
            continue
        if isinstance(raw, (int, float)) and not isinstance(raw, bool) and raw == DRY_SKIN_TYPE_CODE:
            return True
    return False


def _habits_of(habits: HabitLog | Mapping[str, Any] | None) -> HabitLog | None:
    if habits is None or isinstance(habits, HabitLog):
        return habits
    if isinstance(habits, Mapping):
        return HabitLog.from_dict(dict(habits))
    return None


def generate_insights(
    analysis: AnalysisResult | Mapping[str, Any] | None,
    habits: HabitLog | Mapping[str, Any] | None,
) -> list[Insight]:
    """Ordered insights for one analysis and one day's habit log.

    Returns a single ``info`` insight when either input is missing, and a
    single "balanced" insight when no rule applies; never an empty list.
    """
    log = _habits_of(habits)
    if analysis is None and log is None:
        return [MISSING_BOTH]
    if analysis is None:
        return [MISSING_ANALYSIS]
    if log is None:
        return [MISSING_HABITS]

    metrics = metrics_of(analysis)
    eye_bags = _metric_flag(metrics, "eye_pouch")
    wrinkles = _metric_flag(metrics, "forehead_wrinkle")
    insights: list[Insight] = []

    sleep = log.sleep_hours
    if sleep is not None and sleep < LOW_SLEEP_HOURS and eye_bags is True:
        insights.append(Insight(
            kind="correlation",
            message=(
                f"You slept {sleep:g} hours and eye bags showed up in today's scan. "
                "Aim for 7-9 hours to help reduce puffiness."
            ),
            confidence="high",
        ))

    if sleep is not None and sleep >= RESTED_SLEEP_HOURS and eye_bags is False:
        insights.append(Insight(
            kind="positive",
            message=f"{sleep:g} hours of sleep and no eye bags detected. Your rest is paying off!",
            confidence="high",
        ))

    water = log.water_glasses
    if water is not None and water < LOW_WATER_GLASSES and _is_dry_skin(metrics):
        insights.append(Insight(
            kind="correlation",
            message=(
                f"Only {water} glasses of water today and your skin reads as dry. "
                "Try drinking at least 8 glasses."
            ),
            confidence="medium",
        ))

    stress = log.stress_level
    if stress is not None and stress > HIGH_STRESS_LEVEL and wrinkles is True:
        insights.append(Insight(
            kind="correlation",
            message=(
                f"High stress ({stress}/10) may be showing as forehead lines. "
                "A few minutes of breathing exercises or a short walk can help."
            ),
            confidence="medium",
        ))

    exercise = log.exercise_minutes
    if exercise is not None and exercise >= ACTIVE_EXERCISE_MINUTES:
        insights.append(Insight(
            kind="positive",
            message=f"{exercise} minutes of exercise boosts circulation and skin health. Great job!",
            confidence="high",
        ))

    return insights or [BALANCED]
