"""Wellness domain models and rule constants."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Literal

InsightKind = Literal["correlation", "positive", "warning", "info"]
InsightConfidence = Literal["high", "medium", "low"]
Mood = Literal["great", "good", "okay", "low", "bad"]

MOODS: tuple[str, ...] = ("great", "good", "okay", "low", "bad")

# ---------------------------------------------------------------------------
# Wellness score deductions
# ---------------------------------------------------------------------------

SCORE_MAX = 100
SCORE_MIN = 0
EYE_POUCH_PENALTY = 10
DARK_CIRCLE_PENALTY = 10
BLACKHEAD_PENALTY_PER_LEVEL = 5
FOREHEAD_WRINKLE_PENALTY = 5
CROWS_FEET_PENALTY = 5
ACNE_PENALTY_PER_REGION = 2
ACNE_PENALTY_CAP = 15

# ---------------------------------------------------------------------------
# Insight rule thresholds (empirical defaults)
# ---------------------------------------------------------------------------

LOW_SLEEP_HOURS = 7          # sleep below this is "low"
RESTED_SLEEP_HOURS = 8       # sleep at or above this is "high"
LOW_WATER_GLASSES = 6
HIGH_STRESS_LEVEL = 6        # stress above this is "high"
ACTIVE_EXERCISE_MINUTES = 30

# Face++ skin_type codes: 0 oily, 1 dry, 2 normal, 3 mixed
DRY_SKIN_TYPE_CODE = 1


@dataclass(frozen=True)
class Insight:
    """A short rule-triggered message about habits and face metrics."""

    kind: InsightKind
    message: str
    confidence: InsightConfidence | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.confidence is not None:
            out["confidence"] = self.confidence
        return out


@dataclass(frozen=True)
class HabitLog:
    """One day's self-reported habits. Every field is optional."""

    date: str
    sleep_hours: float | None = None
    water_glasses: int | None = None
    exercise_minutes: int | None = None
    screen_time_hours: float | None = None
    stress_level: int | None = None   # 1-10
    mood: Mood | None = None
    notes: str = ""

    def __post_init__(self) -> None:
        for name in ("sleep_hours", "water_glasses", "exercise_minutes", "screen_time_hours"):
            value = getattr(self, name)
            if value is not None and not math.isfinite(value):
                raise ValueError(f"{name} must be a finite number")
            if value is not None and value < 0:
                raise ValueError(f"{name} cannot be negative")
        if self.sleep_hours is not None and self.sleep_hours > 24:
            raise ValueError("sleep_hours cannot exceed 24")
        if self.stress_level is not None and not 1 <= self.stress_level <= 10:
            raise ValueError("stress_level must be between 1 and 10")
        if self.mood is not None and self.mood not in MOODS:
            raise ValueError(f"mood must be one of: {' | '.join(MOODS)}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HabitLog:
        """Tolerant parse of a stored or round-tripped habit log.

        Values that are missing, non-numeric or out of range become None
        instead of raising.
        """
        stress = _int_or_none(data.get("stress_level"))
        if stress is not None and not 1 <= stress <= 10:
            stress = None
        sleep = _nonneg(_float_or_none(data.get("sleep_hours")))
        if sleep is not None and sleep > 24:
            sleep = None
        mood = data.get("mood")
        return cls(
            date=str(data.get("date") or date.today().isoformat()),
            sleep_hours=sleep,
            water_glasses=_nonneg(_int_or_none(data.get("water_glasses"))),
            exercise_minutes=_nonneg(_int_or_none(data.get("exercise_minutes"))),
            screen_time_hours=_nonneg(
                _float_or_none(data.get("screen_time_hours", data.get("screen_time")))
            ),
            stress_level=stress,
            mood=mood if mood in MOODS else None,
            notes=str(data.get("notes") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _float_or_none(val: Any) -> float | None:
    if val is None or isinstance(val, bool):
        return None
    try:
        f = float(val)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _int_or_none(val: Any) -> int | None:
    f = _float_or_none(val)
    return None if f is None else int(f)


def _nonneg(val: Any) -> Any:
    return val if val is None or val >= 0 else None
