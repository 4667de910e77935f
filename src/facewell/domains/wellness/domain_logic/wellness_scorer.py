"""Deterministic wellness score: face metrics -> integer in [0, 100].

Start at 100 and subtract a fixed deduction per finding. Missing or
malformed metrics cost nothing. No randomness, no I/O.
"""

from __future__ import annotations

from typing import Any, Mapping

from facewell.core.api.models import AnalysisResult
from facewell.domains.wellness.domain_logic.wellness_models import (
    ACNE_PENALTY_CAP,
    ACNE_PENALTY_PER_REGION,
    BLACKHEAD_PENALTY_PER_LEVEL,
    CROWS_FEET_PENALTY,
    DARK_CIRCLE_PENALTY,
    EYE_POUCH_PENALTY,
    FOREHEAD_WRINKLE_PENALTY,
    SCORE_MAX,
    SCORE_MIN,
)


def _clamp(value: float, lo: float = SCORE_MIN, hi: float = SCORE_MAX) -> float:
    """Clamp a value to [lo, hi]."""
    return max(lo, min(hi, value))


def _num(val: Any, default: float = 0.0) -> float:
    """Safely convert to float, returning default for None or non-numeric."""
    if val is None or isinstance(val, bool):
        return default
    try:
        return float(val)
    except (TypeError, ValueError):
        return default


def metrics_of(analysis: AnalysisResult | Mapping[str, Any] | None) -> Mapping[str, Any]:
    """Return the metric mapping from a parsed result or a raw payload."""
    if analysis is None:
        return {}
    if isinstance(analysis, AnalysisResult):
        return analysis.metrics
    if isinstance(analysis, Mapping):
        results = analysis.get("results")
        return results if isinstance(results, Mapping) else analysis
    return {}


def metric_value(metrics: Mapping[str, Any], name: str) -> float:
    """Numeric ``value`` of a metric, 0 when absent or malformed."""
    payload = metrics.get(name)
    if not isinstance(payload, Mapping):
        return 0.0
    return _num(payload.get("value"))


def acne_region_count(metrics: Mapping[str, Any]) -> int:
    """Number of detected acne regions (0 if none reported)."""
    payload = metrics.get("acne")
    if not isinstance(payload, Mapping):
        return 0
    regions = payload.get("rectangle")
    return len(regions) if isinstance(regions, (list, tuple)) else 0


def score_breakdown(
    analysis: AnalysisResult | Mapping[str, Any] | None,
) -> tuple[int, dict[str, float]]:
    """Compute the wellness score and the deduction applied by each rule.

    Returns:
        (score in [0, 100], {rule_name: points deducted})
    """
    metrics = metrics_of(analysis)
    deductions: dict[str, float] = {}

    if metric_value(metrics, "eye_pouch") == 1:
        deductions["eye_pouch"] = EYE_POUCH_PENALTY

    if metric_value(metrics, "dark_circle") > 0:
        deductions["dark_circle"] = DARK_CIRCLE_PENALTY

    blackhead = metric_value(metrics, "blackhead")
    if blackhead > 0:
        deductions["blackhead"] = BLACKHEAD_PENALTY_PER_LEVEL * blackhead

    if metric_value(metrics, "forehead_wrinkle") == 1:
        deductions["forehead_wrinkle"] = FOREHEAD_WRINKLE_PENALTY

    if metric_value(metrics, "crows_feet") == 1:
        deductions["crows_feet"] = CROWS_FEET_PENALTY

    acne = min(ACNE_PENALTY_PER_REGION * acne_region_count(metrics), ACNE_PENALTY_CAP)
    if acne:
        deductions["acne"] = acne

    score = _clamp(SCORE_MAX - sum(deductions.values()))
    return int(round(score)), deductions


def compute_wellness_score(analysis: AnalysisResult | Mapping[str, Any] | None) -> int:
    """Wellness score in [0, 100] for one analysis result."""
    score, _ = score_breakdown(analysis)
    return score
