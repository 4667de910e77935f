"""Response models for the face-analysis backend."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

# Server insight "type" -> local insight kind
_SERVER_INSIGHT_KINDS = {
    "success": "positive",
    "positive": "positive",
    "warning": "warning",
    "correlation": "correlation",
}


@dataclass
class AnalysisResult:
    """Structured face metrics for one captured image.

    ``metrics`` maps a metric name (``eye_pouch``, ``dark_circle``,
    ``blackhead``, ``acne`` …) to its payload, typically
    ``{"value": int, "confidence": float}`` and, for a few metrics, a
    ``rectangle`` list of detected regions. Treated as read-only.
    """

    metrics: dict[str, Any]
    analysis_id: str | None = None
    created_at: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisResult:
        """Parse either ``{"results": {...}}`` or a bare metric mapping."""
        if not isinstance(data, dict):
            return cls(metrics={})
        results = data.get("results")
        if isinstance(results, dict):
            metrics = results
        elif "results" in data:
            metrics = {}
        else:
            metrics = data
        return cls(
            metrics=dict(metrics),
            analysis_id=data.get("id") or data.get("analysis_id"),
            created_at=data.get("created_at") or data.get("timestamp"),
            raw=data,
        )

    def metric(self, name: str) -> dict[str, Any] | None:
        payload = self.metrics.get(name)
        return payload if isinstance(payload, dict) else None

    def value(self, name: str, default: Any = None) -> Any:
        payload = self.metric(name)
        if payload is None:
            return default
        return payload.get("value", default)


@dataclass
class UserProfile:
    """Signed-in user as reported by the backend."""

    user_id: str
    email: str = ""
    name: str = ""
    picture: str = ""
    total_photos: int = 0
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserProfile:
        user = data.get("user", data) if isinstance(data, dict) else {}
        known = {"id", "user_id", "email", "name", "picture", "total_photos"}
        return cls(
            user_id=str(user.get("user_id") or user.get("id") or ""),
            email=user.get("email", "") or "",
            name=user.get("name", "") or "",
            picture=user.get("picture", "") or "",
            total_photos=int(user.get("total_photos") or 0),
            extra={k: v for k, v in user.items() if k not in known},
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class HistoryEntry:
    """One past analysis from ``/api/analysis/history``."""

    analysis: AnalysisResult
    created_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        analysis = AnalysisResult.from_dict(data)
        return cls(analysis=analysis, created_at=analysis.created_at)


@dataclass
class InsightsSummary:
    """Server-side aggregate from ``/api/insights``.

    ``insights`` entries are normalized to ``{"kind", "message"}`` using the
    local insight kinds.
    """

    averages: dict[str, Any] = field(default_factory=dict)
    insights: list[dict[str, str]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InsightsSummary:
        averages = data.get("averages") if isinstance(data, dict) else None
        raw_items = data.get("insights") if isinstance(data, dict) else None
        items: list[dict[str, str]] = []
        for item in raw_items or []:
            if not isinstance(item, dict) or not item.get("message"):
                continue
            kind = _SERVER_INSIGHT_KINDS.get(str(item.get("type", "")).lower(), "info")
            items.append({"kind": kind, "message": str(item["message"])})
        return cls(averages=averages if isinstance(averages, dict) else {}, insights=items)
