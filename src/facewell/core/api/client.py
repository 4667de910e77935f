"""HTTP client for the face-analysis / account backend.

All endpoints live under one base URL taken from configuration. Requests
carry the ``session-token`` header once the user is signed in.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from facewell.core.api.models import (
    AnalysisResult,
    HistoryEntry,
    InsightsSummary,
    UserProfile,
)
from facewell.core.camera.models import CapturedImage
from facewell.core.config.settings import Settings

logger = logging.getLogger(__name__)

SESSION_HEADER = "session-token"


class WellnessAPIClient:
    """Async client for the backend REST API.

    Usage::

        http = httpx.AsyncClient(base_url="https://api.example.com", timeout=30)
        api = WellnessAPIClient(http, session_token=token)

        result = await api.analyze_face(image)
        score = compute_wellness_score(result)

    Uploads honour a per-call timeout and can be aborted by cancelling the
    awaiting task.
    """

    def __init__(self, http_client: httpx.AsyncClient, *, session_token: str = "") -> None:
        self._http = http_client
        self.session_token = session_token

    @classmethod
    def from_settings(cls, settings: Settings) -> WellnessAPIClient:
        http = httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.analysis_timeout_s,
        )
        return cls(http, session_token=settings.session_token)

    @property
    def base_url(self) -> str:
        return str(self._http.base_url)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_profile(self) -> UserProfile:
        data = await self._request("GET", "/api/user/profile")
        return UserProfile.from_dict(data)

    async def authenticate_google(self, credential: str) -> UserProfile:
        """Exchange a Google sign-in credential for a session token.

        The token is kept on the client for subsequent calls.
        """
        data = await self._request(
            "POST", "/api/auth/google", json={"credential": credential}, auth=False
        )
        token = data.get("session_token")
        if not isinstance(token, str) or not token:
            raise APIResponseError("Sign-in response did not include a session token")
        self.session_token = token
        return UserProfile.from_dict(data)

    async def analyze_face(
        self, image: CapturedImage, *, timeout: float | None = None
    ) -> AnalysisResult:
        """Upload a captured image and return the structured analysis."""
        files = {"image": (image.filename, image.data, image.content_type)}
        kwargs: dict[str, Any] = {"files": files}
        if timeout is not None:
            kwargs["timeout"] = timeout

        logger.info("Uploading %d-byte capture for analysis", image.byte_size)
        data = await self._request("POST", "/api/analyze-face", **kwargs)
        result = AnalysisResult.from_dict(data)
        logger.info("Analysis returned %d metrics", len(result.metrics))
        return result

    async def get_insights(self) -> InsightsSummary:
        data = await self._request("GET", "/api/insights")
        return InsightsSummary.from_dict(data)

    async def get_history(self) -> list[HistoryEntry]:
        data = await self._request("GET", "/api/analysis/history")
        items = data.get("history") or []
        return [HistoryEntry.from_dict(item) for item in items if isinstance(item, dict)]

    async def log_habits(self, habits: dict[str, Any]) -> dict[str, Any]:
        """Save today's habit log; returns the log as the server stored it."""
        data = await self._request("POST", "/api/habits/log", json=habits)
        stored = data.get("habit_log", data.get("log", data))
        return stored if isinstance(stored, dict) else habits

    def sign_out(self) -> None:
        """Forget the session token."""
        self.session_token = ""

    @property
    def closed(self) -> bool:
        return self._http.is_closed

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request(
        self, method: str, path: str, *, auth: bool = True, **kwargs: Any
    ) -> dict[str, Any]:
        headers = dict(kwargs.pop("headers", None) or {})
        if auth:
            if not self.session_token:
                raise NotAuthenticatedError(f"Sign in before calling {path}")
            headers[SESSION_HEADER] = self.session_token

        logger.debug("%s %s", method, path)
        try:
            response = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as exc:
            raise APITimeoutError(f"Request to {path} timed out") from exc
        except httpx.HTTPError as exc:
            logger.warning("Request to %s failed: %s", path, exc)
            raise APIConnectionError(
                f"Could not reach the analysis service ({exc.__class__.__name__})"
            ) from exc

        if response.status_code >= 400:
            detail = _error_detail(response)
            logger.warning("%s %s -> HTTP %d: %s", method, path, response.status_code, detail)
            raise APIRequestError(
                detail or _GENERIC_FAILURES.get(path, "Request failed"),
                status_code=response.status_code,
                detail=detail,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise APIResponseError(f"Invalid JSON from {path}: {exc}") from exc

        if not isinstance(payload, dict):
            raise APIResponseError(
                f"Expected JSON object from {path}, got {type(payload).__name__}"
            )
        return payload


_GENERIC_FAILURES = {
    "/api/analyze-face": "Analysis failed",
    "/api/auth/google": "Login failed. Please try again.",
}


# ------------------------------------------------------------------
# Exceptions
# ------------------------------------------------------------------

class WellnessAPIError(Exception):
    """Base exception for backend API errors."""


class NotAuthenticatedError(WellnessAPIError):
    """No session token is available for an authenticated endpoint."""


class APIConnectionError(WellnessAPIError):
    """Could not reach the backend."""


class APITimeoutError(APIConnectionError):
    """The backend did not answer within the timeout."""


class APIRequestError(WellnessAPIError):
    """The backend answered with a non-success status."""

    def __init__(self, message: str, *, status_code: int, detail: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class APIResponseError(WellnessAPIError):
    """Response from the backend was unexpected."""


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _error_detail(response: httpx.Response) -> str | None:
    """Pull the server-provided message out of an error response, if any."""
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    return _format_error(body.get("detail") or body.get("message") or body.get("error"))


def _format_error(error: Any) -> str | None:
    if error is None:
        return None
    if isinstance(error, str):
        return error or None
    if isinstance(error, dict):
        msg = error.get("message") or error.get("msg")
        return msg if isinstance(msg, str) and msg else str(error)
    if isinstance(error, list):
        # FastAPI validation errors: [{"loc": [...], "msg": "..."}]
        parts = [_format_error(e) for e in error]
        return "; ".join(p for p in parts if p) or None
    return str(error)
