"""MCP tools driving the selfie capture flow.

The tools share one camera session: open the camera, poll status until a
face is present, capture, then submit the capture for analysis.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastmcp import FastMCP

from facewell.core.api.client import WellnessAPIError
from facewell.core.camera.errors import CameraError, EncodeFailed, SessionStateError
from facewell.core.camera.session import SessionState
from facewell.domains.wellness.domain_logic.insight_engine import generate_insights
from facewell.domains.wellness.domain_logic.wellness_scorer import score_breakdown

if TYPE_CHECKING:
    from facewell.core.api.client import WellnessAPIClient
    from facewell.core.camera.session import CameraSession
    from facewell.domains.wellness.connectors.habit_journal import HabitJournal

logger = logging.getLogger(__name__)


def _status_payload(session: CameraSession, **extra: Any) -> str:
    payload = session.status()
    payload.update(extra)
    return json.dumps(payload)


def register_selfie_tools(
    mcp: FastMCP,
    session: CameraSession,
    api_client: WellnessAPIClient,
    journal: HabitJournal,
    *,
    upload_timeout_s: float | None = None,
) -> None:
    """Register camera and analysis tools on the MCP server."""

    @mcp.tool
    async def camera_open() -> str:
        """Turn on the camera and start checking for a face in the frame.

        Waits until the camera is granted (or refused). Returns the session
        status; on failure ``error`` explains the cause and whether a retry
        can help.
        """
        try:
            await session.open()
        except SessionStateError as exc:
            return _status_payload(session, status="invalid_state", message=str(exc))
        except CameraError:
            return _status_payload(session, status="camera_error")
        return _status_payload(session, status="ok")

    @mcp.tool
    async def camera_status() -> str:
        """Current camera state, whether a face is in frame, and any notice."""
        return _status_payload(session, status="ok")

    @mcp.tool
    async def camera_capture() -> str:
        """Take the selfie if a face is in frame; otherwise ask to reposition."""
        try:
            image = session.capture()
        except SessionStateError as exc:
            return _status_payload(session, status="invalid_state", message=str(exc))
        except EncodeFailed as exc:
            return _status_payload(session, status="retry", message=str(exc))
        if image is None:
            return _status_payload(session, status="no_face")
        return _status_payload(session, status="captured")

    @mcp.tool
    async def camera_retake() -> str:
        """Discard the captured selfie and turn the camera back on."""
        try:
            await session.retake()
        except SessionStateError as exc:
            return _status_payload(session, status="invalid_state", message=str(exc))
        except CameraError:
            return _status_payload(session, status="camera_error")
        return _status_payload(session, status="ok")

    @mcp.tool
    async def camera_close() -> str:
        """Turn the camera off and discard any capture. Safe to call anytime."""
        session.close()
        return _status_payload(session, status="ok")

    @mcp.tool
    async def analyze_capture() -> str:
        """Send the captured selfie for face analysis.

        Returns the analysis metrics, the wellness score with its deductions,
        and insights pairing the result with today's logged habits. If the
        upload fails the capture is kept so it can be retried.
        """
        if session.state is not SessionState.CAPTURED:
            return _status_payload(
                session, status="no_capture", message="Capture a selfie first."
            )

        async def _upload(image):
            return await api_client.analyze_face(image, timeout=upload_timeout_s)

        try:
            result = await session.submit(_upload)
        except WellnessAPIError as exc:
            logger.warning("Analysis upload failed: %s", exc)
            return _status_payload(
                session, status="analysis_failed", message=str(exc), retryable=True
            )

        score, deductions = score_breakdown(result)
        insights = generate_insights(result, journal.today())
        logger.info("Analysis complete: wellness score %d", score)
        return json.dumps({
            "status": "ok",
            "analysis_id": result.analysis_id,
            "metrics": result.metrics,
            "wellness_score": score,
            "deductions": deductions,
            "insights": [i.to_dict() for i in insights],
        })
