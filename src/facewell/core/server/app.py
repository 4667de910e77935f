"""FaceWell MCP server application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastmcp import FastMCP

from facewell.core.api.client import WellnessAPIClient
from facewell.core.camera import CameraBackend
from facewell.core.camera.encoder import CaptureEncoder
from facewell.core.camera.models import CameraConstraints
from facewell.core.camera.session import CameraSession
from facewell.core.config.settings import get_settings
from facewell.domains.wellness.connectors.habit_journal import HabitJournal
from facewell.domains.wellness.prompts.wellness_prompts import register_wellness_prompts
from facewell.domains.wellness.tools.account_tools import register_account_tools
from facewell.domains.wellness.tools.selfie_tools import register_selfie_tools
from facewell.domains.wellness.tools.wellness_tools import register_wellness_tools

logger = logging.getLogger(__name__)


def create_app(
    *,
    camera_backend_override: CameraBackend | None = None,
    api_client_override: WellnessAPIClient | None = None,
) -> FastMCP:
    """Create and configure the FaceWell MCP server.

    This is the main application factory. It:
    1. Creates the backend API client
    2. Creates the camera backend and the capture session
    3. Creates the habit journal
    4. Creates the FastMCP server, whose shutdown releases the camera and
       closes the HTTP client it created
    5. Registers all tools and prompts
    """
    settings = get_settings()

    # --- Backend API client ---
    owns_api_client = api_client_override is None
    if api_client_override is not None:
        api_client = api_client_override
    else:
        api_client = WellnessAPIClient.from_settings(settings)
        if settings.api_base_url:
            logger.info("Analysis backend configured at %s", settings.api_base_url)
        else:
            logger.warning("No BACKEND_URL configured; analysis and history calls will fail")

    # --- Camera ---
    if camera_backend_override is not None:
        camera_backend = camera_backend_override
    else:
        from facewell.core.camera.opencv_backend import OpenCVCameraBackend

        camera_backend = OpenCVCameraBackend()
        logger.info("Using OpenCV camera %d", settings.camera_index)

    session = CameraSession(
        camera_backend,
        constraints=CameraConstraints(
            ideal_width=settings.camera_ideal_width,
            ideal_height=settings.camera_ideal_height,
            facing_mode=settings.camera_facing_mode,
            device_index=settings.camera_index,
        ),
        encoder=CaptureEncoder(settings.capture_jpeg_quality),
        debounce_ticks=settings.presence_debounce_ticks,
    )

    journal = HabitJournal(api_client)

    @asynccontextmanager
    async def lifespan(_server: FastMCP) -> AsyncIterator[dict]:
        try:
            yield {}
        finally:
            session.close()
            if owns_api_client:
                await api_client.aclose()
            logger.info("FaceWell shut down; camera released")

    # --- Server instance ---
    server = FastMCP(
        "FaceWell",
        instructions=(
            "Daily face check-in. Guides a selfie capture with on-device face "
            "presence checks, sends it for skin analysis, and turns the result "
            "and the day's logged habits into a wellness score and insights."
        ),
        lifespan=lifespan,
    )

    # --- Register tools ---
    @server.tool
    def health_check() -> dict:
        """Check server health and return basic status information."""
        return {
            "status": "ok",
            "server": "FaceWell",
            "version": "0.1.0",
            "backend_url": settings.api_base_url,
            "camera_state": session.state.value,
            "signed_in": bool(api_client.session_token),
            "habit_days_logged": len(journal),
        }

    register_selfie_tools(
        server,
        session,
        api_client,
        journal,
        upload_timeout_s=settings.analysis_timeout_s,
    )
    logger.info("Selfie capture tools registered")

    register_wellness_tools(server, api_client, journal)
    logger.info("Wellness scoring and habit tools registered")

    register_account_tools(server, session, api_client, journal)
    logger.info("Account tools registered")

    # --- Register prompts ---
    register_wellness_prompts(server)

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this module is loaded directly (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
