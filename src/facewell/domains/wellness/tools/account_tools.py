"""MCP tools for signing in to the analysis backend."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import FastMCP

from facewell.core.api.client import APIRequestError, WellnessAPIError

if TYPE_CHECKING:
    from facewell.core.api.client import WellnessAPIClient
    from facewell.core.camera.session import CameraSession
    from facewell.domains.wellness.connectors.habit_journal import HabitJournal

logger = logging.getLogger(__name__)


def register_account_tools(
    mcp: FastMCP,
    session: CameraSession,
    api_client: WellnessAPIClient,
    journal: HabitJournal,
) -> None:
    """Register sign-in, profile and sign-out tools on the MCP server."""

    @mcp.tool
    async def sign_in(credential: str) -> str:
        """Sign in with a Google ID-token credential.

        Args:
            credential: The credential string returned by Google Sign-In.
        """
        try:
            profile = await api_client.authenticate_google(credential)
        except WellnessAPIError as exc:
            logger.warning("Sign-in failed: %s", exc)
            return json.dumps({"status": "error", "message": str(exc)})
        logger.info("Signed in as %s", profile.user_id or "unknown user")
        return json.dumps({"status": "signed_in", "user": profile.to_dict()})

    @mcp.tool
    async def profile() -> str:
        """The signed-in user's profile.

        A token the backend no longer accepts is dropped, so the next call
        reports ``signed_out`` until the user signs in again.
        """
        if not api_client.session_token:
            return json.dumps({"status": "signed_out"})
        try:
            user = await api_client.get_profile()
        except APIRequestError as exc:
            logger.info("Stored session was rejected (HTTP %d); signing out", exc.status_code)
            api_client.sign_out()
            return json.dumps({"status": "signed_out", "message": str(exc)})
        except WellnessAPIError as exc:
            return json.dumps({"status": "error", "message": str(exc)})
        return json.dumps({"status": "ok", "user": user.to_dict()})

    @mcp.tool
    async def sign_out() -> str:
        """Sign out: turn the camera off, drop any capture and forget the session."""
        session.close()
        api_client.sign_out()
        journal.clear()
        logger.info("Signed out")
        return json.dumps({"status": "signed_out"})
