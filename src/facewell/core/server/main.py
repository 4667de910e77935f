"""FaceWell server entry point (``python -m facewell.core.server.main``)."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from facewell.core.config.settings import Settings, get_settings
from facewell.core.server.app import create_app

logger = logging.getLogger(__name__)


def _is_loopback_host(host: str) -> bool:
    if host == "localhost":
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def check_bind(settings: Settings) -> None:
    """Refuse to put a physical camera behind a non-loopback listener."""
    if settings.facewell_allow_insecure_bind or _is_loopback_host(settings.facewell_host):
        return
    raise RuntimeError(
        f"Refusing to expose camera tools on {settings.facewell_host}. "
        "Set FACEWELL_ALLOW_INSECURE_BIND=true to override (unsafe)."
    )


def describe_startup(settings: Settings) -> str:
    backend = settings.api_base_url or "<unset>"
    return (
        f"camera {settings.camera_index} "
        f"({settings.camera_ideal_width}x{settings.camera_ideal_height}, "
        f"facing {settings.camera_facing_mode}), backend {backend}, "
        f"signed in: {'yes' if settings.session_token else 'no'}"
    )


def run() -> None:
    """Start the FaceWell MCP server with Streamable HTTP transport.

    Shutdown (Ctrl-C or SIGTERM) goes through the app lifespan, which
    releases the camera before the process exits.
    """
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.facewell_log_level.upper(), logging.INFO))

    check_bind(settings)
    logger.info(
        "Starting FaceWell on %s:%d: %s",
        settings.facewell_host,
        settings.facewell_port,
        describe_startup(settings),
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.facewell_host,
        port=settings.facewell_port,
    )


if __name__ == "__main__":
    run()
