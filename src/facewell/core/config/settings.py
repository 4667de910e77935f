"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


def normalize_base_url(url: str) -> str:
    """Trim a configured backend URL and make its scheme explicit.

    ``api.example.com/`` becomes ``https://api.example.com``. An empty value
    stays empty so requests resolve relative to the client's own base.
    """
    url = (url or "").strip().rstrip("/")
    if url and not url.startswith(("http://", "https://")):
        url = "https://" + url
    return url


class Settings(BaseSettings):
    """FaceWell client configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Tool server
    # Loopback by default: the camera tools drive a physical device.
    facewell_host: str = "127.0.0.1"
    facewell_port: int = 8011
    facewell_log_level: str = "info"
    facewell_allow_insecure_bind: bool = False

    # Face-analysis backend
    backend_url: str = ""
    session_token: str = ""
    analysis_timeout_s: float = 30.0

    # Camera
    camera_index: int = 0
    camera_ideal_width: int = 1280
    camera_ideal_height: int = 720
    camera_facing_mode: Literal["user", "environment"] = "user"
    capture_jpeg_quality: float = 0.9

    # Presence detection (1 = publish every tick unsmoothed)
    presence_debounce_ticks: int = 1

    @property
    def api_base_url(self) -> str:
        return normalize_base_url(self.backend_url)


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
