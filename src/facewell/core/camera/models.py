"""Value types shared by the camera components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CameraConstraints:
    """Video-only acquisition request.

    Width and height are preferences: a device that can only deliver some
    other resolution is still accepted.
    """

    ideal_width: int = 1280
    ideal_height: int = 720
    facing_mode: str = "user"
    device_index: int = 0


@dataclass(frozen=True, eq=False)
class PixelSample:
    """Center crop of one frame as an RGBA buffer (H x W x 4, uint8)."""

    pixels: Any
    timestamp: float

    @property
    def pixel_count(self) -> int:
        return int(self.pixels.shape[0] * self.pixels.shape[1])


@dataclass(frozen=True)
class CapturedImage:
    """A single encoded still taken from the live preview."""

    data: bytes = field(repr=False)
    width: int
    height: int
    content_type: str = "image/jpeg"
    filename: str = "face-photo.jpg"

    @property
    def byte_size(self) -> int:
        return len(self.data)

    def describe(self) -> dict[str, Any]:
        """Metadata without the image bytes."""
        return {
            "width": self.width,
            "height": self.height,
            "byte_size": self.byte_size,
            "content_type": self.content_type,
        }
