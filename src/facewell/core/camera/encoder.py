"""Still-image capture: mirror the current frame and encode it as JPEG."""

from __future__ import annotations

import logging

import cv2
import numpy as np

from facewell.core.camera.errors import EncodeFailed
from facewell.core.camera.models import CapturedImage

logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 0.9


class CaptureEncoder:
    """Encodes a frame at its native resolution.

    The frame is flipped horizontally so the stored image matches the
    mirrored preview the user was looking at.
    """

    def __init__(self, quality: float = DEFAULT_JPEG_QUALITY, *, mirror: bool = True) -> None:
        self._jpeg_quality = int(round(min(1.0, max(0.0, quality)) * 100))
        self._mirror = mirror

    def encode(self, frame: np.ndarray | None) -> CapturedImage:
        if frame is None or frame.size == 0:
            raise EncodeFailed("No video frame available to capture")

        height, width = frame.shape[:2]
        raster = cv2.flip(frame, 1) if self._mirror else frame

        try:
            ok, buf = cv2.imencode(
                ".jpg", raster, [int(cv2.IMWRITE_JPEG_QUALITY), self._jpeg_quality]
            )
        except cv2.error as exc:
            raise EncodeFailed(f"JPEG encoding failed: {exc}") from exc

        if not ok or buf is None or buf.size == 0:
            raise EncodeFailed("JPEG encoding produced no data")

        image = CapturedImage(data=buf.tobytes(), width=int(width), height=int(height))
        logger.debug("Encoded %dx%d capture (%d bytes)", width, height, image.byte_size)
        return image
