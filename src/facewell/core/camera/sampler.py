"""Video surface and center-crop frame sampling."""

from __future__ import annotations

import time

import cv2
import numpy as np

from facewell.core.camera.models import PixelSample

SAMPLE_SIZE = 100


class VideoSurface:
    """Holds the most recent decoded frame of the attached stream.

    This is the preview the user sees; sampling and capture both read from
    it and never touch the device stream directly.
    """

    def __init__(self) -> None:
        self._frame: np.ndarray | None = None
        self._attached = False

    def attach(self) -> None:
        self._attached = True
        self._frame = None

    def detach(self) -> None:
        self._attached = False
        self._frame = None

    def present(self, frame: np.ndarray) -> None:
        if self._attached:
            self._frame = frame

    @property
    def frame(self) -> np.ndarray | None:
        return self._frame

    @property
    def width(self) -> int:
        return 0 if self._frame is None else int(self._frame.shape[1])

    @property
    def height(self) -> int:
        return 0 if self._frame is None else int(self._frame.shape[0])

    @property
    def has_current_frame(self) -> bool:
        return self._frame is not None and self.width > 0 and self.height > 0


def center_crop(frame: np.ndarray, size: int = SAMPLE_SIZE) -> np.ndarray:
    """Return the ``size`` x ``size`` region at the frame center.

    Frames smaller than the crop are zero padded, so the result always has
    the same shape.
    """
    h, w = frame.shape[:2]
    out = np.zeros((size, size) + frame.shape[2:], dtype=frame.dtype)

    sx = (w - size) // 2
    sy = (h - size) // 2
    x0, y0 = max(0, sx), max(0, sy)
    x1, y1 = min(w, sx + size), min(h, sy + size)
    if x1 <= x0 or y1 <= y0:
        return out

    dx, dy = x0 - sx, y0 - sy
    out[dy:dy + (y1 - y0), dx:dx + (x1 - x0)] = frame[y0:y1, x0:x1]
    return out


def _to_rgba(crop: np.ndarray) -> np.ndarray:
    if crop.ndim == 2:
        return cv2.cvtColor(crop, cv2.COLOR_GRAY2RGBA)
    if crop.shape[2] == 4:
        return cv2.cvtColor(crop, cv2.COLOR_BGRA2RGBA)
    return cv2.cvtColor(crop, cv2.COLOR_BGR2RGBA)


class FrameSampler:
    """Produces center-crop RGBA samples from a video surface."""

    def __init__(self, surface: VideoSurface, size: int = SAMPLE_SIZE) -> None:
        self._surface = surface
        self._size = size

    def sample(self, now: float | None = None) -> PixelSample | None:
        """Sample the current frame, or None if the surface has nothing decoded."""
        if not self._surface.has_current_frame:
            return None
        frame = self._surface.frame
        rgba = _to_rgba(center_crop(np.ascontiguousarray(frame, dtype=np.uint8), self._size))
        rgba.setflags(write=False)
        return PixelSample(
            pixels=rgba,
            timestamp=time.monotonic() if now is None else float(now),
        )
