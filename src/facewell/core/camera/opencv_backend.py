"""Camera backend on top of OpenCV ``VideoCapture``.

Opening a device, reading frames and releasing a device block, so all three
run in the default executor and the event loop never waits on the driver.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
import threading
from typing import Any

import cv2
import numpy as np

from facewell.core.camera.errors import (
    ConstraintsUnsatisfiable,
    DeviceBusy,
    DeviceNotFound,
    PermissionDenied,
)
from facewell.core.camera.models import CameraConstraints

logger = logging.getLogger(__name__)

# Consecutive empty reads before a running camera is treated as gone.
_MAX_FAILED_READS = 30


class OpenCVTrack:
    """The single video track of an OpenCV capture."""

    kind = "video"

    def __init__(self, capture: Any) -> None:
        self._capture = capture
        self._live = True

    @property
    def live(self) -> bool:
        return self._live

    def stop(self) -> None:
        if not self._live:
            return
        self._live = False
        self._capture.release()


class OpenCVDeviceStream:
    """Device stream backed by one ``cv2.VideoCapture``."""

    def __init__(
        self,
        capture: Any,
        width: int,
        height: int,
        first_frame: np.ndarray | None,
        backend: OpenCVCameraBackend,
    ) -> None:
        self._track = OpenCVTrack(capture)
        self._capture = capture
        self._pending_frame = first_frame
        self._backend = backend
        self._released = False
        self._failed_reads = 0
        # Serialises reads with release so a capture is never freed mid-read.
        self._lock = threading.Lock()
        self.width = width
        self.height = height

    @property
    def tracks(self) -> list[OpenCVTrack]:
        return [self._track]

    async def read_frame(self) -> np.ndarray | None:
        if self._released:
            return None
        if self._pending_frame is not None:
            frame, self._pending_frame = self._pending_frame, None
            return frame
        ok, frame = await asyncio.to_thread(self._read_blocking)
        if self._released:
            return None
        if not ok:
            self._failed_reads += 1
            if self._failed_reads >= _MAX_FAILED_READS:
                raise DeviceNotFound("The camera stopped delivering frames")
            return None
        self._failed_reads = 0
        return frame

    def _read_blocking(self) -> tuple[bool, np.ndarray | None]:
        with self._lock:
            if self._released:
                return False, None
            return self._capture.read()

    def release(self) -> None:
        """Give the device back. Returns at once; the driver call may finish later."""
        if self._released:
            return
        self._released = True
        self._backend._handle_released()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._stop_tracks()
        else:
            loop.run_in_executor(None, self._stop_tracks)

    def _stop_tracks(self) -> None:
        # Waits for an in-flight read to return before freeing the capture.
        with self._lock:
            for track in self.tracks:
                track.stop()
        logger.info("Camera released")


class OpenCVCameraBackend:
    """Acquires local cameras by index.

    Usage::

        backend = OpenCVCameraBackend()
        stream = await backend.acquire(CameraConstraints(device_index=0))
        ...
        stream.release()
    """

    def __init__(self, api_preference: int = cv2.CAP_ANY) -> None:
        self._api_preference = api_preference
        self._open_handles = 0

    @property
    def open_handles(self) -> int:
        return self._open_handles

    def _handle_released(self) -> None:
        self._open_handles = max(0, self._open_handles - 1)

    async def acquire(self, constraints: CameraConstraints) -> OpenCVDeviceStream:
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, self._open_blocking, constraints)
        try:
            capture, width, height, first_frame = await asyncio.shield(future)
        except asyncio.CancelledError:
            # The open may still succeed after the caller gave up.
            future.add_done_callback(_release_orphan)
            raise

        self._open_handles += 1
        logger.info(
            "Camera %d opened at %dx%d (requested %dx%d)",
            constraints.device_index,
            width,
            height,
            constraints.ideal_width,
            constraints.ideal_height,
        )
        return OpenCVDeviceStream(capture, width, height, first_frame, self)

    def _open_blocking(
        self, constraints: CameraConstraints
    ) -> tuple[Any, int, int, np.ndarray]:
        index = constraints.device_index
        _check_device_node(index)

        capture = cv2.VideoCapture(index, self._api_preference)
        try:
            if not capture.isOpened():
                if _device_node_exists(index):
                    raise DeviceBusy(f"Camera {index} exists but could not be opened")
                raise DeviceNotFound(f"No camera at index {index}")

            capture.set(cv2.CAP_PROP_FRAME_WIDTH, constraints.ideal_width)
            capture.set(cv2.CAP_PROP_FRAME_HEIGHT, constraints.ideal_height)

            ok, frame = capture.read()
            if not ok or frame is None:
                raise DeviceBusy(f"Camera {index} opened but delivered no frames")

            height, width = frame.shape[:2]
            if width == 0 or height == 0:
                raise ConstraintsUnsatisfiable(
                    f"Camera {index} reported an empty frame size"
                )
        except BaseException:
            capture.release()
            raise

        return capture, int(width), int(height), frame


def _device_node(index: int) -> str | None:
    if sys.platform.startswith("linux"):
        return f"/dev/video{index}"
    return None


def _device_node_exists(index: int) -> bool:
    node = _device_node(index)
    return node is not None and os.path.exists(node)


def _check_device_node(index: int) -> None:
    node = _device_node(index)
    if node is None or not os.path.exists(node):
        return
    if not os.access(node, os.R_OK | os.W_OK):
        raise PermissionDenied(f"No permission to open {node}")


def _release_orphan(future: asyncio.Future) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    capture = future.result()[0]
    capture.release()
    logger.warning("Released a camera that finished opening after the request was abandoned")
