"""Camera session state machine.

The session is the single owner of the device stream and of the sampling
loop. Every path that leaves ``streaming`` or ``captured`` stops the loop
and releases the stream; ``close()`` does both unconditionally and may be
called any number of times.

States::

    idle -> requesting -> streaming -> captured -> analyzing -> idle
                 |             |
                 +---> error <-+
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

from facewell.core.camera import CameraBackend, DeviceStream
from facewell.core.camera.encoder import CaptureEncoder
from facewell.core.camera.errors import (
    CameraError,
    EncodeFailed,
    SessionStateError,
    classify_camera_error,
)
from facewell.core.camera.loop import SamplingLoop
from facewell.core.camera.models import CameraConstraints, CapturedImage
from facewell.core.camera.presence import PresenceDebouncer, PresenceDetector
from facewell.core.camera.sampler import FrameSampler, VideoSurface

logger = logging.getLogger(__name__)

T = TypeVar("T")

POSITION_FACE_NOTICE = "Position your face in the frame"


class SessionState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    STREAMING = "streaming"
    CAPTURED = "captured"
    ANALYZING = "analyzing"
    ERROR = "error"


class CameraSession:
    """Explicit state machine for one selfie capture flow.

    Usage::

        async with CameraSession(OpenCVCameraBackend()) as session:
            await session.open()
            ...  # wait until session.presence is True
            image = session.capture()
            result = await session.submit(api.analyze_face)
    """

    def __init__(
        self,
        backend: CameraBackend,
        *,
        constraints: CameraConstraints | None = None,
        encoder: CaptureEncoder | None = None,
        detector: PresenceDetector | None = None,
        debounce_ticks: int = 1,
    ) -> None:
        self._backend = backend
        self._constraints = constraints or CameraConstraints()
        self._encoder = encoder or CaptureEncoder()
        self._detector = detector or PresenceDetector()
        self._surface = VideoSurface()
        self._sampler = FrameSampler(self._surface)
        self._presence = PresenceDebouncer(debounce_ticks)

        self._state = SessionState.IDLE
        self._stream: DeviceStream | None = None
        self._loop: SamplingLoop | None = None
        self._image: CapturedImage | None = None
        self._error: CameraError | None = None
        self._notice: str | None = None
        # Bumped whenever an in-flight acquisition must be ignored.
        self._generation = 0

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def presence(self) -> bool:
        return self._presence.value

    @property
    def captured_image(self) -> CapturedImage | None:
        return self._image

    @property
    def error(self) -> CameraError | None:
        return self._error

    @property
    def notice(self) -> str | None:
        return self._notice

    @property
    def has_stream(self) -> bool:
        return self._stream is not None

    @property
    def ticks(self) -> int:
        return self._loop.ticks if self._loop is not None else 0

    @property
    def surface(self) -> VideoSurface:
        return self._surface

    def status(self) -> dict[str, Any]:
        """JSON-friendly summary for the UI layer."""
        return {
            "state": self._state.value,
            "face_present": self.presence,
            "stream_open": self.has_stream,
            "captured": self._image.describe() if self._image else None,
            "error": self._error.as_dict() if self._error else None,
            "notice": self._notice,
        }

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def open(self) -> None:
        """Acquire the camera and start sampling.

        Raises the classified ``CameraError`` after moving to ``error``. If
        the session is closed while the request is pending, the late result
        is dropped (and a late stream released) and this returns quietly.
        """
        if self._state not in (SessionState.IDLE, SessionState.ERROR):
            raise SessionStateError(f"Cannot open the camera while {self._state.value}")

        self._generation += 1
        generation = self._generation
        self._error = None
        self._notice = None
        self._presence.reset()
        self._transition(SessionState.REQUESTING)

        try:
            stream = await self._backend.acquire(self._constraints)
        except asyncio.CancelledError:
            if generation == self._generation:
                self.close()
            raise
        except Exception as exc:
            error = classify_camera_error(exc)
            if generation != self._generation:
                logger.warning("Ignoring camera failure for an abandoned request: %s", error)
                return
            self._error = error
            self._transition(SessionState.ERROR)
            logger.warning("Camera could not be opened (%s): %s", error.code, error)
            if error is exc:
                raise
            raise error from exc

        if generation != self._generation:
            logger.warning("Camera became available after the request was abandoned; releasing it")
            stream.release()
            return

        self._stream = stream
        self._surface.attach()
        self._transition(SessionState.STREAMING)
        self._start_sampling()

    def capture(self) -> CapturedImage | None:
        """Take the still if a face is present.

        Returns None (and sets ``notice``) when the latest presence reading
        is false; nothing else changes in that case. ``EncodeFailed`` leaves
        the session streaming so the user can try again.
        """
        if self._state is not SessionState.STREAMING:
            raise SessionStateError(f"Cannot capture while {self._state.value}")

        if not self._presence.value:
            self._notice = POSITION_FACE_NOTICE
            logger.info("Capture rejected: no face in frame")
            return None

        frame = self._surface.frame
        self._stop_sampling()
        try:
            image = self._encoder.encode(frame)
        except EncodeFailed:
            logger.warning("Capture could not be encoded; still streaming")
            self._start_sampling()
            raise

        self._release_stream()
        self._image = image
        self._notice = None
        self._transition(SessionState.CAPTURED)
        logger.info("Captured %dx%d image (%d bytes)", image.width, image.height, image.byte_size)
        return image

    def close(self) -> None:
        """Stop sampling, release the camera, drop any capture, go idle."""
        self._generation += 1
        self._stop_sampling()
        self._release_stream()
        self._image = None
        self._error = None
        self._presence.reset()
        if self._state is not SessionState.IDLE:
            self._transition(SessionState.IDLE)

    cancel = close

    async def retake(self) -> None:
        if self._state is not SessionState.CAPTURED:
            raise SessionStateError(f"Cannot retake while {self._state.value}")
        self._image = None
        self._transition(SessionState.IDLE)
        await self.open()

    async def submit(self, uploader: Callable[[CapturedImage], Awaitable[T]]) -> T:
        """Hand the capture to ``uploader``.

        On success the image is discarded and the session goes idle. On any
        failure the image is kept and the session returns to ``captured``
        so the upload can be retried without re-shooting.
        """
        if self._state is not SessionState.CAPTURED or self._image is None:
            raise SessionStateError(f"Nothing to submit while {self._state.value}")

        image = self._image
        self._transition(SessionState.ANALYZING)
        try:
            result = await uploader(image)
        except BaseException:
            if self._state is SessionState.ANALYZING:
                self._transition(SessionState.CAPTURED)
            raise

        if self._state is SessionState.ANALYZING:
            self._image = None
            self._transition(SessionState.IDLE)
        return result

    async def __aenter__(self) -> CameraSession:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _transition(self, new_state: SessionState) -> None:
        logger.debug("Camera session %s -> %s", self._state.value, new_state.value)
        self._state = new_state

    def _start_sampling(self) -> None:
        assert self._stream is not None
        self._loop = SamplingLoop(
            self._stream,
            self._surface,
            self._sampler,
            self._detector,
            on_signal=self._publish_presence,
            on_failure=self._on_stream_failure,
        )
        self._loop.start()

    def _stop_sampling(self) -> None:
        loop, self._loop = self._loop, None
        if loop is not None:
            loop.stop()

    def _release_stream(self) -> None:
        stream, self._stream = self._stream, None
        self._surface.detach()
        if stream is not None:
            stream.release()

    def _publish_presence(self, raw: bool) -> None:
        if self._state is SessionState.STREAMING:
            self._presence.update(raw)

    def _on_stream_failure(self, exc: BaseException) -> None:
        if self._state is not SessionState.STREAMING:
            return
        self._stop_sampling()
        self._release_stream()
        self._presence.reset()
        self._error = classify_camera_error(exc)
        self._transition(SessionState.ERROR)
