"""Per-frame presence sampling loop.

One tick per frame delivered by the device stream, run as a single asyncio
task. The owner holds the loop and must call ``stop()``; once stopped, a
tick that was already waiting on a frame publishes nothing.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

import cv2

from facewell.core.camera import DeviceStream
from facewell.core.camera.presence import PresenceDetector
from facewell.core.camera.sampler import FrameSampler, VideoSurface

logger = logging.getLogger(__name__)

# Back-off when the device momentarily delivers no frame (~one display refresh).
_EMPTY_FRAME_DELAY_S = 1 / 60


class SamplingLoop:
    """Reads frames into the surface and publishes a presence reading per frame."""

    def __init__(
        self,
        stream: DeviceStream,
        surface: VideoSurface,
        sampler: FrameSampler,
        detector: PresenceDetector,
        on_signal: Callable[[bool], None],
        on_failure: Callable[[BaseException], None] | None = None,
    ) -> None:
        self._stream = stream
        self._surface = surface
        self._sampler = sampler
        self._detector = detector
        self._on_signal = on_signal
        self._on_failure = on_failure
        self._task: asyncio.Task | None = None
        self._stopped = False
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._task is not None:
            return
        self._stopped = False
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="presence-sampling"
        )

    def stop(self) -> None:
        """Cancel the scheduled tick. Idempotent."""
        self._stopped = True
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()

    def tick(self) -> bool | None:
        """Sample the surface once; return the reading or None if skipped."""
        if self._stopped:
            return None
        try:
            sample = self._sampler.sample()
            if sample is None:
                return None
            signal = self._detector.detect(sample)
        except (cv2.error, ValueError):
            logger.warning("Presence sampling failed on this frame; skipping", exc_info=True)
            return None
        self.ticks += 1
        self._on_signal(signal)
        return signal

    async def _run(self) -> None:
        while not self._stopped:
            try:
                frame = await self._stream.read_frame()
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                if self._stopped:
                    return
                logger.exception("Camera stream failed while sampling")
                self._stopped = True
                if self._on_failure is not None:
                    self._on_failure(exc)
                return

            if self._stopped:
                return
            if frame is None:
                await asyncio.sleep(_EMPTY_FRAME_DELAY_S)
                continue

            self._surface.present(frame)
            self.tick()
