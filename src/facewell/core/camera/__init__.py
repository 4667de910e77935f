"""Camera device abstraction: what the capture session needs from a camera."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from facewell.core.camera.models import CameraConstraints


@runtime_checkable
class MediaTrack(Protocol):
    """One track of an acquired device stream."""

    @property
    def kind(self) -> str:
        """Track kind; always 'video' for camera streams."""
        ...

    @property
    def live(self) -> bool:
        """Whether the track still holds the device."""
        ...

    def stop(self) -> None:
        """Stop the track and give up its hold on the device. Idempotent."""
        ...


@runtime_checkable
class DeviceStream(Protocol):
    """An exclusively owned handle to an active camera capture.

    The session is the only holder. Everything else reads frames through
    the session's video surface.
    """

    @property
    def tracks(self) -> list[MediaTrack]:
        ...

    async def read_frame(self) -> Any | None:
        """Wait for the next decoded frame (BGR ndarray), or None if none arrived."""
        ...

    def release(self) -> None:
        """Stop every track. Safe to call more than once."""
        ...


@runtime_checkable
class CameraBackend(Protocol):
    """Abstract device-media access.

    ``acquire`` may wait indefinitely (for example on a permission prompt)
    and raises on failure without leaving any track open.
    """

    async def acquire(self, constraints: CameraConstraints) -> DeviceStream:
        ...

    @property
    def open_handles(self) -> int:
        """Number of streams acquired and not yet released."""
        ...
