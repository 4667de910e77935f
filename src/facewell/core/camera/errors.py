"""Camera error taxonomy and classification of backend failures."""

from __future__ import annotations

import errno


class CameraError(Exception):
    """Base exception for camera acquisition failures.

    ``recoverable`` says whether retrying without outside action can help.
    ``persistent_notice`` asks the UI for a dismissible notice rather than a
    transient toast.
    """

    code = "unknown"
    recoverable = False
    persistent_notice = False
    default_message = "The camera could not be started."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)

    def as_dict(self) -> dict[str, object]:
        return {
            "code": self.code,
            "message": self.message,
            "recoverable": self.recoverable,
            "persistent_notice": self.persistent_notice,
        }


class PermissionDenied(CameraError):
    """User (or OS policy) refused camera access."""

    code = "permission_denied"
    persistent_notice = True
    default_message = (
        "Camera access was denied. Allow camera access in your settings and try again."
    )


class DeviceNotFound(CameraError):
    """No camera hardware available."""

    code = "device_not_found"
    default_message = "No camera was found on this device."


class DeviceBusy(CameraError):
    """Camera exists but is held by another process."""

    code = "device_busy"
    recoverable = True
    default_message = "The camera is in use by another application."


class ConstraintsUnsatisfiable(CameraError):
    """Requested resolution or facing mode cannot be delivered."""

    code = "constraints_unsatisfiable"
    recoverable = True
    default_message = "The camera does not support the requested video settings."


class SecurityContextError(CameraError):
    """Camera access requires a secure context."""

    code = "insecure_context"
    default_message = "Camera access requires a secure (HTTPS) connection."


class UnknownCameraError(CameraError):
    """Anything else; keeps the original message for diagnostics."""

    code = "unknown"
    recoverable = True


class SessionStateError(Exception):
    """An operation was requested from a state that does not allow it."""


class EncodeFailed(Exception):
    """Encoding the captured frame produced no data. Retryable."""


# Browser media-capture error names, for backends bridging a real browser.
_NAMED_ERRORS: dict[str, type[CameraError]] = {
    "NotAllowedError": PermissionDenied,
    "PermissionDeniedError": PermissionDenied,
    "NotFoundError": DeviceNotFound,
    "DevicesNotFoundError": DeviceNotFound,
    "NotReadableError": DeviceBusy,
    "TrackStartError": DeviceBusy,
    "AbortError": DeviceBusy,
    "OverconstrainedError": ConstraintsUnsatisfiable,
    "ConstraintNotSatisfiedError": ConstraintsUnsatisfiable,
    "SecurityError": SecurityContextError,
}

_BUSY_ERRNOS = {errno.EBUSY, errno.EAGAIN}
_NOT_FOUND_ERRNOS = {errno.ENOENT, errno.ENODEV, errno.ENXIO}


def classify_camera_error(exc: BaseException) -> CameraError:
    """Map any acquisition failure onto the camera error taxonomy.

    CameraError instances pass through unchanged. Otherwise the exception's
    ``name`` attribute (browser style), its type, then its errno decide.
    """
    if isinstance(exc, CameraError):
        return exc

    message = str(exc) or exc.__class__.__name__

    name = getattr(exc, "name", None)
    if isinstance(name, str) and name in _NAMED_ERRORS:
        return _NAMED_ERRORS[name](message)

    if isinstance(exc, PermissionError):
        return PermissionDenied(message)
    if isinstance(exc, FileNotFoundError):
        return DeviceNotFound(message)
    if isinstance(exc, OSError):
        if exc.errno in _BUSY_ERRNOS:
            return DeviceBusy(message)
        if exc.errno in _NOT_FOUND_ERRNOS:
            return DeviceNotFound(message)
        if exc.errno in (errno.EACCES, errno.EPERM):
            return PermissionDenied(message)

    return UnknownCameraError(f"Camera failed: {message}")
