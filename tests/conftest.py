"""Shared test fixtures for FaceWell tests."""

from __future__ import annotations

import asyncio
import copy
import json
import sys
from pathlib import Path
from typing import Any, Callable

import numpy as np
import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BACKEND_URL", "http://backend.test")
    monkeypatch.setenv("SESSION_TOKEN", "")
    monkeypatch.setenv("PRESENCE_DEBOUNCE_TICKS", "1")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

import httpx  # noqa: E402

from facewell.core.api.client import WellnessAPIClient  # noqa: E402
from facewell.core.camera.models import CameraConstraints  # noqa: E402


# ---------------------------------------------------------------------------
# Synthetic frames
# ---------------------------------------------------------------------------

# BGR for RGB (200, 120, 90): passes every skin-tone test.
SKIN_BGR = (90, 120, 200)


def make_frame(skin_pixels: int = 0, width: int = 640, height: int = 480) -> np.ndarray:
    """Black BGR frame whose 100x100 center crop holds ``skin_pixels`` skin pixels."""
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    sx, sy = (width - 100) // 2, (height - 100) // 2
    crop = frame[sy:sy + 100, sx:sx + 100].reshape(-1, 3)
    crop[:skin_pixels] = SKIN_BGR
    frame[sy:sy + 100, sx:sx + 100] = crop.reshape(100, 100, 3)
    return frame


# ---------------------------------------------------------------------------
# Fake camera
# ---------------------------------------------------------------------------

class FakeTrack:
    kind = "video"

    def __init__(self) -> None:
        self.live = True
        self.stop_calls = 0

    def stop(self) -> None:
        self.stop_calls += 1
        self.live = False


class FakeDeviceStream:
    """Device stream fed by the test, one frame at a time."""

    def __init__(self, backend: FakeCameraBackend) -> None:
        self._backend = backend
        self._queue: asyncio.Queue = asyncio.Queue()
        self.tracks = [FakeTrack()]
        self.released = False
        self.frames_read = 0

    async def read_frame(self) -> np.ndarray | None:
        item = await self._queue.get()
        if isinstance(item, BaseException):
            raise item
        self.frames_read += 1
        return item

    def release(self) -> None:
        if self.released:
            return
        self.released = True
        for track in self.tracks:
            track.stop()
        self._backend.open_handles -= 1

    async def feed(self, frame: Any) -> None:
        """Deliver a frame and let the sampling loop process it."""
        target = self.frames_read + 1
        self._queue.put_nowait(frame)
        for _ in range(50):
            if self.frames_read >= target:
                break
            await asyncio.sleep(0)
        await asyncio.sleep(0)

    async def fail(self, exc: BaseException) -> None:
        self._queue.put_nowait(exc)
        for _ in range(5):
            await asyncio.sleep(0)


class FakeCameraBackend:
    """CameraBackend double that counts open handles.

    ``hold()`` makes the next acquisition wait (like a pending permission
    prompt) until ``grant()``; ``fail_with`` makes acquisition raise.
    """

    def __init__(self) -> None:
        self.open_handles = 0
        self.streams: list[FakeDeviceStream] = []
        self.requests: list[CameraConstraints] = []
        self.fail_with: BaseException | None = None
        self._gate: asyncio.Event | None = None

    def hold(self) -> None:
        self._gate = asyncio.Event()

    def grant(self) -> None:
        if self._gate is not None:
            self._gate.set()

    async def acquire(self, constraints: CameraConstraints) -> FakeDeviceStream:
        self.requests.append(constraints)
        if self._gate is not None:
            gate = self._gate
            await gate.wait()
            self._gate = None
        if self.fail_with is not None:
            raise self.fail_with
        stream = FakeDeviceStream(self)
        self.streams.append(stream)
        self.open_handles += 1
        return stream

    @property
    def last_stream(self) -> FakeDeviceStream:
        return self.streams[-1]


@pytest.fixture(name="make_frame")
def make_frame_fixture():
    return make_frame


@pytest.fixture
def camera_backend() -> FakeCameraBackend:
    return FakeCameraBackend()


# ---------------------------------------------------------------------------
# Mock backend API
# ---------------------------------------------------------------------------

ANALYSIS_PAYLOAD: dict[str, Any] = {
    "id": "an_123",
    "created_at": "2026-10-19T08:00:00Z",
    "results": {
        "eye_pouch": {"value": 1, "confidence": 0.92},
        "dark_circle": {"value": 1, "confidence": 0.81},
        "blackhead": {"value": 3, "confidence": 0.7},
        "forehead_wrinkle": {"value": 1, "confidence": 0.66},
        "crows_feet": {"value": 1, "confidence": 0.6},
        "skin_age": {"value": 31},
        "skin_type": {"skin_type": 1, "details": {}},
        "acne": {"rectangle": [1, 2, 3, 4, 5, 6, 7, 8]},
    },
}


class MockBackend:
    """Routes requests to canned responses and records them."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {
            ("POST", "/api/analyze-face"): lambda r: httpx.Response(200, json=ANALYSIS_PAYLOAD),
            ("GET", "/api/user/profile"): lambda r: httpx.Response(
                200, json={"user": {"user_id": "u1", "email": "a@example.com", "name": "Ada"}}
            ),
            ("POST", "/api/auth/google"): lambda r: httpx.Response(
                200, json={"session_token": "tok_new", "user": {"user_id": "u1"}}
            ),
            ("GET", "/api/insights"): lambda r: httpx.Response(
                200,
                json={
                    "averages": {"eye_pouch": 0.5, "dark_circle": 0.4, "skin_age": 30},
                    "insights": [
                        {"type": "success", "message": "Fewer eye bags this week"},
                        {"type": "warning", "message": "Dark circles trending up"},
                        {"type": "tip", "message": "Scan at the same time daily"},
                    ],
                },
            ),
            ("GET", "/api/analysis/history"): lambda r: httpx.Response(
                200, json={"history": [ANALYSIS_PAYLOAD, {"results": {}}]}
            ),
            ("POST", "/api/habits/log"): lambda r: httpx.Response(
                200, json={"habit_log": json.loads(r.content)}
            ),
        }

    def set_route(self, method: str, path: str, handler: Callable[[httpx.Request], Any]) -> None:
        self.routes[(method, path)] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"detail": "Not Found"})
        return handler(request)

    def last(self, path: str) -> httpx.Request:
        return [r for r in self.requests if r.url.path == path][-1]


@pytest.fixture
def analysis_payload() -> dict[str, Any]:
    return copy.deepcopy(ANALYSIS_PAYLOAD)


@pytest.fixture
def mock_backend() -> MockBackend:
    return MockBackend()


@pytest.fixture
def api_client(mock_backend: MockBackend) -> WellnessAPIClient:
    """WellnessAPIClient wired to the mock backend, signed in."""
    http = httpx.AsyncClient(
        base_url="http://backend.test", transport=httpx.MockTransport(mock_backend)
    )
    return WellnessAPIClient(http, session_token="tok_test")
