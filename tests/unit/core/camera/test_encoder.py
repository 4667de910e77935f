"""Tests for the JPEG capture encoder."""

from __future__ import annotations

import cv2
import numpy as np
import pytest

from facewell.core.camera.encoder import CaptureEncoder
from facewell.core.camera.errors import EncodeFailed


def _half_white_frame(width: int = 320, height: int = 240) -> np.ndarray:
    """White left half, black right half."""
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:, : width // 2] = 255
    return frame


def _decode(data: bytes) -> np.ndarray:
    return cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)


class TestCaptureEncoder:
    def test_encodes_jpeg_at_native_resolution(self):
        image = CaptureEncoder().encode(_half_white_frame(640, 480))
        assert (image.width, image.height) == (640, 480)
        assert image.content_type == "image/jpeg"
        assert image.filename == "face-photo.jpg"
        assert image.data[:2] == b"\xff\xd8"
        assert image.byte_size == len(image.data) > 0

    def test_output_is_mirrored(self):
        image = CaptureEncoder().encode(_half_white_frame())
        decoded = _decode(image.data)
        assert decoded.shape == (240, 320, 3)
        assert decoded[:, :100].mean() < 30
        assert decoded[:, -100:].mean() > 225

    def test_mirror_can_be_disabled(self):
        image = CaptureEncoder(mirror=False).encode(_half_white_frame())
        decoded = _decode(image.data)
        assert decoded[:, :100].mean() > 225

    def test_source_frame_not_modified(self):
        frame = _half_white_frame()
        CaptureEncoder().encode(frame)
        assert frame[0, 0, 0] == 255 and frame[0, -1, 0] == 0

    def test_lower_quality_gives_smaller_file(self):
        rng = np.random.default_rng(7)
        frame = rng.integers(0, 255, size=(240, 320, 3), dtype=np.uint8)
        high = CaptureEncoder(0.95).encode(frame)
        low = CaptureEncoder(0.2).encode(frame)
        assert low.byte_size < high.byte_size

    def test_missing_frame_raises(self):
        with pytest.raises(EncodeFailed):
            CaptureEncoder().encode(None)

    def test_empty_frame_raises(self):
        with pytest.raises(EncodeFailed):
            CaptureEncoder().encode(np.zeros((0, 0, 3), dtype=np.uint8))

    def test_describe_omits_bytes(self):
        image = CaptureEncoder().encode(_half_white_frame())
        info = image.describe()
        assert "data" not in info
        assert info["width"] == 320
        assert "data" not in repr(image)
