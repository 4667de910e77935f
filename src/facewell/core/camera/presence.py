"""Skin-tone heuristic deciding whether a face plausibly fills the sample.

This is not a face detector. It counts pixels whose RGB values fall in a
loose skin-tone range and reports presence when enough of the center crop
matches.
"""

from __future__ import annotations

import numpy as np

from facewell.core.camera.models import PixelSample

# Empirical thresholds for an RGB skin-tone test.
SKIN_MIN_RED = 60
SKIN_MIN_GREEN = 40
SKIN_MIN_BLUE = 20
SKIN_MIN_RED_GREEN_GAP = 15
SKIN_MIN_RED_BLUE_GAP = 15

# Presence requires strictly more than this fraction of skin pixels.
PRESENCE_SKIN_RATIO = 0.15


def skin_mask(rgba: np.ndarray) -> np.ndarray:
    """Boolean mask of skin-toned pixels in an H x W x 4 (or x 3) RGB(A) buffer."""
    px = rgba.astype(np.int16)
    r, g, b = px[..., 0], px[..., 1], px[..., 2]
    return (
        (r > SKIN_MIN_RED)
        & (g > SKIN_MIN_GREEN)
        & (b > SKIN_MIN_BLUE)
        & (r > g)
        & (r > b)
        & ((r - g) > SKIN_MIN_RED_GREEN_GAP)
        & ((r - b) > SKIN_MIN_RED_BLUE_GAP)
    )


def skin_ratio(rgba: np.ndarray) -> float:
    """Fraction of pixels in the buffer that look like skin."""
    mask = skin_mask(rgba)
    if mask.size == 0:
        return 0.0
    return float(np.count_nonzero(mask)) / float(mask.size)


class PresenceDetector:
    """Stateless per-sample classifier: same buffer in, same answer out."""

    def __init__(self, threshold: float = PRESENCE_SKIN_RATIO) -> None:
        self.threshold = threshold

    def detect(self, sample: PixelSample) -> bool:
        return skin_ratio(sample.pixels) > self.threshold


class PresenceDebouncer:
    """Holds the public presence signal, optionally requiring agreement.

    With ``ticks=1`` every raw reading is published as is. With ``ticks=N``
    the public value flips only after N consecutive raw readings disagree
    with it.
    """

    def __init__(self, ticks: int = 1) -> None:
        self._required = max(1, int(ticks))
        self._streak = 0
        self.value = False

    def update(self, raw: bool) -> bool:
        if raw == self.value:
            self._streak = 0
            return self.value
        self._streak += 1
        if self._streak >= self._required:
            self.value = raw
            self._streak = 0
        return self.value

    def reset(self) -> None:
        self._streak = 0
        self.value = False
