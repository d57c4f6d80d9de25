"""
Pytest fixtures for StickerStag tests
"""

import numpy as np
import pytest

from stickerstag import PixelBuffer
from stickerstag.config import settings


@pytest.fixture
def noise_buffer() -> PixelBuffer:
    """A deterministic 16x12 buffer of random RGBA samples."""
    rng = np.random.default_rng(1234)
    pixels = rng.integers(0, 256, size=(12, 16, 4), dtype=np.uint8)
    return PixelBuffer.from_array(pixels)


@pytest.fixture
def grey_buffer() -> PixelBuffer:
    """A solid (128, 128, 128, 255) 4x3 buffer."""
    return PixelBuffer.filled(4, 3, (128, 128, 128, 255))


@pytest.fixture
def primaries_buffer() -> PixelBuffer:
    """2x2 buffer: red, green / blue, white."""
    return PixelBuffer.from_pixels(2, 2, [
        (255, 0, 0, 255),
        (0, 255, 0, 255),
        (0, 0, 255, 255),
        (255, 255, 255, 255),
    ])


@pytest.fixture
def force_parallel(monkeypatch):
    """Process every pass in row bands on four threads."""
    monkeypatch.setattr(settings, "MAX_WORKERS", 4)
    monkeypatch.setattr(settings, "PARALLEL_MIN_PIXELS", 1)


@pytest.fixture
def force_sequential(monkeypatch):
    """Process every pass on the calling thread."""
    monkeypatch.setattr(settings, "MAX_WORKERS", 1)
