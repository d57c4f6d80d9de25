"""Per-pixel color transforms.

This module provides the point operations of the filter engine:
- Greyscale, Invert, Sepia
- Brightness, Darkness
- Threshold

Every function takes a :class:`~stickerstag.pixel_buffer.PixelBuffer`, reads
only the pixel it is computing, and returns a new buffer. The alpha channel
is always copied unchanged.

## Luminance

Greyscale and threshold share the ITU-R BT.601 luma weighting:

    Y = round(0.299*R + 0.587*G + 0.114*B)

Rounding is half-to-even, identical for both operations.

## Parameters

Tuning values are soft-clamped: a brightness amount of 400 behaves like
255 and a threshold of -3 like 0. Missing, boolean, non-numeric and
non-finite values raise :class:`~stickerstag.exceptions.InvalidParameter`.

Usage:
    from stickerstag.filters.color_transform import greyscale, brightness

    result = greyscale(buffer)
    result = brightness(buffer, 50)
"""
from __future__ import annotations

import logging
import math
import numbers
from typing import Callable

import numpy as np

from stickerstag.exceptions import InvalidParameter
from stickerstag.pixel_buffer import PixelBuffer, ensure_buffer
from .parallel import run_in_bands

logger = logging.getLogger(__name__)

LUMA_WEIGHTS = (0.299, 0.587, 0.114)
"ITU-R BT.601 luma coefficients for R, G and B"

SEPIA_MATRIX = np.array([
    [0.393, 0.769, 0.189],
    [0.349, 0.686, 0.168],
    [0.272, 0.534, 0.131],
])
"Rows produce R', G' and B' from (R, G, B)"

AMOUNT_RANGE = (-255.0, 255.0)
THRESHOLD_RANGE = (0.0, 255.0)


# ============================================================================
# Parameter handling
# ============================================================================

def finite_number(name: str, value, stage: str | None = None) -> float:
    """Returns value as float, raising InvalidParameter unless it is a finite real number."""
    if value is None:
        raise InvalidParameter(f"{name} is required", stage=stage)
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidParameter(f"{name} must be a number, got {value!r}", stage=stage)
    value = float(value)
    if not math.isfinite(value):
        raise InvalidParameter(f"{name} must be finite, got {value}", stage=stage)
    return value


def soft_clamp(name: str, value: float, low: float, high: float) -> float:
    """Clamps a tuning value into [low, high], logging when it had to be moved."""
    clamped = min(max(value, low), high)
    if clamped != value:
        logger.warning(f"{name} {value} outside [{low}, {high}], using {clamped}")
    return clamped


# ============================================================================
# Helpers
# ============================================================================

def _to_u8(values: np.ndarray) -> np.ndarray:
    """Rounds half-to-even and saturates to 0-255."""
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def _luma(rgba: np.ndarray) -> np.ndarray:
    wr, wg, wb = LUMA_WEIGHTS
    y = wr * rgba[..., 0] + wg * rgba[..., 1] + wb * rgba[..., 2]
    return _to_u8(y)


def _map_rgb(buffer: PixelBuffer, transform: Callable[[np.ndarray], np.ndarray]) -> PixelBuffer:
    """Applies transform to the RGB channels of every row band, keeping alpha.

    transform receives an (h, W, 4) uint8 band and returns uint8 values
    broadcastable to (h, W, 3).
    """
    source = buffer.array
    out = np.empty_like(source)

    def compute(y0: int, y1: int) -> np.ndarray:
        band = source[y0:y1]
        result = np.empty_like(band)
        result[..., :3] = transform(band)
        result[..., 3] = band[..., 3]
        return result

    run_in_bands(out, compute)
    return PixelBuffer._wrap(out)


# ============================================================================
# Luminance
# ============================================================================

def luminance(buffer: PixelBuffer) -> np.ndarray:
    """Computes the BT.601 luma of every pixel.

    Args:
        buffer: Source buffer

    Returns:
        uint8 array (H, W) of rounded luma values
    """
    buffer = ensure_buffer(buffer, "luminance")
    return _luma(buffer.array)


# ============================================================================
# Greyscale / Invert / Sepia
# ============================================================================

def greyscale(buffer: PixelBuffer) -> PixelBuffer:
    """Convert to greyscale, setting R=G=B to the BT.601 luma.

    Applying it twice yields the same result as applying it once.
    """
    buffer = ensure_buffer(buffer, "greyscale")
    return _map_rgb(buffer, lambda band: _luma(band)[..., np.newaxis])


grayscale = greyscale


def invert(buffer: PixelBuffer) -> PixelBuffer:
    """Invert R, G and B (255 - value)."""
    buffer = ensure_buffer(buffer, "invert")
    return _map_rgb(buffer, lambda band: 255 - band[..., :3])


def sepia(buffer: PixelBuffer) -> PixelBuffer:
    """Apply the standard sepia tone matrix.

    R' = 0.393R + 0.769G + 0.189B
    G' = 0.349R + 0.686G + 0.168B
    B' = 0.272R + 0.534G + 0.131B

    Results are rounded and clamped to 0-255.
    """
    buffer = ensure_buffer(buffer, "sepia")
    return _map_rgb(buffer, lambda band: _to_u8(band[..., :3] @ SEPIA_MATRIX.T))


# ============================================================================
# Brightness / Darkness
# ============================================================================

def _shift(buffer: PixelBuffer, offset: float) -> PixelBuffer:
    return _map_rgb(buffer, lambda band: _to_u8(band[..., :3] + offset))


def brightness(buffer: PixelBuffer, amount: float) -> PixelBuffer:
    """Brighten by adding amount to R, G and B.

    Args:
        buffer: Source buffer
        amount: Offset, soft range -255 to 255. Negative values darken.

    Returns:
        Adjusted buffer, channels clamped to 0-255
    """
    buffer = ensure_buffer(buffer, "brightness")
    amount = finite_number("amount", amount, stage="brightness")
    amount = soft_clamp("brightness amount", amount, *AMOUNT_RANGE)
    return _shift(buffer, amount)


def darkness(buffer: PixelBuffer, amount: float) -> PixelBuffer:
    """Darken by subtracting amount from R, G and B.

    Args:
        buffer: Source buffer
        amount: Offset, soft range -255 to 255. Negative values brighten.

    Returns:
        Adjusted buffer, channels clamped to 0-255
    """
    buffer = ensure_buffer(buffer, "darkness")
    amount = finite_number("amount", amount, stage="darkness")
    amount = soft_clamp("darkness amount", amount, *AMOUNT_RANGE)
    return _shift(buffer, -amount)


# ============================================================================
# Threshold
# ============================================================================

def threshold(buffer: PixelBuffer, level: float) -> PixelBuffer:
    """Binarize by luma: pixels with luma >= level become white, others black.

    Args:
        buffer: Source buffer
        level: Threshold 0-255, out-of-range values are clamped

    Returns:
        Black and white buffer with the source alpha
    """
    buffer = ensure_buffer(buffer, "threshold")
    level = finite_number("level", level, stage="threshold")
    level = soft_clamp("threshold level", level, *THRESHOLD_RANGE)

    def binarize(band: np.ndarray) -> np.ndarray:
        white = _luma(band) >= level
        return (white.astype(np.uint8) * 255)[..., np.newaxis]

    return _map_rgb(buffer, binarize)


__all__ = [
    'LUMA_WEIGHTS', 'SEPIA_MATRIX',
    'finite_number', 'soft_clamp',
    'luminance', 'greyscale', 'grayscale', 'invert', 'sepia',
    'brightness', 'darkness', 'threshold',
]
