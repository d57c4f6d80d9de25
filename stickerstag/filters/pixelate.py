"""Block pixelation.

The buffer is shrunk to ``pixels`` percent of its size by averaging each
block of source pixels, then scaled back up with nearest-neighbor sampling
so every block shows a single color.

Block colors are alpha weighted, so fully transparent pixels do not tint
their block; a block without any coverage becomes (0, 0, 0, 0).

Usage:
    from stickerstag.filters.pixelate import pixelate

    result = pixelate(buffer, 10)
"""
from __future__ import annotations

import logging

import numpy as np

from stickerstag.pixel_buffer import PixelBuffer, ensure_buffer
from .color_transform import finite_number, soft_clamp

logger = logging.getLogger(__name__)

PIXELS_RANGE = (1.0, 100.0)
"Soft range of the block scale in percent of the buffer size"


def _block_edges(length: int, blocks: int) -> np.ndarray:
    """Start offsets of blocks evenly partitioning range(length), plus length."""
    return (np.arange(blocks + 1) * length) // blocks


def _block_sums(values: np.ndarray, row_starts: np.ndarray, col_starts: np.ndarray) -> np.ndarray:
    return np.add.reduceat(np.add.reduceat(values, row_starts, axis=0), col_starts, axis=1)


def pixelate(buffer: PixelBuffer, pixels: float = 5) -> PixelBuffer:
    """Pixelate into blocks.

    Args:
        buffer: Source buffer
        pixels: Reduced size in percent of the original, soft range 1-100.
            100 keeps every pixel, 1 leaves one block per 100 pixels.

    Returns:
        Pixelated buffer of the same size
    """
    buffer = ensure_buffer(buffer, "pixelate")
    pixels = finite_number("pixels", pixels, stage="pixelate")
    pixels = soft_clamp("pixelate pixels", pixels, *PIXELS_RANGE)

    height, width = buffer.height, buffer.width
    small_w = max(1, round(width * pixels / 100))
    small_h = max(1, round(height * pixels / 100))
    rows = _block_edges(height, small_h)
    cols = _block_edges(width, small_w)
    logger.debug(f"Pixelating {width}x{height} into {small_w}x{small_h} blocks")

    source = buffer.array.astype(np.float64)
    alpha = source[..., 3:]
    coverage = _block_sums(alpha, rows[:-1], cols[:-1])
    color = _block_sums(source[..., :3] * alpha, rows[:-1], cols[:-1])
    counts = np.outer(np.diff(rows), np.diff(cols))[..., np.newaxis]

    blocks = np.zeros((small_h, small_w, 4), dtype=np.float64)
    np.divide(color, coverage, out=blocks[..., :3], where=coverage > 0)
    blocks[..., 3:] = coverage / counts
    blocks = np.clip(np.rint(blocks), 0, 255).astype(np.uint8)

    row_index = np.repeat(np.arange(small_h), np.diff(rows))
    col_index = np.repeat(np.arange(small_w), np.diff(cols))
    return PixelBuffer._wrap(blocks[row_index][:, col_index])


__all__ = ['PIXELS_RANGE', 'pixelate']
