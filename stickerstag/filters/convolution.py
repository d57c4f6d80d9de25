"""Kernel convolution.

This module provides square-kernel convolution over RGBA pixel buffers and
the named operations built on it:
- Sharpen, Burn (repeatable via ``level``)
- Edges, Blur
- Convolute (arbitrary flat weight list)

## Algorithm

For every output pixel (x, y) and every convolved channel c:

    sum_c = sum(weight[j][i] * source(x + i - half, y + j - half)[c])
    out_c = clamp(round(sum_c / divisor + bias), 0, 255)

Neighbors outside the buffer reuse the nearest edge pixel (clamped border
extension), so borders are not darkened. With ``preserve_alpha`` the alpha
channel is copied from the source pixel, otherwise it is convolved like
R, G and B.

## Levels

``level=n`` runs n complete passes, each reading the previous pass's
output. It is not equivalent to scaling the weights.

Usage:
    from stickerstag.filters.convolution import SHARPEN, convolve, sharpen

    result = convolve(buffer, SHARPEN)
    result = sharpen(buffer, level=3)
"""
from __future__ import annotations

import logging
import math
import numbers
from dataclasses import dataclass, replace
from typing import Iterator, Sequence

import numpy as np

from stickerstag.config import settings
from stickerstag.exceptions import InvalidKernel, InvalidParameter, StickerStagError
from stickerstag.pixel_buffer import PixelBuffer, ensure_buffer
from .color_transform import soft_clamp
from .parallel import run_in_bands

logger = logging.getLogger(__name__)


# ============================================================================
# Kernel
# ============================================================================

@dataclass(frozen=True)
class Kernel:
    """A square convolution kernel.

    :param weights: Row-major weights, exactly dim * dim values.
    :param dim: Side length, odd and at least 3.
    :param divisor: Sum divisor. Defaults to the sum of the weights, or 1
        when they sum to 0.
    :param bias: Value added after dividing.
    :param preserve_alpha: Copy alpha from the source instead of convolving it.
    """

    weights: tuple[float, ...]
    dim: int = 3
    divisor: float | None = None
    bias: float = 0.0
    preserve_alpha: bool = True

    def __post_init__(self):
        try:
            weights = tuple(float(w) for w in self.weights)
        except (TypeError, ValueError) as e:
            raise InvalidKernel(f"Kernel weights must be numbers: {e}") from e
        dim = self.dim
        if isinstance(dim, bool) or not isinstance(dim, numbers.Integral):
            raise InvalidKernel(f"Kernel dimension must be an integer, got {dim!r}")
        dim = int(dim)
        if dim < 3 or dim % 2 == 0:
            raise InvalidKernel(f"Kernel dimension must be odd and at least 3, got {dim}")
        if len(weights) != dim * dim:
            raise InvalidKernel(f"A {dim}x{dim} kernel needs {dim * dim} weights, got {len(weights)}")
        if not all(math.isfinite(w) for w in weights):
            raise InvalidKernel("Kernel weights must be finite")

        divisor = self.divisor
        if divisor is None:
            total = math.fsum(weights)
            divisor = total if total != 0 else 1.0
        elif isinstance(divisor, bool) or not isinstance(divisor, numbers.Real):
            raise InvalidKernel(f"Kernel divisor must be a number, got {divisor!r}")
        divisor = float(divisor)
        if divisor == 0 or not math.isfinite(divisor):
            raise InvalidKernel(f"Kernel divisor must be finite and non-zero, got {divisor}")

        if isinstance(self.bias, bool) or not isinstance(self.bias, numbers.Real):
            raise InvalidKernel(f"Kernel bias must be a number, got {self.bias!r}")
        bias = float(self.bias)
        if not math.isfinite(bias):
            raise InvalidKernel(f"Kernel bias must be finite, got {bias}")

        object.__setattr__(self, 'weights', weights)
        object.__setattr__(self, 'dim', dim)
        object.__setattr__(self, 'divisor', divisor)
        object.__setattr__(self, 'bias', bias)
        object.__setattr__(self, 'preserve_alpha', bool(self.preserve_alpha))

    @classmethod
    def square(cls, weights: Sequence[float], **options) -> 'Kernel':
        """Creates a kernel from a flat weight list whose length is a perfect square."""
        try:
            count = len(weights)
        except TypeError as e:
            raise InvalidKernel(f"Kernel weights must be a sequence, got {type(weights).__name__}") from e
        dim = math.isqrt(count)
        if dim * dim != count:
            raise InvalidKernel(f"Weight count {count} is not a perfect square")
        return cls(tuple(weights), dim=dim, **options)

    @classmethod
    def from_matrix(cls, rows: Sequence[Sequence[float]], **options) -> 'Kernel':
        """Creates a kernel from nested rows, e.g. [[0, -1, 0], [-1, 5, -1], [0, -1, 0]]."""
        rows = [list(row) for row in rows]
        if any(len(row) != len(rows) for row in rows):
            raise InvalidKernel("Kernel matrix must be square")
        return cls(tuple(w for row in rows for w in row), dim=len(rows), **options)

    def with_options(self, **changes) -> 'Kernel':
        """Returns a copy with changed divisor, bias or preserve_alpha."""
        return replace(self, **changes)

    @property
    def matrix(self) -> np.ndarray:
        """The weights as (dim, dim) float array."""
        return np.array(self.weights, dtype=np.float64).reshape(self.dim, self.dim)

    @property
    def weight_sum(self) -> float:
        return math.fsum(self.weights)


# ============================================================================
# Presets
# ============================================================================

CONVOLUTION_MATRIX: dict[str, tuple[float, ...]] = {
    'EDGES': (0, -1, 0, -1, 4, -1, 0, -1, 0),
    'BLUR': (1 / 9,) * 9,
    'SHARPEN': (0, -1, 0, -1, 5, -1, 0, -1, 0),
    'BURN': (1 / 11,) * 9,
}
"Flat 3x3 weight lists of the preset kernels"

EDGES = Kernel(CONVOLUTION_MATRIX['EDGES'])
BLUR = Kernel(CONVOLUTION_MATRIX['BLUR'])
SHARPEN = Kernel(CONVOLUTION_MATRIX['SHARPEN'])
# Weights sum to 9/11; divisor 1 keeps the per-pass darkening.
BURN = Kernel(CONVOLUTION_MATRIX['BURN'], divisor=1.0)


# ============================================================================
# Passes
# ============================================================================

def check_level(level, stage: str | None = None) -> int:
    """Validates a pass count: integral and finite, soft-clamped to [1, MAX_CONVOLUTION_LEVEL]."""
    if level is None:
        raise InvalidParameter("level is required", stage=stage)
    if isinstance(level, bool) or not isinstance(level, numbers.Real):
        raise InvalidParameter(f"level must be an integer, got {level!r}", stage=stage)
    if not math.isfinite(level) or level != int(level):
        raise InvalidParameter(f"level must be a finite integer, got {level!r}", stage=stage)
    return int(soft_clamp("level", int(level), 1, settings.MAX_CONVOLUTION_LEVEL))


def _convolve_pass(buffer: PixelBuffer, kernel: Kernel) -> PixelBuffer:
    source = buffer.array
    height, width = source.shape[:2]
    half = kernel.dim // 2
    channels = 3 if kernel.preserve_alpha else 4
    padded = np.pad(
        source[..., :channels].astype(np.float64),
        ((half, half), (half, half), (0, 0)),
        mode='edge',
    )
    taps = [
        (j, i, weight)
        for j, row in enumerate(kernel.matrix)
        for i, weight in enumerate(row)
        if weight != 0
    ]
    divisor = kernel.divisor
    bias = kernel.bias
    out = np.empty_like(source)

    def compute(y0: int, y1: int) -> np.ndarray:
        acc = np.zeros((y1 - y0, width, channels), dtype=np.float64)
        for j, i, weight in taps:
            acc += weight * padded[y0 + j:y1 + j, i:i + width]
        band = np.empty((y1 - y0, width, 4), dtype=np.uint8)
        band[..., :channels] = np.clip(np.rint(acc / divisor + bias), 0, 255)
        if kernel.preserve_alpha:
            band[..., 3] = source[y0:y1, :, 3]
        return band

    run_in_bands(out, compute)
    return PixelBuffer._wrap(out)


def iter_passes(buffer: PixelBuffer, kernel: Kernel, count: int | None = None) -> Iterator[PixelBuffer]:
    """Yields the result after each successive pass.

    Pass k reads the complete output of pass k - 1. Without count the
    iterator is unbounded.
    """
    if not isinstance(kernel, Kernel):
        raise InvalidKernel(f"Expected a Kernel, got {type(kernel).__name__}")
    current = ensure_buffer(buffer)
    index = 0
    while count is None or index < count:
        current = _convolve_pass(current, kernel)
        index += 1
        logger.debug(f"Convolution pass {index} done ({current.width}x{current.height}, dim {kernel.dim})")
        yield current


def convolve(buffer: PixelBuffer, kernel: Kernel, level: int = 1, stage: str = "convolve") -> PixelBuffer:
    """Convolve buffer with kernel, level times in sequence.

    Args:
        buffer: Source buffer
        kernel: The kernel to apply
        level: Number of compounding passes (soft range 1 to MAX_CONVOLUTION_LEVEL)
        stage: Name reported in raised errors

    Returns:
        Result of the last pass
    """
    try:
        buffer = ensure_buffer(buffer)
        level = check_level(level)
        result = buffer
        for result in iter_passes(buffer, kernel, level):
            pass
        return result
    except StickerStagError as e:
        e.with_stage(stage)
        raise


# ============================================================================
# Named operations
# ============================================================================

def sharpen(buffer: PixelBuffer, level: int = 1) -> PixelBuffer:
    """Sharpen with the 3x3 SHARPEN kernel, level compounding passes, alpha kept."""
    return convolve(buffer, SHARPEN, level, stage="sharpen")


def burn(buffer: PixelBuffer, level: int = 1) -> PixelBuffer:
    """Burn (blur and darken) with the BURN kernel, level compounding passes, alpha kept."""
    return convolve(buffer, BURN, level, stage="burn")


def edges(buffer: PixelBuffer) -> PixelBuffer:
    """Edge detection with the 3x3 Laplacian EDGES kernel, alpha kept."""
    return convolve(buffer, EDGES, stage="edges")


def blur(buffer: PixelBuffer) -> PixelBuffer:
    """3x3 box blur, alpha kept."""
    return convolve(buffer, BLUR, stage="blur")


def convolute(
    buffer: PixelBuffer,
    matrix: Sequence[float] | Kernel,
    opaque: bool = True,
    level: int = 1,
) -> PixelBuffer:
    """Convolve with an arbitrary kernel.

    Args:
        buffer: Source buffer
        matrix: Flat weight list with a perfect-square length, or a Kernel
        opaque: Keep the source alpha instead of convolving it
        level: Number of compounding passes

    Returns:
        Convolved buffer
    """
    try:
        if isinstance(matrix, Kernel):
            kernel = matrix.with_options(preserve_alpha=bool(opaque))
        else:
            kernel = Kernel.square(matrix, preserve_alpha=bool(opaque))
    except StickerStagError as e:
        e.with_stage("convolute")
        raise
    return convolve(buffer, kernel, level, stage="convolute")


__all__ = [
    'Kernel', 'CONVOLUTION_MATRIX', 'EDGES', 'BLUR', 'SHARPEN', 'BURN',
    'check_level', 'iter_passes', 'convolve',
    'sharpen', 'burn', 'edges', 'blur', 'convolute',
]
