"""
Row-band execution for single filter passes.

Every output pixel of a pass depends only on the unmodified source buffer,
so a pass can be split into contiguous row bands that are computed on a
thread pool and joined at the end. numpy releases the GIL for the bulk
arithmetic, which makes threads worthwhile for large buffers.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

import numpy as np

from stickerstag.config import settings

logger = logging.getLogger(__name__)

BandFunction = Callable[[int, int], np.ndarray]
"Computes output rows [y0, y1) of a pass and returns them as (y1 - y0, W, 4) array"


def split_rows(height: int, parts: int) -> list[tuple[int, int]]:
    """Splits range(height) into at most parts contiguous (start, stop) bands."""
    parts = max(1, min(parts, height))
    step, extra = divmod(height, parts)
    bands = []
    start = 0
    for index in range(parts):
        stop = start + step + (1 if index < extra else 0)
        bands.append((start, stop))
        start = stop
    return bands


def use_parallel(width: int, height: int) -> bool:
    """Whether a width x height pass is large enough to be banded."""
    return (
        settings.MAX_WORKERS > 1
        and height > 1
        and width * height >= settings.PARALLEL_MIN_PIXELS
    )


def run_in_bands(out: np.ndarray, compute: BandFunction) -> np.ndarray:
    """Fills out (H, W, 4) by calling compute for each row band.

    :param out: Preallocated output array, written band by band.
    :param compute: Band function, must only read the pass's source data.
    :return: out
    """
    height, width = out.shape[:2]
    if not use_parallel(width, height):
        out[:] = compute(0, height)
        return out

    bands = split_rows(height, settings.MAX_WORKERS)
    logger.debug(f"Processing {width}x{height} pass in {len(bands)} row bands")

    def fill(band: tuple[int, int]) -> None:
        y0, y1 = band
        out[y0:y1] = compute(y0, y1)

    with ThreadPoolExecutor(max_workers=len(bands)) as pool:
        futures = [pool.submit(fill, band) for band in bands]
        for future in futures:
            future.result()
    return out


__all__ = ['split_rows', 'use_parallel', 'run_in_bands', 'BandFunction']
