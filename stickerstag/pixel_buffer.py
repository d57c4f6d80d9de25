"""
Implements the class :class:`.PixelBuffer`, the RGBA pixel grid every filter
reads from and writes to.

Samples are stored row-major (top-to-bottom, left-to-right) in R, G, B, A
order as 8-bit unsigned integers. Internally the data lives in a read-only
numpy array of shape (height, width, 4) so that filters can operate on whole
channels at once and no transform can modify its input by accident.
"""

from __future__ import annotations

from typing import Iterable, Sequence, Union

import numpy as np

from .exceptions import InvalidBuffer

RGBA = tuple[int, int, int, int]
"A single pixel as (r, g, b, a)"

SampleTypes = Union[bytes, bytearray, memoryview, Sequence[int], np.ndarray]
"Valid sources for a flat sample sequence"


def _check_dimension(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidBuffer(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise InvalidBuffer(f"{name} must be positive, got {value}")
    return int(value)


def _as_uint8(values, what: str) -> np.ndarray:
    """Convert values to a uint8 array, rejecting anything outside 0-255."""
    if isinstance(values, (bytes, bytearray, memoryview)):
        return np.frombuffer(values, dtype=np.uint8)
    array = np.asarray(values)
    if array.dtype == np.uint8:
        return array
    if array.size == 0:
        return array.astype(np.uint8)
    if array.dtype.kind not in "iu":
        raise InvalidBuffer(f"{what} must be integers, got dtype {array.dtype}")
    if array.min() < 0 or array.max() > 255:
        raise InvalidBuffer(f"{what} must be within 0-255")
    return array.astype(np.uint8)


def ensure_buffer(buffer, stage: str | None = None) -> 'PixelBuffer':
    """Returns buffer if it is a :class:`PixelBuffer`, raises InvalidBuffer otherwise."""
    if not isinstance(buffer, PixelBuffer):
        raise InvalidBuffer(f"Expected a PixelBuffer, got {type(buffer).__name__}", stage=stage)
    return buffer


class PixelBuffer:
    """
    An immutable width x height grid of RGBA samples.

    :param width: The width in pixels, must be positive.
    :param height: The height in pixels, must be positive.
    :param samples: Flat sample sequence of length width * height * 4.
    """

    __slots__ = ("_width", "_height", "_data")

    def __init__(self, width: int, height: int, samples: SampleTypes):
        width = _check_dimension("width", width)
        height = _check_dimension("height", height)
        flat = _as_uint8(samples, "samples").reshape(-1)
        expected = width * height * 4
        if flat.size != expected:
            raise InvalidBuffer(
                f"Expected {expected} samples for {width}x{height} RGBA, got {flat.size}"
            )
        data = flat.reshape(height, width, 4).copy()
        data.flags.writeable = False
        self._width = width
        self._height = height
        self._data = data

    @classmethod
    def _wrap(cls, data: np.ndarray) -> 'PixelBuffer':
        """Adopt a freshly allocated (H, W, 4) uint8 array without copying.

        Only for arrays no one else holds a reference to, i.e. filter outputs.
        """
        if data.ndim != 3 or data.shape[2] != 4 or data.dtype != np.uint8:
            raise InvalidBuffer(f"Expected uint8 array (H, W, 4), got {data.dtype} {data.shape}")
        if data.shape[0] == 0 or data.shape[1] == 0:
            raise InvalidBuffer(f"Buffer dimensions must be positive, got {data.shape[1]}x{data.shape[0]}")
        buffer = object.__new__(cls)
        data.flags.writeable = False
        buffer._width = int(data.shape[1])
        buffer._height = int(data.shape[0])
        buffer._data = data
        return buffer

    @classmethod
    def from_array(cls, array: np.ndarray) -> 'PixelBuffer':
        """
        Creates a buffer from a numpy array.

        Accepts (H, W, 4) RGBA, (H, W, 3) RGB (made opaque) and (H, W) grayscale
        (made opaque) arrays with values 0-255. The data is copied.

        :param array: The pixel data
        :return: The new buffer
        """
        array = np.asarray(array)
        if array.ndim == 2:
            array = np.stack([array, array, array], axis=2)
        if array.ndim != 3 or array.shape[2] not in (3, 4):
            raise InvalidBuffer(f"Expected image (H, W), (H, W, 3) or (H, W, 4), got shape {array.shape}")
        height, width = array.shape[:2]
        _check_dimension("width", width)
        _check_dimension("height", height)
        pixels = _as_uint8(array, "array values")
        if pixels.shape[2] == 3:
            alpha = np.full((height, width, 1), 255, dtype=np.uint8)
            pixels = np.concatenate([pixels, alpha], axis=2)
        else:
            pixels = pixels.copy()
        return cls._wrap(pixels)

    @classmethod
    def from_samples(cls, width: int, height: int, samples: SampleTypes) -> 'PixelBuffer':
        """Creates a buffer from a flat row-major RGBA sample sequence."""
        return cls(width, height, samples)

    @classmethod
    def from_pixels(cls, width: int, height: int, pixels: Iterable[Sequence[int]]) -> 'PixelBuffer':
        """Creates a buffer from a row-major list of (r, g, b, a) tuples."""
        rows = [tuple(p) for p in pixels]
        if any(len(p) != 4 for p in rows):
            raise InvalidBuffer("Every pixel needs exactly four channels (r, g, b, a)")
        return cls(width, height, [c for p in rows for c in p])

    @classmethod
    def filled(cls, width: int, height: int, color: Sequence[int] = (0, 0, 0, 255)) -> 'PixelBuffer':
        """Creates a buffer with every pixel set to color (RGB or RGBA)."""
        width = _check_dimension("width", width)
        height = _check_dimension("height", height)
        color = tuple(color)
        if len(color) == 3:
            color = color + (255,)
        if len(color) != 4:
            raise InvalidBuffer(f"Fill color needs 3 or 4 channels, got {color!r}")
        fill = _as_uint8(color, "fill color")
        data = np.empty((height, width, 4), dtype=np.uint8)
        data[:, :] = fill
        return cls._wrap(data)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def size(self) -> tuple[int, int]:
        """The size as (width, height)."""
        return self._width, self._height

    @property
    def array(self) -> np.ndarray:
        """Read-only (H, W, 4) view of the samples."""
        return self._data

    @property
    def alpha(self) -> np.ndarray:
        """Read-only (H, W) view of the alpha channel."""
        return self._data[:, :, 3]

    @property
    def samples(self) -> bytes:
        """The flat row-major RGBA sample sequence."""
        return self._data.tobytes()

    def to_array(self) -> np.ndarray:
        """Returns a writable copy of the (H, W, 4) sample array."""
        return self._data.copy()

    def pixel(self, x: int, y: int) -> RGBA:
        """Returns the pixel at column x, row y."""
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self._width}x{self._height} buffer")
        r, g, b, a = self._data[y, x]
        return int(r), int(g), int(b), int(a)

    def pixels(self) -> list[RGBA]:
        """Returns all pixels row-major as (r, g, b, a) tuples."""
        return [tuple(int(c) for c in p) for p in self._data.reshape(-1, 4)]

    def __eq__(self, other) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.size == other.size and np.array_equal(self._data, other._data)

    __hash__ = None

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self._width}, height={self._height})"
