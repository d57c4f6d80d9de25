"""
Codec adapter between encoded images and :class:`.PixelBuffer`.

Decoding accepts raw bytes, file paths, http(s) URLs and Pillow images and
always yields RGBA. Encoding writes PNG, GIF, WebP, BMP or JPEG; formats
without alpha support are flattened onto white. Animated GIFs are written
from a sequence of buffers.
"""

from __future__ import annotations

import io
import logging
import math
import os
from pathlib import Path
from typing import Iterable, Union
from urllib.error import URLError
from urllib.request import urlopen

import PIL.Image
import filetype
import numpy as np

from .config import settings
from .exceptions import DecodeError, EncodeError, StickerStagError
from .filters.color_transform import finite_number
from .pixel_buffer import PixelBuffer

logger = logging.getLogger(__name__)

HTTP_PROTOCOL_URL_HEADER = "http://"
HTTPS_PROTOCOL_URL_HEADER = "https://"

SUPPORTED_DECODE_FILETYPES = {"png", "jpg", "gif", "webp", "bmp"}
"Container types accepted by decode, as reported by filetype"

ENCODE_FORMATS = {
    "png": "PNG",
    "gif": "GIF",
    "webp": "WEBP",
    "bmp": "BMP",
    "jpg": "JPEG",
    "jpeg": "JPEG",
}
"Output format names mapped to Pillow format ids"

_ALPHA_FORMATS = {"PNG", "WEBP"}

GIF_DELAY_STEP_MS = 10
"GIF frame delays are stored in centiseconds"

ResourceTypes = Union[bytes, bytearray, memoryview, str, os.PathLike, PIL.Image.Image]
"The valid source types for decode"


def _load_from_source(source: str | os.PathLike) -> bytes:
    """
    Loads image data from a file path or URL.

    :param source: File path or URL
    :return: The loaded bytes
    """
    if isinstance(source, str) and (
        source.startswith(HTTP_PROTOCOL_URL_HEADER) or source.startswith(HTTPS_PROTOCOL_URL_HEADER)
    ):
        try:
            with urlopen(source, timeout=settings.FETCH_TIMEOUT) as response:
                return response.read()
        except (URLError, OSError, ValueError) as e:
            raise DecodeError(f"Could not fetch {source}: {e}", stage="decode") from e
    path = Path(source)
    try:
        return path.read_bytes()
    except OSError as e:
        raise DecodeError(f"Could not read {path}: {e}", stage="decode") from e


def from_pil(image: PIL.Image.Image) -> PixelBuffer:
    """Converts a Pillow image (any mode) to an RGBA buffer."""
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    return PixelBuffer.from_array(np.asarray(image))


def to_pil(buffer: PixelBuffer) -> PIL.Image.Image:
    """Converts a buffer to a Pillow RGBA image."""
    return PIL.Image.fromarray(buffer.to_array())


def decode(resource: ResourceTypes) -> PixelBuffer:
    """
    Decodes an image into an RGBA buffer.

    Multi-frame images (GIF, animated WebP) yield their first frame.

    :param resource: Encoded bytes, a file path, an http(s) URL or a Pillow image
    :return: The decoded buffer
    :raises DecodeError: For unsupported formats, corrupt data or unreadable sources
    """
    if isinstance(resource, PIL.Image.Image):
        return from_pil(resource)
    if isinstance(resource, (bytes, bytearray, memoryview)):
        data = bytes(resource)
    elif isinstance(resource, (str, os.PathLike)):
        data = _load_from_source(resource)
    else:
        raise DecodeError(f"Cannot decode {type(resource).__name__}", stage="decode")

    if not data:
        raise DecodeError("No image data", stage="decode")
    kind = filetype.guess(data)
    if kind is None or kind.extension not in SUPPORTED_DECODE_FILETYPES:
        detected = kind.mime if kind is not None else "unknown"
        raise DecodeError(f"Unsupported image format ({detected})", stage="decode")

    try:
        with PIL.Image.open(io.BytesIO(data)) as image:
            if image.width * image.height > settings.MAX_DECODE_PIXELS:
                raise DecodeError(
                    f"Image of {image.width}x{image.height} exceeds {settings.MAX_DECODE_PIXELS} pixels",
                    stage="decode",
                )
            image.seek(0)
            image.load()
            buffer = from_pil(image)
    except StickerStagError:
        raise
    except (PIL.UnidentifiedImageError, PIL.Image.DecompressionBombError,
            OSError, ValueError, EOFError, SyntaxError) as e:
        raise DecodeError(f"Corrupt or unreadable {kind.extension} data: {e}", stage="decode") from e
    logger.debug(f"Decoded {kind.extension} image {buffer.width}x{buffer.height}")
    return buffer


def _resolve_format(format: str) -> str:
    key = str(format).lstrip(".").lower()
    if key not in ENCODE_FORMATS:
        raise EncodeError(f"Unsupported output format: {format}", stage="encode")
    return ENCODE_FORMATS[key]


def _check_buffer(buffer) -> PixelBuffer:
    if not isinstance(buffer, PixelBuffer):
        raise EncodeError(f"Expected a PixelBuffer, got {type(buffer).__name__}", stage="encode")
    return buffer


def _flatten(buffer: PixelBuffer, background=(255, 255, 255)) -> PIL.Image.Image:
    """Composites the buffer onto an opaque background color."""
    rgba = to_pil(buffer)
    rgb = PIL.Image.new("RGB", rgba.size, background)
    rgb.paste(rgba, mask=rgba.getchannel("A"))
    return rgb


def encode(buffer: PixelBuffer, format: str = "png", quality: int = 90) -> bytes:
    """
    Compresses a buffer and returns the file data.

    :param buffer: The buffer to encode
    :param format: "png", "gif", "webp", "bmp" or "jpg"/"jpeg"
    :param quality: JPEG/WebP quality (0-100)
    :return: The encoded bytes
    :raises EncodeError: For invalid buffers or unknown formats
    """
    buffer = _check_buffer(buffer)
    pil_format = _resolve_format(format)
    if pil_format in _ALPHA_FORMATS:
        image = to_pil(buffer)
    elif pil_format == "GIF":
        image = _flatten(buffer).quantize(colors=256, dither=PIL.Image.Dither.NONE)
    else:
        image = _flatten(buffer)
    parameters = {}
    if pil_format in {"JPEG", "WEBP"}:
        parameters["quality"] = quality
    output_stream = io.BytesIO()
    try:
        image.save(output_stream, format=pil_format, **parameters)
    except (OSError, ValueError) as e:
        raise EncodeError(f"Could not encode {pil_format}: {e}", stage="encode") from e
    return output_stream.getvalue()


def gif_delay(duration_ms) -> int:
    """Rounds a frame delay to the 10 ms steps GIF can store, minimum 10 ms."""
    duration = finite_number("duration_ms", duration_ms, stage="encode")
    steps = int(math.floor(duration / GIF_DELAY_STEP_MS + 0.5))
    stored = max(1, steps) * GIF_DELAY_STEP_MS
    if stored != duration:
        logger.warning(f"GIF frame delay {duration_ms} ms stored as {stored} ms")
    return stored


def encode_animation(
    frames: Iterable[PixelBuffer],
    duration_ms: int | None = None,
    loop: int = 0,
) -> bytes:
    """
    Writes frames as an animated GIF.

    Transparent areas are flattened onto white and every frame gets its own
    adaptive palette. GIF stores delays in 10 ms steps, so duration_ms is
    rounded to the nearest step (at least 10 ms). Consecutive identical
    frames are merged by the writer into one frame with the summed delay.

    :param frames: The frames in display order, all of the same size
    :param duration_ms: Delay per frame, defaults to TRIGGER_FRAME_DELAY_MS
    :param loop: GIF loop count, 0 loops forever
    :return: The GIF data
    """
    duration_ms = gif_delay(settings.TRIGGER_FRAME_DELAY_MS if duration_ms is None else duration_ms)
    buffers = [_check_buffer(frame) for frame in frames]
    if not buffers:
        raise EncodeError("An animation needs at least one frame", stage="encode")
    size = buffers[0].size
    if any(frame.size != size for frame in buffers):
        raise EncodeError("All animation frames must have the same size", stage="encode")

    first, *rest = [
        _flatten(frame).quantize(colors=256, dither=PIL.Image.Dither.NONE)
        for frame in buffers
    ]
    output_stream = io.BytesIO()
    try:
        first.save(
            output_stream,
            format="GIF",
            save_all=True,
            append_images=rest,
            loop=loop,
            duration=duration_ms,
            disposal=2,
        )
    except (OSError, ValueError) as e:
        raise EncodeError(f"Could not encode GIF animation: {e}", stage="encode") from e
    logger.debug(f"Encoded {len(buffers)} frame GIF {size[0]}x{size[1]}")
    return output_stream.getvalue()


def format_from_path(path: str | os.PathLike) -> str:
    """Output format for a file name, e.g. 'out.PNG' -> 'png'."""
    extension = Path(path).suffix.lstrip(".").lower()
    _resolve_format(extension)
    return extension


__all__ = [
    'SUPPORTED_DECODE_FILETYPES', 'ENCODE_FORMATS', 'ResourceTypes',
    'decode', 'encode', 'encode_animation', 'gif_delay', 'from_pil', 'to_pil', 'format_from_path',
]
