"""Convolution filters."""

from typing import ClassVar

from pydantic import Field

from stickerstag.pixel_buffer import PixelBuffer
from . import convolution
from .base import BaseFilter
from .registry import register_filter

_LEVEL_HINTS = {"min": 1, "max": 32, "step": 1, "display_name": "Level"}


@register_filter("sharpen")
class SharpenFilter(BaseFilter):
    """Convolution sharpening, repeated level times."""

    name: ClassVar[str] = "Sharpen"
    description: ClassVar[str] = "Sharpen image using a 3x3 kernel"
    category: ClassVar[str] = "convolution"
    primary_param: ClassVar[str] = "level"
    VERSION: ClassVar[int] = 1

    level: int = Field(default=1, json_schema_extra=_LEVEL_HINTS)

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return convolution.sharpen(buffer, self.level)


@register_filter("burn")
class BurnFilter(BaseFilter):
    """Darkening blur, repeated level times."""

    name: ClassVar[str] = "Burn"
    description: ClassVar[str] = "Blur and darken the image"
    category: ClassVar[str] = "convolution"
    primary_param: ClassVar[str] = "level"
    VERSION: ClassVar[int] = 1

    level: int = Field(default=1, json_schema_extra=_LEVEL_HINTS)

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return convolution.burn(buffer, self.level)


@register_filter("edges", "edge")
class EdgesFilter(BaseFilter):
    """Laplacian edge detection."""

    name: ClassVar[str] = "Edges"
    description: ClassVar[str] = "Highlight edges, flat areas turn black"
    category: ClassVar[str] = "convolution"
    VERSION: ClassVar[int] = 1

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return convolution.edges(buffer)


@register_filter("blur")
class BlurFilter(BaseFilter):
    """3x3 box blur."""

    name: ClassVar[str] = "Blur"
    description: ClassVar[str] = "Average every pixel with its neighbors"
    category: ClassVar[str] = "convolution"
    VERSION: ClassVar[int] = 1

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return convolution.blur(buffer)


@register_filter("convolute", "convolve", "kernel")
class ConvoluteFilter(BaseFilter):
    """Convolution with a custom square kernel given as a flat weight list."""

    name: ClassVar[str] = "Convolute"
    description: ClassVar[str] = "Apply a custom convolution kernel"
    category: ClassVar[str] = "convolution"
    primary_param: ClassVar[str] = "matrix"
    VERSION: ClassVar[int] = 1

    matrix: list[float] = Field(json_schema_extra={"display_name": "Matrix"})
    opaque: bool = Field(default=True, json_schema_extra={"display_name": "Keep Alpha"})
    level: int = Field(default=1, json_schema_extra=_LEVEL_HINTS)

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return convolution.convolute(buffer, self.matrix, self.opaque, self.level)
