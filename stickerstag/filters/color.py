"""Color transform filters."""

from typing import ClassVar

from pydantic import Field

from stickerstag.pixel_buffer import PixelBuffer
from . import color_transform
from .base import BaseFilter
from .registry import register_filter


@register_filter("greyscale", "grayscale", "gray", "grey")
class GreyscaleFilter(BaseFilter):
    """Convert to greyscale."""

    name: ClassVar[str] = "Greyscale"
    description: ClassVar[str] = "Convert image to greyscale using BT.601 luma"
    category: ClassVar[str] = "color"
    VERSION: ClassVar[int] = 1

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return color_transform.greyscale(buffer)


@register_filter("invert")
class InvertFilter(BaseFilter):
    """Invert colors."""

    name: ClassVar[str] = "Invert Colors"
    description: ClassVar[str] = "Invert all colors in the image"
    category: ClassVar[str] = "color"
    VERSION: ClassVar[int] = 1

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return color_transform.invert(buffer)


@register_filter("sepia")
class SepiaFilter(BaseFilter):
    """Sepia toning."""

    name: ClassVar[str] = "Sepia"
    description: ClassVar[str] = "Apply a warm sepia tone"
    category: ClassVar[str] = "color"
    VERSION: ClassVar[int] = 1

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return color_transform.sepia(buffer)


@register_filter("brightness", "brighten")
class BrightnessFilter(BaseFilter):
    """Add a constant to every color channel."""

    name: ClassVar[str] = "Brightness"
    description: ClassVar[str] = "Brighten the image by a fixed amount"
    category: ClassVar[str] = "color"
    primary_param: ClassVar[str] = "amount"
    VERSION: ClassVar[int] = 1

    amount: float = Field(json_schema_extra={"min": -255, "max": 255, "step": 1,
                                            "display_name": "Amount"})

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return color_transform.brightness(buffer, self.amount)


@register_filter("darkness", "darken")
class DarknessFilter(BaseFilter):
    """Subtract a constant from every color channel."""

    name: ClassVar[str] = "Darkness"
    description: ClassVar[str] = "Darken the image by a fixed amount"
    category: ClassVar[str] = "color"
    primary_param: ClassVar[str] = "amount"
    VERSION: ClassVar[int] = 1

    amount: float = Field(json_schema_extra={"min": -255, "max": 255, "step": 1,
                                            "display_name": "Amount"})

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return color_transform.darkness(buffer, self.amount)


@register_filter("threshold")
class ThresholdFilter(BaseFilter):
    """Black and white by luma threshold."""

    name: ClassVar[str] = "Threshold"
    description: ClassVar[str] = "Turn pixels at or above the luma level white, the rest black"
    category: ClassVar[str] = "color"
    primary_param: ClassVar[str] = "level"
    VERSION: ClassVar[int] = 1

    level: float = Field(json_schema_extra={"min": 0, "max": 255, "step": 1,
                                           "display_name": "Level"})

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return color_transform.threshold(buffer, self.level)
