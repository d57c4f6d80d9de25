"""Artistic filters."""

from typing import ClassVar

from pydantic import Field

from stickerstag.pixel_buffer import PixelBuffer
from .pixelate import pixelate
from .base import BaseFilter
from .registry import register_filter


@register_filter("pixelate", "pixelize", "mosaic")
class PixelateFilter(BaseFilter):
    """Pixelation effect."""

    name: ClassVar[str] = "Pixelate"
    description: ClassVar[str] = "Apply pixelation/mosaic effect"
    category: ClassVar[str] = "artistic"
    primary_param: ClassVar[str] = "pixels"
    VERSION: ClassVar[int] = 1

    pixels: float = Field(default=5.0,
                          json_schema_extra={"min": 1, "max": 100, "step": 1,
                                             "display_name": "Pixels"})

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        return pixelate(buffer, self.pixels)
