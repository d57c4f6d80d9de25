# StickerStag Filters
"""
Pixel filters for StickerStag.

Functional API (PixelBuffer in, new PixelBuffer out):

    from stickerstag.filters import greyscale, sharpen, SHARPEN, convolve

Filter objects with serialization and a name registry:

    from stickerstag.filters import get_filter

    f = get_filter('brightness', amount=40)
    result = f(buffer)
"""

from .color_transform import (
    LUMA_WEIGHTS,
    SEPIA_MATRIX,
    luminance,
    greyscale,
    grayscale,
    invert,
    sepia,
    brightness,
    darkness,
    threshold,
)
from .convolution import (
    Kernel,
    CONVOLUTION_MATRIX,
    EDGES,
    BLUR,
    SHARPEN,
    BURN,
    iter_passes,
    convolve,
    sharpen,
    burn,
    edges,
    blur,
    convolute,
)
from .pixelate import PIXELS_RANGE, pixelate
from .base import BaseFilter
from .registry import (
    filter_registry,
    register_filter,
    load_builtin_filters,
    get_filter_class,
    get_filter,
    list_filters,
)
from .color import (
    GreyscaleFilter,
    InvertFilter,
    SepiaFilter,
    BrightnessFilter,
    DarknessFilter,
    ThresholdFilter,
)
from .kernels import (
    SharpenFilter,
    BurnFilter,
    EdgesFilter,
    BlurFilter,
    ConvoluteFilter,
)
from .artistic import PixelateFilter

__all__ = [
    # Color transforms
    'LUMA_WEIGHTS',
    'SEPIA_MATRIX',
    'luminance',
    'greyscale',
    'grayscale',
    'invert',
    'sepia',
    'brightness',
    'darkness',
    'threshold',
    # Convolution
    'Kernel',
    'CONVOLUTION_MATRIX',
    'EDGES',
    'BLUR',
    'SHARPEN',
    'BURN',
    'iter_passes',
    'convolve',
    'sharpen',
    'burn',
    'edges',
    'blur',
    'convolute',
    # Pixelation
    'PIXELS_RANGE',
    'pixelate',
    # Filter objects
    'BaseFilter',
    'filter_registry',
    'register_filter',
    'load_builtin_filters',
    'get_filter_class',
    'get_filter',
    'list_filters',
    'GreyscaleFilter',
    'InvertFilter',
    'SepiaFilter',
    'BrightnessFilter',
    'DarknessFilter',
    'ThresholdFilter',
    'SharpenFilter',
    'BurnFilter',
    'EdgesFilter',
    'BlurFilter',
    'ConvoluteFilter',
    'PixelateFilter',
]
