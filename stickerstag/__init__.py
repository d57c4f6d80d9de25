"""
StickerStag - Pixel filter engine for meme and sticker images
"""

from .pixel_buffer import PixelBuffer, RGBA
from .exceptions import (
    StickerStagError,
    InvalidBuffer,
    InvalidKernel,
    InvalidParameter,
    CodecError,
    DecodeError,
    EncodeError,
)
from .config import Settings, settings
from .filters import (
    Kernel,
    CONVOLUTION_MATRIX,
    EDGES,
    BLUR,
    SHARPEN,
    BURN,
    luminance,
    greyscale,
    grayscale,
    invert,
    sepia,
    brightness,
    darkness,
    threshold,
    convolve,
    sharpen,
    burn,
    edges,
    blur,
    convolute,
    pixelate,
    BaseFilter,
    get_filter,
)
from .pipeline import (
    EffectPipeline,
    AnimatedFrames,
    apply_single,
    apply_animated,
    trigger,
    trigger_gif,
)
from .codec import decode, encode, encode_animation

__all__ = [
    # Pixel data
    "PixelBuffer",
    "RGBA",
    # Errors
    "StickerStagError",
    "InvalidBuffer",
    "InvalidKernel",
    "InvalidParameter",
    "CodecError",
    "DecodeError",
    "EncodeError",
    # Configuration
    "Settings",
    "settings",
    # Color transforms
    "luminance",
    "greyscale",
    "grayscale",
    "invert",
    "sepia",
    "brightness",
    "darkness",
    "threshold",
    # Convolution
    "Kernel",
    "CONVOLUTION_MATRIX",
    "EDGES",
    "BLUR",
    "SHARPEN",
    "BURN",
    "convolve",
    "sharpen",
    "burn",
    "edges",
    "blur",
    "convolute",
    "pixelate",
    # Filters and pipelines
    "BaseFilter",
    "get_filter",
    "EffectPipeline",
    "AnimatedFrames",
    "apply_single",
    "apply_animated",
    "trigger",
    "trigger_gif",
    # Codec
    "decode",
    "encode",
    "encode_animation",
]

__version__ = "0.1.0"
