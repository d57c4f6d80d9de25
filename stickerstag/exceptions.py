"""Exception classes for the filter engine.

Structural problems (buffer shape, kernel shape) and unusable scalar
arguments are reported with a specific error kind. Every error can carry
the name of the stage that raised it so pipelines can report where a chain
of operations failed.
"""

from __future__ import annotations


class StickerStagError(Exception):
    """Base exception for all filter engine errors.

    :param message: Human readable description.
    :param stage: Name of the operation or pipeline stage that failed.
    """

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def with_stage(self, stage: str) -> 'StickerStagError':
        """Set the failing stage unless an inner stage already claimed it."""
        if self.stage is None:
            self.stage = stage
        return self

    def __str__(self) -> str:
        if self.stage:
            return f"{self.stage}: {self.message}"
        return self.message


class InvalidBuffer(StickerStagError, ValueError):
    """Raised for zero/negative dimensions or a sample count mismatch."""

    pass


class InvalidKernel(StickerStagError, ValueError):
    """Raised for malformed convolution kernels."""

    pass


class InvalidParameter(StickerStagError, ValueError):
    """Raised for missing or non-finite numeric arguments and unknown operations."""

    pass


class CodecError(StickerStagError):
    """Base exception for the codec adapter."""

    pass


class DecodeError(CodecError):
    """Raised for unsupported formats, corrupt data or unreachable resources."""

    pass


class EncodeError(CodecError):
    """Raised when a buffer cannot be encoded."""

    pass
