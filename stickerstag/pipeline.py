# StickerStag - Effect Pipeline
"""
Effect sequencing: single operations, filter chains and animation frames.

- :func:`apply_single` runs one named operation.
- :class:`EffectPipeline` chains filters, each consuming the previous output.
- :func:`apply_animated` produces cumulative convolution frames, the
  building block of the trigger effect.

Errors of any stage propagate with their own kind and name the stage
that failed in their ``stage`` attribute. Partial results are never returned.
"""

from __future__ import annotations

import logging
import math
import numbers
import re
import threading
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Iterator

from .config import settings
from .exceptions import InvalidKernel, InvalidParameter, StickerStagError
from .filters.base import BaseFilter
from .filters.color_transform import soft_clamp
from .filters.convolution import SHARPEN, Kernel, iter_passes
from .filters.registry import get_filter
from .pixel_buffer import PixelBuffer, ensure_buffer

logger = logging.getLogger(__name__)


def apply_single(buffer: PixelBuffer, op: str, **params: Any) -> PixelBuffer:
    """Apply one registered operation.

    :param buffer: Source buffer
    :param op: Operation id or alias, e.g. 'greyscale', 'sharpen', 'threshold'
    :param params: Operation parameters, e.g. level=2
    :return: New buffer
    """
    try:
        buffer = ensure_buffer(buffer)
        return get_filter(op, **params).apply(buffer)
    except StickerStagError as e:
        e.with_stage(str(op))
        raise


def check_frame_count(frame_count, stage: str | None = None) -> int:
    """Validates a frame count: integral and finite, soft-clamped to at least 1."""
    if isinstance(frame_count, bool) or not isinstance(frame_count, numbers.Real):
        raise InvalidParameter(f"frame_count must be an integer, got {frame_count!r}", stage=stage)
    if not math.isfinite(frame_count) or frame_count != int(frame_count):
        raise InvalidParameter(f"frame_count must be a finite integer, got {frame_count!r}", stage=stage)
    return int(soft_clamp("frame_count", int(frame_count), 1, math.inf))


class AnimatedFrames(Sequence):
    """Lazy, finite sequence of cumulative convolution frames.

    Frame k (0-based) is the kernel applied k + 1 times to the source.
    Frames are computed on first access, in order, and kept for later
    access. Iterating always starts at frame 0. Access is thread-safe.

    :param buffer: Source buffer, never modified
    :param kernel: Kernel applied once per frame
    :param frame_count: Number of frames
    """

    def __init__(self, buffer: PixelBuffer, kernel: Kernel, frame_count: int):
        self.source = ensure_buffer(buffer, "animate")
        if not isinstance(kernel, Kernel):
            raise InvalidKernel(f"Expected a Kernel, got {type(kernel).__name__}", stage="animate")
        self.kernel = kernel
        self.frame_count = check_frame_count(frame_count, stage="animate")
        self._frames: list[PixelBuffer] = []
        self._passes = iter_passes(self.source, kernel)
        self._error: StickerStagError | None = None
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return self.frame_count

    def __getitem__(self, index):
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(self.frame_count))]
        if index < 0:
            index += self.frame_count
        if not 0 <= index < self.frame_count:
            raise IndexError(f"Frame {index} out of range for {self.frame_count} frames")
        with self._lock:
            while len(self._frames) <= index:
                if self._error is not None:
                    raise self._error
                number = len(self._frames) + 1
                try:
                    frame = next(self._passes)
                except StickerStagError as e:
                    # The pass iterator is finished after raising
                    self._error = e.with_stage(f"frame {number}")
                    raise
                self._frames.append(frame)
                logger.debug(f"Animation frame {number}/{self.frame_count} ready")
            return self._frames[index]

    def __iter__(self) -> Iterator[PixelBuffer]:
        for index in range(self.frame_count):
            yield self[index]

    def __repr__(self) -> str:
        return (f"AnimatedFrames({self.source.width}x{self.source.height}, "
                f"frames={self.frame_count}, computed={len(self._frames)})")


def apply_animated(buffer: PixelBuffer, kernel: Kernel, frame_count: int) -> AnimatedFrames:
    """Cumulative frames: frame k is kernel applied k + 1 times to buffer."""
    return AnimatedFrames(buffer, kernel, frame_count)


def trigger(
    buffer: PixelBuffer,
    frame_count: int | None = None,
    kernel: Kernel | None = None,
) -> AnimatedFrames:
    """Frames of the trigger effect, growing more intense with every frame.

    :param buffer: Source buffer
    :param frame_count: Number of frames, defaults to TRIGGER_FRAME_COUNT
    :param kernel: Kernel compounded per frame, defaults to SHARPEN
    """
    if frame_count is None:
        frame_count = settings.TRIGGER_FRAME_COUNT
    return AnimatedFrames(buffer, SHARPEN if kernel is None else kernel, frame_count)


def trigger_gif(
    resource,
    frame_count: int | None = None,
    delay_ms: int | None = None,
    kernel: Kernel | None = None,
) -> bytes:
    """Decode resource, render the trigger frames and encode them as GIF."""
    from .codec import decode, encode_animation

    frames = trigger(decode(resource), frame_count, kernel)
    return encode_animation(frames, delay_ms)


@dataclass
class EffectPipeline:
    """Chain of filters applied in sequence.

    Each step consumes the complete output of the previous step.

    Examples:
        EffectPipeline([GreyscaleFilter(), SharpenFilter(level=2)])
        EffectPipeline.parse('greyscale | sharpen 2 | brightness amount=20')
    """

    steps: list[BaseFilter] = field(default_factory=list)

    def __post_init__(self):
        self.steps = [self._as_filter(step) for step in self.steps]

    @staticmethod
    def _as_filter(step) -> BaseFilter:
        if isinstance(step, BaseFilter):
            return step
        if isinstance(step, str):
            return BaseFilter.parse(step)
        raise InvalidParameter(f"Pipeline steps must be filters or filter strings, got {type(step).__name__}")

    def apply(self, buffer: PixelBuffer) -> PixelBuffer:
        """Apply all steps in order and return the final buffer."""
        result = ensure_buffer(buffer, "pipeline")
        for index, step in enumerate(self.steps):
            try:
                result = step.apply(result)
            except StickerStagError as e:
                e.stage = f"pipeline[{index}]:{e.stage or step.filter_type}"
                raise
        return result

    def __call__(self, buffer: PixelBuffer) -> PixelBuffer:
        return self.apply(buffer)

    def append(self, step: BaseFilter | str) -> 'EffectPipeline':
        """Add a step (chainable)."""
        self.steps.append(self._as_filter(step))
        return self

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)

    def __getitem__(self, index: int) -> BaseFilter:
        return self.steps[index]

    def to_dict(self) -> dict[str, Any]:
        """Serialize pipeline to dictionary."""
        return {
            'type': 'EffectPipeline',
            'steps': [step.to_dict() for step in self.steps],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'EffectPipeline':
        """Deserialize pipeline from dictionary."""
        return cls(steps=[BaseFilter.from_dict(step) for step in data.get('steps', [])])

    @classmethod
    def parse(cls, text: str) -> 'EffectPipeline':
        """Parse filter string into pipeline.

        Examples:
            'greyscale | sharpen 2'
            'invert; threshold level=100'
        """
        if not text:
            return cls()
        steps = []
        for part in re.split(r'[|;]', text):
            part = part.strip()
            if not part:
                continue
            try:
                steps.append(BaseFilter.parse(part))
            except StickerStagError as e:
                e.stage = f"pipeline[{len(steps)}]:{e.stage or part.split()[0]}"
                raise
        return cls(steps=steps)

    def to_string(self) -> str:
        """Convert pipeline to compact string format."""
        return ' | '.join(step.to_string() for step in self.steps)


__all__ = [
    'apply_single', 'apply_animated', 'check_frame_count', 'AnimatedFrames',
    'trigger', 'trigger_gif', 'EffectPipeline',
]
