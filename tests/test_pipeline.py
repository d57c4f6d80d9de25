"""
Tests for single operations, animated frames and effect pipelines.
"""

import pytest

from stickerstag import (
    PixelBuffer,
    AnimatedFrames,
    EffectPipeline,
    InvalidBuffer,
    InvalidKernel,
    InvalidParameter,
    BURN,
    SHARPEN,
    apply_animated,
    apply_single,
    brightness,
    burn,
    convolve,
    greyscale,
    invert,
    pixelate,
    sharpen,
    threshold,
    trigger,
)
from stickerstag.config import settings
from stickerstag.filters import BrightnessFilter, GreyscaleFilter, SharpenFilter, get_filter_class


class TestApplySingle:
    """Running one named operation."""

    def test_dispatches_by_name(self, noise_buffer):
        assert apply_single(noise_buffer, "invert") == invert(noise_buffer)
        assert apply_single(noise_buffer, "greyscale") == greyscale(noise_buffer)

    def test_aliases_and_case(self, noise_buffer):
        assert apply_single(noise_buffer, "Grayscale") == greyscale(noise_buffer)
        assert apply_single(noise_buffer, "brighten", amount=20) == brightness(noise_buffer, 20)

    def test_parameters(self, noise_buffer):
        assert apply_single(noise_buffer, "sharpen", level=2) == sharpen(noise_buffer, 2)
        assert apply_single(noise_buffer, "threshold", level=90) == threshold(noise_buffer, 90)

    def test_unknown_operation(self, noise_buffer):
        with pytest.raises(InvalidParameter) as excinfo:
            apply_single(noise_buffer, "wobble")
        assert excinfo.value.stage == "wobble"

    def test_unusable_parameter(self, noise_buffer):
        with pytest.raises(InvalidParameter) as excinfo:
            apply_single(noise_buffer, "threshold", level=float('nan'))
        assert excinfo.value.stage == "threshold"

    def test_unparsable_parameter(self, noise_buffer):
        with pytest.raises(InvalidParameter) as excinfo:
            apply_single(noise_buffer, "brightness", amount="lots")
        assert excinfo.value.stage == "brightness"

    @pytest.mark.parametrize("op, params", [
        ("brightness", {}),
        ("brightness", {"amount": True}),
        ("brightness", {"amount": "50"}),
        ("darkness", {"amount": None}),
        ("threshold", {}),
        ("sharpen", {"level": True}),
        ("pixelate", {"pixels": "10"}),
    ])
    def test_missing_or_mistyped_parameter(self, grey_buffer, op, params):
        with pytest.raises(InvalidParameter) as excinfo:
            apply_single(grey_buffer, op, **params)
        assert excinfo.value.stage == get_filter_class(op).filter_type

    def test_pixelate(self, noise_buffer):
        assert apply_single(noise_buffer, "mosaic", pixels=25) == pixelate(noise_buffer, 25)

    def test_invalid_buffer(self):
        with pytest.raises(InvalidBuffer) as excinfo:
            apply_single(None, "invert")
        assert excinfo.value.stage == "invert"


class TestAnimatedFrames:
    """Cumulative, lazily computed frames."""

    def test_frames_compound(self, noise_buffer):
        frames = apply_animated(noise_buffer, SHARPEN, 3)
        assert len(frames) == 3
        assert frames[0] == sharpen(noise_buffer)
        assert frames[1] == convolve(convolve(noise_buffer, SHARPEN), SHARPEN)
        assert frames[2] == sharpen(noise_buffer, 3)

    def test_frame_k_is_k_plus_one_passes(self, noise_buffer):
        frames = apply_animated(noise_buffer, BURN, 4)
        for k, frame in enumerate(frames):
            assert frame == burn(noise_buffer, k + 1)

    def test_lazy(self, noise_buffer):
        frames = apply_animated(noise_buffer, SHARPEN, 5)
        assert "computed=0" in repr(frames)
        frames[1]
        assert "computed=2" in repr(frames)

    def test_memoized(self, noise_buffer):
        frames = apply_animated(noise_buffer, SHARPEN, 3)
        assert frames[2] is frames[2]

    def test_iteration_restarts(self, noise_buffer):
        frames = apply_animated(noise_buffer, SHARPEN, 3)
        first = list(frames)
        second = list(frames)
        assert first == second
        assert len(first) == 3

    def test_negative_index_and_slice(self, noise_buffer):
        frames = apply_animated(noise_buffer, SHARPEN, 3)
        assert frames[-1] == frames[2]
        assert frames[1:] == [frames[1], frames[2]]

    def test_out_of_range(self, noise_buffer):
        frames = apply_animated(noise_buffer, SHARPEN, 2)
        with pytest.raises(IndexError):
            frames[2]
        with pytest.raises(IndexError):
            frames[-3]

    def test_source_untouched(self, noise_buffer):
        before = noise_buffer.to_array()
        list(apply_animated(noise_buffer, SHARPEN, 3))
        assert (noise_buffer.array == before).all()

    def test_frame_count_clamped(self, noise_buffer):
        assert len(apply_animated(noise_buffer, SHARPEN, 0)) == 1
        assert len(apply_animated(noise_buffer, SHARPEN, -4)) == 1

    @pytest.mark.parametrize("frame_count", [2.5, float('nan'), None, "3"])
    def test_unusable_frame_count(self, noise_buffer, frame_count):
        with pytest.raises(InvalidParameter) as excinfo:
            apply_animated(noise_buffer, SHARPEN, frame_count)
        assert excinfo.value.stage == "animate"

    def test_requires_kernel(self, noise_buffer):
        with pytest.raises(InvalidKernel):
            apply_animated(noise_buffer, [0, -1, 0, -1, 5, -1, 0, -1, 0], 3)

    def test_requires_buffer(self):
        with pytest.raises(InvalidBuffer):
            apply_animated("image.png", SHARPEN, 3)

    def test_failed_pass_is_raised_again(self, noise_buffer):
        frames = apply_animated(noise_buffer, SHARPEN, 3)

        def failing_passes():
            yield noise_buffer
            raise InvalidKernel("kernel went bad")

        frames._passes = failing_passes()
        assert frames[0] is noise_buffer
        for _ in range(2):
            with pytest.raises(InvalidKernel) as excinfo:
                frames[1]
            assert excinfo.value.stage == "frame 2"
        with pytest.raises(InvalidKernel):
            list(frames)

    def test_is_sequence(self, noise_buffer):
        frames = apply_animated(noise_buffer, SHARPEN, 2)
        assert isinstance(frames, AnimatedFrames)
        assert frames.index(frames[1]) == 1


class TestTrigger:
    """The trigger animation."""

    def test_defaults(self, noise_buffer):
        frames = trigger(noise_buffer)
        assert len(frames) == settings.TRIGGER_FRAME_COUNT
        assert frames.kernel == SHARPEN
        assert frames[0] == sharpen(noise_buffer)

    def test_custom(self, noise_buffer):
        frames = trigger(noise_buffer, frame_count=2, kernel=BURN)
        assert len(frames) == 2
        assert frames[1] == burn(noise_buffer, 2)


class TestEffectPipeline:
    """Filter chains."""

    def test_apply_in_order(self, noise_buffer):
        pipeline = EffectPipeline([GreyscaleFilter(), SharpenFilter(level=2)])
        assert pipeline.apply(noise_buffer) == sharpen(greyscale(noise_buffer), 2)
        assert pipeline(noise_buffer) == pipeline.apply(noise_buffer)

    def test_empty_pipeline_is_identity(self, noise_buffer):
        assert EffectPipeline().apply(noise_buffer) == noise_buffer

    def test_parse(self, noise_buffer):
        pipeline = EffectPipeline.parse("greyscale | sharpen 2 | brightness amount=40")
        assert len(pipeline) == 3
        assert pipeline[1] == SharpenFilter(level=2)
        assert pipeline[2] == BrightnessFilter(amount=40)
        expected = brightness(sharpen(greyscale(noise_buffer), 2), 40)
        assert pipeline.apply(noise_buffer) == expected

    def test_parse_semicolons(self):
        pipeline = EffectPipeline.parse("invert; threshold level=100")
        assert [step.filter_type for step in pipeline] == ["invert", "threshold"]

    def test_string_steps(self, noise_buffer):
        pipeline = EffectPipeline(["invert", "blur"])
        assert pipeline.apply(noise_buffer) == EffectPipeline.parse("invert | blur").apply(noise_buffer)

    def test_append(self, noise_buffer):
        pipeline = EffectPipeline().append("invert").append(SharpenFilter())
        assert pipeline.apply(noise_buffer) == sharpen(invert(noise_buffer))

    def test_string_round_trip(self):
        pipeline = EffectPipeline.parse("sepia | convolute 1,2,1,2,4,2,1,2,1 opaque=false | burn 3")
        assert EffectPipeline.parse(pipeline.to_string()) == pipeline

    def test_dict_round_trip(self):
        pipeline = EffectPipeline.parse("darkness 25 | edges")
        data = pipeline.to_dict()
        assert data['steps'][0] == {'filterId': 'darkness', 'version': 1, 'params': {'amount': 25.0}}
        assert EffectPipeline.from_dict(data) == pipeline

    def test_error_names_failing_stage(self, noise_buffer):
        pipeline = EffectPipeline.parse("invert | convolute 1,2,3")
        with pytest.raises(InvalidKernel) as excinfo:
            pipeline.apply(noise_buffer)
        assert excinfo.value.stage == "pipeline[1]:convolute"
        assert str(excinfo.value).startswith("pipeline[1]:convolute: ")

    def test_parse_rejects_boolean_value(self, grey_buffer):
        with pytest.raises(InvalidParameter) as excinfo:
            EffectPipeline.parse("invert | brightness true")
        assert excinfo.value.stage == "pipeline[1]:brightness"

    def test_parse_index_skips_empty_steps(self):
        with pytest.raises(InvalidParameter) as excinfo:
            EffectPipeline.parse("invert || ; wobble")
        assert excinfo.value.stage == "pipeline[1]:wobble"

    def test_parse_unknown_filter(self):
        with pytest.raises(InvalidParameter) as excinfo:
            EffectPipeline.parse("invert | wobble 3")
        assert excinfo.value.stage == "pipeline[1]:wobble"

    def test_rejects_invalid_step(self):
        with pytest.raises(InvalidParameter):
            EffectPipeline([42])

    def test_rejects_invalid_buffer(self):
        with pytest.raises(InvalidBuffer):
            EffectPipeline.parse("invert").apply(PixelBuffer)
