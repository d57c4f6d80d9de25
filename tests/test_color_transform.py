"""
Tests for the per-pixel color transforms.
"""

import logging

import numpy as np
import pytest

from stickerstag import (
    PixelBuffer,
    InvalidBuffer,
    InvalidParameter,
    brightness,
    darkness,
    greyscale,
    grayscale,
    invert,
    luminance,
    sepia,
    threshold,
)


def test_scenario_invert_two_pixels():
    buffer = PixelBuffer(2, 1, [255, 0, 0, 255, 0, 255, 0, 128])
    result = invert(buffer)
    assert result.samples == bytes([0, 255, 255, 255, 255, 0, 255, 128])


def test_scenario_invert_primaries(primaries_buffer):
    assert invert(primaries_buffer).pixels() == [
        (0, 255, 255, 255),
        (255, 0, 255, 255),
        (255, 255, 0, 255),
        (0, 0, 0, 255),
    ]


def test_scenario_threshold_black_stays_black():
    buffer = PixelBuffer.filled(3, 3, (0, 0, 0, 255))
    assert threshold(buffer, 128) == buffer


def test_scenario_brightness_grey(grey_buffer):
    assert brightness(grey_buffer, 50) == PixelBuffer.filled(4, 3, (178, 178, 178, 255))
    assert brightness(grey_buffer, 200) == PixelBuffer.filled(4, 3, (255, 255, 255, 255))


def test_scenario_greyscale_single_pixel():
    buffer = PixelBuffer(1, 1, [100, 150, 200, 255])
    # 29.9 + 88.05 + 22.8 = 140.75
    assert greyscale(buffer).pixel(0, 0) == (141, 141, 141, 255)


def test_scenario_brightness_saturates():
    buffer = PixelBuffer(1, 1, [250, 10, 128, 7])
    assert brightness(buffer, 10).pixel(0, 0) == (255, 20, 138, 7)


class TestGreyscale:
    """BT.601 luma conversion."""

    def test_primaries(self, primaries_buffer):
        result = greyscale(primaries_buffer)
        assert result.pixels() == [
            (76, 76, 76, 255),
            (150, 150, 150, 255),
            (29, 29, 29, 255),
            (255, 255, 255, 255),
        ]

    def test_idempotent(self, noise_buffer):
        once = greyscale(noise_buffer)
        assert greyscale(once) == once

    def test_channels_equal(self, noise_buffer):
        array = greyscale(noise_buffer).array
        assert np.array_equal(array[..., 0], array[..., 1])
        assert np.array_equal(array[..., 1], array[..., 2])

    def test_grayscale_alias(self, noise_buffer):
        assert grayscale(noise_buffer) == greyscale(noise_buffer)

    def test_luminance_matches_greyscale(self, noise_buffer):
        assert np.array_equal(luminance(noise_buffer), greyscale(noise_buffer).array[..., 0])

    def test_bt601_weights(self):
        # BT.709 would give 54, 182 and 18
        buffer = PixelBuffer.from_pixels(3, 1, [(255, 0, 0, 255), (0, 255, 0, 255), (0, 0, 255, 255)])
        assert [p[0] for p in greyscale(buffer).pixels()] == [76, 150, 29]


class TestInvert:
    """Channel inversion."""

    def test_involution(self, noise_buffer):
        assert invert(invert(noise_buffer)) == noise_buffer

    def test_grey(self, grey_buffer):
        assert invert(grey_buffer).pixel(0, 0) == (127, 127, 127, 255)


class TestSepia:
    """Sepia tone matrix."""

    def test_mid_grey(self):
        buffer = PixelBuffer.filled(1, 1, (100, 100, 100, 255))
        # 135.1, 120.3, 93.7
        assert sepia(buffer).pixel(0, 0) == (135, 120, 94, 255)

    def test_white_saturates(self):
        buffer = PixelBuffer.filled(1, 1, (255, 255, 255, 40))
        assert sepia(buffer).pixel(0, 0) == (255, 255, 239, 40)

    def test_black_stays_black(self):
        buffer = PixelBuffer.filled(1, 1, (0, 0, 0, 255))
        assert sepia(buffer).pixel(0, 0) == (0, 0, 0, 255)


class TestBrightness:
    """Brightness and darkness offsets."""

    def test_darkness_mirrors_brightness(self, noise_buffer):
        assert darkness(noise_buffer, 30) == brightness(noise_buffer, -30)

    def test_darkness_saturates(self):
        buffer = PixelBuffer(1, 1, [5, 100, 255, 255])
        assert darkness(buffer, 50).pixel(0, 0) == (0, 50, 205, 255)

    def test_fractional_amount_rounds(self, grey_buffer):
        assert brightness(grey_buffer, 12.6).pixel(0, 0) == (141, 141, 141, 255)

    def test_zero_is_identity(self, noise_buffer):
        assert brightness(noise_buffer, 0) == noise_buffer

    def test_out_of_range_amount_is_clamped(self, grey_buffer, caplog):
        with caplog.at_level(logging.WARNING):
            result = brightness(grey_buffer, 1000)
        assert result == brightness(grey_buffer, 255)
        assert result.pixel(0, 0) == (255, 255, 255, 255)
        assert "outside" in caplog.text

    @pytest.mark.parametrize("amount", [None, float('nan'), float('inf'), "40", True])
    def test_unusable_amount(self, grey_buffer, amount):
        with pytest.raises(InvalidParameter) as excinfo:
            brightness(grey_buffer, amount)
        assert excinfo.value.stage == "brightness"

    def test_darkness_unusable_amount(self, grey_buffer):
        with pytest.raises(InvalidParameter) as excinfo:
            darkness(grey_buffer, None)
        assert excinfo.value.stage == "darkness"


class TestThreshold:
    """Luma threshold."""

    def test_level_is_inclusive(self):
        buffer = PixelBuffer.from_pixels(2, 1, [(128, 128, 128, 255), (127, 127, 127, 9)])
        assert threshold(buffer, 128).pixels() == [(255, 255, 255, 255), (0, 0, 0, 9)]

    def test_uses_luma(self, primaries_buffer):
        # Luma 76, 150, 29, 255
        result = threshold(primaries_buffer, 100)
        assert [p[0] for p in result.pixels()] == [0, 255, 0, 255]

    def test_output_is_binary(self, noise_buffer):
        rgb = threshold(noise_buffer, 90).array[..., :3]
        assert set(np.unique(rgb)) <= {0, 255}

    def test_high_level_is_clamped(self):
        buffer = PixelBuffer.from_pixels(2, 1, [(255, 255, 255, 255), (254, 254, 254, 255)])
        assert threshold(buffer, 300).pixels() == [(255, 255, 255, 255), (0, 0, 0, 255)]

    def test_negative_level_is_clamped(self):
        buffer = PixelBuffer.filled(2, 2, (0, 0, 0, 255))
        assert threshold(buffer, -5).pixel(1, 1) == (255, 255, 255, 255)

    @pytest.mark.parametrize("level", [None, float('nan'), "high"])
    def test_unusable_level(self, grey_buffer, level):
        with pytest.raises(InvalidParameter) as excinfo:
            threshold(grey_buffer, level)
        assert excinfo.value.stage == "threshold"


class TestCommonProperties:
    """Shared behavior of every color transform."""

    TRANSFORMS = [
        greyscale,
        invert,
        sepia,
        lambda b: brightness(b, 60),
        lambda b: darkness(b, 60),
        lambda b: threshold(b, 100),
    ]

    @pytest.mark.parametrize("transform", TRANSFORMS)
    def test_alpha_preserved(self, noise_buffer, transform):
        result = transform(noise_buffer)
        assert np.array_equal(result.alpha, noise_buffer.alpha)

    @pytest.mark.parametrize("transform", TRANSFORMS)
    def test_size_preserved_and_source_untouched(self, noise_buffer, transform):
        before = noise_buffer.to_array()
        result = transform(noise_buffer)
        assert result.size == noise_buffer.size
        assert result is not noise_buffer
        assert np.array_equal(noise_buffer.array, before)

    def test_rejects_non_buffer(self):
        with pytest.raises(InvalidBuffer) as excinfo:
            invert(np.zeros((2, 2, 4), dtype=np.uint8))
        assert excinfo.value.stage == "invert"
