"""Tests for the scaling policy."""

import pytest
from PIL import Image

from engine import scale_factor, scale_factor_image, should_transform


class TestScaleFactor:
    def test_takes_the_larger_ratio(self):
        assert scale_factor(100, 50, 50, 50) == 1.0

    def test_downscale(self):
        assert scale_factor(200, 100, 50, 20) == 0.25

    def test_zero_dimension_does_not_contribute(self):
        assert scale_factor(100, 50, 0, 25) == 0.5
        assert scale_factor(100, 50, 30, 0) == pytest.approx(0.3)

    @pytest.mark.parametrize("src", [(100, 50), (37, 91), (640, 480)])
    @pytest.mark.parametrize("dst", [(10, 10), (0, 33), (120, 7), (1, 1000)])
    def test_monotonic_in_destination(self, src, dst):
        base = scale_factor(*src, *dst)
        assert scale_factor(*src, dst[0] * 2, dst[1]) >= base
        assert scale_factor(*src, dst[0], dst[1] * 2) >= base

    def test_invalid_source_raises(self):
        with pytest.raises(ValueError, match="positive"):
            scale_factor(0, 10, 5, 5)

    def test_image_variant_uses_natural_size(self):
        img = Image.new("RGB", (100, 50))
        assert scale_factor_image(img, 50, 50) == 1.0


class TestShouldTransform:
    @pytest.mark.parametrize("factor", [0.0, 0.5, 0.999])
    def test_downscale_transforms(self, factor):
        assert should_transform(factor, False) is True

    @pytest.mark.parametrize("factor", [1.0, 1.5, 10.0])
    def test_no_upscale_without_consent(self, factor):
        assert should_transform(factor, False) is False

    @pytest.mark.parametrize("factor", [0.1, 1.0, 4.0])
    def test_upscale_allowed_always_transforms(self, factor):
        assert should_transform(factor, True) is True
