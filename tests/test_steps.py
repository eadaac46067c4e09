"""Tests for transform steps and operation dispatch, behavioral tests only."""

import pytest
from PIL import Image, ImageChops

from conftest import gradient_image
from engine import (
    FitStep,
    FlipStep,
    Operation,
    ResizeStep,
    RotateStep,
    ThumbnailStep,
    TransformOptions,
    UnsupportedAxis,
    UnsupportedDegree,
    build_step,
)
from engine.steps import scale


def same_pixels(a: Image.Image, b: Image.Image) -> bool:
    return a.size == b.size and ImageChops.difference(a, b).getbbox() is None


class TestResizeStep:
    def test_exact_size(self):
        out = ResizeStep(width=30, height=40).apply(gradient_image(100, 50))
        assert out.size == (30, 40)

    def test_zero_height_derived_from_ratio(self):
        out = ResizeStep(width=50, height=0).apply(gradient_image(100, 50))
        assert out.size == (50, 25)

    def test_zero_width_derived_rounds_half_up(self):
        # 25 * 40 / 80 = 12.5 -> 13
        out = ResizeStep(width=0, height=25).apply(gradient_image(40, 80))
        assert out.size == (13, 25)

    def test_both_zero_returns_copy(self):
        img = gradient_image(20, 10)
        out = ResizeStep(width=0, height=0).apply(img)
        assert out is not img
        assert same_pixels(out, img)

    def test_pure_function_no_mutation(self):
        img = gradient_image(64, 32)
        before = img.tobytes()
        ResizeStep(width=16, height=16).apply(img)
        assert img.tobytes() == before


class TestThumbnailStep:
    def test_fills_box_exactly(self):
        out = ThumbnailStep(width=50, height=50).apply(gradient_image(100, 50))
        assert out.size == (50, 50)

    def test_crops_around_center(self):
        img = Image.new("RGB", (90, 30), (255, 0, 0))
        img.paste((0, 0, 255), (30, 0, 60, 30))
        out = ThumbnailStep(width=30, height=30).apply(img)
        assert out.size == (30, 30)
        assert out.getpixel((15, 15)) == (0, 0, 255)


class TestFitStep:
    def test_fits_inside_wide_box(self):
        out = FitStep(width=50, height=50).apply(gradient_image(100, 50))
        assert out.size == (50, 25)

    def test_fits_inside_tall_box(self):
        out = FitStep(width=100, height=20).apply(gradient_image(100, 50))
        assert out.size == (40, 20)

    def test_already_inside_box_is_unchanged(self):
        img = gradient_image(30, 20)
        out = FitStep(width=50, height=50).apply(img)
        assert same_pixels(out, img)

    def test_zero_dimension_derived(self):
        out = FitStep(width=50, height=0).apply(gradient_image(100, 50))
        assert out.size == (50, 25)


class TestRotateStep:
    def test_quarter_turn_swaps_dimensions(self):
        out = RotateStep(degree=90).apply(gradient_image(30, 20))
        assert out.size == (20, 30)

    def test_half_turn_keeps_dimensions(self):
        out = RotateStep(degree=180).apply(gradient_image(30, 20))
        assert out.size == (30, 20)

    def test_rotation_is_counter_clockwise(self):
        img = Image.new("RGB", (2, 1))
        img.putpixel((0, 0), (255, 0, 0))
        img.putpixel((1, 0), (0, 0, 255))
        out = RotateStep(degree=90).apply(img)
        assert out.size == (1, 2)
        # The right-hand pixel ends up on top
        assert out.getpixel((0, 0)) == (0, 0, 255)
        assert out.getpixel((0, 1)) == (255, 0, 0)

    def test_270_turns_the_other_way(self):
        img = Image.new("RGB", (2, 1))
        img.putpixel((0, 0), (255, 0, 0))
        img.putpixel((1, 0), (0, 0, 255))
        out = RotateStep(degree=270).apply(img)
        assert out.getpixel((0, 0)) == (255, 0, 0)
        assert out.getpixel((0, 1)) == (0, 0, 255)

    def test_four_quarter_turns_are_identity(self):
        img = gradient_image(17, 9)
        out = img
        step = RotateStep(degree=90)
        for _ in range(4):
            out = step.apply(out)
        assert same_pixels(out, img)

    def test_90_then_270_is_identity(self):
        img = gradient_image(12, 7)
        out = RotateStep(degree=270).apply(RotateStep(degree=90).apply(img))
        assert same_pixels(out, img)

    @pytest.mark.parametrize("degree", [0, 45, 360, -90])
    def test_unsupported_degree_raises(self, degree):
        with pytest.raises(UnsupportedDegree):
            RotateStep(degree=degree)


class TestFlipStep:
    @pytest.mark.parametrize("position", ["h", "v"])
    def test_involutive(self, position):
        img = gradient_image(13, 8)
        step = FlipStep(position=position)
        assert same_pixels(step.apply(step.apply(img)), img)

    def test_horizontal_mirrors_columns(self):
        img = Image.new("RGB", (2, 1))
        img.putpixel((0, 0), (255, 0, 0))
        out = FlipStep(position="h").apply(img)
        assert out.getpixel((1, 0)) == (255, 0, 0)

    def test_vertical_mirrors_rows(self):
        img = Image.new("RGB", (1, 2))
        img.putpixel((0, 0), (255, 0, 0))
        out = FlipStep(position="v").apply(img)
        assert out.getpixel((0, 1)) == (255, 0, 0)

    @pytest.mark.parametrize("position", ["diagonal", "", "H"])
    def test_unsupported_axis_raises(self, position):
        with pytest.raises(UnsupportedAxis):
            FlipStep(position=position)


class TestBuildStep:
    @pytest.mark.parametrize(
        "operation, expected",
        [
            (Operation.RESIZE, ResizeStep),
            (Operation.THUMBNAIL, ThumbnailStep),
            (Operation.FIT, FitStep),
            (Operation.ROTATE, RotateStep),
            (Operation.FLIP, FlipStep),
        ],
    )
    def test_every_operation_has_a_step(self, operation, expected):
        options = TransformOptions(width=10, height=10, degree=90, position="h")
        assert isinstance(build_step(operation, options), expected)

    def test_only_resample_steps_obey_policy(self):
        options = TransformOptions(width=10, height=10, degree=90, position="h")
        resampling = {op for op in Operation if build_step(op, options).resamples}
        assert resampling == {Operation.RESIZE, Operation.THUMBNAIL, Operation.FIT}

    def test_rotate_degree_validated_at_build(self):
        with pytest.raises(UnsupportedDegree):
            build_step(Operation.ROTATE, TransformOptions(degree=45))

    def test_flip_axis_validated_at_build(self):
        with pytest.raises(UnsupportedAxis):
            build_step(Operation.FLIP, TransformOptions(position="diagonal"))

    def test_unknown_operation_raises(self):
        with pytest.raises(ValueError, match="No transform step"):
            build_step("crop", TransformOptions())


class TestScale:
    def test_upscale_request_is_skipped(self):
        img = gradient_image(20, 10)
        options = TransformOptions(width=40, height=20)
        out = scale(img, options, ResizeStep(width=40, height=20))
        assert out.size == (20, 10)

    def test_upscale_with_consent(self):
        img = gradient_image(20, 10)
        options = TransformOptions(width=40, height=20, upscale=True)
        out = scale(img, options, ResizeStep(width=40, height=20))
        assert out.size == (40, 20)

    def test_orientation_steps_ignore_policy(self):
        img = gradient_image(20, 10)
        out = scale(img, TransformOptions(), RotateStep(degree=90))
        assert out.size == (10, 20)
