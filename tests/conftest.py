"""Pytest configuration and shared image fixtures.

Slow tests (large images, long animations) are skipped unless --slow is passed.
Run the full suite:   pytest --slow
Run fast tests only:  pytest          (default)
"""
import io

import pytest
from PIL import Image

from engine import WatermarkAssets
from engine import watermark as watermark_module


def pytest_addoption(parser):
    parser.addoption(
        "--slow",
        action="store_true",
        default=False,
        help="Run slow tests on large images and long animations",
    )


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: large-image tests, opt in with --slow")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--slow"):
        return  # run everything
    skip_slow = pytest.mark.skip(reason="slow test skipped, pass --slow to include")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


def encode_image(img: Image.Image, fmt: str, **params) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt, **params)
    return buf.getvalue()


def gradient_image(width: int, height: int, mode: str = "RGB") -> Image.Image:
    """Deterministic image where every pixel differs from its neighbours."""
    img = Image.new("RGB", (width, height))
    img.putdata([
        ((x * 7 + y * 3) % 256, (x * 5 + y * 11) % 256, (x * y) % 256)
        for y in range(height)
        for x in range(width)
    ])
    if mode != "RGB":
        img = img.convert(mode)
    return img


def animated_gif(colors, size=(40, 20), durations=None, loop=0) -> bytes:
    """Encode solid-color frames as an animated GIF."""
    frames = [Image.new("RGB", size, color) for color in colors]
    durations = durations or [100] * len(frames)
    return encode_image(
        frames[0],
        "GIF",
        save_all=True,
        append_images=frames[1:],
        duration=durations,
        loop=loop,
        disposal=1,
    )


@pytest.fixture
def fake_watermark():
    """Watermark pair with distinguishable solid variants."""
    return WatermarkAssets(
        plain=Image.new("RGBA", (10, 10), (255, 255, 255, 255)),
        colored=Image.new("RGBA", (10, 10), (255, 0, 0, 255)),
    )


@pytest.fixture(autouse=True)
def reset_default_watermark():
    """Keep the process-wide watermark cache isolated between tests."""
    watermark_module.reset_default_watermark_assets()
    yield
    watermark_module.reset_default_watermark_assets()


@pytest.fixture
def png_bytes():
    return encode_image(gradient_image(100, 50), "PNG")


@pytest.fixture
def jpeg_bytes():
    return encode_image(gradient_image(100, 50), "JPEG", quality=90)
