import io

import numpy as np
import pytest
from PIL import Image


def png_bytes(img: Image.Image) -> bytes:
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def decode_png(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


def gradient_image(width: int, height: int) -> Image.Image:
    """RGB image where R = x % 256 and G = y % 256 (B fixed)."""
    xs = np.arange(width, dtype=np.uint32) % 256
    ys = np.arange(height, dtype=np.uint32) % 256
    arr = np.zeros((height, width, 3), dtype=np.uint8)
    arr[:, :, 0] = xs[np.newaxis, :]
    arr[:, :, 1] = ys[:, np.newaxis]
    arr[:, :, 2] = 200
    return Image.fromarray(arr)


@pytest.fixture
def screenshot_800x600():
    """800x600 gradient screenshot as PNG bytes (scale 2 over a 400x300 viewport)."""
    return png_bytes(gradient_image(800, 600))


@pytest.fixture
def solid_png():
    """Factory for solid-color PNG bytes."""

    def _make(width: int, height: int, color=(30, 120, 220)) -> bytes:
        return png_bytes(Image.new("RGB", (width, height), color))

    return _make
