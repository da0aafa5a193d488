"""Circular crop processor

Turns a CSS-pixel circle drawn over a screenshot into a square, alpha-masked
PNG cut from the device-resolution screenshot:

- decode: data URL / base64 / raw bytes -> PIL Image (DecodeError on failure)
- geometry: derived scale, rounded center + diameter in source pixels
- resample: source square -> output square (bicubic, transparent outside bounds)
- mask: anti-aliased circular coverage applied to the alpha channel
- encode: RGBA PNG bytes
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
import logging
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .constants import SnipConstants
from .errors import DecodeError, ProcessError
from .geometry import Circle, CropGeometry, ScalePolicy, Viewport, compute_geometry

logger = logging.getLogger(__name__)

ImageSource = Union[bytes, bytearray, memoryview, str, Image.Image]

TRANSPARENT = (0, 0, 0, 0)


def _payload_bytes(source: str) -> bytes:
    """Extract raw bytes from a data URL or a bare base64 string."""
    payload = source.strip()
    if payload.startswith("data:"):
        header, sep, payload = payload.partition(",")
        if not sep:
            raise DecodeError("Malformed data URL: missing ',' separator")
        if ";base64" not in header:
            raise DecodeError(f"Unsupported data URL encoding: {header}")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"Invalid base64 image payload: {exc}") from exc


def decode_image(source: ImageSource) -> Image.Image:
    """Decode the screenshot to its native pixel size.

    Args:
        source: Encoded image bytes, data URL, base64 string or a PIL Image

    Returns:
        Loaded PIL Image (caller must not rely on its mode)

    Raises:
        DecodeError: If the source cannot be decoded
    """
    if isinstance(source, Image.Image):
        return source

    if isinstance(source, str):
        data = _payload_bytes(source)
    elif isinstance(source, (bytes, bytearray, memoryview)):
        data = bytes(source)
    else:
        raise DecodeError(f"Unsupported image source type: {type(source).__name__}")

    if not data:
        raise DecodeError("Empty image payload")

    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise DecodeError(f"Failed to load image for processing: {exc}") from exc
    return img


def encode_data_url(png: bytes) -> str:
    """PNG bytes -> data URL for previews and message passing."""
    return f"data:image/png;base64,{base64.b64encode(png).decode()}"


def circle_coverage(size: int) -> np.ndarray:
    """Anti-aliased coverage of a circle inscribed in a size x size square.

    Coverage ramps linearly over the one-pixel band just inside the edge,
    measured from pixel centers: 0 beyond the radius, 1 from radius - 1 inward.
    """
    radius = size / 2
    centers = np.arange(size, dtype=np.float64) + 0.5 - radius
    dist = np.hypot(centers[np.newaxis, :], centers[:, np.newaxis])
    return np.clip(radius - dist, 0.0, 1.0)


class CircleCropProcessor:
    """Circle -> transparent PNG crop of a screenshot"""

    def __init__(
        self,
        policy: ScalePolicy = ScalePolicy.AVERAGE,
        tolerance: float = SnipConstants.SCALE_TOLERANCE,
    ):
        self.policy = policy
        self.tolerance = tolerance

    def geometry_for(self, img: Image.Image, circle: Circle, viewport: Viewport) -> CropGeometry:
        return compute_geometry(
            circle, img.width, img.height, viewport, policy=self.policy, tolerance=self.tolerance
        )

    def process(self, source: ImageSource, circle: Circle, viewport: Viewport) -> bytes:
        """Decode the screenshot and return the circular crop as PNG bytes.

        Raises:
            DecodeError: Source cannot be decoded
            ProcessError: Geometry, drawing or encoding failed
        """
        img = decode_image(source)
        return self.render(img, circle, viewport)

    async def process_async(self, source: ImageSource, circle: Circle, viewport: Viewport) -> bytes:
        """Same as process(); the decode is the only awaited step."""
        img = await asyncio.to_thread(decode_image, source)
        return self.render(img, circle, viewport)

    def render(self, img: Image.Image, circle: Circle, viewport: Viewport) -> bytes:
        """Clip, draw and encode an already decoded screenshot."""
        try:
            geometry = self.geometry_for(img, circle, viewport)
        except (ValueError, OverflowError) as exc:
            raise ProcessError(f"Invalid crop geometry: {exc}") from exc
        size = geometry.diameter

        logger.debug(
            "Image: %dx%d, Viewport: %sx%s, Scale: %.2f",
            img.width, img.height, viewport.width, viewport.height, geometry.scale,
        )
        logger.debug(
            "Circle CSS: (%s, %s) d=%s -> actual: (%d, %d) d=%d, source rect: %s",
            circle.x, circle.y, circle.diameter,
            geometry.center_x, geometry.center_y, size, geometry.source_rect,
        )

        if size < SnipConstants.MIN_SURFACE_SIDE or size > SnipConstants.MAX_SURFACE_SIDE:
            raise ProcessError(
                f"Unsupported output size: {size}x{size}px "
                f"(allowed {SnipConstants.MIN_SURFACE_SIDE}-{SnipConstants.MAX_SURFACE_SIDE})"
            )

        try:
            rgba = img if img.mode == "RGBA" else img.convert("RGBA")

            # Pixels sampled outside the screenshot come back as fillcolor
            patch = rgba.transform(
                (size, size),
                Image.Transform.AFFINE,
                (1, 0, geometry.source_x, 0, 1, geometry.source_y),
                resample=Image.Resampling.BICUBIC,
                fillcolor=TRANSPARENT,
            )

            pixels = np.array(patch, dtype=np.uint8)
            alpha = np.rint(pixels[:, :, 3].astype(np.float64) * circle_coverage(size))
            pixels[:, :, 3] = alpha.astype(np.uint8)
            pixels[pixels[:, :, 3] == 0] = 0

            buffer = io.BytesIO()
            Image.fromarray(pixels).save(buffer, format="PNG")
        except (ValueError, OSError, MemoryError) as exc:
            raise ProcessError(f"Circle crop failed: {exc}") from exc

        return buffer.getvalue()
