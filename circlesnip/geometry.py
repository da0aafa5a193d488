"""Selection geometry: CSS-pixel circle model and source-pixel crop math.

Keep pure functions here. The scale factor is always derived from the decoded
image size and the viewport measured at capture time, never from a reported
device pixel ratio.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from enum import Enum

from .constants import SnipConstants
from .errors import ScaleMismatchError


@dataclass(frozen=True)
class Circle:
    """User selection in CSS pixels (center + diameter)."""

    x: float
    y: float
    diameter: float

    def __post_init__(self):
        if not all(math.isfinite(v) for v in (self.x, self.y, self.diameter)):
            raise ValueError(f"circle must be finite (got {self.x}, {self.y}, d={self.diameter})")
        if not self.diameter > 0:
            raise ValueError(f"diameter must be > 0 (got {self.diameter})")

    @property
    def radius(self) -> float:
        return self.diameter / 2


@dataclass(frozen=True)
class Viewport:
    """CSS pixel size of the browsing area when the screenshot was taken."""

    width: float
    height: float

    def __post_init__(self):
        if not (math.isfinite(self.width) and math.isfinite(self.height)):
            raise ValueError(f"viewport must be finite (got {self.width}x{self.height})")
        if not (self.width > 0 and self.height > 0):
            raise ValueError(f"viewport must be positive (got {self.width}x{self.height})")


class ScalePolicy(Enum):
    AVERAGE = "average"
    STRICT = "strict"


@dataclass(frozen=True)
class CropGeometry:
    """Source-pixel geometry for one crop."""

    scale: float
    scale_x: float
    scale_y: float
    diameter: int
    center_x: int
    center_y: int

    @property
    def radius(self) -> float:
        return self.diameter / 2

    @property
    def source_x(self) -> float:
        return self.center_x - self.radius

    @property
    def source_y(self) -> float:
        return self.center_y - self.radius

    @property
    def source_rect(self) -> tuple[float, float, float, float]:
        """(left, top, right, bottom) of the sampled square in the source image."""
        return (
            self.source_x,
            self.source_y,
            self.source_x + self.diameter,
            self.source_y + self.diameter,
        )


def round_half_up(value: float) -> int:
    """Round like browser Math.round (halves go up, also for negatives)."""
    return int(math.floor(value + 0.5))


def derive_scale(
    image_width: int,
    image_height: int,
    viewport: Viewport,
    policy: ScalePolicy = ScalePolicy.AVERAGE,
    tolerance: float = SnipConstants.SCALE_TOLERANCE,
) -> tuple[float, float, float]:
    """Derive the CSS to source pixel scale from measured sizes.

    Returns:
        Tuple of (scale, scale_x, scale_y)

    Raises:
        ScaleMismatchError: STRICT policy and |scale_x - scale_y| > tolerance
    """
    scale_x = image_width / viewport.width
    scale_y = image_height / viewport.height
    if policy is ScalePolicy.STRICT and abs(scale_x - scale_y) > tolerance:
        raise ScaleMismatchError(scale_x, scale_y, tolerance)
    return (scale_x + scale_y) / 2, scale_x, scale_y


def compute_geometry(
    circle: Circle,
    image_width: int,
    image_height: int,
    viewport: Viewport,
    policy: ScalePolicy = ScalePolicy.AVERAGE,
    tolerance: float = SnipConstants.SCALE_TOLERANCE,
) -> CropGeometry:
    """Map a CSS-pixel circle onto the source image.

    Rounding happens once, after scaling, so repeated drag/resize updates on
    the CSS values do not compound error.
    """
    scale, scale_x, scale_y = derive_scale(
        image_width, image_height, viewport, policy=policy, tolerance=tolerance
    )
    return CropGeometry(
        scale=scale,
        scale_x=scale_x,
        scale_y=scale_y,
        diameter=round_half_up(circle.diameter * scale),
        center_x=round_half_up(circle.x * scale),
        center_y=round_half_up(circle.y * scale),
    )


def default_circle(viewport: Viewport) -> Circle:
    """Initial selection: fixed-size circle centered in the viewport."""
    return Circle(
        x=viewport.width / 2,
        y=viewport.height / 2,
        diameter=SnipConstants.DEFAULT_DIAMETER_CSS,
    )


def snap_diameter(diameter: float) -> float:
    """Snap to a common size when within SNAP_THRESHOLD_CSS of it."""
    for size in SnipConstants.SNAP_SIZES_CSS:
        if abs(diameter - size) < SnipConstants.SNAP_THRESHOLD_CSS:
            return float(size)
    return diameter


def constrain_circle(circle: Circle, viewport: Viewport, allow_resize: bool = True) -> Circle:
    """Keep the selection inside the viewport with a small padding.

    The diameter is only clamped when allow_resize is set (resize gestures);
    the center is always clamped.
    """
    padding = SnipConstants.VIEWPORT_PADDING_CSS
    diameter = circle.diameter

    if allow_resize:
        max_diameter = min(viewport.width, viewport.height) - padding * 2
        diameter = max(SnipConstants.MIN_DIAMETER_CSS, min(diameter, max_diameter))

    radius = diameter / 2
    x = max(radius + padding, min(circle.x, viewport.width - radius - padding))
    y = max(radius + padding, min(circle.y, viewport.height - radius - padding))
    return replace(circle, x=x, y=y, diameter=diameter)
