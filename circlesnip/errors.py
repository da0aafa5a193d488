"""Error types raised by the capture pipeline."""

from __future__ import annotations


class CircleSnipError(Exception):
    """Base class for Circle Snip errors."""


class DecodeError(CircleSnipError):
    """Raised when the source screenshot cannot be decoded."""


class ProcessError(CircleSnipError):
    """Raised when clipping, drawing or PNG encoding fails."""


class ScaleMismatchError(ProcessError):
    """Raised by the strict scale policy when the axes disagree."""

    def __init__(self, scale_x: float, scale_y: float, tolerance: float):
        self.scale_x = scale_x
        self.scale_y = scale_y
        self.tolerance = tolerance
        super().__init__(
            f"Scale mismatch: x={scale_x:.4f}, y={scale_y:.4f} (tolerance {tolerance})"
        )


class SessionActiveError(CircleSnipError):
    """Raised when a capture is requested while another session is open."""


class UpgradeRequired(CircleSnipError):
    """Raised when the free capture quota is used up."""
