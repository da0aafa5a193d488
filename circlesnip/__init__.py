"""Circle Snip - circular screenshot crops exported as transparent PNGs.

Pure-Python capture pipeline: CSS-pixel circle + screenshot -> anti-aliased,
source-resolution PNG. Sinks, sessions and the license client sit on top.
"""

from .errors import (
    CircleSnipError,
    DecodeError,
    ProcessError,
    ScaleMismatchError,
    SessionActiveError,
    UpgradeRequired,
)
from .geometry import Circle, Viewport, ScalePolicy, CropGeometry, compute_geometry, derive_scale
from .processor import CircleCropProcessor, decode_image, encode_data_url
from .naming import generate_filename
from .sinks import copy_to_clipboard, download
from .capture import CaptureCoordinator, CaptureOutcome, CaptureSession, CaptureSettings

__all__ = [
    "CircleSnipError",
    "DecodeError",
    "ProcessError",
    "ScaleMismatchError",
    "SessionActiveError",
    "UpgradeRequired",
    "Circle",
    "Viewport",
    "ScalePolicy",
    "CropGeometry",
    "compute_geometry",
    "derive_scale",
    "CircleCropProcessor",
    "decode_image",
    "encode_data_url",
    "generate_filename",
    "copy_to_clipboard",
    "download",
    "CaptureCoordinator",
    "CaptureOutcome",
    "CaptureSession",
    "CaptureSettings",
]
__version__ = "0.1.0"
