"""Shared Circle Snip constants used by the overlay model, processor and license gate."""


class SnipConstants:
    """Single source of truth for selection geometry and usage limits."""

    # Overlay defaults (CSS pixels)
    DEFAULT_DIAMETER_CSS = 256
    MIN_DIAMETER_CSS = 64
    VIEWPORT_PADDING_CSS = 10

    # Diameter snapping
    SNAP_SIZES_CSS = (128, 256, 384, 512, 640, 768, 896, 1024)
    SNAP_THRESHOLD_CSS = 20

    # Output surface limits (source pixels)
    MIN_SURFACE_SIDE = 1
    MAX_SURFACE_SIDE = 16384

    # Strict scale policy tolerance
    SCALE_TOLERANCE = 0.01

    # Licensing
    FREE_CAPTURES = 3
    LICENSE_CACHE_MAX_AGE_S = 7 * 24 * 60 * 60

    FILENAME_PREFIX = "circle-snip"
