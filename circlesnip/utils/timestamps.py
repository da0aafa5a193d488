"""Timestamp utilities for license records and caches."""

import time
from datetime import datetime, timezone


def epoch_seconds() -> int:
    """Whole seconds since the epoch (license period ends use this unit)."""
    return int(time.time())


def epoch_millis() -> int:
    """Milliseconds since the epoch (client cache check times use this unit)."""
    return int(time.time() * 1000)


def iso_timestamp() -> str:
    """ISO-8601 timestamp for API/log payloads."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
