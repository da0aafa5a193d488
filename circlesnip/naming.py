"""Filename helpers for exported captures."""

from datetime import datetime
from typing import Optional

from .constants import SnipConstants


def generate_filename(now: Optional[datetime] = None) -> str:
    """Local-time filename, e.g. circle-snip_2026-01-28_09-30-00.png"""
    now = now or datetime.now()
    return f"{SnipConstants.FILENAME_PREFIX}_{now.strftime('%Y-%m-%d_%H-%M-%S')}.png"
