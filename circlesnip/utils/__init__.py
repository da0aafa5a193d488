"""Shared utilities"""

from .validators import safe_int, safe_float, parse_bool
from .timestamps import epoch_seconds, epoch_millis, iso_timestamp

__all__ = ['safe_int', 'safe_float', 'parse_bool', 'epoch_seconds', 'epoch_millis', 'iso_timestamp']
