"""Parsing helpers for env vars and the JSON state/cache files.

Unset or blank values fall back to the default; bounds clamp instead of
failing so a bad port or timeout in .env degrades to the nearest usable value.
"""

import math
from typing import Any, Callable, Optional

TRUE_STRINGS = {"1", "true", "yes", "on"}


def _parse_number(value: Any, field: str, cast: Callable, kind: str, min_value, max_value, default):
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is not None:
            return default
        raise ValueError(f"{field} is required")

    try:
        parsed = cast(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ValueError(f"{field} must be {kind}") from exc

    if isinstance(parsed, float) and not math.isfinite(parsed):
        raise ValueError(f"{field} must be {kind}")
    if min_value is not None and parsed < min_value:
        parsed = min_value
    if max_value is not None and parsed > max_value:
        parsed = max_value
    return parsed


def safe_int(value: Any, field: str, min_value: Optional[int] = None, max_value: Optional[int] = None, default: Optional[int] = None) -> int:
    """Parse an integer, clamped to [min_value, max_value].

    Raises:
        ValueError: Unparseable, or missing with no default
    """
    return _parse_number(value, field, int, "an integer", min_value, max_value, default)


def safe_float(value: Any, field: str, min_value: Optional[float] = None, max_value: Optional[float] = None, default: Optional[float] = None) -> float:
    """Same contract as safe_int; NaN and infinities are rejected."""
    return _parse_number(value, field, float, "a finite number", min_value, max_value, default)


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    """Env flag: 1/true/yes/on (any case) are true."""
    if value is None or not value.strip():
        return default
    return value.strip().lower() in TRUE_STRINGS
