"""Lenient numeric parsing for device-supplied fields.

Devices pad and truncate numbers freely (``"045.5"``, ``"12,"``,
``"80bpm"``), so parsing takes the leading numeric prefix and falls back
to zero instead of raising.
"""

from __future__ import annotations

import math
import re

_FLOAT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


def parse_float(value: str | None) -> float:
    """Parse the leading float in ``value``, or return ``0.0``."""
    if not value:
        return 0.0
    match = _FLOAT_PREFIX.match(value)
    if match is None:
        return 0.0
    result = float(match.group(1))
    if not math.isfinite(result):
        return 0.0
    return result


def parse_int(value: str | None) -> int:
    """Parse the leading integer in ``value``, or return ``0``."""
    if not value:
        return 0
    match = _INT_PREFIX.match(value)
    if match is None:
        return 0
    return int(match.group(1))
