"""Degrees-minutes to decimal-degrees conversion."""

from __future__ import annotations

from .numbers import parse_float

NEGATIVE_HEMISPHERES = frozenset({"S", "W"})


def decode_coordinate(coord: str | None, hemisphere: str | None) -> float:
    """Convert a ``DDDMM.mmmm`` coordinate to signed decimal degrees.

    The string is split two characters before the decimal point: the
    leading part is whole degrees, the rest is minutes. This assumes the
    minutes always have a two-digit integer part.

    Args:
        coord: Coordinate string, e.g. ``"3116.7845"``.
        hemisphere: ``N``/``E`` (positive) or ``S``/``W`` (negative).
              Any other letter is treated as positive.

    Returns:
        Decimal degrees, or ``0.0`` when either input is missing.
    """
    if not coord or not hemisphere:
        return 0.0

    dot = coord.find(".")
    if dot < 0:
        dot = len(coord)
    split = max(dot - 2, 0)

    degrees = parse_float(coord[:split])
    minutes = parse_float(coord[split:])
    decimal = degrees + minutes / 60

    if hemisphere in NEGATIVE_HEMISPHERES:
        decimal = -decimal
    return decimal
