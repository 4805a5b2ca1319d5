"""Additive 16-bit checksum used by GT60 frames.

The checksum is the sum of every character code in the frame content,
masked to 16 bits and rendered as four uppercase hex digits.
"""

from __future__ import annotations


def compute_checksum(data: str | bytes) -> str:
    """Compute the checksum of ``data``.

    Args:
        data: Frame content from the IMEI through the last field,
              excluding the trailing separator and checksum.

    Returns:
        A 4-character uppercase hexadecimal string, e.g. ``"0A3F"``.
    """
    if isinstance(data, str):
        total = sum(ord(ch) for ch in data)
    else:
        total = sum(data)
    return f"{total & 0xFFFF:04X}"
