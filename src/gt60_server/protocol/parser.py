"""Packet parsing for complete GT60 frames.

A frame looks like::

    (<imei>,<command>,<field1>,...,<fieldN>,<checksum>)

Parsing validates the delimiters, field count and IMEI, and recomputes
the checksum. A checksum mismatch does not fail parsing; it is reported
through :attr:`Packet.valid`.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..utils.checksum import compute_checksum
from .commands import get_command_name, is_known_command
from .framing import FRAME_START, FRAME_END, FIELD_SEPARATOR

logger = logging.getLogger(__name__)

IMEI_PATTERN = re.compile(r"[0-9]{15}")
MIN_PARTS = 3


class ParseError(ValueError):
    """A frame could not be parsed into a packet.

    Attributes:
        raw: The frame text that failed to parse.
    """

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class MissingDelimitersError(ParseError):
    """Frame does not start with ``(`` and end with ``)``."""


class InsufficientFieldsError(ParseError):
    """Frame has fewer than three comma-separated parts."""


class InvalidIMEIError(ParseError):
    """IMEI is not exactly 15 ASCII digits."""


@dataclass
class Packet:
    """A parsed protocol packet."""

    imei: str
    command: str
    command_name: str
    fields: tuple[str, ...]
    checksum: str
    computed_checksum: str
    valid: bool
    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def known(self) -> bool:
        return is_known_command(self.command)

    def to_dict(self) -> dict:
        return {
            "imei": self.imei,
            "command": self.command,
            "command_name": self.command_name,
            "data": list(self.fields),
            "checksum": self.checksum,
            "calculated_checksum": self.computed_checksum,
            "is_valid": self.valid,
            "timestamp": self.timestamp.isoformat(),
        }

    def __repr__(self) -> str:
        return (
            f"Packet(imei={self.imei!r}, command={self.command!r}, "
            f"fields={len(self.fields)}, valid={self.valid})"
        )


def is_valid_imei(imei: str) -> bool:
    return IMEI_PATTERN.fullmatch(imei) is not None


def parse_packet(frame: str | bytes) -> Packet:
    """Parse one complete frame into a :class:`Packet`.

    Args:
        frame: Frame text or bytes, including the ``(`` and ``)`` markers.

    Returns:
        The parsed packet. ``packet.valid`` is False on checksum mismatch.

    Raises:
        MissingDelimitersError: If the start or end marker is missing.
        InsufficientFieldsError: If fewer than 3 parts are present.
        InvalidIMEIError: If the IMEI is not 15 digits.
    """
    if isinstance(frame, (bytes, bytearray)):
        text = bytes(frame).decode("utf-8", errors="replace")
    else:
        text = frame
    text = text.strip()

    if not (text.startswith(FRAME_START) and text.endswith(FRAME_END)):
        raise MissingDelimitersError(
            "Invalid packet format - missing start/end markers", raw=text
        )

    content = text[1:-1]
    parts = content.split(FIELD_SEPARATOR)
    if len(parts) < MIN_PARTS:
        raise InsufficientFieldsError(
            f"Invalid packet format - expected at least {MIN_PARTS} parts, "
            f"got {len(parts)}",
            raw=text,
        )

    imei = parts[0]
    if not is_valid_imei(imei):
        raise InvalidIMEIError(f"Invalid IMEI format: {imei!r}", raw=text)

    command = parts[1]
    checksum = parts[-1]
    fields = tuple(parts[2:-1])

    computed = compute_checksum(content[: content.rfind(FIELD_SEPARATOR)])
    if computed != checksum:
        logger.debug(
            "Checksum mismatch from %s: received %s, calculated %s",
            imei, checksum, computed,
        )

    return Packet(
        imei=imei,
        command=command,
        command_name=get_command_name(command),
        fields=fields,
        checksum=checksum,
        computed_checksum=computed,
        valid=computed == checksum,
    )
