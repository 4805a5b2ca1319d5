"""Protocol layer: framing, checksum validation, packet parsing, and command decoding."""

from .framing import FrameScanner, build_frame, build_ack
from .commands import Command, COMMAND_REGISTRY, decode_payload
from .parser import (
    Packet,
    ParseError,
    MissingDelimitersError,
    InsufficientFieldsError,
    InvalidIMEIError,
    parse_packet,
)
