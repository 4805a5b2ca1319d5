"""Frame builder and stream scanner for the GT60 line protocol.

Frame layout::

    ( imei , command , field1 , ... , fieldN , checksum )

- ``(`` / ``)``: start and end markers
- imei: 15 ASCII digits
- command: 4-character code, e.g. ``BP02``
- checksum: 4 uppercase hex digits, additive checksum of everything
  between ``(`` and the final ``,``

TCP delivers a byte stream, not frames: one read may hold half a frame
or several frames. :class:`FrameScanner` accumulates arrivals and cuts
out complete frames.
"""

from __future__ import annotations

import logging

from ..utils.checksum import compute_checksum
from .commands import Command

logger = logging.getLogger(__name__)

FRAME_START = "("
FRAME_END = ")"
FIELD_SEPARATOR = ","
ACK_STATUS = "OK"

START_BYTE = FRAME_START.encode("ascii")
END_BYTE = FRAME_END.encode("ascii")

DEFAULT_MAX_BUFFER_SIZE = 4096


def build_frame(imei: str, command: str | Command, *fields: str) -> bytes:
    """Build a complete, checksummed frame.

    Args:
        imei: 15-digit device identifier.
        command: 4-character command code.
        fields: Field tokens in wire order.

    Returns:
        UTF-8 bytes of the frame, e.g. ``b"(123456789012345,BP00,042A)"``.
    """
    code = command.value if isinstance(command, Command) else command
    content = FIELD_SEPARATOR.join([imei, code, *fields])
    checksum = compute_checksum(content)
    return f"{FRAME_START}{content}{FIELD_SEPARATOR}{checksum}{FRAME_END}".encode("utf-8")


def build_ack(imei: str) -> bytes:
    """Build the acknowledgment frame ``(<imei>,BR00,OK)``.

    The acknowledgment carries no checksum.
    """
    content = FIELD_SEPARATOR.join([imei, Command.RESPONSE.value, ACK_STATUS])
    return f"{FRAME_START}{content}{FRAME_END}".encode("ascii")


class FrameScanner:
    """Extracts complete frames from a connection's byte stream.

    Usage::

        scanner = FrameScanner()
        for frame in scanner.feed(chunk):
            ...

    Each frame is the span from the first start marker to the next end
    marker, so a field may itself contain ``(``. Bytes before a start
    marker cannot belong to any frame and are dropped.
    An incomplete frame is kept until its end marker arrives, unless the
    buffer grows past ``max_buffer_size``, in which case the scanner
    resyncs to the next start marker.
    """

    def __init__(self, max_buffer_size: int = DEFAULT_MAX_BUFFER_SIZE) -> None:
        if max_buffer_size < 2:
            raise ValueError(f"max_buffer_size must be >= 2, got {max_buffer_size}")
        self._buffer = bytearray()
        self._max_buffer_size = max_buffer_size
        self._discarded = 0

    @property
    def pending(self) -> int:
        """Number of buffered bytes awaiting an end marker."""
        return len(self._buffer)

    @property
    def discarded(self) -> int:
        """Total bytes dropped as unframeable since creation."""
        return self._discarded

    @property
    def max_buffer_size(self) -> int:
        return self._max_buffer_size

    def reset(self) -> None:
        self._buffer.clear()

    def feed(self, data: bytes) -> list[bytes]:
        """Append ``data`` and return every frame completed by it, in order."""
        self._buffer.extend(data)
        frames: list[bytes] = []

        while self._buffer:
            start = self._buffer.find(START_BYTE)
            if start < 0:
                self._discard(len(self._buffer), "no start marker")
                break
            if start > 0:
                self._discard(start, "bytes before start marker")

            end = self._buffer.find(END_BYTE, 1)
            if end < 0:
                if len(self._buffer) > self._max_buffer_size:
                    self._resync()
                    continue
                break

            frames.append(bytes(self._buffer[: end + 1]))
            del self._buffer[: end + 1]

        return frames

    def _resync(self) -> None:
        nxt = self._buffer.find(START_BYTE, 1)
        count = nxt if nxt > 0 else len(self._buffer)
        logger.warning(
            "Frame buffer exceeded %d bytes without an end marker, "
            "dropping %d bytes",
            self._max_buffer_size, count,
        )
        self._discard(count, "buffer overflow")

    def _discard(self, count: int, reason: str) -> None:
        logger.debug("Discarding %d bytes (%s): %r", count, reason, bytes(self._buffer[:count]))
        del self._buffer[:count]
        self._discarded += count
