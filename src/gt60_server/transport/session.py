"""Per-connection packet session.

A :class:`SessionHandler` owns one connection's frame buffer. Each arrival
is framed, parsed, decoded and acknowledged before ``feed`` returns, so
frames from one device are always handled in order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from ..models.telemetry import Payload
from ..protocol.commands import decode_payload
from ..protocol.framing import FrameScanner, build_ack, DEFAULT_MAX_BUFFER_SIZE
from ..protocol.parser import Packet, ParseError, parse_packet

logger = logging.getLogger(__name__)

AckWriter = Callable[[bytes], object]


@dataclass
class FrameResult:
    """Outcome of processing one frame: a decoded packet, or a parse error."""

    raw: bytes
    packet: Packet | None = None
    payload: Payload | None = None
    error: ParseError | None = None

    @property
    def ok(self) -> bool:
        return self.packet is not None and self.error is None


ResultSink = Callable[[FrameResult], None]


def log_result(result: FrameResult, peer: str = "") -> None:
    """Default sink: write the outcome of a frame to the log."""
    if result.error is not None:
        logger.warning(
            "[%s] Packet error (%s): %s | raw=%r",
            peer, type(result.error).__name__, result.error, result.raw,
        )
        return

    packet = result.packet
    if not packet.valid:
        logger.warning(
            "[%s] Checksum mismatch for %s %s: received %s, calculated %s",
            peer, packet.imei, packet.command,
            packet.checksum, packet.computed_checksum,
        )
    logger.info(
        "[%s] %s %s (%s) valid=%s payload=%s",
        peer, packet.imei, packet.command, packet.command_name,
        packet.valid, result.payload.to_dict(),
    )


class SessionHandler:
    """Drives the protocol engine for one device connection.

    Args:
        write_ack: Called with each acknowledgment frame. This is the
            acknowledgment channel; it is assumed to succeed.
        sink: Receives a :class:`FrameResult` for every frame, before the
            acknowledgment is written. Defaults to :func:`log_result`.
        peer: Remote address, used in log messages.
        max_buffer_size: Frame buffer bound, see :class:`FrameScanner`.
    """

    def __init__(
        self,
        write_ack: AckWriter,
        sink: ResultSink | None = None,
        peer: str = "",
        max_buffer_size: int = DEFAULT_MAX_BUFFER_SIZE,
    ) -> None:
        self._write_ack = write_ack
        self._sink = sink
        self._peer = peer
        self._scanner: FrameScanner | None = FrameScanner(max_buffer_size)
        self.packets = 0
        self.errors = 0

    @property
    def peer(self) -> str:
        return self._peer

    @property
    def closed(self) -> bool:
        return self._scanner is None

    def feed(self, data: bytes) -> list[FrameResult]:
        """Process one arrival of bytes.

        Returns:
            One result per complete frame, in arrival order. Empty after
            :meth:`close`.
        """
        if self._scanner is None:
            return []

        results = []
        for frame in self._scanner.feed(data):
            results.append(self._handle_frame(frame))
        return results

    def close(self) -> None:
        """Drop the buffer. Later arrivals are ignored."""
        if self._scanner is not None and self._scanner.pending:
            logger.debug(
                "[%s] Closing with %d unframed bytes", self._peer, self._scanner.pending
            )
        self._scanner = None

    def _handle_frame(self, frame: bytes) -> FrameResult:
        try:
            packet = parse_packet(frame)
        except ParseError as e:
            self.errors += 1
            result = FrameResult(raw=frame, error=e)
            self._emit(result)
            return result

        payload = decode_payload(packet.command, packet.fields)
        self.packets += 1
        result = FrameResult(raw=frame, packet=packet, payload=payload)
        self._emit(result)

        # Acknowledged even when the checksum does not match.
        ack = build_ack(packet.imei)
        self._write_ack(ack)
        logger.debug("[%s] Sent ACK: %s", self._peer, ack.decode("ascii"))
        return result

    def _emit(self, result: FrameResult) -> None:
        if self._sink is None:
            log_result(result, self._peer)
        else:
            self._sink(result)
