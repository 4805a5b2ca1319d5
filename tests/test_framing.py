"""Tests for frame building and stream scanning."""

import pytest

from gt60_server.protocol.commands import Command
from gt60_server.protocol.framing import (
    DEFAULT_MAX_BUFFER_SIZE,
    FrameScanner,
    build_ack,
    build_frame,
)

IMEI = "123456789012345"


def test_build_frame_heartbeat():
    assert build_frame(IMEI, "BP00") == b"(123456789012345,BP00,042A)"


def test_build_frame_accepts_command_enum():
    assert build_frame(IMEI, Command.HEARTBEAT) == build_frame(IMEI, "BP00")


def test_build_frame_fields_in_order():
    frame = build_frame(IMEI, "BP01", "GT60", "V1.0", "1.0")
    assert frame.startswith(b"(123456789012345,BP01,GT60,V1.0,1.0,")
    assert frame.endswith(b")")


def test_build_ack():
    assert build_ack(IMEI) == b"(123456789012345,BR00,OK)"


def test_scanner_single_frame():
    scanner = FrameScanner()
    frame = build_frame(IMEI, "BP00")
    assert scanner.feed(frame) == [frame]
    assert scanner.pending == 0


def test_scanner_two_frames_in_one_arrival():
    """Merged TCP segments are split back into frames, in order."""
    first = build_frame(IMEI, "BP01", "GT60", "V1.0", "1.0")
    second = build_frame(IMEI, "BP00")
    scanner = FrameScanner()
    assert scanner.feed(first + second) == [first, second]


def test_scanner_frame_split_across_arrivals():
    """A frame split over two reads is emitted once, after the second."""
    frame = build_frame(IMEI, "BP20", "1000", "45.5", "0.8")
    scanner = FrameScanner()
    assert scanner.feed(frame[:12]) == []
    assert scanner.pending == 12
    assert scanner.feed(frame[12:]) == [frame]
    assert scanner.pending == 0


def test_scanner_byte_by_byte():
    frame = build_frame(IMEI, "BP00")
    scanner = FrameScanner()
    emitted = []
    for i in range(len(frame)):
        emitted.extend(scanner.feed(frame[i : i + 1]))
    assert emitted == [frame]


def test_scanner_complete_plus_partial():
    first = build_frame(IMEI, "BP00")
    second = build_frame(IMEI, "BP22", "72")
    scanner = FrameScanner()
    assert scanner.feed(first + second[:8]) == [first]
    assert scanner.feed(second[8:]) == [second]


def test_scanner_drops_noise_before_start():
    frame = build_frame(IMEI, "BP00")
    scanner = FrameScanner()
    assert scanner.feed(b"\r\nnoise" + frame) == [frame]
    assert scanner.discarded == 7


def test_scanner_drops_data_without_start_marker():
    scanner = FrameScanner()
    assert scanner.feed(b"garbage with no marker)") == []
    assert scanner.pending == 0
    assert scanner.discarded == 23


def test_scanner_runs_to_first_end_after_truncated_frame():
    """A partial frame is not cut at a later start marker; it runs to the next end."""
    frame = build_frame(IMEI, "BP00")
    scanner = FrameScanner()
    assert scanner.feed(b"(1234567") == []
    assert scanner.feed(frame) == [b"(1234567" + frame]
    assert scanner.discarded == 0


def test_scanner_start_marker_inside_field():
    """A field containing ( stays part of its frame."""
    frame = build_frame(IMEI, "BP05", "note (a")
    scanner = FrameScanner()
    assert scanner.feed(frame) == [frame]
    assert scanner.discarded == 0


def test_scanner_overflow_clears_buffer():
    """An unterminated frame past the bound is dropped."""
    scanner = FrameScanner(max_buffer_size=32)
    assert scanner.feed(b"(" + b"1" * 40) == []
    assert scanner.pending == 0
    assert scanner.discarded == 41


def test_scanner_overflow_resyncs_to_next_start():
    frame = build_frame(IMEI, "BP00")
    scanner = FrameScanner(max_buffer_size=32)
    assert scanner.feed(b"(" + b"x" * 40 + frame[:5]) == []
    assert scanner.pending == 5
    assert scanner.feed(frame[5:]) == [frame]


def test_scanner_bounded_under_flood():
    scanner = FrameScanner(max_buffer_size=64)
    for _ in range(100):
        scanner.feed(b"(" + b"z" * 50)
        assert scanner.pending <= 64


def test_scanner_reset():
    scanner = FrameScanner()
    scanner.feed(b"(123")
    scanner.reset()
    assert scanner.pending == 0


def test_scanner_rejects_tiny_bound():
    with pytest.raises(ValueError):
        FrameScanner(max_buffer_size=1)


def test_scanner_default_bound():
    assert FrameScanner().max_buffer_size == DEFAULT_MAX_BUFFER_SIZE
