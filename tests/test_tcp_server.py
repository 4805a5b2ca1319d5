"""End-to-end tests for the asyncio TCP listener."""

import asyncio
import socket

from gt60_server.config import ServerConfig
from gt60_server.protocol.framing import build_ack, build_frame
from gt60_server.transport.tcp_server import TrackerServer

IMEI = "123456789012345"
ACK = build_ack(IMEI)


def _config() -> ServerConfig:
    return ServerConfig(tcp_host="127.0.0.1", tcp_port=0)


async def _wait_for(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


def test_ack_for_split_frame():
    """A frame written in two pieces is acknowledged once."""
    results = []

    async def scenario():
        server = TrackerServer(_config(), sink=results.append)
        await server.start()
        try:
            reader, writer = await asyncio.open_connection("127.0.0.1", server.port)
            frame = build_frame(IMEI, "BP02", "250101120000", "A", "3116.7845", "N",
                                "12122.7845", "E", "045.5", "180", "150", "12", "0.8")
            writer.write(frame[:15])
            await writer.drain()
            await asyncio.sleep(0.05)
            writer.write(frame[15:])
            await writer.drain()

            ack = await asyncio.wait_for(reader.readexactly(len(ACK)), 2)
            writer.close()
            await _wait_for(lambda: server.stats.active_connections == 0)
            return ack, server.stats
        finally:
            await server.close()

    ack, stats = asyncio.run(scenario())
    assert ack == ACK
    assert len(results) == 1
    assert results[0].payload.satellites == 12
    assert stats.packets_received == 1
    assert stats.total_connections == 1


def test_merged_frames_get_one_ack_each():
    async def scenario():
        server = TrackerServer(_config(), sink=lambda r: None)
        await server.start()
        try:
            reader, writer = await asyncio.open_connection("127.0.0.1", server.port)
            writer.write(
                build_frame(IMEI, "BP00")
                + b"(bad)"
                + build_frame(IMEI, "BP20", "1000", "45.5", "0.8")
            )
            await writer.drain()
            data = await asyncio.wait_for(reader.readexactly(2 * len(ACK)), 2)
            writer.close()
            await _wait_for(lambda: server.stats.active_connections == 0)
            return data, server.stats
        finally:
            await server.close()

    data, stats = asyncio.run(scenario())
    assert data == ACK + ACK
    assert stats.packets_received == 2
    assert stats.parse_errors == 1


def test_connections_are_independent():
    """A partial frame on one connection does not affect another."""
    other = "999999999999999"

    async def scenario():
        server = TrackerServer(_config(), sink=lambda r: None)
        await server.start()
        try:
            r1, w1 = await asyncio.open_connection("127.0.0.1", server.port)
            r2, w2 = await asyncio.open_connection("127.0.0.1", server.port)
            w1.write(b"(12345")
            w2.write(build_frame(other, "BP00"))
            await w1.drain()
            await w2.drain()
            ack2 = await asyncio.wait_for(r2.readexactly(len(build_ack(other))), 2)
            await _wait_for(lambda: server.stats.active_connections == 2)
            w1.close()
            w2.close()
            await _wait_for(lambda: server.stats.active_connections == 0)
            return ack2
        finally:
            await server.close()

    assert asyncio.run(scenario()) == build_ack(other)


def test_run_in_thread():
    server = TrackerServer(_config(), sink=lambda r: None)
    server.run_in_thread()
    try:
        assert server.running
        with socket.create_connection(("127.0.0.1", server.port), timeout=2) as sock:
            sock.sendall(build_frame(IMEI, "BP00"))
            data = b""
            while len(data) < len(ACK):
                chunk = sock.recv(64)
                if not chunk:
                    break
                data += chunk
        assert data == ACK
    finally:
        server.stop_thread()
    assert not server.running


def test_port_before_start_is_configured_port():
    server = TrackerServer(ServerConfig(tcp_port=9100))
    assert server.port == 9100
    assert not server.running
