"""asyncio TCP listener for GT60 devices.

Each accepted connection gets its own :class:`SessionHandler`; a single
coroutine per connection reads arrivals and feeds them to it, so frames
from one device are processed strictly in order.

Usage::

    server = TrackerServer(ServerConfig(tcp_port=8080))
    thread = server.run_in_thread()
    ...
    server.stop_thread()
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field

from ..config import ServerConfig
from .session import FrameResult, ResultSink, SessionHandler, log_result

logger = logging.getLogger(__name__)

STARTUP_TIMEOUT_S = 5.0


@dataclass
class ServerStats:
    """Counters exposed on the status surface."""

    started_at: float = field(default_factory=time.time)
    active_connections: int = 0
    total_connections: int = 0
    packets_received: int = 0
    parse_errors: int = 0

    @property
    def uptime(self) -> float:
        return time.time() - self.started_at

    def to_dict(self) -> dict:
        return {
            "active_connections": self.active_connections,
            "total_connections": self.total_connections,
            "packets_received": self.packets_received,
            "parse_errors": self.parse_errors,
        }


def _format_peer(peername) -> str:
    if isinstance(peername, tuple) and len(peername) >= 2:
        return f"{peername[0]}:{peername[1]}"
    return str(peername or "unknown")


class TrackerServer:
    """Accepts device connections and runs one packet session per connection.

    Args:
        config: Listener settings. Defaults to :class:`ServerConfig`.
        sink: Optional receiver for every :class:`FrameResult`; when None,
            results are logged.
    """

    def __init__(
        self,
        config: ServerConfig | None = None,
        sink: ResultSink | None = None,
    ) -> None:
        self._config = config or ServerConfig()
        self._sink = sink
        self._server: asyncio.AbstractServer | None = None
        self._writers: set[asyncio.StreamWriter] = set()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self.stats = ServerStats()

    @property
    def config(self) -> ServerConfig:
        return self._config

    @property
    def running(self) -> bool:
        return self._server is not None and self._server.is_serving()

    @property
    def port(self) -> int:
        """The bound TCP port (useful when configured with port 0)."""
        if self._server is not None and self._server.sockets:
            return self._server.sockets[0].getsockname()[1]
        return self._config.tcp_port

    async def start(self) -> None:
        """Bind and start accepting connections on the running loop."""
        if self._server is not None:
            return
        self._server = await asyncio.start_server(
            self._handle_connection,
            host=self._config.tcp_host,
            port=self._config.tcp_port,
        )
        self.stats = ServerStats()
        logger.info(
            "GT60 TCP server listening on %s:%d", self._config.tcp_host, self.port
        )

    async def serve_forever(self) -> None:
        await self.start()
        await self._server.serve_forever()

    async def close(self) -> None:
        """Stop accepting, close open device connections, and wait for shutdown."""
        if self._server is None:
            return
        server, self._server = self._server, None
        server.close()
        for writer in list(self._writers):
            writer.close()
        await server.wait_closed()
        logger.info("TCP server closed")

    def run_in_thread(self, timeout: float = STARTUP_TIMEOUT_S) -> threading.Thread:
        """Run the listener on its own event loop in a daemon thread.

        Blocks until the socket is bound.

        Raises:
            ConnectionError: If the listener could not bind.
            RuntimeError: If startup did not finish within ``timeout``.
        """
        ready = threading.Event()
        startup_error: list[BaseException] = []

        def runner() -> None:
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)
            self._loop = loop
            try:
                loop.run_until_complete(self.start())
            except OSError as e:
                startup_error.append(e)
                ready.set()
                loop.close()
                return
            ready.set()
            try:
                loop.run_forever()
            finally:
                loop.run_until_complete(self.close())
                loop.close()
                self._loop = None

        thread = threading.Thread(target=runner, name="gt60-tcp", daemon=True)
        thread.start()
        if not ready.wait(timeout):
            raise RuntimeError("TCP listener did not start in time")
        if startup_error:
            raise ConnectionError(
                f"Could not listen on {self._config.tcp_host}:{self._config.tcp_port}: "
                f"{startup_error[0]}"
            ) from startup_error[0]
        self._thread = thread
        return thread

    def stop_thread(self, timeout: float = STARTUP_TIMEOUT_S) -> None:
        """Stop a listener started with :meth:`run_in_thread`."""
        if self._thread is None:
            return
        loop = self._loop
        if loop is not None:
            loop.call_soon_threadsafe(loop.stop)
        self._thread.join(timeout)
        self._thread = None

    def _make_sink(self, peer: str) -> ResultSink:
        def sink(result: FrameResult) -> None:
            if result.ok:
                self.stats.packets_received += 1
            else:
                self.stats.parse_errors += 1
            if self._sink is None:
                log_result(result, peer)
            else:
                self._sink(result)

        return sink

    async def _handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        peer = _format_peer(writer.get_extra_info("peername"))
        logger.info("New GT60 device connected: %s", peer)
        self._writers.add(writer)
        self.stats.active_connections += 1
        self.stats.total_connections += 1

        session = SessionHandler(
            writer.write,
            sink=self._make_sink(peer),
            peer=peer,
            max_buffer_size=self._config.max_buffer_size,
        )
        try:
            while True:
                data = await reader.read(self._config.read_size)
                if not data:
                    break
                logger.debug("[%s] Incoming data: %r", peer, data)
                session.feed(data)
                await writer.drain()
        except ConnectionError as e:
            logger.warning("[%s] Socket error: %s", peer, e)
        finally:
            session.close()
            self._writers.discard(writer)
            self.stats.active_connections -= 1
            writer.close()
            logger.info("GT60 device disconnected: %s", peer)
