"""Transport layer: per-connection sessions and the TCP listener."""

from .session import FrameResult, SessionHandler, log_result
from .tcp_server import ServerStats, TrackerServer
