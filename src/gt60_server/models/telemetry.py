"""Typed telemetry payloads decoded from GT60 packet fields.

Each payload kind is a frozen dataclass tagged with a ``kind`` class
attribute. Commands without a dedicated decoder, and unrecognized
commands, produce :class:`RawFallback`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import ClassVar, Union


@dataclass(frozen=True)
class TelemetryPayload:
    """Base class for decoded payloads."""

    kind: ClassVar[str] = ""

    def to_dict(self) -> dict:
        d = asdict(self)
        d["kind"] = self.kind
        return d


@dataclass(frozen=True)
class Login(TelemetryPayload):
    """BP01 login handshake."""

    kind: ClassVar[str] = "login"
    device_type: str = "Unknown"
    firmware_version: str = "Unknown"
    protocol: str = "Unknown"


@dataclass(frozen=True)
class PositionReport(TelemetryPayload):
    """BP02 GPS position fix."""

    kind: ClassVar[str] = "position"
    datetime: str = ""
    gps_fix: str = "Invalid"
    latitude: float = 0.0
    longitude: float = 0.0
    speed: float = 0.0
    course: float = 0.0
    altitude: float = 0.0
    satellites: int = 0
    hdop: float = 0.0


@dataclass(frozen=True)
class AlarmReport(TelemetryPayload):
    """BP03 alarm, with any trailing location fields kept raw."""

    kind: ClassVar[str] = "alarm"
    alarm_type: str = "Unknown"
    datetime: str | None = None
    location: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["location"] = list(self.location)
        return d


@dataclass(frozen=True)
class GpsInfo(TelemetryPayload):
    """BP10 GPS receiver status."""

    kind: ClassVar[str] = "gps_info"
    satellite_count: int = 0
    signal_strength: int = 0
    accuracy: float = 0.0


@dataclass(frozen=True)
class LbsInfo(TelemetryPayload):
    """BP11 cell tower (location based service) info."""

    kind: ClassVar[str] = "lbs_info"
    mcc: str = "Unknown"
    mnc: str = "Unknown"
    lac: str = "Unknown"
    cell_id: str = "Unknown"
    signal_strength: int = 0


@dataclass(frozen=True)
class StepCount(TelemetryPayload):
    """BP20 pedometer reading."""

    kind: ClassVar[str] = "step_count"
    step_count: int = 0
    calories: float = 0.0
    distance: float = 0.0


@dataclass(frozen=True)
class HeartRate(TelemetryPayload):
    """BP22 heart rate measurement."""

    kind: ClassVar[str] = "heart_rate"
    heart_rate: int = 0
    measure_time: str = ""


@dataclass(frozen=True)
class RawFallback(TelemetryPayload):
    """Undecoded fields, for commands without a dedicated decoder."""

    kind: ClassVar[str] = "raw"
    raw_data: tuple[str, ...] = field(default_factory=tuple)
    known: bool = True

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["raw_data"] = list(self.raw_data)
        return d


Payload = Union[
    Login,
    PositionReport,
    AlarmReport,
    GpsInfo,
    LbsInfo,
    StepCount,
    HeartRate,
    RawFallback,
]

PAYLOAD_TYPES: tuple[type[TelemetryPayload], ...] = Payload.__args__
