"""Per-command field decoders.

Each decoder takes the raw field tokens of a packet (everything between
the command code and the checksum) and returns a typed payload. Decoders
never raise: missing strings default to ``"Unknown"`` and unparseable
numbers to zero.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from ..models.telemetry import (
    Login,
    PositionReport,
    AlarmReport,
    GpsInfo,
    LbsInfo,
    StepCount,
    HeartRate,
    RawFallback,
)
from ..utils.coordinates import decode_coordinate
from ..utils.numbers import parse_float, parse_int

POSITION_MIN_FIELDS = 10


def _field(fields: Sequence[str], index: int) -> str | None:
    """Return ``fields[index]``, or None if absent or empty."""
    if index < len(fields) and fields[index]:
        return fields[index]
    return None


def _text(fields: Sequence[str], index: int, default: str = "Unknown") -> str:
    value = _field(fields, index)
    return value if value is not None else default


def decode_raw(fields: Sequence[str]) -> RawFallback:
    return RawFallback(raw_data=tuple(fields))


def decode_login(fields: Sequence[str]) -> Login:
    """Decode BP01: device type, firmware version, protocol version."""
    return Login(
        device_type=_text(fields, 0),
        firmware_version=_text(fields, 1),
        protocol=_text(fields, 2),
    )


def decode_position(fields: Sequence[str]) -> PositionReport | RawFallback:
    """Decode BP02.

    Field layout::

        datetime, fix(A/V), lat, N/S, lon, E/W, speed, course,
        altitude, satellites[, hdop]

    Reports with fewer than ten fields are passed through raw.
    """
    if len(fields) < POSITION_MIN_FIELDS:
        return decode_raw(fields)

    return PositionReport(
        datetime=fields[0],
        gps_fix="Valid" if fields[1] == "A" else "Invalid",
        latitude=decode_coordinate(fields[2], fields[3]),
        longitude=decode_coordinate(fields[4], fields[5]),
        speed=parse_float(fields[6]),
        course=parse_float(fields[7]),
        altitude=parse_float(fields[8]),
        satellites=parse_int(fields[9]),
        hdop=parse_float(_field(fields, 10)),
    )


def decode_alarm(fields: Sequence[str]) -> AlarmReport:
    """Decode BP03: alarm type, datetime, then optional location tokens."""
    return AlarmReport(
        alarm_type=_text(fields, 0),
        datetime=_field(fields, 1),
        location=tuple(fields[2:]),
    )


def decode_gps_info(fields: Sequence[str]) -> GpsInfo:
    return GpsInfo(
        satellite_count=parse_int(_field(fields, 0)),
        signal_strength=parse_int(_field(fields, 1)),
        accuracy=parse_float(_field(fields, 2)),
    )


def decode_lbs_info(fields: Sequence[str]) -> LbsInfo:
    """Decode BP11: MCC, MNC, LAC, cell ID, signal strength."""
    return LbsInfo(
        mcc=_text(fields, 0),
        mnc=_text(fields, 1),
        lac=_text(fields, 2),
        cell_id=_text(fields, 3),
        signal_strength=parse_int(_field(fields, 4)),
    )


def decode_step_count(fields: Sequence[str]) -> StepCount:
    return StepCount(
        step_count=parse_int(_field(fields, 0)),
        calories=parse_float(_field(fields, 1)),
        distance=parse_float(_field(fields, 2)),
    )


def decode_heart_rate(fields: Sequence[str]) -> HeartRate:
    """Decode BP22. A missing measure time is stamped with the current UTC time."""
    measure_time = _field(fields, 1)
    if measure_time is None:
        measure_time = datetime.now(timezone.utc).isoformat()
    return HeartRate(
        heart_rate=parse_int(_field(fields, 0)),
        measure_time=measure_time,
    )
