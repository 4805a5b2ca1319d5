"""Command codes, display names, and the command registry.

Every packet carries a 4-character command code. ``BPxx`` codes are sent
by the device; ``BRxx`` codes are server responses. The registry maps each
code to its display name and field decoder and is built once at import.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Callable, Mapping, Sequence

from ..models.telemetry import Payload, RawFallback
from .decoders import (
    decode_raw,
    decode_login,
    decode_position,
    decode_alarm,
    decode_gps_info,
    decode_lbs_info,
    decode_step_count,
    decode_heart_rate,
)

logger = logging.getLogger(__name__)

UNKNOWN_COMMAND_NAME = "Unknown"


class Command(str, Enum):
    """Command codes."""

    HEARTBEAT = "BP00"
    LOGIN = "BP01"
    POSITION = "BP02"
    ALARM = "BP03"
    STATUS = "BP04"
    STRING_INFO = "BP05"
    GPS_INFO = "BP10"
    LBS_INFO = "BP11"
    WIFI_INFO = "BP12"
    ADDRESS_INFO = "BP13"
    TIME_INFO = "BP15"
    STEP_COUNT = "BP20"
    SLEEP_INFO = "BP21"
    HEART_RATE = "BP22"
    BLOOD_PRESSURE = "BP23"
    TEMPERATURE = "BP24"
    BLOOD_OXYGEN = "BP25"
    RESPONSE = "BR00"
    CONFIG_RESPONSE = "BR01"


Decoder = Callable[[Sequence[str]], Payload]


@dataclass(frozen=True)
class CommandDescriptor:
    """Display name and field decoder for one command code."""

    code: str
    display_name: str
    decoder: Decoder = decode_raw

    def decode(self, fields: Sequence[str]) -> Payload:
        return self.decoder(fields)


def _build_registry() -> Mapping[str, CommandDescriptor]:
    entries = [
        (Command.HEARTBEAT, "Heartbeat", decode_raw),
        (Command.LOGIN, "Login", decode_login),
        (Command.POSITION, "Position Report", decode_position),
        (Command.ALARM, "Alarm Report", decode_alarm),
        (Command.STATUS, "Status Report", decode_raw),
        (Command.STRING_INFO, "String Info", decode_raw),
        (Command.GPS_INFO, "GPS Info", decode_gps_info),
        (Command.LBS_INFO, "LBS Info", decode_lbs_info),
        (Command.WIFI_INFO, "WiFi Info", decode_raw),
        (Command.ADDRESS_INFO, "Address Info", decode_raw),
        (Command.TIME_INFO, "Time Info", decode_raw),
        (Command.STEP_COUNT, "Step Count", decode_step_count),
        (Command.SLEEP_INFO, "Sleep Info", decode_raw),
        (Command.HEART_RATE, "Heart Rate", decode_heart_rate),
        (Command.BLOOD_PRESSURE, "Blood Pressure", decode_raw),
        (Command.TEMPERATURE, "Temperature", decode_raw),
        (Command.BLOOD_OXYGEN, "Blood Oxygen", decode_raw),
        (Command.RESPONSE, "Response to command", decode_raw),
        (Command.CONFIG_RESPONSE, "Configuration response", decode_raw),
    ]
    return MappingProxyType({
        cmd.value: CommandDescriptor(cmd.value, name, decoder)
        for cmd, name, decoder in entries
    })


COMMAND_REGISTRY: Mapping[str, CommandDescriptor] = _build_registry()


def is_known_command(code: str) -> bool:
    return code in COMMAND_REGISTRY


def get_command_name(code: str) -> str:
    """Return the display name for ``code``, or ``"Unknown"``."""
    descriptor = COMMAND_REGISTRY.get(code)
    return descriptor.display_name if descriptor else UNKNOWN_COMMAND_NAME


def supported_commands() -> dict[str, str]:
    """Code -> display name for every registered command."""
    return {code: d.display_name for code, d in COMMAND_REGISTRY.items()}


def decode_payload(command: str, fields: Sequence[str]) -> Payload:
    """Decode packet fields according to the command code.

    Unregistered codes are logged and returned as a :class:`RawFallback`
    with ``known=False``; this never raises.
    """
    descriptor = COMMAND_REGISTRY.get(command)
    if descriptor is None:
        logger.warning("Unknown command type: %s", command)
        return RawFallback(raw_data=tuple(fields), known=False)
    return descriptor.decode(fields)
