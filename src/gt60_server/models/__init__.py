"""Data models for decoded telemetry payloads."""

from .telemetry import (
    TelemetryPayload,
    Login,
    PositionReport,
    AlarmReport,
    GpsInfo,
    LbsInfo,
    StepCount,
    HeartRate,
    RawFallback,
    Payload,
    PAYLOAD_TYPES,
)
