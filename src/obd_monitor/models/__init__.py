"""Data models for the OBD monitor."""

from .command import CommandCode
from .pid import PIDInfo, PIDReading, COMMON_PIDS, PID_PRESETS
from .config import MonitorConfig, TransportKind

__all__ = [
    "CommandCode",
    "PIDInfo",
    "PIDReading",
    "COMMON_PIDS",
    "PID_PRESETS",
    "MonitorConfig",
    "TransportKind",
]
