"""ELM327 OBD2 monitor over serial and Bluetooth LE links."""

__version__ = "0.1.0"

from .commander import Commander
from .connection import (
    Transport,
    SerialTransport,
    BluetoothTransport,
    BleAdapter,
    create_transport,
)
from .models import CommandCode, MonitorConfig
from .polling import PollingEngine, UpdateSink

__all__ = [
    "Commander",
    "Transport",
    "SerialTransport",
    "BluetoothTransport",
    "BleAdapter",
    "create_transport",
    "CommandCode",
    "MonitorConfig",
    "PollingEngine",
    "UpdateSink",
]
