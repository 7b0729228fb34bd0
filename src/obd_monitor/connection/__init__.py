"""Links to ELM327 adapters."""

from .base import Transport, TransportState, clean_response
from .errors import (
    TransportError,
    ConnectError,
    DeviceNotFoundError,
    ExchangeError,
    ExchangeTimeoutError,
    CloseError,
)
from .serial_transport import SerialTransport
from .ble_transport import BleAdapter, BluetoothTransport
from .adapter import AdapterDetector, AdapterInfo, AdapterType
from .factory import create_transport

__all__ = [
    "Transport",
    "TransportState",
    "clean_response",
    "TransportError",
    "ConnectError",
    "DeviceNotFoundError",
    "ExchangeError",
    "ExchangeTimeoutError",
    "CloseError",
    "SerialTransport",
    "BleAdapter",
    "BluetoothTransport",
    "AdapterDetector",
    "AdapterInfo",
    "AdapterType",
    "create_transport",
]
