"""Build the transport selected by a MonitorConfig."""

from ..models.config import MonitorConfig
from .base import Transport
from .serial_transport import SerialTransport
from .ble_transport import BleAdapter, BluetoothTransport


def create_transport(config: MonitorConfig) -> Transport:
    """Create an unconnected transport for the configured link."""
    if config.use_bluetooth:
        return BluetoothTransport(
            address=config.address,
            adapter=BleAdapter(config.adapter),
            service_uuid=config.service_uuid,
            write_uuid=config.write_uuid,
            read_uuid=config.read_uuid,
            timeout=config.timeout,
            discovery_timeout=config.discovery_timeout,
        )

    return SerialTransport(
        port=config.port,
        baudrate=config.baudrate,
        timeout=config.timeout,
    )
