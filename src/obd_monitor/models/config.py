"""Static configuration handed to the monitor before it starts."""

from typing import Optional, List
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator

from .command import CommandCode, DEFAULT_MONITOR_COMMANDS
from .pid import resolve_commands

DEFAULT_EXCHANGE_TIMEOUT = 3.0
DEFAULT_DISCOVERY_TIMEOUT = 10.0
DEFAULT_POLL_INTERVAL = 2.0

# Common ELM327 BLE profile
DEFAULT_BLE_SERVICE_UUID = "0000fff0-0000-1000-8000-00805f9b34fb"
DEFAULT_BLE_WRITE_UUID = "0000fff2-0000-1000-8000-00805f9b34fb"
DEFAULT_BLE_READ_UUID = "0000fff1-0000-1000-8000-00805f9b34fb"


class TransportKind(str, Enum):
    """Physical link used to reach the adapter."""
    SERIAL = "serial"
    BLUETOOTH = "bluetooth"


class MonitorConfig(BaseModel):
    """Everything needed to build a transport and start polling."""

    transport: TransportKind = Field(default=TransportKind.SERIAL, description="Link type")

    port: str = Field(default="/dev/ttyUSB0", description="Serial port path")
    baudrate: int = Field(default=9600, gt=0, description="Serial baud rate")

    address: Optional[str] = Field(default=None, description="Bluetooth device address")
    adapter: Optional[str] = Field(default=None, description="Local Bluetooth controller (e.g. 'hci0')")
    service_uuid: str = Field(default=DEFAULT_BLE_SERVICE_UUID, description="GATT service")
    write_uuid: str = Field(default=DEFAULT_BLE_WRITE_UUID, description="Command characteristic")
    read_uuid: str = Field(default=DEFAULT_BLE_READ_UUID, description="Response characteristic")
    discovery_timeout: float = Field(default=DEFAULT_DISCOVERY_TIMEOUT, gt=0, description="BLE scan window in seconds")

    pids: List[str] = Field(
        default_factory=lambda: list(DEFAULT_MONITOR_COMMANDS),
        description="Commands to poll",
    )
    interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0, description="Polling interval in seconds")
    timeout: float = Field(default=DEFAULT_EXCHANGE_TIMEOUT, gt=0, description="Exchange timeout in seconds")

    @field_validator("pids", mode="before")
    @classmethod
    def _resolve_pids(cls, value):
        if isinstance(value, str):
            value = value.split(",")
        return resolve_commands([str(v) for v in value])

    @field_validator("pids")
    @classmethod
    def _require_pids(cls, value: List[str]) -> List[CommandCode]:
        if not value:
            raise ValueError("at least one PID must be monitored")
        return [CommandCode(v) for v in value]

    @model_validator(mode="after")
    def _check_bluetooth_address(self) -> "MonitorConfig":
        if self.transport == TransportKind.BLUETOOTH and not self.address:
            raise ValueError("Bluetooth device address must be provided when using Bluetooth")
        return self

    @property
    def use_bluetooth(self) -> bool:
        return self.transport == TransportKind.BLUETOOTH

    @property
    def target(self) -> str:
        """Human-readable description of the link target."""
        if self.use_bluetooth:
            return f"Bluetooth {self.address}"
        return f"{self.port} @ {self.baudrate} baud"
