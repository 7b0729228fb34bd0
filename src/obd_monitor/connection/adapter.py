"""Discovery of nearby ELM327 adapters."""

import logging
from typing import Optional, List
from dataclasses import dataclass
from enum import Enum

import serial.tools.list_ports
from bleak import BleakScanner
from bleak.exc import BleakError

from ..models.config import DEFAULT_DISCOVERY_TIMEOUT
from .ble_transport import BleAdapter

logger = logging.getLogger(__name__)


class AdapterType(str, Enum):
    """Type of OBD2 adapter."""
    USB_ELM327 = "USB ELM327"
    BLUETOOTH_ELM327 = "Bluetooth ELM327"
    BLE_DEVICE = "BLE device"
    UNKNOWN = "Unknown"


@dataclass
class AdapterInfo:
    """Information about a detected OBD2 adapter."""
    port: str
    description: str
    adapter_type: AdapterType
    manufacturer: str = ""
    rssi: Optional[int] = None

    @property
    def display_name(self) -> str:
        """Human-readable display name."""
        return f"{self.adapter_type.value} on {self.port}"

    def __str__(self) -> str:
        return self.display_name


class AdapterDetector:
    """Lists serial ports and BLE devices that may be OBD2 adapters."""

    # Keywords that indicate an ELM327 adapter
    ELM327_KEYWORDS = [
        "elm327", "elm 327", "obd", "obdii", "obd2", "obd-ii", "vlink", "vgate", "veepeak",
    ]

    # Bluetooth serial port patterns
    BLUETOOTH_PATTERNS = [
        "bluetooth", "rfcomm", "bthenum", "bth",
    ]

    SERIAL_KEYWORDS = [
        "usb", "serial", "uart", "ftdi", "prolific", "ch340", "cp210", "silicon labs",
    ]

    @classmethod
    def detect_serial(cls) -> List[AdapterInfo]:
        """List serial ports, best adapter candidates first."""
        adapters = [cls._analyze_port(port) for port in serial.tools.list_ports.comports()]
        rank = {
            AdapterType.USB_ELM327: 0,
            AdapterType.BLUETOOTH_ELM327: 1,
            AdapterType.UNKNOWN: 2,
        }
        return sorted(adapters, key=lambda a: rank.get(a.adapter_type, 3))

    @classmethod
    def detect_bluetooth(
        cls,
        adapter: Optional[BleAdapter] = None,
        timeout: float = DEFAULT_DISCOVERY_TIMEOUT,
    ) -> List[AdapterInfo]:
        """
        Scan for BLE devices.

        Args:
            adapter: Controller to scan with (system default if None)
            timeout: Scan window in seconds

        Returns:
            Devices ordered by signal strength, likely adapters first
        """
        ble = adapter or BleAdapter()
        ble.power_on()
        try:
            found = ble.run(
                BleakScanner.discover(timeout=timeout, return_adv=True, **ble.bleak_kwargs()),
                timeout=timeout + 5.0,
            )
        except (BleakError, OSError) as e:
            logger.error(f"Bluetooth scan failed: {e}")
            return []
        finally:
            if adapter is None:
                ble.power_off()

        devices = []
        for device, adv in found.values():
            name = (device.name or getattr(adv, "local_name", None) or "").strip()
            likely = any(kw in name.lower() for kw in cls.ELM327_KEYWORDS)
            devices.append(AdapterInfo(
                port=device.address,
                description=name or "-",
                adapter_type=AdapterType.BLUETOOTH_ELM327 if likely else AdapterType.BLE_DEVICE,
                rssi=getattr(adv, "rssi", None),
            ))

        devices.sort(key=lambda a: (
            a.adapter_type != AdapterType.BLUETOOTH_ELM327,
            -(a.rssi if a.rssi is not None else -999),
        ))
        return devices

    @classmethod
    def _analyze_port(cls, port) -> AdapterInfo:
        """Classify a serial port."""
        description = port.description or ""
        hwid = port.hwid or ""
        manufacturer = port.manufacturer or ""
        all_info = f"{description} {hwid} {manufacturer}".lower()

        has_elm327_keyword = any(kw in all_info for kw in cls.ELM327_KEYWORDS)
        is_bluetooth = any(pattern in all_info for pattern in cls.BLUETOOTH_PATTERNS)
        is_serial = any(kw in all_info for kw in cls.SERIAL_KEYWORDS)

        if is_bluetooth:
            adapter_type = AdapterType.BLUETOOTH_ELM327
        elif has_elm327_keyword or is_serial:
            adapter_type = AdapterType.USB_ELM327
        else:
            adapter_type = AdapterType.UNKNOWN

        return AdapterInfo(
            port=port.device,
            description=description,
            adapter_type=adapter_type,
            manufacturer=manufacturer,
        )
