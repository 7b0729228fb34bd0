"""ELM327 over a Bluetooth Low-Energy GATT link."""

import asyncio
import logging
import threading
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional, Tuple

from bleak import BleakClient, BleakScanner
from bleak.exc import BleakError

from ..models.command import CommandCode
from ..models.config import (
    DEFAULT_EXCHANGE_TIMEOUT,
    DEFAULT_DISCOVERY_TIMEOUT,
    DEFAULT_BLE_SERVICE_UUID,
    DEFAULT_BLE_WRITE_UUID,
    DEFAULT_BLE_READ_UUID,
)
from .base import Transport, clean_response, PROMPT
from .errors import (
    ConnectError,
    DeviceNotFoundError,
    ExchangeError,
    ExchangeTimeoutError,
    CloseError,
)

logger = logging.getLogger(__name__)


class BleAdapter:
    """
    Handle on a local Bluetooth controller.

    bleak is asyncio-only, so the adapter owns an event loop running in a
    background thread and runs coroutines on it for synchronous callers.
    """

    def __init__(self, name: Optional[str] = None):
        """
        Args:
            name: Controller to use (e.g. 'hci0'); None selects the system default
        """
        self._name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def is_powered(self) -> bool:
        """Check if the adapter event loop is running."""
        return self._thread is not None and self._thread.is_alive()

    def bleak_kwargs(self) -> dict:
        """Keyword arguments selecting this controller in bleak calls."""
        return {"adapter": self._name} if self._name else {}

    def power_on(self) -> None:
        """Start the event loop thread if it is not running yet."""
        with self._lock:
            if self.is_powered:
                return
            ready = threading.Event()
            self._loop = asyncio.new_event_loop()
            self._thread = threading.Thread(
                target=self._run_loop,
                args=(self._loop, ready),
                name=f"ble-{self._name or 'default'}",
                daemon=True,
            )
            self._thread.start()
        ready.wait(timeout=1.0)
        logger.debug(f"BLE adapter {self._name or 'default'} powered on")

    def power_off(self) -> None:
        """Stop the event loop thread."""
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None
        if loop is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        if thread is not None:
            thread.join(timeout=2.0)
        loop.close()
        logger.debug(f"BLE adapter {self._name or 'default'} powered off")

    def run(self, coro, timeout: float):
        """
        Run a coroutine on the adapter loop and wait for its result.

        Raises:
            TimeoutError: If the coroutine does not finish in time (it is cancelled)
        """
        if self._loop is None:
            coro.close()
            raise RuntimeError("BLE adapter is not powered on")
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            future.cancel()
            raise TimeoutError(f"BLE operation did not finish within {timeout:.1f}s")

    @staticmethod
    def _run_loop(loop: asyncio.AbstractEventLoop, ready: threading.Event) -> None:
        asyncio.set_event_loop(loop)
        ready.set()
        loop.run_forever()


class BluetoothTransport(Transport):
    """Talks to an ELM327 adapter through BLE GATT characteristics."""

    CONNECT_TIMEOUT = 10.0
    # Used when the response characteristic cannot notify
    READ_POLL_INTERVAL = 0.05
    # Extra time allowed for a coroutine to settle after its own timeout
    LOOP_MARGIN = 1.0

    def __init__(
        self,
        address: str,
        adapter: BleAdapter,
        service_uuid: str = DEFAULT_BLE_SERVICE_UUID,
        write_uuid: str = DEFAULT_BLE_WRITE_UUID,
        read_uuid: str = DEFAULT_BLE_READ_UUID,
        timeout: float = DEFAULT_EXCHANGE_TIMEOUT,
        discovery_timeout: float = DEFAULT_DISCOVERY_TIMEOUT,
    ):
        """
        Initialize a Bluetooth transport.

        Args:
            address: Target device address (compared case-insensitively)
            adapter: Local controller handle, powered off when the transport closes
            service_uuid: GATT service carrying the command characteristics
            write_uuid: Characteristic commands are written to
            read_uuid: Characteristic responses are read or notified from
            timeout: Seconds to wait for the prompt on each exchange
            discovery_timeout: Seconds to scan for the device before giving up
        """
        super().__init__(timeout)
        self._address = address
        self._adapter = adapter
        self._service_uuid = service_uuid.lower()
        self._write_uuid = write_uuid.lower()
        self._read_uuid = read_uuid.lower()
        self._discovery_timeout = discovery_timeout

        self._client: Optional[BleakClient] = None
        self._notifying = False
        self._rx_buffer = bytearray()
        self._rx_event: Optional[asyncio.Event] = None

    @property
    def description(self) -> str:
        return f"Bluetooth device {self._address}"

    @property
    def address(self) -> str:
        return self._address

    @property
    def adapter(self) -> BleAdapter:
        return self._adapter

    def _open(self) -> None:
        self._adapter.power_on()
        try:
            self._adapter.run(
                self._connect_async(),
                timeout=self._discovery_timeout + self.CONNECT_TIMEOUT + self.LOOP_MARGIN,
            )
        except ConnectError:
            self._adapter.power_off()
            raise
        except (BleakError, OSError, TimeoutError, asyncio.TimeoutError) as e:
            self._adapter.power_off()
            raise ConnectError(f"Failed to connect to {self._address}: {e}") from e

    async def _connect_async(self) -> None:
        device = await self._find_device()
        if device is None:
            raise DeviceNotFoundError(
                f"Device {self._address} not found within {self._discovery_timeout:.0f}s"
            )

        logger.info(f"Found {device.address}, connecting...")
        client = BleakClient(device, **self._adapter.bleak_kwargs())
        await client.connect(timeout=self.CONNECT_TIMEOUT)

        try:
            _, read_char = self._discover_characteristics(client)
            self._rx_buffer.clear()
            self._rx_event = asyncio.Event()
            self._notifying = bool(
                {"notify", "indicate"} & {p.lower() for p in read_char.properties}
            )
            if self._notifying:
                await client.start_notify(self._read_uuid, self._on_notify)
        except Exception:
            await client.disconnect()
            raise

        self._client = client

    async def _find_device(self):
        """Scan until an advertisement matches the target address."""
        target = self._address.lower()

        def _matches(device, advertisement_data) -> bool:
            return (device.address or "").lower() == target

        return await BleakScanner.find_device_by_filter(
            _matches,
            timeout=self._discovery_timeout,
            **self._adapter.bleak_kwargs(),
        )

    def _discover_characteristics(self, client: BleakClient) -> Tuple[object, object]:
        """Look up the configured write and read characteristics."""
        service = client.services.get_service(self._service_uuid)
        if service is None:
            raise ConnectError(f"GATT service {self._service_uuid} not found on {self._address}")

        write_char = service.get_characteristic(self._write_uuid)
        if write_char is None:
            raise ConnectError(f"Write characteristic {self._write_uuid} not found")

        read_char = service.get_characteristic(self._read_uuid)
        if read_char is None:
            raise ConnectError(f"Read characteristic {self._read_uuid} not found")

        return write_char, read_char

    def _on_notify(self, _sender, data: bytearray) -> None:
        if not data:
            return
        self._rx_buffer.extend(data)
        if self._rx_event is not None:
            self._rx_event.set()

    def _transact(self, command: CommandCode) -> str:
        if self._client is None:
            raise ExchangeError("Bluetooth link is not open")

        logger.debug(f"TX {command}")
        try:
            raw = self._adapter.run(
                self._exchange_async(command),
                timeout=self._timeout + self.LOOP_MARGIN,
            )
        except TimeoutError as e:
            raise ExchangeTimeoutError(
                f"No prompt from adapter within {self._timeout:.1f}s for {command}"
            ) from e
        except RuntimeError as e:
            raise ExchangeError(str(e)) from e

        response = clean_response(raw, command)
        logger.debug(f"RX {command} -> {response!r}")
        return response

    async def _exchange_async(self, command: CommandCode) -> bytes:
        self._rx_buffer.clear()
        if self._rx_event is not None:
            self._rx_event.clear()

        try:
            await self._client.write_gatt_char(self._write_uuid, command.encode_line(), response=False)
        except (BleakError, OSError) as e:
            raise ExchangeError(f"Write failed for {command}: {e}") from e

        try:
            return await asyncio.wait_for(self._read_until_prompt(), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise ExchangeTimeoutError(
                f"No prompt from adapter within {self._timeout:.1f}s for {command}"
            ) from e
        except (BleakError, OSError) as e:
            raise ExchangeError(f"Read failed for {command}: {e}") from e

    async def _read_until_prompt(self) -> bytes:
        if self._notifying:
            while PROMPT not in self._rx_buffer:
                self._rx_event.clear()
                await self._rx_event.wait()
            return bytes(self._rx_buffer)

        buf = bytearray()
        while PROMPT not in buf:
            data = await self._client.read_gatt_char(self._read_uuid)
            if data:
                buf.extend(data)
            else:
                await asyncio.sleep(self.READ_POLL_INTERVAL)
        return bytes(buf)

    def _release(self) -> None:
        client, self._client = self._client, None
        try:
            if client is not None:
                self._adapter.run(self._disconnect_async(client), timeout=self.CONNECT_TIMEOUT)
        except (BleakError, OSError, TimeoutError, asyncio.TimeoutError) as e:
            raise CloseError(f"Error disconnecting {self._address}: {e}") from e
        finally:
            self._notifying = False
            self._adapter.power_off()

    async def _disconnect_async(self, client: BleakClient) -> None:
        if self._notifying:
            try:
                await client.stop_notify(self._read_uuid)
            except (BleakError, OSError) as e:
                logger.warning(f"Error stopping notifications: {e}")
        await client.disconnect()
