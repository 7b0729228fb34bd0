"""ELM327 line protocol over a serial port."""

import time
import logging
from typing import Callable, List, Optional

import serial

from ..models.command import CommandCode, INIT_SEQUENCE
from ..models.config import DEFAULT_EXCHANGE_TIMEOUT
from .base import Transport, clean_response, PROMPT
from .errors import ConnectError, ExchangeError, ExchangeTimeoutError, CloseError

logger = logging.getLogger(__name__)

PortFactory = Callable[..., serial.Serial]


class SerialTransport(Transport):
    """Talks to an ELM327 adapter through a serial port (USB or RFCOMM)."""

    INIT_DELAY = 0.1
    # Short per-read timeout so the exchange deadline is checked often
    READ_TIMEOUT = 0.05

    def __init__(
        self,
        port: str,
        baudrate: int = 9600,
        timeout: float = DEFAULT_EXCHANGE_TIMEOUT,
        port_factory: Optional[PortFactory] = None,
        init_delay: Optional[float] = None,
    ):
        """
        Initialize a serial transport.

        Args:
            port: Serial port name (e.g. '/dev/ttyUSB0', 'COM3')
            baudrate: Baud rate for the serial connection
            timeout: Seconds to wait for the prompt on each exchange
            port_factory: Callable that opens the port (defaults to serial.Serial)
            init_delay: Pause after each initialization command in seconds
        """
        super().__init__(timeout)
        self._port_name = port
        self._baudrate = baudrate
        self._port_factory = port_factory or serial.Serial
        self._init_delay = self.INIT_DELAY if init_delay is None else init_delay
        self._connection: Optional[serial.Serial] = None
        self._init_responses: List[str] = []

    @property
    def description(self) -> str:
        return f"{self._port_name} @ {self._baudrate} baud"

    @property
    def port(self) -> str:
        return self._port_name

    @property
    def baudrate(self) -> int:
        return self._baudrate

    @property
    def init_responses(self) -> List[str]:
        """Responses to the initialization sequence, in order."""
        return list(self._init_responses)

    def _open(self) -> None:
        try:
            self._connection = self._port_factory(
                port=self._port_name,
                baudrate=self._baudrate,
                timeout=self.READ_TIMEOUT,
                write_timeout=self._timeout,
            )
        except (serial.SerialException, OSError, ValueError) as e:
            self._connection = None
            raise ConnectError(f"Could not open {self._port_name}: {e}") from e

        try:
            self._initialize()
        except ExchangeError as e:
            self._discard_connection()
            raise ConnectError(f"ELM327 initialization failed: {e}") from e

    def _initialize(self) -> None:
        """Run the AT initialization sequence, stopping at the first failure."""
        self._init_responses = []
        for command in INIT_SEQUENCE:
            response = self._transact(command)
            logger.debug(f"Init {command} -> {response!r}")
            self._init_responses.append(response)
            time.sleep(self._init_delay)

    def _discard_connection(self) -> None:
        """Close a half-opened port after a failed handshake."""
        if self._connection is None:
            return
        try:
            self._connection.close()
        except (serial.SerialException, OSError) as e:
            logger.warning(f"Error closing {self._port_name} after failed init: {e}")
        finally:
            self._connection = None

    def _release(self) -> None:
        connection, self._connection = self._connection, None
        if connection is None:
            return
        try:
            connection.close()
        except (serial.SerialException, OSError) as e:
            raise CloseError(f"Error closing {self._port_name}: {e}") from e

    def _transact(self, command: CommandCode) -> str:
        if self._connection is None:
            raise ExchangeError("Serial port is not open")

        logger.debug(f"TX {command}")
        try:
            # Drop late replies to earlier commands
            self._connection.reset_input_buffer()
            self._connection.write(command.encode_line())
            self._connection.flush()
        except (serial.SerialException, OSError) as e:
            raise ExchangeError(f"Write failed for {command}: {e}") from e

        raw = self._read_until_prompt(command)
        response = clean_response(raw, command)
        logger.debug(f"RX {command} -> {response!r}")
        return response

    def _read_until_prompt(self, command: CommandCode) -> bytes:
        """Read byte-wise until the prompt terminator or the exchange deadline."""
        buf = bytearray()
        deadline = time.monotonic() + self._timeout

        while True:
            try:
                byte = self._connection.read(1)
            except (serial.SerialException, OSError) as e:
                raise ExchangeError(f"Read failed for {command}: {e}") from e

            if byte:
                buf.extend(byte)
                if byte == PROMPT:
                    return bytes(buf)
            if time.monotonic() >= deadline:
                raise ExchangeTimeoutError(
                    f"No prompt from adapter within {self._timeout:.1f}s for {command}"
                )
