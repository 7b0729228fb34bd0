"""Base transport class and the response framing shared by every link."""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, Union

from ..models.command import CommandCode
from .errors import ConnectError, ExchangeError

logger = logging.getLogger(__name__)

PROMPT = b">"
PROMPT_CHAR = ">"


class TransportState(str, Enum):
    """Lifecycle of a transport instance."""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


def clean_response(raw: Union[bytes, str], command: Optional[str] = None) -> str:
    """
    Normalize raw adapter output into response text.

    Everything from the first prompt terminator on is discarded, each line
    is stripped of whitespace and carriage returns, blank lines are dropped
    and a leading echo of ``command`` is removed. Remaining lines are joined
    with newlines.

    Args:
        raw: Bytes or text read from the link
        command: Command that was sent, used to detect an echoed line

    Returns:
        Cleaned response text
    """
    if isinstance(raw, bytes):
        text = raw.decode("ascii", errors="ignore")
    else:
        text = raw

    text = text.split(PROMPT_CHAR, 1)[0]
    lines = [ln.strip() for ln in text.replace("\r", "\n").split("\n")]
    lines = [ln for ln in lines if ln]

    if command and lines and lines[0].upper() == command.strip().upper():
        lines = lines[1:]

    return "\n".join(lines)


class Transport(ABC):
    """Abstract base class for adapter links."""

    def __init__(self, timeout: float):
        """
        Args:
            timeout: Seconds to wait for the prompt terminator on each exchange
        """
        self._timeout = timeout
        self._state = TransportState.DISCONNECTED

    @property
    def state(self) -> TransportState:
        """Get current transport state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """Check if the link is up."""
        return self._state == TransportState.CONNECTED

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable link target."""

    def connect(self) -> None:
        """
        Establish the link and run the variant handshake.

        Raises:
            ConnectError: If the link cannot be established
        """
        if self._state == TransportState.CONNECTED:
            logger.debug(f"{self.description} already connected")
            return
        if self._state == TransportState.CLOSED:
            raise ConnectError(f"{self.description} has been closed")

        self._state = TransportState.CONNECTING
        logger.info(f"Connecting to {self.description}...")
        try:
            self._open()
        except ConnectError:
            self._state = TransportState.DISCONNECTED
            raise
        except Exception as e:
            self._state = TransportState.DISCONNECTED
            raise ConnectError(f"Failed to connect to {self.description}: {e}") from e

        self._state = TransportState.CONNECTED
        logger.info(f"Connected to {self.description}")

    def close(self) -> None:
        """
        Release the link. Closing twice, or closing a link never opened, is a no-op.

        Raises:
            CloseError: If the underlying resource failed to release
        """
        if self._state in (TransportState.CLOSED, TransportState.DISCONNECTED):
            self._state = TransportState.CLOSED
            return

        self._state = TransportState.CLOSED
        self._release()
        logger.info(f"Closed {self.description}")

    def exchange(self, command: Union[CommandCode, str]) -> str:
        """
        Send a command and return its cleaned response.

        Raises:
            ExchangeError: If not connected, on I/O failure, or on timeout
        """
        if self._state != TransportState.CONNECTED:
            raise ExchangeError(f"Not connected ({self._state.value})")
        return self._transact(CommandCode(command))

    @abstractmethod
    def _open(self) -> None:
        """Open the physical link and perform the handshake."""

    @abstractmethod
    def _release(self) -> None:
        """Release the physical link; raise CloseError on failure."""

    @abstractmethod
    def _transact(self, command: CommandCode) -> str:
        """Write one command and read its response, without state checks."""

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
        return False
