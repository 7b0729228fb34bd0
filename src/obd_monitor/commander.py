"""Command execution over a single transport."""

import logging
import threading
from typing import Optional, Union

from .connection.base import Transport
from .connection.errors import ExchangeError
from .models.command import CommandCode

logger = logging.getLogger(__name__)


class Commander:
    """
    Executes commands through one transport.

    The link carries one outstanding request at a time, so calls from
    concurrent polling tasks are serialized on an internal lock. Results and
    errors from the transport are returned or raised unchanged.
    """

    def __init__(self, transport: Transport, lock_timeout: Optional[float] = None):
        """
        Args:
            transport: Link to execute commands on
            lock_timeout: Max seconds to wait for the link to be free (None = wait forever)
        """
        self._transport = transport
        self._lock = threading.Lock()
        self._lock_timeout = lock_timeout

    @property
    def transport(self) -> Transport:
        """Get the bound transport."""
        return self._transport

    def execute_command(
        self,
        command: Union[CommandCode, str],
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """
        Execute a command and return the cleaned response.

        Args:
            command: Command to send
            cancel_event: When set by the time the link is free, the command is not sent

        Raises:
            ExchangeError: Propagated from the transport, if the link stays busy,
                or if cancellation arrived while waiting for the link
        """
        timeout = -1 if self._lock_timeout is None else self._lock_timeout
        if not self._lock.acquire(timeout=timeout):
            raise ExchangeError(f"Transport busy, {command} not sent")
        try:
            if cancel_event is not None and cancel_event.is_set():
                raise ExchangeError(f"Cancelled, {command} not sent")
            return self._transport.exchange(command)
        finally:
            self._lock.release()

    def close(self) -> None:
        """Close the bound transport."""
        with self._lock:
            self._transport.close()
