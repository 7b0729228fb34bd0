"""A single PID polled on its own timer."""

import logging
from threading import Event
from typing import Optional

from ..commander import Commander
from ..connection.errors import TransportError
from ..models.command import CommandCode
from ..models.pid import PIDReading, label_for
from .sink import UpdateSink

logger = logging.getLogger(__name__)


class PollingTask:
    """Polls one PID every interval and publishes each result to its sink slot."""

    def __init__(
        self,
        commander: Commander,
        pid: CommandCode,
        sink: UpdateSink,
        interval: float,
        label: Optional[str] = None,
    ):
        self._commander = commander
        self._pid = CommandCode(pid)
        self._sink = sink
        self._interval = interval
        self._label = label or label_for(self._pid)

        self._last_reading: Optional[PIDReading] = None
        self._tick_count = 0
        self._error_count = 0

    @property
    def pid(self) -> CommandCode:
        return self._pid

    @property
    def label(self) -> str:
        return self._label

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def last_reading(self) -> Optional[PIDReading]:
        """Most recent published result, if any."""
        return self._last_reading

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def error_count(self) -> int:
        return self._error_count

    def run(self, stop_event: Event) -> None:
        """Tick every interval until the stop event is set."""
        logger.debug(f"Polling {self._pid} every {self._interval:.2f}s")
        while not stop_event.wait(self._interval):
            self.tick(stop_event)
        logger.debug(f"Polling of {self._pid} stopped after {self._tick_count} ticks")

    def tick(self, stop_event: Optional[Event] = None) -> Optional[PIDReading]:
        """
        Execute the PID once and publish the result.

        Returns:
            The published reading, or None if cancellation arrived mid-tick
        """
        try:
            response = self._commander.execute_command(self._pid, cancel_event=stop_event)
            reading = PIDReading(pid=self._pid, label=self._label, text=response)
        except TransportError as e:
            reading = PIDReading(pid=self._pid, label=self._label, text=str(e), is_error=True)
        except Exception as e:
            logger.error(f"Unexpected error polling {self._pid}: {e}")
            reading = PIDReading(pid=self._pid, label=self._label, text=str(e), is_error=True)

        if stop_event is not None and stop_event.is_set():
            return None

        self._tick_count += 1
        if reading.is_error:
            self._error_count += 1
        self._last_reading = reading

        try:
            self._sink.update(self._label, reading.display_text)
        except Exception as e:
            logger.error(f"Sink error for {self._label}: {e}")

        return reading
