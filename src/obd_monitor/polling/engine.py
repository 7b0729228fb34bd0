"""Polling engine running one task per monitored PID."""

import logging
from threading import Thread, Event
from typing import List, Dict, Optional, Sequence

from ..commander import Commander
from ..models.command import CommandCode
from ..models.config import DEFAULT_POLL_INTERVAL
from ..models.pid import PIDReading
from .sink import UpdateSink
from .task import PollingTask

logger = logging.getLogger(__name__)


class PollingEngine:
    """Starts, cancels and joins the polling tasks for a set of PIDs."""

    def __init__(
        self,
        commander: Commander,
        pids: Sequence[CommandCode],
        sink: UpdateSink,
        interval: float = DEFAULT_POLL_INTERVAL,
    ):
        """
        Initialize the polling engine.

        Args:
            commander: Commander shared by every task
            pids: Commands to poll, one task each
            sink: Receives every task's updates
            interval: Seconds between ticks of each task
        """
        self._interval = interval
        self._tasks = [PollingTask(commander, pid, sink, interval) for pid in pids]
        self._threads: List[Thread] = []
        self._stop_event = Event()

    @property
    def tasks(self) -> List[PollingTask]:
        return list(self._tasks)

    @property
    def stop_event(self) -> Event:
        """The shared cancellation signal."""
        return self._stop_event

    @property
    def is_running(self) -> bool:
        """Check if any task thread is still alive."""
        return any(thread.is_alive() for thread in self._threads)

    def start(self, stop_event: Optional[Event] = None) -> None:
        """
        Start one thread per task.

        Args:
            stop_event: Shared cancellation signal to observe (a fresh one if None)
        """
        if self._threads:
            logger.warning("Polling already active")
            return

        self._stop_event = stop_event or Event()
        for task in self._tasks:
            thread = Thread(
                target=task.run,
                args=(self._stop_event,),
                name=f"poll-{task.label}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()

        logger.info(f"Started polling {len(self._tasks)} PIDs every {self._interval:.1f}s")

    def cancel(self) -> None:
        """Signal every task to stop without waiting for them."""
        self._stop_event.set()

    def stop(self) -> None:
        """Cancel every task and wait until all of them have exited."""
        self._stop_event.set()
        threads, self._threads = self._threads, []
        if not threads:
            return

        for thread in threads:
            thread.join()

        logger.info(f"Stopped polling. {self.get_statistics()['tick_count']} ticks published.")

    def wait(self) -> None:
        """Block until cancellation is signalled, then join every task."""
        self._stop_event.wait()
        self.stop()

    def get_latest(self) -> Dict[str, PIDReading]:
        """Latest reading for every task that has published one."""
        return {
            task.label: task.last_reading
            for task in self._tasks
            if task.last_reading is not None
        }

    def get_statistics(self) -> Dict:
        """Get polling statistics."""
        return {
            "is_running": self.is_running,
            "monitored_pids": len(self._tasks),
            "tick_count": sum(task.tick_count for task in self._tasks),
            "error_count": sum(task.error_count for task in self._tasks),
            "interval_s": self._interval,
        }

    def __enter__(self):
        """Context manager entry - start polling."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - stop polling."""
        self.stop()
        return False
