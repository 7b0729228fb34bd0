"""Destination for polling results."""

from abc import ABC, abstractmethod
from typing import Callable


class UpdateSink(ABC):
    """Receives one update per tick per monitored PID."""

    @abstractmethod
    def update(self, label: str, text: str) -> None:
        """
        Publish the latest text for a PID.

        Args:
            label: Slot the update belongs to
            text: 'Data: ...' or 'Error: ...'
        """


class CallbackSink(UpdateSink):
    """Adapts a plain callable to the sink interface."""

    def __init__(self, callback: Callable[[str, str], None]):
        self._callback = callback

    def update(self, label: str, text: str) -> None:
        self._callback(label, text)
