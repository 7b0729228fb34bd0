"""Pytest fixtures for OBD monitor tests."""

import threading
import time
from collections import deque
from types import SimpleNamespace
from typing import Dict, Iterable, List, Optional, Tuple

import pytest

from obd_monitor.connection.base import Transport
from obd_monitor.polling.sink import UpdateSink


INIT_REPLIES = [b"ATZ\rOK\r>", b"ATE0\rOK\r>", b"ATL0\rOK\r>", b"ATSP0\rOK\r>"]


class FakeSerialPort:
    """
    In-memory stand-in for serial.Serial.

    Each write releases the next scripted reply into the input buffer.
    ``feed`` puts bytes in the buffer directly, like output arriving unasked.
    """

    def __init__(self, replies: Iterable[bytes] = ()):
        self._replies = deque(replies)
        self._buffer = bytearray()
        self._lock = threading.Lock()
        self.written: List[bytes] = []
        self.open_kwargs: Dict = {}
        self.is_open = True
        self.flush_count = 0
        self.reset_count = 0
        self.write_error: Optional[Exception] = None
        self.read_error: Optional[Exception] = None
        self.close_error: Optional[Exception] = None

    def reply(self, data: bytes) -> None:
        """Queue the answer to the next write."""
        self._replies.append(data)

    def feed(self, data: bytes) -> None:
        with self._lock:
            self._buffer.extend(data)

    def reset_input_buffer(self) -> None:
        with self._lock:
            self._buffer.clear()
        self.reset_count += 1

    def write(self, data: bytes) -> int:
        if self.write_error:
            raise self.write_error
        self.written.append(bytes(data))
        if self._replies:
            self.feed(self._replies.popleft())
        return len(data)

    def flush(self) -> None:
        self.flush_count += 1

    def read(self, size: int = 1) -> bytes:
        if self.read_error:
            raise self.read_error
        with self._lock:
            chunk = bytes(self._buffer[:size])
            del self._buffer[:size]
        return chunk

    def close(self) -> None:
        self.is_open = False
        if self.close_error:
            raise self.close_error


class SlowTransport(Transport):
    """Connected-on-demand transport whose exchanges take a fixed time."""

    def __init__(self, delay: float = 0.02):
        super().__init__(timeout=1.0)
        self._delay = delay
        self._guard = threading.Lock()
        self.active = 0
        self.max_active = 0
        self.sent: List[str] = []
        self.started: List[Tuple[float, str]] = []

    @property
    def description(self) -> str:
        return "slow test link"

    def _open(self) -> None:
        pass

    def _release(self) -> None:
        pass

    def _transact(self, command) -> str:
        with self._guard:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
            self.sent.append(str(command))
            self.started.append((time.monotonic(), str(command)))
        time.sleep(self._delay)
        with self._guard:
            self.active -= 1
        return f"reply {command}"


class RecordingSink(UpdateSink):
    """Sink that remembers every update in arrival order."""

    def __init__(self):
        self._lock = threading.Lock()
        self.updates: List[Tuple[str, str]] = []

    def update(self, label: str, text: str) -> None:
        with self._lock:
            self.updates.append((label, text))

    def for_label(self, label: str) -> List[str]:
        with self._lock:
            return [text for lbl, text in self.updates if lbl == label]

    def count(self) -> int:
        with self._lock:
            return len(self.updates)


@pytest.fixture
def fake_port():
    """A fake serial port scripted with the ELM327 init handshake."""
    return FakeSerialPort(INIT_REPLIES)


@pytest.fixture
def port_factory(fake_port):
    """Port factory that hands out fake_port and records the open arguments."""
    def _factory(**kwargs):
        fake_port.open_kwargs = kwargs
        return fake_port
    return _factory


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def no_init_delay(monkeypatch):
    """Record init pauses instead of sleeping."""
    from obd_monitor.connection import serial_transport

    pauses: List[float] = []
    clock = SimpleNamespace(sleep=pauses.append, monotonic=time.monotonic)
    monkeypatch.setattr(serial_transport, "time", clock)
    return pauses
