"""Concurrent polling of monitored PIDs."""

from .sink import UpdateSink, CallbackSink
from .task import PollingTask
from .engine import PollingEngine

__all__ = ["UpdateSink", "CallbackSink", "PollingTask", "PollingEngine"]
