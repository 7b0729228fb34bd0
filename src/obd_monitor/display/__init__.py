"""Display and terminal output utilities."""

from .console import Console
from .live import LiveDisplay

__all__ = ["Console", "LiveDisplay"]
