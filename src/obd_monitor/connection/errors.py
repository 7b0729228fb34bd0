"""Exceptions raised by OBD transports."""


class TransportError(Exception):
    """Base class for all transport-level errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConnectError(TransportError):
    """Raised when a link cannot be established or initialized."""


class DeviceNotFoundError(ConnectError):
    """Raised when the target device is not seen during discovery."""


class ExchangeError(TransportError):
    """Raised when a command cannot be sent or its response read."""


class ExchangeTimeoutError(ExchangeError):
    """Raised when no prompt terminator arrives within the exchange timeout."""


class CloseError(TransportError):
    """Raised when releasing a link fails. Never fatal."""
