"""Command codes understood by ELM327 adapters."""

from typing import List


class CommandCode(str):
    """
    A protocol command sent to the adapter.

    AT control commands (``ATZ``) and OBD-II PID requests (``010C``) share
    this type. Any string is accepted; an invalid command is only rejected
    by the adapter itself.
    """

    __slots__ = ()

    @property
    def is_at_command(self) -> bool:
        """Whether this is an adapter control command rather than a PID request."""
        return self.upper().startswith("AT")

    def encode_line(self) -> bytes:
        """Wire form: ASCII text followed by a carriage return."""
        return f"{self}\r".encode("ascii", errors="ignore")

    def __repr__(self) -> str:
        return f"CommandCode({str.__repr__(self)})"


# AT control commands
RESET = CommandCode("ATZ")
ECHO_OFF = CommandCode("ATE0")
LINEFEEDS_OFF = CommandCode("ATL0")
AUTO_PROTOCOL = CommandCode("ATSP0")

# Sent in this order, once, when a serial link is opened
INIT_SEQUENCE: List[CommandCode] = [RESET, ECHO_OFF, LINEFEEDS_OFF, AUTO_PROTOCOL]

# Mode 01 PID requests
ENGINE_RPM = CommandCode("010C")
VEHICLE_SPEED = CommandCode("010D")
THROTTLE_POSITION = CommandCode("0111")
COOLANT_TEMPERATURE = CommandCode("0105")

DEFAULT_MONITOR_COMMANDS: List[CommandCode] = [
    ENGINE_RPM,
    VEHICLE_SPEED,
    THROTTLE_POSITION,
    COOLANT_TEMPERATURE,
]
