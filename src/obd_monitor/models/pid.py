"""Data models for Parameter IDs (PIDs)."""

from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import datetime

from .command import CommandCode


class PIDInfo(BaseModel):
    """Information about a PID definition."""

    pid: str = Field(..., description="PID identifier (e.g., 'RPM', 'SPEED')")
    name: str = Field(..., description="Human-readable name")
    description: str = Field(default="", description="Detailed description")
    mode: int = Field(default=1, description="OBD mode (1 = live data)")
    command_code: str = Field(..., description="Raw hex command code")

    @property
    def command(self) -> CommandCode:
        """Command code to send for this PID."""
        return CommandCode(self.command_code)


class PIDReading(BaseModel):
    """The last text a polling task observed for one PID."""

    pid: str = Field(..., description="Command code that was polled")
    label: str = Field(..., description="Label of the sink slot")
    text: str = Field(default="", description="Response text or error message")
    is_error: bool = Field(default=False, description="Whether the tick failed")
    timestamp: datetime = Field(default_factory=datetime.now, description="When the tick completed")

    @property
    def display_text(self) -> str:
        """Text as published to the sink."""
        prefix = "Error" if self.is_error else "Data"
        return f"{prefix}: {self.text}"


# Common PID definitions
COMMON_PIDS = {
    "RPM": PIDInfo(
        pid="RPM",
        name="Engine RPM",
        description="Engine revolutions per minute",
        command_code="010C",
    ),
    "SPEED": PIDInfo(
        pid="SPEED",
        name="Vehicle Speed",
        description="Current vehicle speed",
        command_code="010D",
    ),
    "COOLANT_TEMP": PIDInfo(
        pid="COOLANT_TEMP",
        name="Engine Coolant Temperature",
        description="Temperature of engine coolant",
        command_code="0105",
    ),
    "ENGINE_LOAD": PIDInfo(
        pid="ENGINE_LOAD",
        name="Calculated Engine Load",
        description="Calculated engine load value",
        command_code="0104",
    ),
    "THROTTLE_POS": PIDInfo(
        pid="THROTTLE_POS",
        name="Throttle Position",
        description="Throttle position sensor value",
        command_code="0111",
    ),
    "INTAKE_TEMP": PIDInfo(
        pid="INTAKE_TEMP",
        name="Intake Air Temperature",
        description="Temperature of intake air",
        command_code="010F",
    ),
    "MAF": PIDInfo(
        pid="MAF",
        name="Mass Air Flow Rate",
        description="Mass air flow sensor reading",
        command_code="0110",
    ),
    "FUEL_PRESSURE": PIDInfo(
        pid="FUEL_PRESSURE",
        name="Fuel Pressure",
        description="Fuel system pressure",
        command_code="010A",
    ),
    "TIMING_ADVANCE": PIDInfo(
        pid="TIMING_ADVANCE",
        name="Timing Advance",
        description="Ignition timing advance",
        command_code="010E",
    ),
    "FUEL_LEVEL": PIDInfo(
        pid="FUEL_LEVEL",
        name="Fuel Level Input",
        description="Fuel tank level",
        command_code="012F",
    ),
    "CONTROL_MODULE_VOLTAGE": PIDInfo(
        pid="CONTROL_MODULE_VOLTAGE",
        name="Control Module Voltage",
        description="ECU supply voltage",
        command_code="0142",
    ),
}

_BY_CODE = {info.command_code: info for info in COMMON_PIDS.values()}


# PID presets for common monitoring scenarios
PID_PRESETS = {
    "default": ["RPM", "SPEED", "THROTTLE_POS", "COOLANT_TEMP"],
    "engine": ["RPM", "ENGINE_LOAD", "COOLANT_TEMP", "THROTTLE_POS", "TIMING_ADVANCE"],
    "fuel": ["MAF", "FUEL_PRESSURE", "FUEL_LEVEL"],
    "all": list(COMMON_PIDS.keys()),
}


def resolve_command(token: str) -> CommandCode:
    """
    Turn a PID name or a raw command into a command code.

    Args:
        token: Known PID name (e.g. 'RPM') or raw command (e.g. '010C', 'ATRV')

    Returns:
        CommandCode to send
    """
    key = token.strip().upper()
    if key in COMMON_PIDS:
        return COMMON_PIDS[key].command
    return CommandCode(key)


def resolve_commands(tokens: List[str]) -> List[CommandCode]:
    """Resolve several tokens, dropping blanks and duplicates while keeping order."""
    commands: List[CommandCode] = []
    for token in tokens:
        if not token.strip():
            continue
        command = resolve_command(token)
        if command not in commands:
            commands.append(command)
    return commands


def get_pid_info(command: str) -> Optional[PIDInfo]:
    """Look up the catalogue entry for a command code."""
    return _BY_CODE.get(command.upper())


def label_for(command: str) -> str:
    """Sink label for a command: the PID name when known, else the raw code."""
    info = get_pid_info(command)
    return info.pid if info else command
