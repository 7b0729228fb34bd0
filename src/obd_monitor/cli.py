"""OBD Monitor CLI application."""

import signal
import logging
from threading import Event
from typing import Optional, List

import typer
from pydantic import ValidationError
from rich.logging import RichHandler

from .commander import Commander
from .connection.adapter import AdapterDetector
from .connection.base import Transport
from .connection.ble_transport import BleAdapter
from .connection.errors import ConnectError, ExchangeError, CloseError
from .connection.factory import create_transport
from .display.console import console as display_console
from .display.live import LiveDisplay
from .models.config import (
    MonitorConfig,
    TransportKind,
    DEFAULT_EXCHANGE_TIMEOUT,
    DEFAULT_DISCOVERY_TIMEOUT,
    DEFAULT_POLL_INTERVAL,
)
from .models.pid import PID_PRESETS, label_for, resolve_command
from .polling.engine import PollingEngine

logger = logging.getLogger(__name__)


app = typer.Typer(
    name="obd-monitor",
    help="Poll OBD2 parameters from an ELM327 adapter over serial or Bluetooth LE",
    no_args_is_help=True,
)


# Connection options shared by every command that talks to an adapter
PORT_OPTION = typer.Option("/dev/ttyUSB0", "--port", "-p", envvar="OBD_MONITOR_PORT", help="Serial port for connection")
BAUD_OPTION = typer.Option(9600, "--baud", "-b", envvar="OBD_MONITOR_BAUD", help="Baud rate for serial connection")
ADDRESS_OPTION = typer.Option(None, "--address", "-a", envvar="OBD_MONITOR_ADDRESS", help="Bluetooth device address")
BLUETOOTH_OPTION = typer.Option(False, "--bluetooth", "-l", help="Use Bluetooth LE instead of serial")
ADAPTER_OPTION = typer.Option(None, "--adapter", envvar="OBD_MONITOR_BT_ADAPTER", help="Local Bluetooth controller (e.g. hci0)")
TIMEOUT_OPTION = typer.Option(DEFAULT_EXCHANGE_TIMEOUT, "--timeout", "-t", help="Response timeout in seconds")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=display_console.rich_console, rich_tracebacks=True)],
    )


def build_config(
    port: str,
    baud: int,
    address: Optional[str],
    bluetooth: bool,
    adapter: Optional[str],
    timeout: float,
    pids: Optional[List[str]] = None,
    interval: float = DEFAULT_POLL_INTERVAL,
) -> MonitorConfig:
    """Validate command-line options into a MonitorConfig, exiting on bad input."""
    values = dict(
        transport=TransportKind.BLUETOOTH if bluetooth else TransportKind.SERIAL,
        port=port,
        baudrate=baud,
        address=address,
        adapter=adapter,
        timeout=timeout,
        interval=interval,
    )
    if pids:
        values["pids"] = pids

    try:
        return MonitorConfig(**values)
    except ValidationError as e:
        for err in e.errors():
            location = ".".join(str(part) for part in err["loc"]) or "config"
            display_console.error(f"{location}: {err['msg']}")
        raise typer.Exit(1)


def open_transport(config: MonitorConfig) -> Transport:
    """Create and connect the configured transport, exiting on failure."""
    transport = create_transport(config)
    live_display = LiveDisplay(console=display_console.rich_console)

    try:
        with live_display.show_connecting(config.target):
            transport.connect()
    except ConnectError as e:
        display_console.error(f"Connection failed: {e}")
        raise typer.Exit(1)

    display_console.success(f"Connected to {config.target}")
    return transport


def close_transport(transport: Transport) -> None:
    """Close a transport, reporting but not raising close failures."""
    try:
        transport.close()
    except CloseError as e:
        logger.warning(f"Error closing transport: {e}")
        display_console.warning(str(e))


def install_signal_handlers(stop_event: Event) -> dict:
    """Route SIGINT and SIGTERM into the shared stop event. Returns previous handlers."""
    def _handler(signum, frame):
        logger.info(f"Received signal {signum}, stopping")
        stop_event.set()

    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, _handler)
    return previous


def restore_signal_handlers(previous: dict) -> None:
    for sig, handler in previous.items():
        signal.signal(sig, handler)


# ============ Main Commands ============

@app.command()
def monitor(
    port: str = PORT_OPTION,
    baud: int = BAUD_OPTION,
    address: Optional[str] = ADDRESS_OPTION,
    bluetooth: bool = BLUETOOTH_OPTION,
    adapter: Optional[str] = ADAPTER_OPTION,
    timeout: float = TIMEOUT_OPTION,
    pids: Optional[str] = typer.Option(None, "--pids", help="Comma-separated PIDs or raw commands to monitor"),
    preset: Optional[str] = typer.Option(None, "--preset", help=f"PID preset ({', '.join(PID_PRESETS)})"),
    interval: float = typer.Option(DEFAULT_POLL_INTERVAL, "--interval", "-i", help="Polling interval in seconds"),
):
    """Live monitoring dashboard."""
    if pids:
        pid_list = [p.strip() for p in pids.split(",")]
    elif preset:
        if preset not in PID_PRESETS:
            display_console.error(f"Unknown preset '{preset}'. Choose from: {', '.join(PID_PRESETS)}")
            raise typer.Exit(1)
        pid_list = PID_PRESETS[preset]
    else:
        pid_list = None

    config = build_config(port, baud, address, bluetooth, adapter, timeout, pid_list, interval)
    transport = open_transport(config)

    commander = Commander(transport, lock_timeout=config.timeout)
    labels = [label_for(pid) for pid in config.pids]
    live_display = LiveDisplay(console=display_console.rich_console, labels=labels)
    engine = PollingEngine(commander, config.pids, live_display, interval=config.interval)

    display_console.info(f"Monitoring: {', '.join(labels)}")

    stop_event = Event()
    previous_handlers = install_signal_handlers(stop_event)
    try:
        engine.start(stop_event)
        live_display.run(stop_event, header=config.target)
    finally:
        engine.stop()
        restore_signal_handlers(previous_handlers)
        close_transport(transport)

    stats = engine.get_statistics()
    display_console.newline()
    display_console.info(f"Monitoring stopped after {stats['tick_count']} updates ({stats['error_count']} errors)")


@app.command()
def send(
    command: str = typer.Argument(..., help="PID name (e.g. RPM) or raw command (e.g. 010C, ATRV)"),
    port: str = PORT_OPTION,
    baud: int = BAUD_OPTION,
    address: Optional[str] = ADDRESS_OPTION,
    bluetooth: bool = BLUETOOTH_OPTION,
    adapter: Optional[str] = ADAPTER_OPTION,
    timeout: float = TIMEOUT_OPTION,
):
    """Send a single command and print the response."""
    config = build_config(port, baud, address, bluetooth, adapter, timeout)
    transport = open_transport(config)
    code = resolve_command(command)

    try:
        response = Commander(transport).execute_command(code)
    except ExchangeError as e:
        display_console.error(f"{code} failed: {e}")
        raise typer.Exit(1)
    finally:
        close_transport(transport)

    display_console.print_response(code, response)


@app.command("list")
def list_devices(
    bluetooth: bool = typer.Option(False, "--bluetooth", "-l", help="Also scan for Bluetooth LE devices"),
    adapter: Optional[str] = ADAPTER_OPTION,
    scan_time: float = typer.Option(DEFAULT_DISCOVERY_TIMEOUT, "--scan-time", "-s", help="Bluetooth scan window in seconds"),
):
    """List serial ports and nearby Bluetooth LE devices."""
    ports = AdapterDetector.detect_serial()
    if ports:
        display_console.print_adapters(ports, title="Serial Ports")
    else:
        display_console.warning("No serial ports found")

    if not bluetooth:
        return

    live_display = LiveDisplay(console=display_console.rich_console)
    ble = BleAdapter(adapter)
    try:
        with live_display.show_scanning("Scanning for Bluetooth devices"):
            devices = AdapterDetector.detect_bluetooth(ble, timeout=scan_time)
    finally:
        ble.power_off()

    if devices:
        display_console.print_adapters(devices, title="Bluetooth Devices")
        display_console.info(f"Found {len(devices)} device(s)")
    else:
        display_console.warning("No Bluetooth devices found")


@app.command()
def version():
    """Show version information."""
    from . import __version__
    display_console.print(f"OBD Monitor v{__version__}")


if __name__ == "__main__":
    app()
