"""Console output utilities using Rich."""

from typing import Optional, List
from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from ..connection.adapter import AdapterInfo

# Custom theme for the monitor
OBD_THEME = Theme({
    "info": "cyan",
    "success": "green",
    "warning": "yellow",
    "error": "red bold",
    "muted": "dim",
    "command": "cyan bold",
    "response": "green",
})


class Console:
    """Console output for the OBD monitor."""

    def __init__(self, console: Optional[RichConsole] = None):
        self._console = console or RichConsole(theme=OBD_THEME)

    @property
    def rich_console(self) -> RichConsole:
        """Get the underlying Rich console."""
        return self._console

    def print(self, *args, **kwargs) -> None:
        """Print to console."""
        self._console.print(*args, **kwargs)

    def info(self, message: str, prefix: str = "INFO") -> None:
        """Print info message."""
        self._console.print(f"[info][{prefix}][/info] {message}")

    def success(self, message: str, prefix: str = "OK") -> None:
        """Print success message."""
        self._console.print(f"[success][{prefix}][/success] {message}")

    def warning(self, message: str, prefix: str = "WARN") -> None:
        """Print warning message."""
        self._console.print(f"[warning][{prefix}][/warning] {message}")

    def error(self, message: str, prefix: str = "ERROR") -> None:
        """Print error message."""
        self._console.print(f"[error][{prefix}][/error] {message}")

    def newline(self, count: int = 1) -> None:
        """Print blank lines."""
        for _ in range(count):
            self._console.print()

    def print_response(self, command: str, response: str) -> None:
        """Print a command and its cleaned response."""
        body = response or "[muted](empty)[/muted]"
        self._console.print(Panel(body, title=f"[command]{command}[/command]", style="response", expand=False))

    def print_adapters(self, adapters: List[AdapterInfo], title: str = "Detected Adapters") -> None:
        """Print detected adapters as a table."""
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("Port / Address", style="cyan")
        table.add_column("Type")
        table.add_column("Description")
        table.add_column("RSSI", justify="right", style="dim")

        for adapter in adapters:
            table.add_row(
                adapter.port,
                adapter.adapter_type.value,
                adapter.description or adapter.manufacturer,
                str(adapter.rssi) if adapter.rssi is not None else "",
            )

        self._console.print(table)


# Global console instance
console = Console()
