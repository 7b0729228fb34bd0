"""Live dashboard that receives polling updates."""

from typing import Dict, List, Optional, Sequence
from datetime import datetime
from threading import Event, Lock

from rich.console import Console, Group
from rich.live import Live
from rich.table import Table
from rich.panel import Panel
from rich.text import Text
from rich.progress import Progress, SpinnerColumn, TextColumn

from ..models.pid import COMMON_PIDS
from ..polling.sink import UpdateSink


class LiveDisplay(UpdateSink):
    """Real-time dashboard: one panel per monitored PID, laid out in a grid."""

    COLUMNS = 3

    def __init__(self, console: Optional[Console] = None, labels: Sequence[str] = ()):
        self._console = console or Console()
        self._lock = Lock()
        self._slots: Dict[str, str] = {}
        self._updated: Dict[str, datetime] = {}
        self._update_count = 0
        self._error_count = 0

        for label in labels:
            self.add_slot(label)

    def add_slot(self, label: str) -> None:
        """Reserve a panel for a label before its first update."""
        with self._lock:
            self._slots.setdefault(label, "Initializing...")

    def update(self, label: str, text: str) -> None:
        """Store the latest text for a label. Safe to call from any thread."""
        with self._lock:
            self._slots[label] = text
            self._updated[label] = datetime.now()
            self._update_count += 1
            if text.startswith("Error:"):
                self._error_count += 1

    def get_text(self, label: str) -> Optional[str]:
        """Latest text published for a label."""
        with self._lock:
            return self._slots.get(label)

    @property
    def labels(self) -> List[str]:
        with self._lock:
            return list(self._slots)

    def _slot_panel(self, label: str, text: str, updated: Optional[datetime]) -> Panel:
        info = COMMON_PIDS.get(label)
        title = f"[bold cyan]{info.name if info else label}[/bold cyan]"
        style = "red" if text.startswith("Error:") else "green"
        subtitle = f"[dim]{updated.strftime('%H:%M:%S')}[/dim]" if updated else None
        return Panel(Text(text, style=style), title=title, subtitle=subtitle, border_style="cyan")

    def create_dashboard(self, header: Optional[str] = None) -> Panel:
        """Create a dashboard panel with current values."""
        with self._lock:
            slots = list(self._slots.items())
            updated = dict(self._updated)
            update_count = self._update_count
            error_count = self._error_count

        grid = Table.grid(expand=True, padding=(0, 1))
        for _ in range(self.COLUMNS):
            grid.add_column(ratio=1)

        panels = [self._slot_panel(label, text, updated.get(label)) for label, text in slots]
        for start in range(0, len(panels), self.COLUMNS):
            row = panels[start:start + self.COLUMNS]
            row += [Text("")] * (self.COLUMNS - len(row))
            grid.add_row(*row)

        now = datetime.now().strftime("%H:%M:%S")
        status_parts = [f"[dim]Updated: {now}[/dim]", f"[dim]Updates: {update_count}[/dim]"]
        if error_count > 0:
            status_parts.append(f"[red]Errors: {error_count}[/red]")

        return Panel(
            Group(grid, Text.from_markup(" | ".join(status_parts))),
            title=f"[bold cyan]{header or 'Live Monitor'}[/bold cyan]",
            subtitle="[dim]Press Ctrl+C to stop[/dim]",
            border_style="cyan",
        )

    def run(
        self,
        stop_event: Event,
        refresh_rate: float = 0.5,
        header: Optional[str] = None,
    ) -> None:
        """
        Redraw the dashboard until the stop event is set.

        Args:
            stop_event: Shared cancellation signal
            refresh_rate: Seconds between redraws
            header: Title shown on the dashboard
        """
        with Live(
            self.create_dashboard(header),
            console=self._console,
            refresh_per_second=max(1, int(1 / refresh_rate)),
        ) as live:
            while not stop_event.wait(refresh_rate):
                live.update(self.create_dashboard(header))
            live.update(self.create_dashboard(header))

    def show_connecting(self, target: str) -> Live:
        """Show connecting spinner."""
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[cyan]Connecting to {task.description}...[/cyan]"),
            console=self._console,
        )
        progress.add_task(description=target, total=None)
        return Live(progress, console=self._console, refresh_per_second=10)

    def show_scanning(self, message: str = "Scanning for adapters") -> Live:
        """Show scanning spinner."""
        progress = Progress(
            SpinnerColumn(),
            TextColumn(f"[cyan]{message}...[/cyan]"),
            console=self._console,
        )
        progress.add_task(description="", total=None)
        return Live(progress, console=self._console, refresh_per_second=10)
