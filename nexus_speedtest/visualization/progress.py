"""
Live progress bars for the measurement phases.
"""

import logging
from typing import Any, Dict, Optional

from rich.console import Console
from rich.progress import BarColumn, Progress, TaskID, TaskProgressColumn, TextColumn

logger = logging.getLogger(__name__)

BAR_COMPLETE_STYLE = {
    "Ping": "cyan",
    "Download": "green",
    "Upload": "blue",
}


class ProgressReporter:
    """Passive display bound to one phase run.

    The owning run pushes ``(value, total, fields)`` on every tick; the
    reporter keeps the latest snapshot and renders it. It never touches
    the test state.
    """

    def __init__(
        self,
        label: str,
        unit: str,
        detail: str,
        console: Optional[Console] = None,
        enabled: bool = True,
    ):
        """Initialize the reporter.

        Args:
            label: Phase name shown left of the bar (e.g., "Download")
            unit: Unit shown after value/total (e.g., "s", "pings")
            detail: Template for the trailing column, using ``task.fields``
            console: Console to render to (default: a new stderr console)
            enabled: Render the bar; when False only snapshots are kept
        """
        self.label = label
        self.unit = unit
        self.enabled = enabled
        self.value: float = 0
        self.total: float = 0
        self.fields: Dict[str, Any] = {}
        self.updates = 0
        self.finished = False

        self._progress = Progress(
            TextColumn(f"{label:<8}"),
            BarColumn(complete_style=BAR_COMPLETE_STYLE.get(label, "white")),
            TaskProgressColumn(),
            TextColumn(f"{{task.completed:.0f}}/{{task.total:.0f}} {unit}"),
            TextColumn(detail),
            console=console,
            disable=not enabled,
        )
        self._task_id: Optional[TaskID] = None

    def start(self, total: float, **fields) -> None:
        """Show the bar at zero with the initial field values."""
        self.total = total
        self.value = 0
        self.fields = dict(fields)
        self._progress.start()
        self._task_id = self._progress.add_task(self.label, total=total, **fields)

    def update(self, value: float, **fields) -> None:
        """Record and render a new value."""
        if self._task_id is None:
            raise RuntimeError(f"{self.label} progress reporter not started")
        self.value = value
        self.fields.update(fields)
        self.updates += 1
        self._progress.update(self._task_id, completed=value, **fields)

    def stop(self) -> None:
        """Stop rendering; safe to call more than once."""
        if self.finished:
            return
        self.finished = True
        self._progress.stop()

    def snapshot(self) -> Dict[str, Any]:
        """Latest data pushed to the display."""
        return {"value": self.value, "total": self.total, **self.fields}


def throughput_progress(label: str, console: Optional[Console] = None, enabled: bool = True) -> ProgressReporter:
    """Progress bar for a throughput phase: elapsed seconds and current Mbps."""
    return ProgressReporter(label, "s", "{task.fields[speed]} Mbps", console=console, enabled=enabled)


def ping_progress(console: Optional[Console] = None, enabled: bool = True) -> ProgressReporter:
    """Progress bar for the latency phase: pings done and last latency."""
    return ProgressReporter("Ping", "pings", "Latency: {task.fields[latency]} ms", console=console, enabled=enabled)
