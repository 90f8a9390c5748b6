"""Console rendering and progress helpers for the push CLI."""
from __future__ import annotations

import time
from typing import List, Optional

from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from .plan import format_untracked_warning

LARGE_ARCHIVE_THRESHOLD = 50 * 1024 * 1024
PERCENT_STEP = 10


def _human_size(value: int) -> str:
    size = float(max(value, 0))
    units = ["B", "KB", "MB", "GB", "TB"]
    unit_idx = 0
    while size >= 1024.0 and unit_idx < len(units) - 1:
        size /= 1024.0
        unit_idx += 1
    if unit_idx == 0:
        return f"{int(size)} {units[unit_idx]}"
    return f"{size:.2f} {units[unit_idx]}"


def render_untracked_warning(console: Console, untracked: List[str]) -> None:
    """Non-fatal warning about builds whose artifacts are not tracked."""
    console.print(
        Panel(
            format_untracked_warning(untracked),
            title="[bold yellow]Warning![/bold yellow]",
            border_style="yellow",
        )
    )


class TransferProgress:
    """Archive transfer progress renderer."""

    def __init__(self, console: Console, label: str, total: int = 0):
        self._console = console
        self.label = label
        self.total = total
        self._started = False
        self._last_printed_percent = -1
        self._last_print_time = 0.0
        self._live: Optional[Live] = None
        self._task_id = None
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold cyan]{task.fields[label]}", justify="left"),
            BarColumn(bar_width=42),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeRemainingColumn(),
            expand=False,
            console=console,
        )

    def start(self) -> None:
        if self._started:
            return

        if self.total > LARGE_ARCHIVE_THRESHOLD and self._console.is_terminal:
            self._live = Live(
                self._progress,
                console=self._console,
                refresh_per_second=5,
                vertical_overflow="visible",
            )
            self._live.start()
            self._task_id = self._progress.add_task("upload", label=self.label[:60], total=self.total)
        else:
            self._console.print(f"[cyan]Uploading:[/cyan] {self.label} ({_human_size(self.total)})")

        self._started = True

    def update(self, sent: int, total: int) -> None:
        if not self._started:
            self.start()
        if total <= 0:
            return

        if self._task_id is not None:
            self._progress.update(self._task_id, completed=sent, total=total)
            return

        percent = int((sent / total) * 100)
        now = time.monotonic()
        should_print = (
            percent >= 100
            or percent - self._last_printed_percent >= PERCENT_STEP
            or now - self._last_print_time >= 2.0
        )
        if should_print and percent != self._last_printed_percent:
            self._console.print(f"  {percent:3d}% ({_human_size(sent)}/{_human_size(total)})")
            self._last_printed_percent = percent
            self._last_print_time = now

    def stop(self) -> None:
        if self._live is not None:
            self._live.stop()
            self._live = None

    def get_callback(self):
        def callback(sent: int, total: int) -> None:
            self.update(sent, total)

        return callback
