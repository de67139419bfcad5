"""Terminal progress helpers with Rich-based rendering."""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text

from ..engine import MatchType, ProgressEvent


@dataclass
class ProgressState:
    total: int
    success: int = 0
    failed: int = 0
    no_match: int = 0
    current_key: str | None = None

    @property
    def completed(self) -> int:
        return self.success + self.failed + self.no_match


class RateColumn(ProgressColumn):
    """Render keys processed per second."""

    def render(self, task: Task) -> Text:
        speed = task.finished_speed or task.speed
        if speed is None:
            return Text("", style="progress.percentage")
        return Text(f"{speed:.2f} key/s", style="progress.percentage")


class ProgressReporter:
    """Render run progress and maintain counters for CLI feedback.

    Falls back to a silent counter when stdout is not a terminal.
    """

    def __init__(self, enabled: bool = True, console: Console | None = None) -> None:
        self.enabled = enabled
        self._console = console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self._lock = Lock()
        self.state: ProgressState | None = None

    def start(self, total: int) -> None:
        self.state = ProgressState(total=total)
        if not self.enabled:
            return
        if self._console is None:
            self._console = Console()
        if not self._console.is_terminal:
            self.enabled = False
            return
        self._progress = Progress(
            SpinnerColumn(style="cyan"),
            BarColumn(bar_width=None, complete_style="green", finished_style="green"),
            TaskProgressColumn(show_speed=False),
            TimeElapsedColumn(),
            RateColumn(),
            TextColumn("[green]✓{task.fields[success]:>4}", justify="right"),
            TextColumn("[red]✗{task.fields[failed]:>4}", justify="right"),
            TextColumn("[yellow]∅{task.fields[no_match]:>4}", justify="right"),
            TextColumn("[dim]{task.fields[current_key]}", justify="left"),
            refresh_per_second=8,
            expand=True,
            transient=True,
            console=self._console,
        )
        try:
            self._progress.start()
        except LiveError:
            # another live display owns the console
            self.enabled = False
            self._progress = None
            return
        self._task_id = self._progress.add_task(
            "resolve",
            total=total,
            success=0,
            failed=0,
            no_match=0,
            current_key="waiting…",
        )

    def __call__(self, event: ProgressEvent) -> None:
        result = event.result
        self.advance(
            success=result.succeeded,
            failed=result.failed,
            no_match=not result.failed and result.match_type is MatchType.NONE,
            current_key=event.key,
        )

    def advance(
        self,
        success: bool = False,
        failed: bool = False,
        no_match: bool = False,
        current_key: str | None = None,
    ) -> None:
        if not self.state:
            raise RuntimeError("ProgressReporter.start must be called before advance")
        with self._lock:
            if current_key:
                self.state.current_key = current_key
            if success:
                self.state.success += 1
            elif failed:
                self.state.failed += 1
            elif no_match:
                self.state.no_match += 1
            if self._progress is None or self._task_id is None:
                return
            display_key = self.state.current_key or ""
            if len(display_key) > 40:
                display_key = display_key[:37] + "..."
            self._progress.update(
                self._task_id,
                advance=1,
                success=self.state.success,
                failed=self.state.failed,
                no_match=self.state.no_match,
                current_key=display_key,
            )

    def close(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
        self._task_id = None

    def summary(self) -> dict[str, int]:
        if not self.state:
            return {"success": 0, "failed": 0, "no_match": 0}
        return {
            "success": self.state.success,
            "failed": self.state.failed,
            "no_match": self.state.no_match,
        }


__all__ = ["ProgressReporter", "ProgressState", "RateColumn"]
