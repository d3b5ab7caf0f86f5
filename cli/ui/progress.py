"""
cli/ui/progress.py - 진단 진행 표시

오케스트레이터의 ProgressEvent를 Rich Progress로 표시합니다.

- 남은 시간이 있는 단계(활성화 대기, 수집): 진행 바
- 그 외 단계: 한 줄 상태 출력

대화형 프롬프트와 겹치지 않도록 Progress는 필요할 때만 시작하고,
진행 바가 없는 단계로 넘어가면 중지합니다.

Example:
    with scan_progress() as tracker:
        orchestrator = ScanOrchestrator(..., interaction=PromptInteraction(tracker))
        orchestrator.run(token)
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from analyzers.vpc.nat_traffic.models import ProgressEvent, ScanPhase

from .console import console as default_console

# 진행 바로 표시하는 단계
TIMED_PHASES = (ScanPhase.AWAIT_ACTIVATION, ScanPhase.COLLECT)


class ScanProgressTracker:
    """ProgressEvent -> Rich Progress"""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or default_console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self._phase: ScanPhase | None = None

    @property
    def active(self) -> bool:
        return self._progress is not None

    def handle(self, event: ProgressEvent) -> None:
        if event.phase in TIMED_PHASES and event.remaining_seconds is not None:
            self._update_bar(event)
            return

        if event.phase in TIMED_PHASES and self.active:
            # 단계 진입 이벤트: 진행 바 유지
            return

        self.stop()
        if event.phase is ScanPhase.FAILED:
            return
        if event.phase is not self._phase and event.message:
            self._console.print(f"[cyan]• {event.message}[/cyan]")
        self._phase = event.phase

    def _update_bar(self, event: ProgressEvent) -> None:
        total = event.elapsed_seconds + (event.remaining_seconds or 0.0)
        if self._progress is None or self._phase is not event.phase:
            self.stop()
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(bar_width=40),
                TimeElapsedColumn(),
                TimeRemainingColumn(),
                console=self._console,
                transient=False,
                expand=False,
            )
            self._progress.start()
            self._task_id = self._progress.add_task(f"[cyan]{event.message}", total=total)
            self._phase = event.phase

        if self._task_id is None:
            return
        done = event.remaining_seconds == 0
        self._progress.update(
            self._task_id,
            total=total,
            completed=event.elapsed_seconds if not done else total,
            description=f"[green]{event.message}" if done else f"[cyan]{event.message}",
        )

    def stop(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
            self._task_id = None


@contextmanager
def scan_progress(console: Console | None = None) -> Generator[ScanProgressTracker, None, None]:
    """진단 진행 표시 context manager. 종료 시 진행 바를 정리합니다."""
    tracker = ScanProgressTracker(console)
    try:
        yield tracker
    finally:
        tracker.stop()


__all__ = [
    "ScanProgressTracker",
    "TIMED_PHASES",
    "scan_progress",
]
