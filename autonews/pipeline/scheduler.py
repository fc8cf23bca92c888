"""Interval scheduler running the pipeline in the background."""

import asyncio
import contextlib
from typing import Optional

from rich.console import Console

from .orchestrator import PipelineOrchestrator

console = Console()


class PipelineScheduler:
    """Run the pipeline after an initial delay and then on a fixed interval."""

    def __init__(
        self,
        orchestrator: PipelineOrchestrator,
        interval_seconds: float = 300.0,
        initial_delay_seconds: float = 10.0,
    ) -> None:
        self.orchestrator = orchestrator
        self.interval_seconds = interval_seconds
        self.initial_delay_seconds = initial_delay_seconds
        self.runs = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the background loop; does nothing if it is already running."""
        if self.running:
            return
        console.print(
            f"[cyan][Scheduler] Started: every {self.interval_seconds:.0f}s, "
            f"first run in {self.initial_delay_seconds:.0f}s[/cyan]"
        )
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        console.print("[cyan][Scheduler] Stopped[/cyan]")

    async def _loop(self) -> None:
        await asyncio.sleep(self.initial_delay_seconds)
        while True:
            await self._tick()
            await asyncio.sleep(self.interval_seconds)

    async def _tick(self) -> None:
        self.runs += 1
        try:
            summary = await self.orchestrator.run()
        except Exception as e:
            console.print(f"[red][Scheduler] Pipeline run failed: {e}[/red]")
            return
        if not summary.skipped:
            console.print(
                f"[cyan][Scheduler] Run complete: {summary.processed} processed, "
                f"{summary.articles} articles, {summary.errors} errors[/cyan]"
            )
