"""
Repeats analysis cycles forever.
"""

from __future__ import annotations

import asyncio
from enum import StrEnum
from typing import Awaitable, Callable, Protocol

import structlog

from cardinality_analyzer.analysis.models import CycleReport
from cardinality_analyzer.metrics.registry import AnalyzerMetrics, Status

logger = structlog.get_logger()

DEFAULT_INTERVAL_SECONDS = 86400.0
FAILURE_BACKOFF_SECONDS = 120.0


class SchedulerState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    SLEEPING = "sleeping"


class CycleRunner(Protocol):
    async def run_cycle(self) -> CycleReport:
        ...


class Scheduler:
    """
    Finite-state loop around ``run_cycle``.

    IDLE -> RUNNING -> SLEEPING -> IDLE. After a successful cycle the sleep
    is ``interval``; after a failed one it is ``failure_backoff``. There is no
    retry limit.
    """

    def __init__(
        self,
        runner: CycleRunner,
        metrics: AnalyzerMetrics,
        *,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        failure_backoff: float = FAILURE_BACKOFF_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._runner = runner
        self._metrics = metrics
        self.interval = interval
        self.failure_backoff = failure_backoff
        self._sleep = sleep
        self.state = SchedulerState.IDLE
        self.cycles = 0

    async def run(self, max_cycles: int | None = None) -> None:
        """
        Drive cycles until cancelled.

        Args:
            max_cycles: Stop after this many cycles (tests only)
        """
        logger.info(
            "scheduler_started",
            interval=self.interval,
            failure_backoff=self.failure_backoff,
        )
        delay = 0.0

        while max_cycles is None or self.cycles < max_cycles:
            if self.state is SchedulerState.IDLE:
                self.state = SchedulerState.RUNNING

            elif self.state is SchedulerState.RUNNING:
                delay = await self._run_once()
                self.state = SchedulerState.SLEEPING

            elif self.state is SchedulerState.SLEEPING:
                await self._sleep(delay)
                self.cycles += 1
                self.state = SchedulerState.IDLE

        self.state = SchedulerState.IDLE

    async def _run_once(self) -> float:
        """Run one cycle and return how long to sleep afterwards."""
        try:
            await self._runner.run_cycle()
        except Exception as exc:
            logger.error(
                "analysis_failed",
                error_type=type(exc).__name__,
                error=str(exc),
                retry_in=self.failure_backoff,
            )
            self._metrics.record_cycle_error()
            self._metrics.record_analysis_cycle(Status.FAILURE)
            return self.failure_backoff

        self._metrics.record_analysis_cycle(Status.SUCCESS)
        self._metrics.record_successful_analysis()
        logger.info("analysis_succeeded", next_run_in=self.interval)
        return self.interval
