"""Repeating background task that drives provider health checks."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)


class HealthCheckScheduler:
    """Runs ``tick`` every ``interval_seconds`` until stopped.

    The first tick happens one interval after :meth:`start`. A failing tick is
    logged and the loop carries on.
    """

    def __init__(
        self,
        tick: Callable[[], Awaitable[None]],
        *,
        interval_seconds: float = 30.0,
    ) -> None:
        self._tick = tick
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="provider-health-checks"
        )
        logger.info("health_check_scheduler_started", interval_s=self._interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("health_check_scheduler_stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._tick()
            except Exception as exc:
                logger.exception("health_check_tick_failed", error=str(exc))
