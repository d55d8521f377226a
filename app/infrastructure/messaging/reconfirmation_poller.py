"""Poller periódico de reconfirmaciones de hotel."""

import asyncio
import logging
from contextlib import AbstractAsyncContextManager
from datetime import datetime, timedelta
from typing import Any, Callable

from app.application.interfaces.clock import Clock
from app.application.use_cases.reconfirm_hotel_bookings import (
    ReconfirmationCycleResult,
    ReconfirmHotelBookingsUseCase,
)

logger = logging.getLogger(__name__)

UseCaseFactory = Callable[[], AbstractAsyncContextManager[ReconfirmHotelBookingsUseCase]]


class ReconfirmationPoller:
    """
    Ejecuta ciclos de reconfirmación en segundo plano.

    Características:
    - Primer ciclo inmediato al iniciar, luego uno por intervalo
    - start/stop idempotentes
    - Un solo ciclo a la vez: una solicitud mientras otro corre se omite
    - Graceful shutdown: stop corta la espera, el ciclo en curso termina

    Cada ciclo obtiene su propio caso de uso (y su propia sesión) del factory.
    """

    def __init__(
        self,
        use_case_factory: UseCaseFactory,
        clock: Clock,
        interval_seconds: float = 1800,
    ) -> None:
        self._use_case_factory = use_case_factory
        self._clock = clock
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()
        self._cycle_running = False
        self._next_check_at: datetime | None = None
        self._last_run_at: datetime | None = None
        self._last_result: ReconfirmationCycleResult | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            logger.info("Reconfirmation poller already running")
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop(), name="reconfirmation-poller")
        logger.info("Reconfirmation poller started", extra={"interval_seconds": self._interval})

    async def stop(self) -> None:
        if not self.is_running:
            return
        self._stop_event.set()
        task, self._task = self._task, None
        await task
        self._next_check_at = None
        logger.info("Reconfirmation poller stopped")

    async def run_cycle(self) -> ReconfirmationCycleResult | None:
        """Ejecuta un ciclo ahora; None si ya hay uno en curso."""
        if self._cycle_running:
            logger.info("Reconfirmation cycle already in progress, skipping")
            return None
        self._cycle_running = True
        try:
            async with self._use_case_factory() as use_case:
                result = await use_case.execute()
            self._last_run_at = self._clock.now()
            self._last_result = result
            logger.info(
                "Reconfirmation cycle finished",
                extra={
                    "checked": result.checked,
                    "updated": result.updated,
                    "failed": result.failed,
                    "skipped": result.skipped,
                },
            )
            return result
        finally:
            self._cycle_running = False

    def get_status(self) -> dict[str, Any]:
        return {
            "is_running": self.is_running,
            "check_interval_seconds": self._interval,
            "next_check_at": self._next_check_at.isoformat() if self._next_check_at else None,
            "last_run_at": self._last_run_at.isoformat() if self._last_run_at else None,
            "last_run_checked": self._last_result.checked if self._last_result else None,
            "last_run_updated": self._last_result.updated if self._last_result else None,
        }

    async def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self.run_cycle()
            except Exception:
                logger.exception("Error in reconfirmation cycle")

            self._next_check_at = self._clock.now() + timedelta(seconds=self._interval)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                continue
