import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class NotificationScheduler:
    """Drives dispatch and overdue scanning on a fixed cadence.

    Both phases are blocking (database and SMTP I/O) and run in a worker thread.
    Stopping is cooperative: it interrupts the warm-up delay and the sleep between
    cycles immediately, is observed between the two phases of a running cycle,
    and never interrupts a send that is already in flight.
    """

    def __init__(
        self,
        dispatch_phase: Callable[[], Any],
        reminder_phase: Callable[[], Any],
        interval_seconds: float = 300.0,
        startup_delay_seconds: float = 30.0,
    ) -> None:
        self.dispatch_phase = dispatch_phase
        self.reminder_phase = reminder_phase
        self.interval_seconds = interval_seconds
        self.startup_delay_seconds = startup_delay_seconds
        self.state = SchedulerState.STOPPED
        self.completed_cycles = 0
        self.failed_cycles = 0
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    def start(self) -> asyncio.Task:
        if self._task is not None and not self._task.done():
            return self._task
        self._stop = asyncio.Event()
        self._task = asyncio.create_task(self.run(), name="notification-scheduler")
        return self._task

    def request_stop(self) -> None:
        self._stop.set()

    async def stop(self) -> None:
        self.request_stop()
        if self._task is not None:
            await self._task
            self._task = None

    async def _sleep(self, seconds: float) -> bool:
        """Wait for the given time; True if a stop was requested meanwhile."""
        if self._stop.is_set():
            return True
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
            return True
        except asyncio.TimeoutError:
            return False

    async def run(self) -> None:
        self.state = SchedulerState.RUNNING
        logger.info("=== Notification scheduler started ===")
        logger.info(f"Polling interval: {self.interval_seconds / 60:g} minutes")
        try:
            if await self._sleep(self.startup_delay_seconds):
                return
            while not self._stop.is_set():
                await self.run_cycle()
                logger.info(f"Next polling cycle in {self.interval_seconds / 60:g} minutes")
                if await self._sleep(self.interval_seconds):
                    break
        finally:
            self.state = SchedulerState.STOPPED
            logger.info("=== Notification scheduler stopped ===")

    async def run_cycle(self) -> None:
        logger.info("Starting notification polling cycle...")
        try:
            await asyncio.to_thread(self.dispatch_phase)
            if self._stop.is_set():
                logger.info("Stop requested; skipping overdue scan for this cycle")
                return
            await asyncio.to_thread(self.reminder_phase)
            self.completed_cycles += 1
        except Exception:
            self.failed_cycles += 1
            logger.exception("Error in notification polling cycle")
