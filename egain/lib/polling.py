"""Generic async polling service abstraction.

Provides a reusable base class for services that run a poll cycle once at
startup and then on a fixed interval until asked to stop.
"""

import asyncio
from abc import ABC, abstractmethod
from contextlib import suppress
from enum import StrEnum

from egain.lib.config import get_settings
from egain.logging import get_logger


class SchedulerState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class PollingService[T](ABC):
    """Abstract base class for async polling services.

    Implements the common polling loop pattern with:
    - An immediate first cycle, then a fixed interval between cycle starts
    - Serialized cycles, a late cycle delays the next one instead of
      overlapping it
    - Graceful shutdown cancelling the in-flight cycle
    - Error recovery
    """

    def __init__(
        self,
        name: str,
        interval_sec: float | None = None,
    ) -> None:
        """Initialize the polling service.

        Args:
            name: Service name for logging.
            interval_sec: Seconds between the start of two cycles.
        """
        self.name = name
        self.interval_sec = interval_sec or get_settings().polling.interval_sec
        self.state = SchedulerState.IDLE
        self._stop = asyncio.Event()
        self._logger = get_logger(f"polling.{name}")

    @abstractmethod
    async def initialize(self) -> None:
        """Initialize any resources needed before polling starts."""

    @abstractmethod
    async def cleanup(self) -> None:
        """Clean up resources before exit."""

    @abstractmethod
    async def poll_cycle(self) -> T:
        """Run a single poll cycle."""

    def on_poll_error(self, error: Exception) -> None:
        """Handle an error that escaped a poll cycle.

        Override to customize error handling. Default logs the error.
        """
        self._logger.error(
            "%s poll cycle failed: %s", self.name, error, exc_info=error
        )

    def request_stop(self) -> None:
        """Ask the service to stop. No new cycle starts after this call."""
        if self.state in (SchedulerState.IDLE, SchedulerState.RUNNING):
            self._logger.info("%s stop requested", self.name)
        self._stop.set()
        if self.state == SchedulerState.RUNNING:
            self.state = SchedulerState.STOPPING

    async def _run_cycle(self) -> None:
        """Run one cycle, cancelling it if a stop is requested meanwhile."""
        cycle = asyncio.create_task(self.poll_cycle())
        stop = asyncio.create_task(self._stop.wait())
        try:
            await asyncio.wait({cycle, stop}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            cycle.cancel()
            await asyncio.gather(cycle, return_exceptions=True)
            raise
        finally:
            stop.cancel()

        if not cycle.done():
            self._logger.info("Cancelling in-flight %s poll cycle", self.name)
            cycle.cancel()
        try:
            await cycle
        except asyncio.CancelledError:
            if not self._stop.is_set():
                raise
        except Exception as e:
            self.on_poll_error(e)

    async def _wait_next_tick(self, timeout: float) -> None:
        with suppress(TimeoutError):
            async with asyncio.timeout(timeout):
                await self._stop.wait()

    async def serve(self) -> None:
        """Run the polling loop until request_stop() is called.

        This is the main entry point. It:
        1. Calls initialize()
        2. Runs a cycle immediately, then one per interval
        3. Calls cleanup() on exit
        """
        if self.state != SchedulerState.IDLE:
            raise RuntimeError(f"{self.name} polling service already started")

        loop = asyncio.get_running_loop()
        try:
            await self.initialize()
            if not self._stop.is_set():
                self.state = SchedulerState.RUNNING
                self._logger.info("%s polling service started", self.name)

            while not self._stop.is_set():
                cycle_start = loop.time()
                await self._run_cycle()

                # Sleep only the remaining time to maintain consistent intervals
                elapsed = loop.time() - cycle_start
                await self._wait_next_tick(max(0, self.interval_sec - elapsed))
        finally:
            self.state = SchedulerState.STOPPING
            self._logger.info("Cleaning up resources...")
            await self.cleanup()
            self.state = SchedulerState.STOPPED
            self._logger.info("%s shutdown complete", self.name)
