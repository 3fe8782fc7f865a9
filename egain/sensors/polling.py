"""Poll eGain sensors on a fixed interval and publish their readings."""

from collections.abc import Sequence
from typing import override

from egain.lib.polling import PollingService
from egain.logging import get_logger
from egain.metrics import MetricsPublisher
from egain.sensors.cycle import PollCycle
from egain.sensors.fetcher import ReadingFetcher
from egain.sensors.models import Reading, Sensor

logger = get_logger("sensors.polling")


class SensorPollingService(PollingService[list[tuple[Sensor, Reading]]]):
    """Polling service for the configured eGain sensors."""

    def __init__(
        self,
        sensors: Sequence[Sensor],
        fetcher: ReadingFetcher,
        publisher: MetricsPublisher,
        interval_sec: float | None = None,
    ) -> None:
        super().__init__(name="eGain", interval_sec=interval_sec)
        self.sensors = tuple(sensors)
        self._fetcher = fetcher
        self._cycle = PollCycle(fetcher, publisher)

    @override
    async def initialize(self) -> None:
        """Log the sensor registry."""
        for sensor in self.sensors:
            logger.info(
                "Polling sensor=%s location=%s every %ss",
                sensor.sensor_id,
                sensor.location,
                self.interval_sec,
            )

    @override
    async def cleanup(self) -> None:
        """Close the upstream HTTP client."""
        await self._fetcher.aclose()

    @override
    async def poll_cycle(self) -> list[tuple[Sensor, Reading]]:
        """Fetch and publish a reading for every sensor."""
        return await self._cycle.run(self.sensors)
