"""One poll cycle over every configured sensor."""

import asyncio
from collections.abc import Sequence
from typing import Protocol

from egain.lib.exceptions import InvalidReadingError, SensorError
from egain.logging import get_logger
from egain.sensors.models import Reading, Sensor

logger = get_logger("sensors.cycle")


class Fetcher(Protocol):
    """Protocol for reading fetchers."""

    async def fetch(self, sensor: Sensor) -> Reading: ...


class Publisher(Protocol):
    """Protocol for reading publishers."""

    def publish(self, sensor: Sensor, reading: Reading) -> None: ...


class PollCycle:
    """Fetch every sensor concurrently and publish the valid readings.

    A failing sensor is logged and skipped for the cycle. Readings are
    published as soon as they arrive, so results survive a cancellation of
    the rest of the cycle.
    """

    def __init__(self, fetcher: Fetcher, publisher: Publisher) -> None:
        self._fetcher = fetcher
        self._publisher = publisher

    async def run(self, sensors: Sequence[Sensor]) -> list[tuple[Sensor, Reading]]:
        """Run one cycle.

        Returns:
            The published (sensor, reading) pairs, in registry order.
        """
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(self._poll_sensor(s)) for s in sensors]

        published = [
            (sensor, reading)
            for sensor, task in zip(sensors, tasks, strict=True)
            if (reading := task.result()) is not None
        ]
        logger.info(
            "Poll cycle complete: %d/%d sensors published",
            len(published),
            len(sensors),
        )
        return published

    async def _poll_sensor(self, sensor: Sensor) -> Reading | None:
        try:
            reading = await self._fetcher.fetch(sensor)
            if not reading.is_valid:
                raise InvalidReadingError(
                    sensor, "invalid reading, capture timestamp is unset"
                )
            self._publisher.publish(sensor, reading)
        except SensorError as e:
            logger.warning(
                "Cannot fetch sensor measurements sensor=%s location=%s "
                "error=%s: %s",
                sensor.sensor_id,
                sensor.location,
                type(e).__name__,
                e,
            )
            return None

        sensor.last_reading = reading.timestamp
        logger.info(
            "Fetched data sensor=%s location=%s temperature=%.2f "
            "humidity=%.2f timestamp=%s",
            sensor.sensor_id,
            sensor.location,
            reading.temperature,
            reading.humidity,
            reading.timestamp.isoformat(),
        )
        return reading
