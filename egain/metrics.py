"""Prometheus gauges for published sensor readings."""

import threading
from datetime import datetime

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Gauge,
    Histogram,
    generate_latest,
)

from egain.lib.exceptions import InvalidReadingError
from egain.logging import get_logger
from egain.sensors.models import Reading, Sensor

logger = get_logger("metrics")

LABELS = ("sensor", "location")

# Readings are polled every minute but sensors may report far less often
STALENESS_BUCKETS = (60, 300, 900, 1800, 3600, 7200, 21600, 86400, float("inf"))


class MetricsPublisher:
    """Owns the gauge set and its registry.

    Writes come from poll cycle tasks, reads from the scrape endpoint. A
    temperature/humidity pair is always applied and rendered as a unit.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self._lock = threading.Lock()
        self.temperature = Gauge(
            "indoor_temperature",
            "Indoor temperature in degrees Celsius",
            LABELS,
            registry=self.registry,
        )
        self.humidity = Gauge(
            "indoor_humidity",
            "Indoor relative humidity as a percentage",
            LABELS,
            registry=self.registry,
        )
        self.staleness = Histogram(
            "indoor_reading_staleness_seconds",
            "Age of a reading at publication time",
            LABELS,
            buckets=STALENESS_BUCKETS,
            registry=self.registry,
        )

    def publish(
        self, sensor: Sensor, reading: Reading, now: datetime | None = None
    ) -> None:
        """Publish a reading, replacing the previous values for the sensor.

        Raises:
            InvalidReadingError: If the reading has no capture timestamp.
                Nothing is published in that case.
        """
        if not reading.is_valid:
            raise InvalidReadingError(sensor, "reading has no capture timestamp")

        labels = sensor.labels
        with self._lock:
            self.temperature.labels(**labels).set(reading.temperature)
            self.humidity.labels(**labels).set(reading.humidity)
            self.staleness.labels(**labels).observe(reading.staleness(now))
        logger.debug(
            "Published sensor=%s location=%s", sensor.sensor_id, sensor.location
        )

    def render(self) -> tuple[bytes, str]:
        """Render the registry in the Prometheus text format."""
        with self._lock:
            return generate_latest(self.registry), CONTENT_TYPE_LATEST
