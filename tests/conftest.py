"""Shared pytest fixtures for the test suite."""

import json
import logging
from datetime import UTC, datetime

import httpx
import pytest

from egain.lib.config import FetcherSettings
from egain.lib.config.testing import set_settings
from egain.lib.ratelimit import RateLimiter
from egain.metrics import MetricsPublisher
from egain.sensors.fetcher import ReadingFetcher, new_client
from egain.sensors.models import Reading, Sensor

BASE_URL = "https://egain.test/api/indoor"


@pytest.fixture(autouse=True)
def configure_caplog(caplog):
    """Ensure caplog captures logs from the egain namespace."""
    caplog.set_level(logging.DEBUG, logger="egain")


@pytest.fixture(autouse=True)
def reset_settings():
    """Reset global settings after each test to avoid cross-test pollution."""
    yield
    set_settings(None)


@pytest.fixture
def frozen_time():
    """Return a fixed datetime for deterministic tests."""
    return datetime(2024, 1, 1, 0, 0, 0, tzinfo=UTC)


@pytest.fixture
def kitchen():
    return Sensor("A", "kitchen")


@pytest.fixture
def bath():
    return Sensor("B", "bath")


@pytest.fixture
def sample_reading(frozen_time):
    """Create a valid reading."""
    return Reading(temperature=21.5, humidity=40.0, timestamp=frozen_time)


@pytest.fixture
def publisher():
    return MetricsPublisher()


def _payload(**fields) -> bytes:
    body = {
        "temperature": 21.5,
        "humidity": 40.0,
        "installed": True,
        "timestamp": "2024-01-01T00:00:00Z",
        "externalTemperatures": [],
        "values": [],
    }
    body.update(fields)
    return json.dumps(body).encode()


def _gauge(publisher: MetricsPublisher, name: str, sensor: Sensor) -> float | None:
    return publisher.registry.get_sample_value(name, sensor.labels)


@pytest.fixture
def payload():
    """Build an upstream response body from field overrides."""
    return _payload


@pytest.fixture
def read_gauge():
    """Read a published sample value, None if never set."""
    return _gauge


@pytest.fixture
def make_fetcher():
    """Build a ReadingFetcher whose HTTP calls are answered by ``handler``.

    The default limiter is large enough never to delay a test.
    """
    def _make(handler, *, timeout_sec=30.0, limiter=None) -> ReadingFetcher:
        settings = FetcherSettings(base_url=BASE_URL, timeout_sec=timeout_sec)
        client = new_client(settings, httpx.MockTransport(handler))
        return ReadingFetcher(
            settings, limiter or RateLimiter(0.001, 100), client
        )

    return _make
