"""Tests for the metrics web server."""

import asyncio
from unittest.mock import MagicMock

import pytest
from starlette.testclient import TestClient

from egain.lib.polling import PollingService, SchedulerState
from egain.server import create_app
from egain.server.api.health import healthz
from egain.server.api.metrics import metrics


class RecordingService(PollingService[None]):
    """Polling service recording its lifecycle calls."""

    def __init__(self, interval_sec=3600.0) -> None:
        super().__init__(name="test", interval_sec=interval_sec)
        self.calls: list[str] = []

    async def initialize(self) -> None:
        self.calls.append("initialize")

    async def cleanup(self) -> None:
        self.calls.append("cleanup")

    async def poll_cycle(self) -> None:
        self.calls.append("cycle")


class BrokenService(RecordingService):
    """Polling service failing before its first cycle."""

    async def initialize(self) -> None:
        raise RuntimeError("upstream unreachable")


class TestHealthz:
    @pytest.mark.asyncio
    async def test_returns_ok(self):
        response = await healthz(MagicMock())

        assert response.status_code == 200
        assert response.body == b"OK\n"


class TestMetricsEndpoint:
    @pytest.mark.asyncio
    async def test_renders_publisher(self, publisher, kitchen, sample_reading):
        publisher.publish(kitchen, sample_reading)
        request = MagicMock()
        request.app.state.publisher = publisher

        response = await metrics(request)

        assert response.status_code == 200
        assert response.media_type.startswith("text/plain")
        assert b"indoor_temperature{" in response.body
        assert b'location="kitchen"' in response.body


class TestCreateApp:
    """Tests for the application factory and its lifespan."""

    def test_routes(self, publisher):
        service = RecordingService()
        app = create_app(service, publisher)

        with TestClient(app) as client:
            assert client.get("/healthz").text == "OK\n"
            assert client.get("/metrics").status_code == 200
            assert client.get("/nope").status_code == 404

    def test_lifespan_starts_and_stops_polling(self, publisher):
        service = RecordingService(interval_sec=3600)
        app = create_app(service, publisher)

        with TestClient(app):
            pass

        assert service.state == SchedulerState.STOPPED
        assert service.calls[0] == "initialize"
        assert service.calls[-1] == "cleanup"

    def test_metrics_exposes_published_readings(self, publisher, kitchen, sample_reading):
        publisher.publish(kitchen, sample_reading)
        app = create_app(RecordingService(), publisher)

        with TestClient(app) as client:
            body = client.get("/metrics").text

        assert 'sensor="A"' in body
        assert "indoor_humidity{" in body

    @pytest.mark.asyncio
    async def test_polling_failure_is_logged(self, publisher, caplog):
        service = BrokenService()
        app = create_app(service, publisher)

        async with app.router.lifespan_context(app):
            async with asyncio.timeout(1):
                while "Polling service stopped unexpectedly" not in caplog.text:
                    await asyncio.sleep(0.001)

        assert "upstream unreachable" in caplog.text
        assert service.state == SchedulerState.STOPPED
        assert service.calls == ["cleanup"]
