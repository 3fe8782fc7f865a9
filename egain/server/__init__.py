"""Application factory for the metrics web server."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from starlette.applications import Starlette
from starlette.routing import Route

from egain.lib.polling import PollingService
from egain.logging import get_logger
from egain.metrics import MetricsPublisher

from .api.health import healthz
from .api.metrics import metrics

_logger = get_logger("server")


def _log_polling_exit(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    if (exc := task.exception()) is not None:
        _logger.error(
            "Polling service stopped unexpectedly: %s", exc, exc_info=exc
        )


def create_app(service: PollingService, publisher: MetricsPublisher) -> Starlette:
    """Create the Starlette application serving /metrics and /healthz.

    The lifespan runs the polling service as a background task. On shutdown
    the service is asked to stop and joined, so in-flight fetches are
    cancelled and awaited before the server exits.

    Args:
        service: Polling service feeding the publisher.
        publisher: Metrics publisher rendered by /metrics.

    Returns:
        Configured Starlette application instance.
    """

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        polling_task = asyncio.create_task(service.serve())
        polling_task.add_done_callback(_log_polling_exit)
        _logger.info("Polling service task started")
        try:
            yield
        finally:
            service.request_stop()
            try:
                await polling_task
            except asyncio.CancelledError:
                pass
            except Exception:
                # Reported by _log_polling_exit
                pass
            _logger.info("Polling service task stopped")

    routes = [
        Route("/metrics", metrics),
        Route("/healthz", healthz),
    ]

    app = Starlette(routes=routes, lifespan=lifespan)
    app.state.publisher = publisher
    return app
