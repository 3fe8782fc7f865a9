"""Prometheus scrape endpoint."""

from starlette.requests import Request
from starlette.responses import Response

from egain.metrics import MetricsPublisher


async def metrics(request: Request) -> Response:
    """Expose the published gauges in the Prometheus text format."""
    publisher: MetricsPublisher = request.app.state.publisher
    body, content_type = publisher.render()
    return Response(body, media_type=content_type)
