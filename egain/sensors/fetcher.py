"""Fetch readings for a single sensor from the eGain API."""

import asyncio
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from egain.lib.config import FetcherSettings
from egain.lib.exceptions import DecodeError, FetchTimeoutError, TransportError
from egain.lib.ratelimit import RateLimiter
from egain.logging import get_logger
from egain.sensors.models import Reading, Sensor

logger = get_logger("sensors.fetcher")


def new_client(
    settings: FetcherSettings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the HTTP client shared by every sensor fetch.

    Redirects are followed for up to 10 hops.
    """
    return httpx.AsyncClient(
        timeout=settings.timeout_sec,
        headers={"Accept": "application/json"},
        follow_redirects=True,
        max_redirects=10,
        transport=transport,
    )


class ReadingFetcher:
    """Rate-limited, time-bounded reading fetches against the eGain API.

    One instance, and so one rate limiter and one connection pool, is shared
    by every sensor.
    """

    def __init__(
        self,
        settings: FetcherSettings,
        limiter: RateLimiter,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = settings.base_url.rstrip("/")
        self._timeout_sec = settings.timeout_sec
        self._limiter = limiter
        self._client = client or new_client(settings)

    def url_for(self, sensor: Sensor) -> str:
        """Return the reading URL of a sensor."""
        return f"{self._base_url}/{quote(sensor.sensor_id, safe='')}"

    async def fetch(self, sensor: Sensor) -> Reading:
        """Fetch and decode the current reading of a sensor.

        The timeout covers the rate limiter wait as well as the request.
        Cancellation propagates unchanged.

        Raises:
            FetchTimeoutError: If the fetch did not finish in time.
            TransportError: On connection failures and non-2xx responses.
            DecodeError: If the response body is not a reading.
        """
        logger.debug("Fetching data for sensor=%s", sensor.sensor_id)
        try:
            async with asyncio.timeout(self._timeout_sec):
                await self._limiter.wait()
                response = await self._client.get(self.url_for(sensor))
                response.raise_for_status()
        except TimeoutError as e:
            raise FetchTimeoutError(
                sensor, f"no response within {self._timeout_sec}s"
            ) from e
        except httpx.TimeoutException as e:
            raise FetchTimeoutError(sensor, f"upstream timed out: {e}") from e
        except httpx.HTTPStatusError as e:
            raise TransportError(
                sensor, f"upstream returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(sensor, f"request failed: {e!r}") from e

        try:
            return Reading.from_json(response.content)
        except ValidationError as e:
            raise DecodeError(
                sensor, f"cannot decode reading: {e.error_count()} error(s), "
                f"first: {e.errors()[0]['msg']}"
            ) from e

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
