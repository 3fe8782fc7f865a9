"""Liveness endpoint."""

from starlette.requests import Request
from starlette.responses import PlainTextResponse


async def healthz(request: Request) -> PlainTextResponse:
    """Report that the process is up."""
    return PlainTextResponse("OK\n")
