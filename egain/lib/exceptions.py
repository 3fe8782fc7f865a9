"""Custom exceptions for the eGain exporter.

Per-sensor failures derive from SensorError and are contained by the poll
cycle. Cancellation is plain asyncio.CancelledError and is never wrapped.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from egain.sensors.models import Sensor


class EgainError(Exception):
    """Base exception for all application errors."""


class ConfigurationError(EgainError):
    """Raised when the exporter cannot start with the given configuration."""


class SensorError(EgainError):
    """Base exception for a failed poll of a single sensor."""

    def __init__(self, sensor: Sensor, message: str) -> None:
        super().__init__(message)
        self.sensor = sensor


class TransportError(SensorError):
    """Raised on connection failures and non-2xx upstream responses."""


class FetchTimeoutError(SensorError):
    """Raised when a fetch exceeds its time bound."""


class DecodeError(SensorError):
    """Raised when the upstream body is not a decodable reading."""


class InvalidReadingError(SensorError):
    """Raised for readings without a capture timestamp."""
