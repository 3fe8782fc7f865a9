"""Domain models for eGain sensors and their readings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field

# Zero value the upstream API reports for sensors that never captured data
ZERO_TIME = datetime(1, 1, 1, tzinfo=UTC)


def _null_as_zero(v: Any) -> Any:
    return 0 if v is None else v


def _null_as_false(v: Any) -> Any:
    return False if v is None else v


def _null_as_blank(v: Any) -> Any:
    return "" if v is None else v


def _null_as_empty(v: Any) -> Any:
    return [] if v is None else v


def _blank_as_none(v: Any) -> Any:
    if v is None or (isinstance(v, str) and not v.strip()):
        return None
    return v


def _assume_utc(v: datetime | None) -> datetime | None:
    if v is not None and v.tzinfo is None:
        return v.replace(tzinfo=UTC)
    return v


_Number = Annotated[float, BeforeValidator(_null_as_zero)]
_Flag = Annotated[bool, BeforeValidator(_null_as_false)]
_Text = Annotated[str, BeforeValidator(_null_as_blank)]
_Timestamp = Annotated[
    datetime | None,
    BeforeValidator(_blank_as_none),
    AfterValidator(_assume_utc),
]


class _ValuePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    value: _Number = 0.0
    unit: _Text = ""
    timestamp: _Timestamp = None


class _IndoorPayload(BaseModel):
    """Wire format of GET /api/indoor/<id>."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    external_temperatures: Annotated[list[Any], BeforeValidator(_null_as_empty)] = Field(
        default_factory=list, alias="externalTemperatures"
    )
    humidity: _Number = 0.0
    installed: _Flag = False
    temperature: _Number = 0.0
    timestamp: _Timestamp = None
    values: Annotated[list[_ValuePayload], BeforeValidator(_null_as_empty)] = Field(
        default_factory=list
    )


@dataclass(slots=True)
class Sensor:
    """A configured sensor.

    The identifier and location are fixed at startup; last_reading is the
    capture time of the most recent published reading.
    """

    sensor_id: str
    location: str = ""
    last_reading: datetime | None = field(default=None, compare=False)

    @property
    def labels(self) -> dict[str, str]:
        """Prometheus label values identifying this sensor."""
        return {"sensor": self.sensor_id, "location": self.location}


@dataclass(slots=True, frozen=True)
class SubReading:
    value: float
    unit: str
    timestamp: datetime | None


@dataclass(slots=True, frozen=True)
class Reading:
    """A single decoded telemetry payload."""

    temperature: float
    humidity: float
    installed: bool = False
    timestamp: datetime | None = None
    external_temperatures: tuple[Any, ...] = ()
    values: tuple[SubReading, ...] = ()

    @classmethod
    def from_json(cls, body: bytes | str) -> Reading:
        """Decode an upstream response body.

        Unknown fields are ignored and missing fields take their zero value,
        so a decodable body is not necessarily a valid reading.

        Raises:
            pydantic.ValidationError: If the body is not JSON or has
                fields of the wrong type.
        """
        payload = _IndoorPayload.model_validate_json(body)
        return cls(
            temperature=payload.temperature,
            humidity=payload.humidity,
            installed=payload.installed,
            timestamp=payload.timestamp,
            external_temperatures=tuple(payload.external_temperatures),
            values=tuple(
                SubReading(v.value, v.unit, v.timestamp) for v in payload.values
            ),
        )

    @property
    def is_valid(self) -> bool:
        """Whether the reading carries a real capture timestamp."""
        return self.timestamp is not None and self.timestamp != ZERO_TIME

    def staleness(self, now: datetime | None = None) -> float:
        """Seconds elapsed since capture, never negative."""
        if self.timestamp is None:
            raise ValueError("reading has no capture timestamp")
        now = now or datetime.now(UTC)
        return max(0.0, (now - self.timestamp).total_seconds())
