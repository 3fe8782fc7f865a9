"""Settings models and configuration loading for the eGain exporter."""

from functools import cached_property, lru_cache
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from egain.lib.exceptions import ConfigurationError
from egain.sensors.models import Sensor

DEFAULT_API_BASE_URL = "https://deployment.egain.io/api/indoor"

SENSORS_HELP = (
    "Please specify a comma-separated list of sensors with the --sensors "
    "flag or the SENSORS environment variable, e.g. "
    "SENSORS='ABC123=kitchen,DEF456=bathroom'"
)


class FetcherSettings(BaseModel):
    """Upstream API client settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str = DEFAULT_API_BASE_URL
    timeout_sec: float = 30.0
    rate_interval_sec: float = 5.0  # One token every N seconds
    rate_burst: int = 4


class PollingSettings(BaseModel):
    """Polling service settings."""

    model_config = ConfigDict(frozen=True)

    interval_sec: float = 60.0


class ServerSettings(BaseModel):
    """Metrics HTTP server settings."""

    model_config = ConfigDict(frozen=True)

    host: str = "0.0.0.0"
    port: int = 8080


def parse_sensors(raw: str) -> tuple[Sensor, ...]:
    """Parse a comma-separated ``id=location`` list into sensors.

    An entry without ``=`` has an empty location. Blank entries are skipped.

    Raises:
        ConfigurationError: On an empty identifier or a duplicate one.
    """
    sensors: list[Sensor] = []
    seen: set[str] = set()
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        sensor_id, _, location = entry.partition("=")
        sensor_id = sensor_id.strip()
        if not sensor_id:
            raise ConfigurationError(f"Sensor entry '{entry}' has no identifier")
        if sensor_id in seen:
            raise ConfigurationError(f"Sensor '{sensor_id}' is configured twice")
        seen.add(sensor_id)
        sensors.append(Sensor(sensor_id, location.strip()))
    return tuple(sensors)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Sensors, as 'id=location,id=location'
    sensors: str = ""

    # Upstream API
    api_base_url: str = DEFAULT_API_BASE_URL
    fetch_timeout_sec: float = Field(default=30.0, gt=0)
    rate_limit_interval_sec: float = Field(default=5.0, gt=0)
    rate_limit_burst: int = Field(default=4, ge=1)

    # Polling
    poll_interval_sec: float = Field(default=60.0, gt=0)

    # Metrics server
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)

    log_level: str = "INFO"

    @cached_property
    def registry(self) -> tuple[Sensor, ...]:
        """Get the configured sensors.

        Raises:
            ConfigurationError: If no sensor is configured.
        """
        sensors = parse_sensors(self.sensors)
        if not sensors:
            raise ConfigurationError(SENSORS_HELP)
        return sensors

    @cached_property
    def fetcher(self) -> FetcherSettings:
        """Get upstream API client settings."""
        return FetcherSettings(
            base_url=self.api_base_url.rstrip("/"),
            timeout_sec=self.fetch_timeout_sec,
            rate_interval_sec=self.rate_limit_interval_sec,
            rate_burst=self.rate_limit_burst,
        )

    @cached_property
    def polling(self) -> PollingSettings:
        """Get polling settings."""
        return PollingSettings(interval_sec=self.poll_interval_sec)

    @cached_property
    def server(self) -> ServerSettings:
        """Get metrics server settings."""
        return ServerSettings(host=self.host, port=self.port)

    @model_validator(mode="after")
    def validate_settings(self) -> Self:
        """Validate cross-field configuration constraints."""
        errors: list[str] = []

        try:
            parse_sensors(self.sensors)
        except ConfigurationError as e:
            errors.append(f"SENSORS: {e}")

        try:
            HttpUrl(self.api_base_url)
        except ValueError:
            errors.append(f"API_BASE_URL ({self.api_base_url}) is not a valid URL")

        if self.log_level.upper() not in {
            "CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"
        }:
            errors.append(f"LOG_LEVEL ({self.log_level}) is not a logging level")

        if errors:
            raise ValueError(
                "Configuration validation failed:\n  - "
                + "\n  - ".join(errors)
            )

        return self


# Settings override for testing - allows injecting custom Settings without
# modifying environment variables or clearing the lru_cache.
_settings_override: Settings | None = None


@lru_cache(maxsize=1)
def _load_settings() -> Settings:
    """Load settings from environment (cached)."""
    return Settings()


def get_settings() -> Settings:
    """Get the global settings instance.

    Returns the test override if set, otherwise loads from environment
    variables (cached after first load). For testing, use set_settings()
    from egain.lib.config.testing to override.
    """
    if _settings_override is not None:
        return _settings_override
    return _load_settings()
