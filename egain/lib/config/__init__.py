"""Centralized configuration for the eGain exporter.

This package provides:
- Pydantic settings models for configuration
- The sensor registry parsed from the SENSORS setting
"""

from .settings import (
    DEFAULT_API_BASE_URL,
    SENSORS_HELP,
    FetcherSettings,
    PollingSettings,
    ServerSettings,
    Settings,
    get_settings,
    parse_sensors,
)

__all__ = [
    # Settings models
    "FetcherSettings",
    "PollingSettings",
    "ServerSettings",
    "Settings",
    # Constants
    "DEFAULT_API_BASE_URL",
    "SENSORS_HELP",
    # Functions
    "get_settings",
    "parse_sensors",
]
