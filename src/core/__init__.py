"""Core data model, errors, structured logging, and metrics for the beacon."""

from src.core.errors import (
    BeaconError,
    ConfigError,
    FetchError,
    LightError,
    LightUnavailableError,
    ParseError,
)

__all__ = [
    "BeaconError",
    "ConfigError",
    "FetchError",
    "LightError",
    "LightUnavailableError",
    "ParseError",
]
