"""Configuration models and records."""

from .schemas import (
    COMMAND_LINE_LOCATION,
    ENVIRONMENT_LOCATION,
    ChangeRecord,
    ConfigChangedEvent,
    ConfigFormat,
    LayerInfo,
    ManagerSettings,
    WatchState,
)

__all__ = [
    "ChangeRecord",
    "ConfigChangedEvent",
    "ConfigFormat",
    "LayerInfo",
    "ManagerSettings",
    "WatchState",
    "ENVIRONMENT_LOCATION",
    "COMMAND_LINE_LOCATION",
]
