"""Layered configuration with precedence merging and live reload."""

from .errors import (
    BindingError,
    ConfigurationError,
    FileLoadError,
    FormatError,
    MissingConfigurationError,
    ReloadError,
    SourceError,
    WatchSetupError,
)
from .manager import ConfigManager
from .models.schemas import (
    ChangeRecord,
    ConfigChangedEvent,
    ConfigFormat,
    LayerInfo,
    ManagerSettings,
    WatchState,
)
from .section import SectionView

__version__ = "1.0.0"

__all__ = [
    "ConfigManager",
    "ManagerSettings",
    "SectionView",
    "ChangeRecord",
    "ConfigChangedEvent",
    "ConfigFormat",
    "LayerInfo",
    "WatchState",
    "ConfigurationError",
    "SourceError",
    "FileLoadError",
    "FormatError",
    "ReloadError",
    "WatchSetupError",
    "MissingConfigurationError",
    "BindingError",
]
