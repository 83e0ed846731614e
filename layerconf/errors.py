"""Exception hierarchy for the configuration aggregator."""

from typing import Optional


class ConfigurationError(Exception):
    """Base exception for configuration errors."""

    pass


class SourceError(ConfigurationError):
    """Exception raised when a configuration source cannot be turned into data."""

    def __init__(self, location: str, message: str):
        super().__init__(f"{message}: {location}")
        self.location = location


class FileLoadError(SourceError):
    """Exception raised when a source is missing or cannot be read."""

    pass


class FormatError(SourceError):
    """Exception raised when source content is malformed for its format."""

    pass


class ReloadError(ConfigurationError):
    """Exception published when a watch-triggered reload fails.

    The original load failure is available as ``__cause__``.
    """

    def __init__(self, location: str, source_name: Optional[str] = None):
        super().__init__(f"Failed to reload configuration from {location}")
        self.location = location
        self.source_name = source_name


class WatchSetupError(ConfigurationError):
    """Exception published when a file watch cannot be established."""

    def __init__(self, location: str, reason: str = ""):
        message = f"Failed to watch configuration file {location}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.location = location


class MissingConfigurationError(ConfigurationError):
    """Exception raised when required configuration keys are absent."""

    def __init__(self, missing: list[str]):
        super().__init__(
            "Missing required configuration key(s): " + ", ".join(missing)
        )
        self.missing = list(missing)


class BindingError(ConfigurationError):
    """Exception raised when a configuration subtree cannot be bound."""

    def __init__(self, section: Optional[str], target: object, reason: str):
        where = f"section '{section}'" if section else "configuration root"
        name = getattr(target, "__name__", repr(target))
        super().__init__(f"Cannot bind {where} to {name}: {reason}")
        self.section = section
        self.target = target
