"""Configuration models for the aggregator.

Defines the pydantic settings model that configures a manager instance and
the plain data records produced by the merge and reload machinery:
- ManagerSettings: separator, debounce, secret hints, masking defaults
- ChangeRecord / ConfigChangedEvent: diff of the merged snapshot after a reload
- LayerInfo: read-only description of a registered layer
"""

import time
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.masking import DEFAULT_SECRET_HINTS
from ..utils.structures import CaseInsensitiveDict

ENVIRONMENT_LOCATION = "<EnvironmentVariables>"
COMMAND_LINE_LOCATION = "<CommandLine>"


class ConfigFormat(str, Enum):
    """Configuration file format enumeration."""

    JSON = "json"
    YAML = "yaml"
    INI = "ini"
    ENV = "env"


class WatchState(str, Enum):
    """Lifecycle of a layer's file watch."""

    UNWATCHED = "unwatched"
    WATCHING = "watching"
    RELOADING = "reloading"
    STOPPED = "stopped"


class ManagerSettings(BaseModel):
    """Settings for a single ConfigManager instance."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    separator: str = Field(default=":", description="Path segment separator")
    debounce_ms: int = Field(
        default=50, ge=0, description="Delay coalescing bursts of file events"
    )
    secret_hints: tuple[str, ...] = Field(
        default=DEFAULT_SECRET_HINTS,
        description="Case-insensitive key substrings whose values dump() masks",
    )
    mask_secrets: bool = Field(default=True, description="Default masking for dump()")
    reload_on_change: bool = Field(
        default=True, description="Default live reload for file registrations"
    )
    encoding: str = Field(default="utf-8", description="Encoding of source files")

    @field_validator("separator")
    @classmethod
    def validate_separator(cls, v: str) -> str:
        if len(v) != 1:
            raise ValueError("separator must be a single character")
        return v

    @property
    def debounce_delay(self) -> float:
        """Debounce interval in seconds."""
        return self.debounce_ms / 1000.0


@dataclass(frozen=True)
class ChangeRecord:
    """Keys added, modified and removed between two merged snapshots."""

    added: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    modified: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    removed: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.added or self.modified or self.removed)

    @property
    def is_empty(self) -> bool:
        return not self

    @property
    def total_changes(self) -> int:
        return len(self.added) + len(self.modified) + len(self.removed)


@dataclass(frozen=True)
class ConfigChangedEvent:
    """Published after a reload changed the merged configuration."""

    record: ChangeRecord
    source_path: str
    source_name: str
    timestamp: float = field(default_factory=time.time)

    @property
    def added(self) -> CaseInsensitiveDict:
        return self.record.added

    @property
    def modified(self) -> CaseInsensitiveDict:
        return self.record.modified

    @property
    def removed(self) -> list[str]:
        return self.record.removed


@dataclass(frozen=True)
class LayerInfo:
    """Read-only description of a registered layer."""

    location: str
    order: int
    source_name: str
    is_dynamic: bool
    optional: bool
    key_count: int
    watch_state: WatchState
