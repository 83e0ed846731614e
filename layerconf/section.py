"""Scoped view over one section of a ConfigManager."""

import uuid
from datetime import timedelta
from typing import TYPE_CHECKING, Optional, TypeVar

from .utils.structures import CaseInsensitiveDict

if TYPE_CHECKING:
    from .manager import ConfigManager

T = TypeVar("T")


class SectionView:
    """Delegates lookups to the manager with a key prefix prepended.

    A view holds no data of its own, so it always reflects the current
    merged configuration, including reloads.
    """

    def __init__(self, manager: "ConfigManager", prefix: str):
        self._manager = manager
        self._prefix = prefix  # normalized, ends with the separator

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def path(self) -> str:
        return self._prefix[:-1]

    def _key(self, key: str) -> str:
        return self._prefix + key

    def contains_key(self, key: str) -> bool:
        return self._manager.contains_key(self._key(key))

    __contains__ = contains_key

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._manager.get(self._key(key), default)

    def get_int(self, key: str, default: int = 0) -> int:
        return self._manager.get_int(self._key(key), default)

    def get_long(self, key: str, default: int = 0) -> int:
        return self._manager.get_long(self._key(key), default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        return self._manager.get_bool(self._key(key), default)

    def get_float(self, key: str, default: float = 0.0) -> float:
        return self._manager.get_float(self._key(key), default)

    def get_duration(self, key: str, default: timedelta = timedelta(0)) -> timedelta:
        return self._manager.get_duration(self._key(key), default)

    def get_uuid(self, key: str, default: Optional[uuid.UUID] = None) -> Optional[uuid.UUID]:
        return self._manager.get_uuid(self._key(key), default)

    def section(self, child: str) -> "SectionView":
        return self._manager.section(self._prefix + child)

    def bind(self, target: type[T]) -> T:
        return self._manager.bind(target, self.path)

    def as_dict(self) -> CaseInsensitiveDict:
        """Flat entries of this section, keyed relative to the section."""
        prefix = self._prefix.lower()
        return CaseInsensitiveDict(
            (key[len(prefix) :], value)
            for key, value in self._manager.snapshot().items()
            if key.lower().startswith(prefix)
        )

    def __repr__(self) -> str:
        return f"SectionView({self._prefix!r})"

    def __str__(self) -> str:
        return self._prefix
