"""Case-insensitive mapping used for every flat key-value view."""

from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from typing import Any, Optional, Union


class CaseInsensitiveDict(MutableMapping):
    """Dictionary whose string keys compare case-insensitively.

    The casing under which a key was first inserted is preserved for
    iteration; assigning through a differently cased key only replaces the
    value. Iteration follows insertion order.

    Example:
        >>> d = CaseInsensitiveDict({"Server:Port": "5000"})
        >>> d["server:PORT"]
        '5000'
        >>> list(d)
        ['Server:Port']
    """

    __slots__ = ("_store",)

    def __init__(
        self,
        data: Optional[Union[Mapping[str, Any], Iterable[tuple[str, Any]]]] = None,
        **kwargs: Any,
    ):
        self._store: dict[str, tuple[str, Any]] = {}
        if data is not None:
            self.update(data)
        if kwargs:
            self.update(kwargs)

    @staticmethod
    def _fold(key: str) -> str:
        if not isinstance(key, str):
            raise TypeError(f"Configuration keys must be strings, got {type(key)!r}")
        return key.lower()

    def __setitem__(self, key: str, value: Any) -> None:
        folded = self._fold(key)
        existing = self._store.get(folded)
        original = existing[0] if existing is not None else key
        self._store[folded] = (original, value)

    def __getitem__(self, key: str) -> Any:
        return self._store[self._fold(key)][1]

    def __delitem__(self, key: str) -> None:
        del self._store[self._fold(key)]

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._store.values())

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return key.lower() in self._store

    def lower_items(self) -> Iterator[tuple[str, Any]]:
        """Iterate ``(lowercased_key, value)`` pairs."""
        return ((folded, pair[1]) for folded, pair in self._store.items())

    def original_key(self, key: str) -> Optional[str]:
        """Return the stored casing of ``key``, or None when absent."""
        pair = self._store.get(self._fold(key))
        return pair[0] if pair is not None else None

    def copy(self) -> "CaseInsensitiveDict":
        clone = CaseInsensitiveDict()
        clone._store = dict(self._store)
        return clone

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CaseInsensitiveDict):
            return dict(self.lower_items()) == dict(other.lower_items())
        if isinstance(other, Mapping):
            return dict(self.items()) == dict(other.items())
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({dict(self.items())!r})"
