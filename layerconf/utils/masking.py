"""Display masking for secret-looking configuration values."""

from collections.abc import Iterable

DEFAULT_SECRET_HINTS = (
    "password",
    "pwd",
    "secret",
    "token",
    "apikey",
    "api_key",
    "key",
    "private",
    "connectionstring",
)

VISIBLE_SUFFIX = 4


class SecretMasker:
    """Masks values whose key contains one of a set of hint substrings.

    Hints are matched case-insensitively anywhere in the key. Each manager
    owns its own masker, so changing hints never leaks across instances.
    """

    def __init__(self, hints: Iterable[str] = DEFAULT_SECRET_HINTS):
        self._hints = tuple(h.lower() for h in hints if h)

    @property
    def hints(self) -> tuple[str, ...]:
        return self._hints

    def with_hints(self, hints: Iterable[str]) -> "SecretMasker":
        """Return a masker using ``hints`` instead of the current set."""
        return SecretMasker(hints)

    def add_hints(self, *hints: str) -> "SecretMasker":
        """Return a masker using the current hints plus ``hints``."""
        return SecretMasker(self._hints + tuple(hints))

    def is_secret(self, key: str) -> bool:
        lowered = key.lower()
        return any(hint in lowered for hint in self._hints)

    @staticmethod
    def mask(value: str) -> str:
        """Star out ``value``, keeping the last four characters when longer than four."""
        if not value:
            return ""
        if len(value) <= VISIBLE_SUFFIX:
            return "*" * len(value)
        return "*" * (len(value) - VISIBLE_SUFFIX) + value[-VISIBLE_SUFFIX:]

    def render(self, key: str, value: str) -> str:
        return self.mask(value) if self.is_secret(key) else value
