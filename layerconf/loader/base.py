"""Source loader interface shared by every configuration format."""

from abc import ABC, abstractmethod

from ..utils.structures import CaseInsensitiveDict


class SourceLoader(ABC):
    """Turns one configuration source into a flat key-value mapping.

    Implementations flatten nested structure into keys joined by
    ``separator`` and return string values only. Errors are raised as
    :class:`~layerconf.errors.FileLoadError` or
    :class:`~layerconf.errors.FormatError`.
    """

    source_name: str = ""
    supports_hot_reload: bool = False

    def __init__(self, separator: str = ":"):
        self.separator = separator

    @abstractmethod
    def load(self, location: str) -> CaseInsensitiveDict:
        """Load the source at ``location`` into a flat mapping."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(source_name={self.source_name!r})"


class PassthroughLoader(SourceLoader):
    """Names a synthetic layer whose data was supplied directly.

    Used for environment and command-line layers, which are captured once
    at registration and never reloaded.
    """

    supports_hot_reload = False

    def __init__(self, source_name: str, separator: str = ":"):
        super().__init__(separator)
        self.source_name = source_name

    def load(self, location: str) -> CaseInsensitiveDict:
        raise NotImplementedError(
            f"{self.source_name} layers are captured at registration and cannot be reloaded"
        )
