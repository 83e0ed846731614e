"""Layer registry: the ordered set of loaded configuration sources."""

import itertools
import logging
import threading
from collections.abc import Iterator
from typing import Optional

from .loader.base import SourceLoader
from .models.schemas import LayerInfo, WatchState
from .utils.structures import CaseInsensitiveDict
from .utils.watcher import LayerWatch

logger = logging.getLogger(__name__)


class ConfigLayer:
    """One configuration source with a fixed precedence position.

    ``data`` is replaced wholesale on reload and never edited in place.
    Higher ``order`` wins on key collision.
    """

    def __init__(
        self,
        location: str,
        loader: SourceLoader,
        order: int,
        data: CaseInsensitiveDict,
        is_dynamic: bool = False,
        optional: bool = False,
    ):
        self.location = location
        self.loader = loader
        self.order = order
        self.data = data
        self.is_dynamic = is_dynamic
        self.optional = optional
        self.watch: Optional[LayerWatch] = None
        # Serializes reload cycles of this layer
        self.reload_lock = threading.Lock()

    @property
    def source_name(self) -> str:
        return self.loader.source_name

    @property
    def watch_state(self) -> WatchState:
        return self.watch.state if self.watch is not None else WatchState.UNWATCHED

    def describe(self) -> LayerInfo:
        return LayerInfo(
            location=self.location,
            order=self.order,
            source_name=self.source_name,
            is_dynamic=self.is_dynamic,
            optional=self.optional,
            key_count=len(self.data),
            watch_state=self.watch_state,
        )

    def __repr__(self) -> str:
        return (
            f"ConfigLayer(location={self.location!r}, order={self.order}, "
            f"source={self.source_name!r}, keys={len(self.data)})"
        )


class LayerRegistry:
    """Append-only, order-stamped list of configuration layers.

    Not synchronized on its own: callers hold the manager's write lock
    while registering and at least its read lock while iterating.
    """

    def __init__(self) -> None:
        self._layers: list[ConfigLayer] = []
        self._counter = itertools.count(1)

    def register(
        self,
        location: str,
        loader: SourceLoader,
        data: CaseInsensitiveDict,
        is_dynamic: bool = False,
        optional: bool = False,
    ) -> ConfigLayer:
        """Append a layer with the next precedence order and return it."""
        layer = ConfigLayer(
            location=location,
            loader=loader,
            order=next(self._counter),
            data=data,
            is_dynamic=is_dynamic,
            optional=optional,
        )
        self._layers.append(layer)
        logger.debug(f"Registered layer {layer!r}")
        return layer

    def find(self, location: str) -> Optional[ConfigLayer]:
        """Return the highest-order layer registered for ``location``."""
        for layer in reversed(self._layers):
            if layer.location == location:
                return layer
        return None

    def clear(self) -> list[ConfigLayer]:
        """Remove and return every layer (teardown only)."""
        layers, self._layers = self._layers, []
        return layers

    def __iter__(self) -> Iterator[ConfigLayer]:
        return iter(sorted(self._layers, key=lambda layer: layer.order))

    def __len__(self) -> int:
        return len(self._layers)
