"""Merge engine folding configuration layers by precedence.

Layers are applied in ascending order, later layers overwriting earlier ones
key by key. No deep merge takes place: loaders flatten their sources, so a
collision is always between two identical flat keys.
"""

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from ..utils.structures import CaseInsensitiveDict

if TYPE_CHECKING:
    from ..layers import ConfigLayer

logger = logging.getLogger(__name__)


def merge_layers(layers: Iterable["ConfigLayer"]) -> CaseInsensitiveDict:
    """Rebuild the merged snapshot from ``layers``.

    Deterministic and idempotent: the same layers with the same data always
    produce an equal mapping with the same key order and casing.

    Args:
        layers: Registered layers, in any order

    Returns:
        A new flat mapping; the caller publishes it and never mutates it
    """
    ordered = sorted(layers, key=lambda layer: layer.order)

    result = CaseInsensitiveDict()
    for layer in ordered:
        for key, value in layer.data.items():
            result[key] = value

    logger.debug(f"Merged {len(ordered)} layers into {len(result)} keys")
    return result
