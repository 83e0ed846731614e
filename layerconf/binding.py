"""Projection of a flat configuration subtree onto a structured type.

The flat keys under a section are split back into a nested dictionary and
validated with pydantic, so any pydantic model, dataclass or other type
pydantic understands can be a binding target. String values are coerced by
pydantic's lax mode (``"5000"`` becomes ``5000`` for an ``int`` field).
"""

import dataclasses
import json
import logging
import types
import typing
from collections.abc import Mapping
from typing import Any, Optional, TypeVar, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

from .errors import BindingError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNION_TYPES = (Union, getattr(types, "UnionType", Union))
_SEQUENCE_TYPES = (list, tuple, set, frozenset)


def normalize_section(path: str, separator: str = ":") -> str:
    """Normalize a section path to a key prefix ending with the separator."""
    prefix = path.replace("__", separator)
    return prefix if prefix.endswith(separator) else prefix + separator


def build_tree(
    snapshot: Mapping[str, str], prefix: str = "", separator: str = ":"
) -> dict[str, Any]:
    """Rebuild the nested key tree below ``prefix``.

    Args:
        snapshot: Flat configuration mapping
        prefix: Normalized section prefix (empty for the whole configuration)
        separator: Path segment separator

    Returns:
        Nested dictionaries with string leaves
    """
    root: dict[str, Any] = {}
    lowered_prefix = prefix.lower()

    for key, value in snapshot.items():
        if lowered_prefix and not key.lower().startswith(lowered_prefix):
            continue
        path = key[len(prefix) :] if prefix else key
        _insert_path(root, path.split(separator), value)
    return root


def _insert_path(node: dict[str, Any], parts: list[str], value: str) -> None:
    current = node
    for part in parts[:-1]:
        child = _lookup(current, part)
        if not isinstance(child, dict):
            child = {}
            _assign(current, part, child)
        current = child
    _assign(current, parts[-1], value)


def _lookup(node: dict[str, Any], key: str) -> Any:
    lowered = key.lower()
    for existing, value in node.items():
        if existing.lower() == lowered:
            return value
    return None


def _assign(node: dict[str, Any], key: str, value: Any) -> None:
    lowered = key.lower()
    for existing in node:
        if existing.lower() == lowered:
            node[existing] = value
            return
    node[key] = value


def _unwrap_optional(annotation: Any) -> Any:
    if typing.get_origin(annotation) in _UNION_TYPES:
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _field_map(target: Any) -> Optional[dict[str, tuple[str, Any]]]:
    """Map lowercased field names and aliases to (input key, annotation)."""
    target = _unwrap_optional(target)
    if not isinstance(target, type):
        return None

    if issubclass(target, BaseModel):
        fields: dict[str, tuple[str, Any]] = {}
        for name, info in target.model_fields.items():
            key = info.alias or name
            fields[name.lower()] = (key, info.annotation)
            if info.alias:
                fields[info.alias.lower()] = (key, info.annotation)
        return fields

    if dataclasses.is_dataclass(target):
        try:
            hints = typing.get_type_hints(target)
        except (NameError, TypeError):
            hints = {}
        return {
            f.name.lower(): (f.name, hints.get(f.name, f.type))
            for f in dataclasses.fields(target)
            if f.init
        }

    return None


def _decode_sequence(value: str, target: Any) -> Any:
    """Decode the JSON text loaders store for sequences when a sequence is wanted."""
    target = _unwrap_optional(target)
    origin = typing.get_origin(target) or target
    if origin not in _SEQUENCE_TYPES or not value.lstrip().startswith("["):
        return value
    try:
        return json.loads(value)
    except ValueError:
        return value


def align_keys(tree: Any, target: Any) -> Any:
    """Rename tree keys to the target's field names, case-insensitively.

    Keys that match no field are dropped. Nested model and dataclass fields
    are aligned recursively; string leaves holding a JSON array are decoded
    for sequence fields. Other targets receive the tree unchanged.
    """
    if isinstance(tree, str):
        return _decode_sequence(tree, target)
    if not isinstance(tree, dict):
        return tree

    fields = _field_map(target)
    if fields is None:
        return tree

    aligned: dict[str, Any] = {}
    for key, value in tree.items():
        match = fields.get(key.lower())
        if match is None:
            continue
        name, annotation = match
        aligned[name] = align_keys(value, annotation)
    return aligned


def bind(tree: dict[str, Any], target: type[T], section: Optional[str] = None) -> T:
    """Validate ``tree`` as an instance of ``target``.

    Raises:
        BindingError: If the tree cannot be projected onto the target
    """
    try:
        adapter = TypeAdapter(target)
    except Exception as e:
        raise BindingError(section, target, f"unsupported target type ({e})") from e

    try:
        return adapter.validate_python(align_keys(tree, target))
    except ValidationError as e:
        raise BindingError(section, target, str(e)) from e
