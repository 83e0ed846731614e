"""Main configuration management module.

``ConfigManager`` composes configuration layers (files, environment,
command line, in-memory mappings) into one merged, case-insensitive view.
The last registered layer wins on key collisions. File layers can be
watched; a change triggers a debounced reload of that layer, a rebuild of
the merged snapshot and a change event describing the difference.

Example:
    >>> cfg = (
    ...     ConfigManager()
    ...     .add_json("appsettings.json", optional=True)
    ...     .add_environment_variables("APP__")
    ...     .add_command_line(sys.argv[1:])
    ... )
    >>> cfg.get_int("Server:Port", 8080)
"""

import functools
import logging
import os
import sys
import uuid
from collections.abc import Mapping, Sequence
from datetime import timedelta
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Optional, TypeVar, Union

from .binding import bind as bind_tree
from .binding import build_tree, normalize_section
from .errors import (
    ConfigurationError,
    MissingConfigurationError,
    ReloadError,
    WatchSetupError,
)
from .layers import ConfigLayer, LayerRegistry
from .loader.base import PassthroughLoader, SourceLoader
from .loader.cli import CommandLineLoader
from .loader.env import EnvironmentLoader
from .loader.file import detect_format, flatten, loader_for_format
from .loader.merger import merge_layers
from .models.schemas import (
    ChangeRecord,
    ConfigChangedEvent,
    ConfigFormat,
    LayerInfo,
    ManagerSettings,
)
from .section import SectionView
from .utils.converter import TypeConverter
from .utils.differ import diff_snapshots
from .utils.events import EventChannel
from .utils.locking import ReadWriteLock
from .utils.masking import SecretMasker
from .utils.structures import CaseInsensitiveDict
from .utils.watcher import LayerWatch

logger = logging.getLogger(__name__)

T = TypeVar("T")
PathLike = Union[str, os.PathLike]

MEMORY_LOCATION = "<Memory>"


class ConfigManager:
    """Layered configuration aggregator with live reload.

    Thread safety: one reader-writer lock guards the layer list and the
    merged snapshot. Registration and reload take it exclusively; every
    query takes it shared. The snapshot is rebuilt as a new mapping and
    swapped in whole, so readers never see a partially applied reload.
    """

    def __init__(self, settings: Optional[ManagerSettings] = None, **overrides: Any):
        """Initialize the manager.

        Args:
            settings: Manager settings (defaults apply when None)
            **overrides: Individual ManagerSettings fields overriding ``settings``
        """
        if settings is None:
            settings = ManagerSettings(**overrides)
        elif overrides:
            settings = ManagerSettings(**{**settings.model_dump(), **overrides})
        self.settings = settings

        self._lock = ReadWriteLock()
        self._registry = LayerRegistry()
        self._merged = CaseInsensitiveDict()
        self._closed = False

        self._masker = SecretMasker(settings.secret_hints)
        self._converter = TypeConverter()

        self.changes = EventChannel("changes")
        self.errors = EventChannel("errors")

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def add_json(
        self, path: PathLike, optional: bool = False, reload_on_change: Optional[bool] = None
    ) -> "ConfigManager":
        """Add a JSON file layer."""
        return self.add_file(path, ConfigFormat.JSON, optional, reload_on_change)

    def add_yaml(
        self, path: PathLike, optional: bool = False, reload_on_change: Optional[bool] = None
    ) -> "ConfigManager":
        """Add a YAML file layer."""
        return self.add_file(path, ConfigFormat.YAML, optional, reload_on_change)

    def add_ini(
        self, path: PathLike, optional: bool = False, reload_on_change: Optional[bool] = None
    ) -> "ConfigManager":
        """Add an INI file layer."""
        return self.add_file(path, ConfigFormat.INI, optional, reload_on_change)

    def add_env_file(
        self,
        path: PathLike = ".env",
        optional: bool = False,
        reload_on_change: Optional[bool] = None,
    ) -> "ConfigManager":
        """Add a dotenv file layer."""
        return self.add_file(path, ConfigFormat.ENV, optional, reload_on_change)

    def add_file(
        self,
        path: PathLike,
        format: Optional[Union[ConfigFormat, str]] = None,
        optional: bool = False,
        reload_on_change: Optional[bool] = None,
    ) -> "ConfigManager":
        """Add a file layer.

        Args:
            path: Configuration file path (made absolute)
            format: File format (detected from the file name if None)
            optional: Whether a missing file loads as an empty layer
            reload_on_change: Watch the file for changes (settings default if None)

        Returns:
            The manager, for chaining

        Raises:
            ValueError: If ``path`` is empty
            FileLoadError: If the file is missing (and not optional) or unreadable
            FormatError: If the file content is malformed
        """
        if path is None or not os.fspath(path).strip():
            raise ValueError("path must not be empty")

        location = os.path.abspath(os.fspath(path))
        fmt = detect_format(location) if format is None else ConfigFormat(format)
        loader = loader_for_format(
            fmt, separator=self.settings.separator, encoding=self.settings.encoding
        )
        if reload_on_change is None:
            reload_on_change = self.settings.reload_on_change

        data = self._load_source(loader, location, optional)
        layer = self._register(location, loader, data, is_dynamic=False, optional=optional)
        logger.info(
            f"Loaded configuration layer {layer.order} from {location} "
            f"({loader.source_name}, {len(data)} keys)"
        )

        if reload_on_change and loader.supports_hot_reload:
            self._attach_watch(layer)
        return self

    def add_environment_variables(
        self, prefix: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
    ) -> "ConfigManager":
        """Add the process environment as a layer.

        If ``prefix`` is given only variables starting with it
        (case-insensitively) are kept and the prefix is removed. A double
        underscore stands for the separator:
        ``APP__Database__Port=5432`` becomes ``Database:Port``.

        Args:
            prefix: Variable name prefix filter
            environ: Variables to read instead of ``os.environ``
        """
        loader = EnvironmentLoader(prefix=prefix, separator=self.settings.separator)
        data = loader.load_environment(environ)
        self._register(loader.location, loader.source, data, is_dynamic=True)
        return self

    def add_command_line(self, args: Optional[Sequence[str]] = None) -> "ConfigManager":
        """Add command-line overrides as a layer.

        Supports ``--Key=value``, ``--Section:Key=value``, ``--Key value`` and
        bare ``--flag`` (value ``"true"``); a single dash works too.

        Args:
            args: Argument vector (``sys.argv[1:]`` if None)
        """
        if args is None:
            args = sys.argv[1:]
        loader = CommandLineLoader(separator=self.settings.separator)
        data = loader.load(args)
        self._register(loader.location, loader.source, data, is_dynamic=True)
        return self

    def add_mapping(
        self, data: Mapping[str, Any], location: str = MEMORY_LOCATION
    ) -> "ConfigManager":
        """Add an in-memory mapping as a layer, flattening nested mappings.

        Useful for built-in defaults registered before any file.
        """
        flat = flatten(data, self.settings.separator)
        self._register(location, PassthroughLoader("memory"), flat, is_dynamic=True)
        return self

    def _load_source(
        self, loader: SourceLoader, location: str, optional: bool
    ) -> CaseInsensitiveDict:
        if optional and not os.path.exists(location):
            logger.info(f"Optional configuration file not found: {location}")
            return CaseInsensitiveDict()
        return loader.load(location)

    def _register(
        self,
        location: str,
        loader: SourceLoader,
        data: CaseInsensitiveDict,
        is_dynamic: bool,
        optional: bool = False,
    ) -> ConfigLayer:
        with self._lock.write_locked():
            if self._closed:
                raise ConfigurationError("ConfigManager is closed")
            layer = self._registry.register(
                location, loader, data, is_dynamic=is_dynamic, optional=optional
            )
            self._merged = merge_layers(self._registry)
        return layer

    # ------------------------------------------------------------------
    # Live reload
    # ------------------------------------------------------------------

    def _attach_watch(self, layer: ConfigLayer) -> None:
        watch = LayerWatch(
            Path(layer.location),
            functools.partial(self._reload_layer, layer),
            debounce_delay=self.settings.debounce_delay,
        )
        try:
            watch.start()
        except WatchSetupError as e:
            logger.warning(f"Live reload unavailable for {layer.location}: {e}")
            self.errors.emit(e)
            return

        with self._lock.write_locked():
            closed = self._closed
            if not closed:
                layer.watch = watch
        if closed:
            watch.close()

    def reload(self, path: PathLike) -> Optional[ChangeRecord]:
        """Reload one file layer now, exactly as a file change would.

        Args:
            path: Path the layer was registered with

        Returns:
            The change record (possibly empty), or None if the reload failed
            (the failure is published on the error channel)

        Raises:
            ConfigurationError: If no reloadable layer is registered for ``path``
        """
        location = os.path.abspath(os.fspath(path))
        with self._lock.read_locked():
            layer = self._registry.find(location)
        if layer is None or layer.is_dynamic:
            raise ConfigurationError(f"No file layer registered for {location}")
        return self._reload_layer(layer)

    def _reload_layer(self, layer: ConfigLayer) -> Optional[ChangeRecord]:
        """Reload ``layer``, rebuild the snapshot and publish the difference.

        The source is read outside the manager lock; only the data swap and
        the rebuild run under the write lock. A failed load changes nothing.
        """
        with layer.reload_lock:
            if self._closed:
                return None

            try:
                fresh = self._load_source(layer.loader, layer.location, layer.optional)
            except Exception as e:
                logger.error(f"Failed to reload configuration from {layer.location}: {e}")
                error = ReloadError(layer.location, layer.source_name)
                error.__cause__ = e
                self.errors.emit(error)
                return None

            with self._lock.write_locked():
                if self._closed:
                    return None
                before = self._merged
                layer.data = fresh
                self._merged = merge_layers(self._registry)
                after = self._merged

        record = diff_snapshots(before, after)
        if record:
            logger.info(
                f"Configuration reloaded from {layer.location}: "
                f"{record.total_changes} key(s) changed"
            )
            self.changes.emit(
                ConfigChangedEvent(
                    record=record,
                    source_path=layer.location,
                    source_name=layer.source_name,
                )
            )
        else:
            logger.debug(f"Reloaded {layer.location} without changes")
        return record

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_change(self, callback: Callable[[ConfigChangedEvent], None]) -> str:
        """Subscribe to change events; returns a subscription ID."""
        return self.changes.subscribe(callback)

    def on_error(self, callback: Callable[[ConfigurationError], None]) -> str:
        """Subscribe to reload and watch errors; returns a subscription ID."""
        return self.errors.subscribe(callback)

    def unsubscribe(self, subscription_id: str) -> bool:
        return self.changes.unsubscribe(subscription_id) or self.errors.unsubscribe(
            subscription_id
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @staticmethod
    def _check_key(key: str) -> None:
        if not isinstance(key, str):
            raise TypeError(f"key must be a string, not {type(key).__name__}")

    def _current(self) -> CaseInsensitiveDict:
        with self._lock.read_locked():
            return self._merged

    @property
    def count(self) -> int:
        with self._lock.read_locked():
            return len(self._merged)

    def __len__(self) -> int:
        return self.count

    def contains_key(self, key: str) -> bool:
        self._check_key(key)
        with self._lock.read_locked():
            return key in self._merged

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.contains_key(key)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Get the raw string value of ``key``, or ``default`` when absent."""
        self._check_key(key)
        with self._lock.read_locked():
            return self._merged.get(key, default)

    def __getitem__(self, key: str) -> str:
        self._check_key(key)
        with self._lock.read_locked():
            return self._merged[key]

    def get_int(self, key: str, default: int = 0) -> int:
        """Get a 32-bit integer; ``default`` when absent or malformed."""
        return self._converter.try_convert(self.get(key), "int", default)

    def get_long(self, key: str, default: int = 0) -> int:
        """Get a 64-bit integer; ``default`` when absent or malformed."""
        return self._converter.try_convert(self.get(key), "long", default)

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Get a boolean (1/true/yes/y/on, 0/false/no/n/off); ``default`` otherwise."""
        return self._converter.try_convert(self.get(key), "bool", default)

    def get_float(self, key: str, default: float = 0.0) -> float:
        return self._converter.try_convert(self.get(key), "float", default)

    def get_duration(self, key: str, default: timedelta = timedelta(0)) -> timedelta:
        """Get a duration such as ``00:00:30``, ``1.12:00:00`` or ``500ms``."""
        return self._converter.try_convert(self.get(key), "duration", default)

    def get_uuid(self, key: str, default: Optional[uuid.UUID] = None) -> Optional[uuid.UUID]:
        return self._converter.try_convert(self.get(key), "uuid", default)

    def require(self, *keys: str) -> None:
        """Ensure every key in ``keys`` is present.

        Raises:
            MissingConfigurationError: Listing all missing keys
        """
        for key in keys:
            self._check_key(key)

        with self._lock.read_locked():
            missing = [key for key in keys if key not in self._merged]

        if missing:
            raise MissingConfigurationError(missing)

    def snapshot(self) -> Mapping[str, str]:
        """Return a read-only copy of the merged configuration.

        The copy is detached from the manager, so later registrations and
        reloads never show through it.
        """
        return MappingProxyType(self._current().copy())

    def dump(self, mask_secrets: Optional[bool] = None) -> str:
        """Render every entry as ``key = value`` lines sorted by key.

        Args:
            mask_secrets: Mask values of secret-looking keys (settings default if None)
        """
        if mask_secrets is None:
            mask_secrets = self.settings.mask_secrets
        masker = self._masker

        lines = []
        for key, value in sorted(self._current().items(), key=lambda kv: kv[0].upper()):
            shown = masker.render(key, value) if mask_secrets else value
            lines.append(f"{key} = {shown}\n")
        return "".join(lines)

    @property
    def secret_hints(self) -> tuple[str, ...]:
        return self._masker.hints

    def set_secret_hints(self, hints: Sequence[str]) -> None:
        """Replace this manager's secret hints."""
        self._masker = self._masker.with_hints(hints)

    def add_secret_hints(self, *hints: str) -> None:
        """Extend this manager's secret hints."""
        self._masker = self._masker.add_hints(*hints)

    # ------------------------------------------------------------------
    # Sections and binding
    # ------------------------------------------------------------------

    def section(self, path: str) -> SectionView:
        """Return a view scoped to the keys below ``path``."""
        self._check_key(path)
        return SectionView(self, normalize_section(path, self.settings.separator))

    def bind(self, target: type[T], section: Optional[str] = None) -> T:
        """Project the configuration (or one section) onto ``target``.

        Args:
            target: Pydantic model, dataclass or other pydantic-compatible type
            section: Section path, or None for the whole configuration

        Raises:
            BindingError: If the subtree does not fit the target
        """
        separator = self.settings.separator
        prefix = normalize_section(section, separator) if section else ""
        tree = build_tree(self._current(), prefix, separator)
        return bind_tree(tree, target, section)

    def layers(self) -> list[LayerInfo]:
        """Describe the registered layers in precedence order."""
        with self._lock.read_locked():
            return [layer.describe() for layer in self._registry]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release every file watch and drop all layers.

        Safe to call more than once and while reloads are in flight; a reload
        that has not installed its data yet becomes a no-op.
        """
        with self._lock.write_locked():
            if self._closed:
                return
            self._closed = True
            layers = self._registry.clear()
            self._merged = CaseInsensitiveDict()

        for layer in layers:
            if layer.watch is not None:
                layer.watch.close()
        logger.info(f"Configuration manager closed ({len(layers)} layers released)")

    def __enter__(self) -> "ConfigManager":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ConfigManager(layers={len(self._registry)}, keys={len(self._merged)})"
