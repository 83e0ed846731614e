"""File-based configuration loaders.

Supports loading configuration from JSON, YAML, INI and dotenv files. Every loader
flattens nested structure into separator-joined keys with string values,
so the merge engine only ever sees flat mappings.
"""

import configparser
import io
import json
import logging
from collections.abc import Mapping
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from dotenv import dotenv_values

from ..errors import FileLoadError, FormatError
from ..models.schemas import ConfigFormat
from ..utils.structures import CaseInsensitiveDict
from .base import SourceLoader

logger = logging.getLogger(__name__)

_INI_ROOT_SECTION = "\x00root"
_INI_DEFAULT_SECTION = "\x00defaults"


class JsonNumber(str):
    """Number lexeme kept exactly as written in a JSON document."""

    __slots__ = ()


def to_compact_json(value: Any) -> str:
    """Render a parsed value as compact JSON, keeping number lexemes verbatim."""
    if isinstance(value, JsonNumber):
        return str(value)
    if isinstance(value, Mapping):
        members = (
            f"{json.dumps(str(key), ensure_ascii=False)}:{to_compact_json(item)}"
            for key, item in value.items()
        )
        return "{" + ",".join(members) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(to_compact_json(item) for item in value) + "]"
    if isinstance(value, (datetime, date, time)):
        return json.dumps(value.isoformat())
    return json.dumps(value, ensure_ascii=False, default=str)


def scalar_to_text(value: Any) -> str:
    """Render a parsed leaf value the way it reads in a JSON document."""
    if isinstance(value, str):
        return str(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return to_compact_json(value)
    return str(value)


def flatten(
    data: Mapping[Any, Any],
    separator: str = ":",
    prefix: str = "",
    into: Optional[CaseInsensitiveDict] = None,
) -> CaseInsensitiveDict:
    """Flatten a nested mapping into separator-joined keys.

    Args:
        data: Nested mapping as produced by a structured parser
        separator: Path segment separator
        prefix: Key prefix for nested calls
        into: Mapping to fill (a new one is created when None)

    Returns:
        Flat mapping of path keys to string values
    """
    result = CaseInsensitiveDict() if into is None else into
    for key, value in data.items():
        path = f"{prefix}{separator}{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flatten(value, separator, path, result)
        else:
            result[path] = scalar_to_text(value)
    return result


class TextFileLoader(SourceLoader):
    """Base class for loaders that parse the text of a single file."""

    supports_hot_reload = True

    def __init__(self, separator: str = ":", encoding: str = "utf-8"):
        super().__init__(separator)
        self.encoding = encoding

    def load(self, location: str) -> CaseInsensitiveDict:
        """Load configuration from a single file.

        Raises:
            FileLoadError: If the file is missing or cannot be read
            FormatError: If the content is malformed for the format
        """
        path = Path(location)

        if not path.exists():
            raise FileLoadError(str(location), "Configuration file not found")

        if not path.is_file():
            raise FileLoadError(str(location), "Path is not a file")

        try:
            content = path.read_text(encoding=self.encoding)
        except UnicodeDecodeError as e:
            raise FormatError(str(location), f"File is not valid {self.encoding}") from e
        except OSError as e:
            raise FileLoadError(str(location), f"Failed to read file ({e})") from e

        data = self._parse(content, str(location))
        logger.debug(f"Loaded {len(data)} keys from {location} ({self.source_name})")
        return data

    def _parse(self, content: str, location: str) -> CaseInsensitiveDict:
        raise NotImplementedError


class JsonLoader(TextFileLoader):
    """JSON object documents."""

    source_name = ConfigFormat.JSON.value

    def _parse(self, content: str, location: str) -> CaseInsensitiveDict:
        try:
            # Numbers keep their source text rather than a float round trip
            document = json.loads(
                content,
                parse_int=JsonNumber,
                parse_float=JsonNumber,
                parse_constant=JsonNumber,
            )
        except json.JSONDecodeError as e:
            raise FormatError(location, f"Invalid JSON ({e})") from e

        if not isinstance(document, dict):
            raise FormatError(location, "JSON root must be an object")

        return flatten(document, self.separator)


class YamlLoader(TextFileLoader):
    """YAML mapping documents."""

    source_name = ConfigFormat.YAML.value

    def _parse(self, content: str, location: str) -> CaseInsensitiveDict:
        try:
            document = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise FormatError(location, f"Invalid YAML ({e})") from e

        if document is None:
            return CaseInsensitiveDict()

        if not isinstance(document, dict):
            raise FormatError(location, "YAML root must be a mapping")

        return flatten(document, self.separator)


class IniLoader(TextFileLoader):
    """INI files with optional ``[section]`` headers.

    Keys that appear before the first header are top-level keys. Key case is
    preserved, duplicates overwrite and no interpolation is performed.
    """

    source_name = ConfigFormat.INI.value

    def _parse(self, content: str, location: str) -> CaseInsensitiveDict:
        parser = configparser.ConfigParser(
            interpolation=None,
            delimiters=("=",),
            comment_prefixes=("#", ";"),
            strict=False,
            allow_no_value=True,
            default_section=_INI_DEFAULT_SECTION,
        )
        parser.optionxform = str  # type: ignore[assignment, method-assign]

        # Lines are trimmed, so indentation never continues a value
        text = "\n".join(line.strip() for line in content.splitlines())
        try:
            parser.read_string(f"[{_INI_ROOT_SECTION}]\n{text}", source=location)
        except configparser.Error as e:
            raise FormatError(location, f"Invalid INI ({e})") from e

        config = CaseInsensitiveDict()
        for section_name in parser.sections():
            for key, value in parser.items(section_name, raw=True):
                if value is None or not key:
                    continue
                if section_name == _INI_ROOT_SECTION:
                    config[key] = value
                else:
                    config[f"{section_name.strip()}{self.separator}{key}"] = value
        return config


class EnvFileLoader(TextFileLoader):
    """Dotenv files (``KEY=value`` lines).

    Parsing is delegated to python-dotenv with interpolation disabled, so
    ``${VAR}`` references are kept verbatim. Keys without a value are
    skipped and a double underscore in a key becomes the separator.
    """

    source_name = ConfigFormat.ENV.value

    def _parse(self, content: str, location: str) -> CaseInsensitiveDict:
        values = dotenv_values(stream=io.StringIO(content), interpolate=False)

        config = CaseInsensitiveDict()
        for key, value in values.items():
            if value is None:
                continue
            key = key.strip().replace("__", self.separator)
            if key:
                config[key] = value
        return config


_LOADERS: dict[ConfigFormat, type[TextFileLoader]] = {
    ConfigFormat.JSON: JsonLoader,
    ConfigFormat.YAML: YamlLoader,
    ConfigFormat.INI: IniLoader,
    ConfigFormat.ENV: EnvFileLoader,
}


def detect_format(path: Union[str, Path]) -> ConfigFormat:
    """Auto-detect configuration file format from its name.

    Raises:
        FormatError: If the format cannot be detected
    """
    path = Path(path)
    suffix = path.suffix.lower()

    format_map = {
        ".json": ConfigFormat.JSON,
        ".yaml": ConfigFormat.YAML,
        ".yml": ConfigFormat.YAML,
        ".ini": ConfigFormat.INI,
        ".cfg": ConfigFormat.INI,
        ".env": ConfigFormat.ENV,
    }

    if suffix in format_map:
        return format_map[suffix]
    if path.name.lower().startswith(".env"):
        return ConfigFormat.ENV

    raise FormatError(str(path), f"Unsupported file format '{suffix}'")


def loader_for_format(
    fmt: ConfigFormat, separator: str = ":", encoding: str = "utf-8"
) -> TextFileLoader:
    """Create the loader for ``fmt``."""
    try:
        loader_cls = _LOADERS[ConfigFormat(fmt)]
    except (KeyError, ValueError):
        raise FormatError(str(fmt), "No loader registered for format")
    return loader_cls(separator=separator, encoding=encoding)
