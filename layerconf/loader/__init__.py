"""Configuration loader package.

One loader per source kind, all producing flat, separator-joined key maps:
- JSON, YAML, INI and dotenv files (``file``)
- Environment variables (``env``)
- Command-line arguments (``cli``)
and the merge engine folding loaded layers by precedence (``merger``).
"""

from .base import PassthroughLoader, SourceLoader
from .cli import CommandLineLoader
from .env import EnvironmentLoader
from .file import (
    EnvFileLoader,
    IniLoader,
    JsonLoader,
    YamlLoader,
    detect_format,
    flatten,
    loader_for_format,
)
from .merger import merge_layers

__all__ = [
    "SourceLoader",
    "PassthroughLoader",
    "JsonLoader",
    "YamlLoader",
    "IniLoader",
    "EnvFileLoader",
    "EnvironmentLoader",
    "CommandLineLoader",
    "detect_format",
    "flatten",
    "loader_for_format",
    "merge_layers",
]
