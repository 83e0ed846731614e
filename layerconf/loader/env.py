"""Environment variable configuration loader.

Supports loading configuration from the process environment with
case-insensitive prefix filtering and ``__`` as the nested key separator.
Example: ``APP__Database__Port=5432`` with prefix ``APP__`` becomes
``Database:Port``.
"""

import logging
import os
from collections.abc import Mapping
from typing import Optional

from ..models.schemas import ENVIRONMENT_LOCATION
from ..utils.structures import CaseInsensitiveDict
from .base import PassthroughLoader

logger = logging.getLogger(__name__)


class EnvironmentLoader:
    """Environment variable configuration loader."""

    location = ENVIRONMENT_LOCATION

    def __init__(
        self,
        prefix: Optional[str] = None,
        separator: str = ":",
        nested_separator: str = "__",
    ):
        """Initialize the environment loader.

        Args:
            prefix: Only variables starting with this (case-insensitive) are
                loaded, with the prefix removed
            separator: Configuration key path separator
            nested_separator: Sequence in variable names standing for the separator
        """
        self.prefix = prefix or ""
        self.separator = separator
        self.nested_separator = nested_separator
        self.source = PassthroughLoader("env", separator)

    def load_environment(
        self, environ: Optional[Mapping[str, str]] = None
    ) -> CaseInsensitiveDict:
        """Load configuration from environment variables.

        Args:
            environ: Variables to read (defaults to ``os.environ``)

        Returns:
            Flat configuration mapping
        """
        if environ is None:
            environ = os.environ

        config = CaseInsensitiveDict()
        for env_key, env_value in environ.items():
            config_key = self._env_key_to_config_key(env_key)
            if config_key is None:
                continue
            config[config_key] = env_value if env_value is not None else ""

        logger.info(
            f"Loaded {len(config)} environment variables"
            + (f" with prefix '{self.prefix}'" if self.prefix else "")
        )
        return config

    def _env_key_to_config_key(self, env_key: str) -> Optional[str]:
        """Convert an environment variable name to a config key, or None to skip it."""
        if not env_key:
            return None

        key = env_key
        if self.prefix:
            if not key.lower().startswith(self.prefix.lower()):
                return None
            key = key[len(self.prefix) :]

        key = key.replace(self.nested_separator, self.separator)
        key = key.lstrip(self.separator)
        return key or None

    def _config_key_to_env_key(self, config_key: str) -> str:
        """Convert a config key to the environment variable name that produces it."""
        return self.prefix + config_key.replace(self.separator, self.nested_separator)
