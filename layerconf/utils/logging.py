"""Logging configuration for the layerconf command-line tool."""

import logging
import logging.config
import os
import sys
from pathlib import Path
from typing import Optional, Union

import yaml

LOG_CONFIG_ENV_KEY = "LAYERCONF_LOG_CFG"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"
CONSOLE_HANDLER_NAME = "layerconf.console"


def parse_level(level: Union[int, str]) -> int:
    """Translate a level name such as ``"debug"`` into its numeric value.

    Args:
        level: Numeric level or case-insensitive level name

    Returns:
        Numeric logging level

    Raises:
        ValueError: If the name is not a known logging level
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def setup_logging(
    config_path: Optional[str] = None,
    default_level: Union[int, str] = logging.WARNING,
    env_key: str = LOG_CONFIG_ENV_KEY,
) -> None:
    """Setup logging configuration.

    A YAML ``dictConfig`` file is used when one is given (or named by the
    environment variable ``env_key``); otherwise a single console handler on
    stderr is installed at ``default_level``.

    Args:
        config_path: Path to a YAML logging configuration file
        default_level: Level for the default console configuration
        env_key: Environment variable consulted when no path is given
    """
    level = parse_level(default_level)

    if config_path is None:
        config_path = os.getenv(env_key)

    if config_path is None:
        _setup_default_logging(level)
        return

    path = Path(config_path)
    if not path.exists():
        print(
            f"Logging config file {path} not found. Using default configuration.",
            file=sys.stderr,
        )
        _setup_default_logging(level)
        return

    try:
        with open(path, encoding="utf-8") as config_file:
            config = yaml.safe_load(config_file)
        logging.config.dictConfig(config)
    except (OSError, yaml.YAMLError, ValueError, TypeError, AttributeError) as e:
        print(
            f"Error loading logging configuration from {path}: {e}",
            file=sys.stderr,
        )
        print("Using default logging configuration", file=sys.stderr)
        _setup_default_logging(level)


def _setup_default_logging(level: int) -> None:
    """Install a stderr console handler on the root logger.

    Args:
        level: Logging level
    """
    formatter = logging.Formatter(DEFAULT_FORMAT, datefmt=DEFAULT_DATEFMT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.set_name(CONSOLE_HANDLER_NAME)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Replace a console handler installed by an earlier call
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if handler.get_name() == CONSOLE_HANDLER_NAME:
            root_logger.removeHandler(handler)
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

