"""Command-line argument configuration loader.

Recognised forms, with one or two leading hyphens::

    --Key=value  --Section:Key=value  --Key value  -Key value  --flag

A token without ``=`` takes the next token as its value unless that token
starts with a hyphen, in which case the key is a flag set to ``"true"``.
Consequently a value that begins with a hyphen (a negative number, say)
must be written as ``--key=-1``. Tokens not starting with a hyphen and not
consumed as a value are ignored.
"""

import logging
from collections.abc import Sequence

from ..models.schemas import COMMAND_LINE_LOCATION
from ..utils.structures import CaseInsensitiveDict
from .base import PassthroughLoader

logger = logging.getLogger(__name__)

FLAG_VALUE = "true"


class CommandLineLoader:
    """Scans an argument vector into a flat configuration mapping."""

    location = COMMAND_LINE_LOCATION

    def __init__(self, separator: str = ":"):
        self.separator = separator
        self.source = PassthroughLoader("args", separator)

    def load(self, args: Sequence[str]) -> CaseInsensitiveDict:
        """Load configuration from CLI arguments.

        Args:
            args: Argument vector, without the program name

        Returns:
            Flat configuration mapping

        Raises:
            TypeError: If ``args`` is None or a plain string
        """
        if args is None:
            raise TypeError("args must be a sequence of strings, not None")
        if isinstance(args, str):
            raise TypeError("args must be a sequence of strings, not a single string")

        config = CaseInsensitiveDict()
        tokens = list(args)
        i = 0
        while i < len(tokens):
            token = tokens[i]
            i += 1
            if not token.startswith("-"):
                continue

            keyval = token.lstrip("-")
            key, sep, value = keyval.partition("=")
            if sep:
                key, value = key.strip(), value.strip()
            else:
                key = key.strip()
                if i < len(tokens) and not tokens[i].startswith("-"):
                    value = tokens[i]
                    i += 1
                else:
                    value = FLAG_VALUE

            if not key:
                continue
            config[key] = value

        logger.info(f"Loaded {len(config)} configuration values from CLI")
        return config
