"""Lenient string-to-type conversion for typed configuration getters."""

import logging
import math
import re
import uuid
from datetime import timedelta
from typing import Any, Callable, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")

INT32_RANGE = (-(2**31), 2**31 - 1)
INT64_RANGE = (-(2**63), 2**63 - 1)

TRUE_TOKENS = frozenset({"1", "true", "yes", "y", "on"})
FALSE_TOKENS = frozenset({"0", "false", "no", "n", "off"})

_INTEGER_RE = re.compile(r"^[+-]?[0-9]+$")
# [-][d.]hh:mm[:ss[.fffffff]]
_CLOCK_RE = re.compile(
    r"^(?P<sign>-)?(?:(?P<days>\d+)\.)?(?P<hours>\d{1,2}):(?P<minutes>\d{1,2})"
    r"(?::(?P<seconds>\d{1,2})(?:\.(?P<fraction>\d{1,7}))?)?$"
)
_UNIT_RE = re.compile(
    r"^(?P<value>[+-]?(?:\d+(?:\.\d*)?|\.\d+))\s*(?P<unit>ms|s|m|h|d)$", re.IGNORECASE
)
_UNIT_SECONDS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600, "d": 86400}


class TypeConversionError(ValueError):
    """Exception raised when a string cannot be read as the requested type."""

    pass


class TypeConverter:
    """Converts raw configuration strings into typed values.

    ``convert`` raises :class:`TypeConversionError`; ``try_convert`` is the
    lenient variant used by the typed getters and returns the caller's
    default on any failure.
    """

    def __init__(self):
        self._converters: dict[Union[str, type], Callable[[str], Any]] = {
            "int": self._convert_int,
            "long": self._convert_long,
            "float": self._convert_float,
            float: self._convert_float,
            "bool": self._convert_bool,
            bool: self._convert_bool,
            "duration": self._convert_duration,
            timedelta: self._convert_duration,
            "uuid": self._convert_uuid,
            uuid.UUID: self._convert_uuid,
        }

    def convert(self, value: str, target_type: Union[str, type]) -> Any:
        """Convert value to target type.

        Args:
            value: Raw string value
            target_type: Type name (``int``, ``long``, ``float``, ``bool``,
                ``duration``, ``uuid``) or one of the matching type objects

        Returns:
            Converted value

        Raises:
            TypeConversionError: If the value cannot be converted
        """
        converter = self._converters.get(target_type)
        if converter is None:
            raise TypeConversionError(f"Unknown type: {target_type}")
        if not isinstance(value, str):
            raise TypeConversionError(f"Expected a string, got {type(value).__name__}")
        return converter(value)

    def try_convert(self, value: Any, target_type: Union[str, type], default: T) -> T:
        """Convert value, returning ``default`` when absent or malformed."""
        if value is None:
            return default
        try:
            return self.convert(value, target_type)
        except TypeConversionError as e:
            logger.debug(f"Falling back to default for {target_type}: {e}")
            return default

    def _convert_int(self, value: str) -> int:
        return self._parse_integer(value, INT32_RANGE)

    def _convert_long(self, value: str) -> int:
        return self._parse_integer(value, INT64_RANGE)

    def _parse_integer(self, value: str, bounds: tuple[int, int]) -> int:
        text = value.strip()
        if not _INTEGER_RE.match(text):
            raise TypeConversionError(f"Not an integer: '{value}'")
        try:
            number = int(text)
        except ValueError:
            # More digits than the interpreter converts
            raise TypeConversionError(f"Integer out of range: '{value}'")
        low, high = bounds
        if not low <= number <= high:
            raise TypeConversionError(f"Integer out of range: '{value}'")
        return number

    def _convert_float(self, value: str) -> float:
        if "_" in value:
            raise TypeConversionError(f"Not a number: '{value}'")
        try:
            return float(value.strip())
        except ValueError:
            raise TypeConversionError(f"Not a number: '{value}'")

    def _convert_bool(self, value: str) -> bool:
        token = value.strip().lower()
        if token in TRUE_TOKENS:
            return True
        if token in FALSE_TOKENS:
            return False
        raise TypeConversionError(f"Cannot convert '{value}' to boolean")

    def _convert_duration(self, value: str) -> timedelta:
        text = value.strip()
        try:
            if _INTEGER_RE.match(text):
                return timedelta(days=int(text))

            match = _CLOCK_RE.match(text)
            if match:
                hours = int(match["hours"])
                minutes = int(match["minutes"])
                seconds = int(match["seconds"] or 0)
                if hours > 23 or minutes > 59 or seconds > 59:
                    raise TypeConversionError(f"Duration component out of range: '{value}'")
                fraction = match["fraction"] or ""
                ticks = int(fraction.ljust(7, "0")) if fraction else 0
                result = timedelta(
                    days=int(match["days"] or 0),
                    hours=hours,
                    minutes=minutes,
                    seconds=seconds,
                    microseconds=ticks / 10,
                )
                return -result if match["sign"] else result

            match = _UNIT_RE.match(text)
            if match:
                amount = float(match["value"])
                seconds = amount * _UNIT_SECONDS[match["unit"].lower()]
                if not math.isfinite(seconds):
                    raise TypeConversionError(f"Duration out of range: '{value}'")
                return timedelta(seconds=seconds)
        except TypeConversionError:
            raise
        except (OverflowError, ValueError):
            raise TypeConversionError(f"Duration out of range: '{value}'")

        raise TypeConversionError(f"Not a duration: '{value}'")

    def _convert_uuid(self, value: str) -> uuid.UUID:
        try:
            return uuid.UUID(value.strip())
        except ValueError:
            raise TypeConversionError(f"Not a UUID: '{value}'")
