"""Tests for lenient typed value conversion."""

import uuid
from datetime import timedelta

import pytest

from layerconf.utils.converter import TypeConversionError, TypeConverter


class TestTypeConverter:
    """Test TypeConverter parsing rules."""

    def setup_method(self):
        """Set up test fixtures."""
        self.converter = TypeConverter()

    @pytest.mark.parametrize(
        "text,expected",
        [("42", 42), (" -7 ", -7), ("+3", 3), ("2147483647", 2147483647)],
    )
    def test_int(self, text, expected):
        """Test 32-bit integer parsing."""
        assert self.converter.convert(text, "int") == expected

    @pytest.mark.parametrize("text", ["2147483648", "4.2", "0x10", "", "1_000"])
    def test_int_rejects(self, text):
        """Test malformed and out-of-range integers."""
        with pytest.raises(TypeConversionError):
            self.converter.convert(text, "int")

    def test_oversized_integer_text(self):
        """Test that digit strings beyond the interpreter limit are rejected cleanly."""
        digits = "1" * 5000

        with pytest.raises(TypeConversionError):
            self.converter.convert(digits, "int")
        with pytest.raises(TypeConversionError):
            self.converter.convert(digits, "long")
        with pytest.raises(TypeConversionError):
            self.converter.convert(digits, "duration")
        with pytest.raises(TypeConversionError):
            self.converter.convert(digits + ".00:00:00", "duration")

    def test_long_range(self):
        """Test that long accepts 64-bit values and rejects larger ones."""
        assert self.converter.convert("9223372036854775807", "long") == 2**63 - 1
        with pytest.raises(TypeConversionError):
            self.converter.convert("9223372036854775808", "long")

    @pytest.mark.parametrize("text", ["1", "true", "TRUE", " yes ", "Y", "on"])
    def test_bool_true(self, text):
        """Test truthy tokens."""
        assert self.converter.convert(text, "bool") is True

    @pytest.mark.parametrize("text", ["0", "false", "No", "n", "OFF"])
    def test_bool_false(self, text):
        """Test falsy tokens."""
        assert self.converter.convert(text, bool) is False

    def test_bool_rejects(self):
        """Test unknown boolean tokens."""
        with pytest.raises(TypeConversionError):
            self.converter.convert("maybe", "bool")

    def test_float(self):
        """Test float parsing."""
        assert self.converter.convert("1e3", "float") == 1000.0
        assert self.converter.convert(" 0.5 ", float) == 0.5
        with pytest.raises(TypeConversionError):
            self.converter.convert("1_000.0", "float")

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("00:00:30", timedelta(seconds=30)),
            ("01:30", timedelta(hours=1, minutes=30)),
            ("1.12:00:00", timedelta(days=1, hours=12)),
            ("00:00:01.5", timedelta(seconds=1, milliseconds=500)),
            ("-00:01:00", timedelta(minutes=-1)),
            ("3", timedelta(days=3)),
            ("500ms", timedelta(milliseconds=500)),
            ("1.5h", timedelta(minutes=90)),
            ("10 s", timedelta(seconds=10)),
            ("2d", timedelta(days=2)),
        ],
    )
    def test_duration(self, text, expected):
        """Test the accepted duration forms."""
        assert self.converter.convert(text, "duration") == expected

    @pytest.mark.parametrize("text", ["24:00:00", "00:60", "soon", "1w"])
    def test_duration_rejects(self, text):
        """Test malformed durations."""
        with pytest.raises(TypeConversionError):
            self.converter.convert(text, timedelta)

    def test_uuid(self):
        """Test UUID parsing in its common forms."""
        value = uuid.UUID("12345678-1234-5678-1234-567812345678")

        assert self.converter.convert(str(value), "uuid") == value
        assert self.converter.convert("{" + str(value) + "}", uuid.UUID) == value
        assert self.converter.convert(value.hex, "uuid") == value

    def test_unknown_type(self):
        """Test that an unknown target type raises."""
        with pytest.raises(TypeConversionError, match="Unknown type"):
            self.converter.convert("1", "complex")

    def test_try_convert_defaults(self):
        """Test that try_convert never raises and falls back to the default."""
        assert self.converter.try_convert(None, "int", 5) == 5
        assert self.converter.try_convert("abc", "int", 5) == 5
        assert self.converter.try_convert("7", "int", 5) == 7
        assert self.converter.try_convert("nope", "uuid", None) is None
        assert self.converter.try_convert("9" * 5000, "long", 11) == 11
        assert self.converter.try_convert("9" * 5000, "duration", None) is None
