"""Tests for the case-insensitive mapping."""

import pytest

from layerconf.utils.structures import CaseInsensitiveDict


class TestCaseInsensitiveDict:
    """Test CaseInsensitiveDict behaviour."""

    def test_lookup_ignores_case(self):
        """Test that keys are found regardless of case."""
        d = CaseInsensitiveDict({"Server:Port": "5000"})

        assert d["server:port"] == "5000"
        assert d["SERVER:PORT"] == "5000"
        assert "sErVeR:pOrT" in d

    def test_first_casing_preserved(self):
        """Test that reassigning through another casing keeps the original key."""
        d = CaseInsensitiveDict()
        d["Database:Host"] = "a"
        d["DATABASE:HOST"] = "b"

        assert list(d) == ["Database:Host"]
        assert d["database:host"] == "b"
        assert len(d) == 1

    def test_delete_any_casing(self):
        """Test deleting through a differently cased key."""
        d = CaseInsensitiveDict({"Key": "v"})
        del d["KEY"]

        assert "Key" not in d
        assert len(d) == 0

    def test_insertion_order(self):
        """Test iteration follows insertion order."""
        d = CaseInsensitiveDict([("b", "1"), ("A", "2"), ("c", "3")])

        assert list(d) == ["b", "A", "c"]

    def test_non_string_keys(self):
        """Test that non-string keys are rejected on write and absent on lookup."""
        d = CaseInsensitiveDict()

        with pytest.raises(TypeError):
            d[1] = "x"
        assert 1 not in d

    def test_equality(self):
        """Test equality with other mappings."""
        assert CaseInsensitiveDict({"A": "1"}) == CaseInsensitiveDict({"a": "1"})
        assert CaseInsensitiveDict({"A": "1"}) == {"A": "1"}
        assert CaseInsensitiveDict({"A": "1"}) != CaseInsensitiveDict({"a": "2"})

    def test_copy_is_independent(self):
        """Test that a copy does not share storage."""
        original = CaseInsensitiveDict({"Key": "v"})
        clone = original.copy()
        clone["key"] = "changed"

        assert original["Key"] == "v"
        assert clone.original_key("KEY") == "Key"

    def test_lower_items(self):
        """Test lowercased item iteration."""
        d = CaseInsensitiveDict({"Server:Port": "1"})

        assert list(d.lower_items()) == [("server:port", "1")]

    def test_unhashable(self):
        """Test that the mapping is not hashable."""
        with pytest.raises(TypeError):
            hash(CaseInsensitiveDict())
