"""Tests for the legacy display column conversion."""

import pytest

from reqtree.errors import MalformedIdentifierError
from reqtree.identifier import parse_identifier
from reqtree.legacy import from_legacy_display, normalize_requirement_number, to_legacy_display


class TestToLegacyDisplay:
    """Test rendering the deprecated display column."""

    @pytest.mark.parametrize("value, expected", [
        ("6A(a)(1)", "6A1a"),
        ("9b(2)", "9b2"),
        ("1a", "1a"),
        ("1(a)", "1a"),
        ("6A(1)", "6A1"),
        ("12", "12"),
    ])
    def test_from_string(self, value, expected):
        assert to_legacy_display(value) == expected

    def test_from_identifier(self):
        assert to_legacy_display(parse_identifier("9b(2)")) == "9b2"

    def test_unparseable_string_is_returned_unchanged(self):
        assert to_legacy_display("6a beef") == "6a beef"


class TestFromLegacyDisplay:
    """Test reading legacy values back."""

    @pytest.mark.parametrize("display, canonical", [
        ("1a", "1(a)"),
        ("9b2", "9b(2)"),
        ("6A1", "6A(1)"),
        ("6A1a", "6A(a)(1)"),
    ])
    def test_known_shapes(self, display, canonical):
        assert from_legacy_display(display) == parse_identifier(canonical)

    def test_letter_outer_round_trip_is_lossless(self):
        identifier = parse_identifier("6A(a)(1)")
        assert from_legacy_display(to_legacy_display(identifier)) == identifier

    def test_index_outer_round_trip_is_lossy(self):
        identifier = parse_identifier("6A(1)(a)")
        assert from_legacy_display(to_legacy_display(identifier)) != identifier

    def test_rejects_garbage(self):
        with pytest.raises(MalformedIdentifierError):
            from_legacy_display("6-A-1")


class TestNormalizeRequirementNumber:
    """Test canonical spelling of either encoding."""

    @pytest.mark.parametrize("value, expected", [
        ("9b2", "9b(2)"),
        ("6A1", "6A(1)"),
        ("1a.", "1a"),
        (" 6A(a)(1) ", "6A(a)(1)"),
        (" 6a beef ", "6a beef"),
        ("", ""),
        (None, ""),
    ])
    def test_normalize(self, value, expected):
        assert normalize_requirement_number(value) == expected
