"""Tests for form value coercion helpers."""

from app.services.coercion import (
    has_signal,
    safe_int,
    strict_true,
    text_or_default,
    text_or_none,
    tri_state,
    yes_no_to_bool,
)


class TestSafeInt:
    def test_digit_string(self):
        assert safe_int("3") == 3

    def test_surrounding_whitespace(self):
        assert safe_int("  12 ") == 12

    def test_signed(self):
        assert safe_int("-4") == -4
        assert safe_int("+7") == 7

    def test_unit_suffix_rejected(self):
        assert safe_int("60 oz") is None

    def test_decimal_string_rejected(self):
        assert safe_int("3.5") is None

    def test_empty_and_none(self):
        assert safe_int("") is None
        assert safe_int("   ") is None
        assert safe_int(None) is None

    def test_words(self):
        assert safe_int("abc") is None

    def test_numbers_pass_through(self):
        assert safe_int(5) == 5
        assert safe_int(2.0) == 2
        assert safe_int(2.5) is None

    def test_booleans_are_not_numbers(self):
        assert safe_int(True) is None
        assert safe_int(False) is None

    def test_other_types(self):
        assert safe_int(["3"]) is None


class TestYesNoToBool:
    def test_yes(self):
        assert yes_no_to_bool("yes") is True

    def test_no(self):
        assert yes_no_to_bool("no") is False

    def test_other_values(self):
        for value in ("", None, "maybe", "dont_know", "YES", " yes", True):
            assert yes_no_to_bool(value) is None


class TestCheckboxHelpers:
    def test_strict_true(self):
        assert strict_true(True) is True
        assert strict_true(False) is None
        assert strict_true("true") is None
        assert strict_true(None) is None

    def test_tri_state(self):
        assert tri_state(True) is True
        assert tri_state(False) is False
        assert tri_state("no") is None
        assert tri_state(None) is None


class TestTextDefaults:
    def test_text_or_none(self):
        assert text_or_none("Rockville") == "Rockville"
        assert text_or_none("") is None
        assert text_or_none("   ") is None
        assert text_or_none(None) is None

    def test_text_or_default_placeholder(self):
        assert text_or_default("") == "N/A"
        assert text_or_default(None) == "N/A"
        assert text_or_default("Ana") == "Ana"

    def test_text_or_default_custom(self):
        assert text_or_default("", "00000") == "00000"


class TestHasSignal:
    def test_blank_values(self):
        assert has_signal(None) is False
        assert has_signal("") is False
        assert has_signal("  ") is False
        assert has_signal([]) is False

    def test_answered_values(self):
        assert has_signal("2022-01-01") is True
        assert has_signal(0) is True
        assert has_signal(False) is True
        assert has_signal(["x"]) is True
