"""
CallScreen - Number Normalization Tests

Tests caller ID normalization and lookup candidate generation.

Run with: pytest tests/test_numbers.py -v
"""

import pytest

from callscreen.core.numbers import build_lookup_candidates, normalize_number


class TestNormalizeNumber:
    """Tests for normalize_number()."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("0891234567", "+49891234567"),
            ("0049891234567", "+49891234567"),
            ("+1234567", "+1234567"),
            ("49891234567", "+49891234567"),
            ("abc", ""),
        ],
    )
    def test_rules(self, raw, expected):
        assert normalize_number(raw) == expected

    def test_separators_are_stripped(self):
        assert normalize_number("+49 (89) 123-45 67") == "+49891234567"
        assert normalize_number("089 / 123 45 67") == "+49891234567"

    def test_empty_and_none(self):
        assert normalize_number("") == ""
        assert normalize_number(None) == ""

    def test_plus_without_digits_fails(self):
        assert normalize_number("+") == ""
        assert normalize_number("00") == ""
        assert normalize_number("0") == ""

    def test_inner_plus_is_dropped(self):
        assert normalize_number("+49+89") == "+4989"

    def test_custom_country_code(self):
        assert normalize_number("0612345678", country_code="43") == "+43612345678"

    def test_output_is_plus_and_digits(self):
        for raw in ["0891234567", "  +1-800-FLOWERS 12", "0049 89", "12ab34"]:
            result = normalize_number(raw)
            assert result == "" or (result[0] == "+" and result[1:].isdigit())

    def test_idempotent(self):
        assert normalize_number("0891234567") == normalize_number("0891234567")
        once = normalize_number("0891234567")
        assert normalize_number(once) == once


class TestBuildLookupCandidates:
    """Tests for build_lookup_candidates()."""

    def test_german_number_yields_international_then_national(self):
        assert list(build_lookup_candidates("+49891234567")) == ["49891234567", "0891234567"]

    def test_foreign_number_yields_single_candidate(self):
        assert list(build_lookup_candidates("+1234567")) == ["1234567"]

    def test_empty_yields_nothing(self):
        assert list(build_lookup_candidates("")) == []

    def test_bare_country_code_has_no_national_form(self):
        assert list(build_lookup_candidates("+49")) == ["49"]

    def test_is_lazy_and_single_use(self):
        candidates = build_lookup_candidates("+49891234567")
        assert next(candidates) == "49891234567"
        assert list(candidates) == ["0891234567"]
        assert list(candidates) == []

    def test_idempotent(self):
        first = list(build_lookup_candidates("+49891234567"))
        second = list(build_lookup_candidates("+49891234567"))
        assert first == second
