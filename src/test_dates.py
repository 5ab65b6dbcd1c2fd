"""Tests for GEDCOM date normalization."""

import pytest

from dates import DateCache, parse_gedcom_date


class TestPrecision:
    def test_day_precision(self):
        d = parse_gedcom_date("15 MAR 1950")
        assert (d.year, d.month, d.day) == (1950, 3, 15)
        assert d.precision == "day"
        assert d.iso == "1950-03-15"
        assert d.approx_iso is None

    def test_month_precision(self):
        d = parse_gedcom_date("MAR 1950")
        assert (d.year, d.month, d.day) == (1950, 3, None)
        assert d.precision == "month"
        assert d.iso is None
        assert d.approx_iso == "1950-03-01"

    def test_year_precision(self):
        d = parse_gedcom_date("1950")
        assert d.year == 1950
        assert d.month is None
        assert d.precision == "year"
        assert d.approx_iso == "1950-01-01"

    def test_garbage_is_unknown(self):
        d = parse_gedcom_date("garbage")
        assert d.precision == "unknown"
        assert d.original == "garbage"
        assert d.year is None and d.month is None and d.day is None
        assert d.iso is None and d.approx_iso is None

    @pytest.mark.parametrize("text", ["mar 1950", "Mar 1950", "MARCH 1950"])
    def test_month_names_case_insensitive(self, text):
        assert parse_gedcom_date(text).month == 3

    def test_impossible_day_degrades(self):
        d = parse_gedcom_date("31 FEB 1900")
        assert d.precision == "unknown"
        assert d.original == "31 FEB 1900"

    def test_unknown_month_degrades(self):
        assert parse_gedcom_date("12 FOO 1900").precision == "unknown"


class TestQualifiersAndEdges:
    @pytest.mark.parametrize("text", ["ABT 1900", "EST 1900", "BEF 1900", "AFT 1900", "CAL 1900"])
    def test_qualifier_is_dropped(self, text):
        d = parse_gedcom_date(text)
        assert d.year == 1900
        assert d.precision == "year"
        assert d.original == text

    def test_none(self):
        d = parse_gedcom_date(None)
        assert d.original is None
        assert d.precision == "unknown"

    def test_empty_string_keeps_original(self):
        d = parse_gedcom_date("")
        assert d.original == ""
        assert d.precision == "unknown"

    def test_surrounding_whitespace(self):
        assert parse_gedcom_date("  2 JAN 1901 ").iso == "1901-01-02"


class TestDisplayAndSorting:
    def test_display_prefers_exact_then_approximate(self):
        assert parse_gedcom_date("2 JAN 1901").display() == "1901-01-02"
        assert parse_gedcom_date("1901").display() == "1901-01-01"
        assert parse_gedcom_date("sometime").display() == "sometime"

    def test_sort_key_puts_undated_last(self):
        dates = [parse_gedcom_date(s) for s in ["unknown", "1950", "3 FEB 1949"]]
        ordered = sorted(dates, key=lambda d: d.sort_key())
        assert [d.original for d in ordered] == ["3 FEB 1949", "1950", "unknown"]


class TestDateCache:
    def test_reuses_parsed_value(self):
        cache = DateCache()
        first = cache.parse("1 JAN 1900")
        second = cache.parse("1 JAN 1900")
        assert first is second
        assert len(cache) == 1

    def test_distinct_strings(self):
        cache = DateCache()
        cache.parse("1900")
        cache.parse("1901")
        assert len(cache) == 2
