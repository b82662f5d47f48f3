"""Tests for decimal-as-text parsing, normalization and display."""

from decimal import Decimal

import pytest

from kpi_kernel.domain.dtos import UnitType
from kpi_kernel.domain.values import (
    format_decimal,
    format_value_with_unit,
    normalize_value_input,
    numeric_or_zero,
    parse_numeric,
    round_half_up,
)


class TestParseNumeric:
    def test_plain_numbers(self):
        assert parse_numeric("8") == Decimal("8")
        assert parse_numeric(" 2.5 ") == Decimal("2.5")
        assert parse_numeric(Decimal("1.10")) == Decimal("1.10")

    @pytest.mark.parametrize("raw", ["", None, "abc", "NaN", "nan", "Infinity", "-inf", "1,5"])
    def test_non_finite_or_text_is_none(self, raw):
        assert parse_numeric(raw) is None

    @pytest.mark.parametrize("raw", ["1e5000", "1e999999999", "-9e18", "1e-18"])
    def test_out_of_range_exponent_is_none(self, raw):
        assert parse_numeric(raw) is None

    def test_exponent_bound_inclusive(self):
        assert parse_numeric("9.99e17") == Decimal("9.99e17")
        assert parse_numeric("1e-17") == Decimal("1e-17")

    def test_numeric_or_zero(self):
        assert numeric_or_zero("NaN") == Decimal("0")
        assert numeric_or_zero("3") == Decimal("3")


class TestRounding:
    def test_half_up(self):
        assert round_half_up(Decimal("12.5")) == 13
        assert round_half_up(Decimal("2.5")) == 3
        assert round_half_up(Decimal("2.49")) == 2

    def test_negative_half_rounds_away_from_zero(self):
        assert round_half_up(Decimal("-2.5")) == -3


class TestFormatDecimal:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (Decimal("8.00"), "8"),
            (Decimal("8.0000"), "8"),
            (Decimal("2.50"), "2.5"),
            (Decimal("1E+2"), "100"),
            (Decimal("0.000"), "0"),
            (Decimal("0.3"), "0.3"),
            (Decimal("-0.00"), "0"),
            (Decimal("9E+17"), "900000000000000000"),
        ],
    )
    def test_no_exponent_no_trailing_zeros(self, value, expected):
        assert format_decimal(value) == expected


class TestNormalizeValueInput:
    def test_currency_decimal_comma(self):
        assert normalize_value_input("1.234,56", UnitType.CURRENCY) == "1234.56"

    def test_currency_plain_decimal_point(self):
        assert normalize_value_input("1234.5", UnitType.CURRENCY) == "1234.5"

    def test_comma_only_rewritten_for_currency(self):
        assert normalize_value_input("2,5", UnitType.COUNT) == "2,5"

    def test_trailing_zeros_dropped(self):
        assert normalize_value_input("10.00", UnitType.PERCENTAGE) == "10"

    def test_blank_becomes_empty(self):
        assert normalize_value_input("   ", UnitType.COUNT) == ""
        assert normalize_value_input(None, UnitType.COUNT) == ""

    def test_text_kept_as_typed(self):
        assert normalize_value_input(" n/a ", UnitType.COUNT) == "n/a"

    def test_huge_exponent_kept_as_typed(self):
        assert normalize_value_input("1e5000", UnitType.COUNT) == "1e5000"
        assert normalize_value_input("1e999999999", UnitType.CURRENCY) == "1e999999999"


class TestFormatValueWithUnit:
    def test_currency(self):
        assert format_value_with_unit("1234.56", UnitType.CURRENCY) == "R$ 1.234,56"
        assert format_value_with_unit("1000000", UnitType.CURRENCY) == "R$ 1.000.000,00"
        assert format_value_with_unit("-5", UnitType.CURRENCY) == "R$ -5,00"

    def test_currency_empty(self):
        assert format_value_with_unit("", UnitType.CURRENCY) == "R$ 0,00"

    def test_percentage(self):
        assert format_value_with_unit("85", UnitType.PERCENTAGE) == "85%"

    def test_count(self):
        assert format_value_with_unit("12.0", UnitType.COUNT) == "12 unid."
