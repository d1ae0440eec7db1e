"""Tests for display formatting helpers."""

from __future__ import annotations

from asxwatch.domain.formatting import (
    format_currency,
    format_market_value,
    format_number,
    format_percent_from_high,
    format_percentage,
    format_ratio,
)
from asxwatch.domain.quote import Quote, QuoteData


class TestFormatting:
    def test_currency(self):
        assert format_currency(1234.5) == "$1,234.50"
        assert format_currency(-3.5) == "-$3.50"

    def test_number(self):
        assert format_number(1234.5) == "1,234.5"
        assert format_number(1_000_000) == "1,000,000"
        assert format_number(0.1234) == "0.123"

    def test_market_value_compact(self):
        assert format_market_value(182_350_000_000) == "$182.35B"
        assert format_market_value(2_500_000) == "$2.50M"
        assert format_market_value(7_200) == "$7.20K"
        assert format_market_value(950) == "$950.00"

    def test_percentage_is_signed(self):
        assert format_percentage(1.25) == "+1.25%"
        assert format_percentage(0) == "+0.00%"
        assert format_percentage(-0.5) == "-0.50%"

    def test_ratio(self):
        assert format_ratio(15.456) == "15.46"

    def test_percent_from_high(self):
        assert format_percent_from_high(12.5) == "12.50%"


class TestQuoteData:
    """Tests for the quote models."""

    def test_percent_from_high(self):
        data = QuoteData(symbol="CBA", quote=Quote(cf_last=90.0, yrhigh=100.0))
        assert data.percent_from_high == 10.0

    def test_percent_from_high_missing_values(self):
        assert QuoteData(symbol="CBA").percent_from_high is None
        assert QuoteData(symbol="CBA", quote=Quote(cf_last=1.0, yrhigh=0)).percent_from_high is None

    def test_unknown_fields_ignored(self):
        data = QuoteData.model_validate(
            {"symbol": "CBA", "quote": {"cf_last": 101.5, "exchange": "ASX"}, "extra": 1}
        )
        assert data.quote.cf_last == 101.5
