"""Display formatting for quote values (AUD, en-AU conventions)."""

from __future__ import annotations


def format_currency(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_number(value: float) -> str:
    # Up to three fraction digits, trailing zeros dropped
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def format_market_value(value: float) -> str:
    """Compact market value, e.g. ``$182.35B``."""
    if value >= 1_000_000_000:
        return f"${value / 1_000_000_000:.2f}B"
    if value >= 1_000_000:
        return f"${value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"${value / 1_000:.2f}K"
    return format_currency(value)


def format_percentage(value: float) -> str:
    """Signed percentage with two decimals, e.g. ``+1.25%``."""
    return f"{'+' if value >= 0 else ''}{value:.2f}%"


def format_ratio(value: float) -> str:
    return f"{value:.2f}"


def format_percent_from_high(value: float) -> str:
    return f"{value:.2f}%"
