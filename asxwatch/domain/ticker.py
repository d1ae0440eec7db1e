"""Ticker symbol canonicalisation and validation.

Every entry point (search, watchlist, watch set) funnels tickers through
these helpers so the system only ever stores and compares the canonical
uppercase alphanumeric form.
"""

from __future__ import annotations

import re
from typing import Iterable

from asxwatch.core.exceptions import ValidationError


MIN_TICKER_LENGTH = 3

EMPTY_TICKER_MESSAGE = "Please enter a ticker symbol"
INVALID_TICKER_MESSAGE = (
    f"Please enter a valid ticker (minimum {MIN_TICKER_LENGTH} alphanumeric characters)"
)

_NON_ALPHANUMERIC = re.compile(r"[^A-Z0-9]")


def sanitize_ticker_input(value: str) -> str:
    """Uppercase and strip everything that is not A-Z or 0-9.

    Mirrors what the search box does while the user is typing.
    """
    return _NON_ALPHANUMERIC.sub("", value.upper())


def canonical_ticker(value: str) -> str:
    """Canonical form of a ticker: trimmed, uppercase, alphanumeric only.

    Idempotent: ``canonical_ticker(canonical_ticker(s)) == canonical_ticker(s)``.
    """
    return sanitize_ticker_input(value.strip())


def is_valid_ticker(value: str) -> bool:
    """True when the canonical form has at least MIN_TICKER_LENGTH characters."""
    if not isinstance(value, str):
        return False
    return len(canonical_ticker(value)) >= MIN_TICKER_LENGTH


def validate_ticker(value: str) -> str:
    """Return the canonical ticker or raise ValidationError."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(EMPTY_TICKER_MESSAGE)
    ticker = canonical_ticker(value)
    if len(ticker) < MIN_TICKER_LENGTH:
        raise ValidationError(INVALID_TICKER_MESSAGE, details={"input": value})
    return ticker


def dedupe_tickers(values: Iterable[str]) -> list[str]:
    """Canonicalise, drop invalid entries and duplicates, keep first-seen order.

    A bare string is one ticker, not a sequence of characters.
    """
    if isinstance(values, str):
        values = [values]
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if not is_valid_ticker(value):
            continue
        ticker = canonical_ticker(value)
        if ticker not in seen:
            seen.add(ticker)
            result.append(ticker)
    return result
