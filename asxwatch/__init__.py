"""Live ASX quote tracking: watch set, refresh scheduling and watchlist."""

__version__ = "1.0.0"
