"""Core infrastructure: settings, logging, exceptions."""

from .config import Settings, get_settings, settings
from .exceptions import (
    AppException,
    BadRequestError,
    MarketDataError,
    NotFoundError,
    PersistenceError,
    TransientError,
    ValidationError,
)
from .logging import get_logger, setup_logging


__all__ = [
    "AppException",
    "BadRequestError",
    "MarketDataError",
    "NotFoundError",
    "PersistenceError",
    "Settings",
    "TransientError",
    "ValidationError",
    "get_logger",
    "get_settings",
    "settings",
    "setup_logging",
]
