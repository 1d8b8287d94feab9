"""Core infrastructure: settings, logging, exceptions."""

from .config import Settings, get_settings
from .exceptions import (
    AdvisoryUnavailableError,
    AppException,
    CommandUsageError,
    DeliveryFailedError,
    DestinationNotFoundError,
    FeedUnavailableError,
    InstrumentNotFoundError,
    RecordParseError,
)
from .logging import get_logger, setup_logging


__all__ = [
    "AdvisoryUnavailableError",
    "AppException",
    "CommandUsageError",
    "DeliveryFailedError",
    "DestinationNotFoundError",
    "FeedUnavailableError",
    "InstrumentNotFoundError",
    "RecordParseError",
    "Settings",
    "get_logger",
    "get_settings",
    "setup_logging",
]
