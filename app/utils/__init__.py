"""
Utilities package initialization.
"""
from .logger import get_logger, log_business_event, log_performance, setup_logging
from .time import Clock, FixedClock, utc_now, as_utc

__all__ = [
    "get_logger",
    "log_business_event",
    "log_performance",
    "setup_logging",
    "Clock",
    "FixedClock",
    "utc_now",
    "as_utc",
]
