"""
Centralized logging configuration.

Installs a single stderr handler for the autohide loggers and quiets
third-party libraries that would otherwise flood the output with
per-event debug messages.
"""
import logging
import sys

# Suppress verbose third-party library messages
_SUPPRESSED_LOGGERS = [
    'watchdog',
]

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(message)s"
DATE_FORMAT = "%H:%M:%S"


def configure_logging(level: str = "INFO", stream=None) -> logging.Logger:
    """Configure the autohide logger hierarchy and return its root"""
    root = logging.getLogger("autohide")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    root.addHandler(handler)

    for logger_name in _SUPPRESSED_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
    return root
