"""
Logging system for helm-s3repo.
"""

from .logger_config import setup_logging, close_logging, LoggerConfig, LoggingManager
from .log_formatter import StructuredFormatter, ColoredFormatter
from .log_handler import RotatingFileHandler, ConsoleHandler

__all__ = [
    "setup_logging",
    "close_logging",
    "LoggerConfig",
    "LoggingManager",
    "StructuredFormatter",
    "ColoredFormatter",
    "RotatingFileHandler",
    "ConsoleHandler"
]
