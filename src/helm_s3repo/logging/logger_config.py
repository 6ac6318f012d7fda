"""
Logging setup for helm-s3repo.

stdout carries command output, so every log record goes to stderr and,
when ``logging.file`` is set, to a rotating log file.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Dict

from ..config import LoggingConfig
from .log_formatter import StructuredFormatter, ColoredFormatter
from .log_handler import RotatingFileHandler, ConsoleHandler

LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL
}

# Debug output from the AWS SDK includes signed request headers
QUIET_LOGGERS = ('boto3', 'botocore', 's3transfer', 'urllib3')


@dataclass
class LoggerConfig:
    """Resolved logging settings for one invocation."""
    level: str = "ERROR"
    file_path: Optional[str] = None
    format_string: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_file_size: int = 10  # MB
    backup_count: int = 5
    enable_structured: bool = False
    enable_colors: bool = True

    @classmethod
    def from_app_config(cls, config: LoggingConfig, verbose: int = 0) -> "LoggerConfig":
        """
        Combine the ``logging`` config section with the ``-v`` count.

        ``-v`` lowers the threshold to INFO and ``-vv`` to DEBUG; a lower
        configured level is never raised.
        """
        level = config.level.upper()
        if verbose >= 2:
            level = "DEBUG"
        elif verbose == 1 and LEVELS.get(level, logging.ERROR) > logging.INFO:
            level = "INFO"

        return cls(
            level=level,
            file_path=config.file,
            format_string=config.format,
            max_file_size=config.max_file_size,
            backup_count=config.backup_count,
            enable_structured=config.structured
        )


class LoggingManager:
    """
    Owns the handlers installed on the root logger.

    ``setup_logging`` runs once per process unless ``force`` is passed, in
    which case the previous handlers are closed and replaced.
    """

    def __init__(self):
        self._handlers: Dict[str, logging.Handler] = {}
        self._configured = False
        self.config: Optional[LoggerConfig] = None

    def setup_logging(self, config: Optional[LoggerConfig] = None, force: bool = False) -> None:
        """
        Install handlers on the root logger.

        Args:
            config: Settings to apply (defaults if not provided)
            force: Replace handlers installed by an earlier call
        """
        if self._configured and not force:
            return

        self.close_handlers()
        self.config = config = config or LoggerConfig()
        level = self._get_log_level(config.level)

        root = logging.getLogger()
        root.setLevel(level)

        self._install('console', self._console_handler(config), level)
        if config.file_path:
            self._install('file', self._file_handler(config), level)

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

        self._configured = True
        logging.getLogger(__name__).debug(
            f"Logging at {config.level} to {', '.join(self._handlers)}"
        )

    def _install(self, name: str, handler: logging.Handler, level: int) -> None:
        handler.setLevel(level)
        logging.getLogger().addHandler(handler)
        self._handlers[name] = handler

    def _console_handler(self, config: LoggerConfig) -> logging.Handler:
        handler = ConsoleHandler()
        if config.enable_structured:
            handler.setFormatter(StructuredFormatter())
        elif config.enable_colors and handler.stream_is_tty:
            handler.setFormatter(ColoredFormatter(config.format_string))
        else:
            handler.setFormatter(logging.Formatter(config.format_string))
        return handler

    def _file_handler(self, config: LoggerConfig) -> logging.Handler:
        handler = RotatingFileHandler(
            filename=config.file_path,
            maxBytes=config.max_file_size * 1024 * 1024,
            backupCount=config.backup_count
        )
        if config.enable_structured:
            handler.setFormatter(StructuredFormatter())
        else:
            handler.setFormatter(logging.Formatter(config.format_string))
        return handler

    def _get_log_level(self, level_str: str) -> int:
        return LEVELS.get(level_str.upper(), logging.ERROR)

    def close_handlers(self) -> None:
        """Detach and close every handler this manager installed."""
        root = logging.getLogger()
        while self._handlers:
            _, handler = self._handlers.popitem()
            root.removeHandler(handler)
            handler.close()
        self._configured = False


_logging_manager = LoggingManager()


def setup_logging(config: Optional[LoggerConfig] = None, force: bool = False) -> None:
    """Configure logging for the process; see ``LoggingManager.setup_logging``."""
    _logging_manager.setup_logging(config, force=force)


def close_logging() -> None:
    _logging_manager.close_handlers()
