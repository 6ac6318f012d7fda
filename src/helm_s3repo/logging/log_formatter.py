"""
Formatters for terminal and machine-readable log output.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Dict, Any

# Attributes present on every LogRecord; anything else arrived through ``extra=``
_RECORD_ATTRIBUTES = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line, for CI systems that collect the log stream.

    Values passed through ``extra=`` are kept under an ``extra`` key.
    """

    def __init__(self, include_extra: bool = True):
        super().__init__()
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        extra = self._extra(record) if self.include_extra else {}
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, default=str, ensure_ascii=False)

    @staticmethod
    def _extra(record: logging.LogRecord) -> Dict[str, Any]:
        return {
            key: value for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES and not key.startswith('_')
        }


class ColoredFormatter(logging.Formatter):
    """Colors each line by level and shows the level name in bold."""

    RESET = '\033[0m'
    BOLD = '\033[1m'
    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
        'RESET': RESET
    }

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        color = self.COLORS.get(record.levelname)
        if color is None:
            return line

        line = line.replace(record.levelname, f"{self.BOLD}{record.levelname}{self.RESET}{color}", 1)
        return f"{color}{line}{self.RESET}"
