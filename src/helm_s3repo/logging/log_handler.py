"""
Log handlers installed by the logging manager.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional, TextIO, Union


class RotatingFileHandler(logging.handlers.RotatingFileHandler):
    """
    Size-rotated log file whose parent directory is created on demand.

    The file itself is only opened on the first record.
    """

    def __init__(
        self,
        filename: Union[str, Path],
        maxBytes: int = 0,
        backupCount: int = 0,
        encoding: Optional[str] = 'utf-8'
    ):
        Path(filename).parent.mkdir(parents=True, exist_ok=True)
        super().__init__(
            str(filename), mode='a', maxBytes=maxBytes,
            backupCount=backupCount, encoding=encoding, delay=True
        )


class ConsoleHandler(logging.StreamHandler):
    """Stream handler bound to stderr unless another stream is given."""

    def __init__(self, stream: Optional[TextIO] = None):
        super().__init__(stream)

    @property
    def stream_is_tty(self) -> bool:
        isatty = getattr(self.stream, "isatty", None)
        return bool(isatty and isatty())
