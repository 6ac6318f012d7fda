"""
Turns a failed operation into a log record, a diagnostic and an exit code.
"""

import logging
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Optional, Callable

import click

from .exceptions import (
    S3RepoError, MissingDependencyError, StorageError, CommandError,
    ConfigurationError
)

# Failures of the environment or a collaborator, as opposed to a declined
# conflict or bad input
ENVIRONMENT_ERRORS = (MissingDependencyError, ConfigurationError, StorageError, CommandError)


class ErrorSeverity(Enum):
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorHandler:
    """
    Reports exceptions raised by ``configure`` and ``add``.

    The ``Error: ...`` line on stderr is what the user reads, so handled
    errors log below the default ERROR threshold: declined conflicts and
    bad input at INFO, environment failures at WARNING with a DEBUG
    traceback. Anything that is not an ``S3RepoError`` is a bug and logs
    as CRITICAL.
    """

    EXIT_FAILURE = 1

    def __init__(self, echo: Optional[Callable[..., None]] = None):
        """
        Args:
            echo: Output function for diagnostics (``click.echo`` by default)
        """
        self.logger = logging.getLogger(__name__)
        self._echo = echo or click.echo

    def handle_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        verbose: int = 0
    ) -> int:
        """
        Log and print an error.

        Args:
            error: Exception that aborted the operation
            context: Details about the invocation (command name, ...)
            verbose: CLI verbosity; the traceback is printed from ``-vv`` on

        Returns:
            Process exit code
        """
        record = self._record(error, context or {})
        self._log(record)

        self._echo(f"Error: {error}", err=True)
        if verbose > 1:
            self._echo(record["traceback"], err=True)

        return self.EXIT_FAILURE

    def classify(self, error: Exception) -> ErrorSeverity:
        if not isinstance(error, S3RepoError):
            return ErrorSeverity.CRITICAL
        if isinstance(error, ENVIRONMENT_ERRORS):
            return ErrorSeverity.HIGH
        return ErrorSeverity.MEDIUM

    def _record(self, error: Exception, context: Dict[str, Any]) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc),
            "error_type": type(error).__name__,
            "error_message": str(error),
            "severity": self.classify(error),
            "context": context,
            "traceback": "".join(traceback.format_exception(type(error), error, error.__traceback__))
        }
        if isinstance(error, S3RepoError):
            record["error_code"] = error.error_code
            record["error_context"] = error.context
            record["cause"] = str(error.cause) if error.cause else None
        return record

    def _log(self, record: Dict[str, Any]) -> None:
        details = {**record.get("error_context", {}), **record["context"]}

        message = f"{record['error_type']}: {record['error_message']}"
        if details:
            message += " | Context: " + ", ".join(f"{k}={v}" for k, v in details.items())
        if record.get("cause"):
            message += f" | Caused by: {record['cause']}"

        severity = record["severity"]
        if severity is ErrorSeverity.CRITICAL:
            self.logger.critical(message)
        elif severity is ErrorSeverity.HIGH:
            self.logger.warning(message)
        else:
            self.logger.info(message)
            return
        self.logger.debug(record["traceback"])
