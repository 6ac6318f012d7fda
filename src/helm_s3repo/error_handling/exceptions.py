"""
Exceptions raised by helm-s3repo.

Every failure a user can hit has its own class. All of them abort the
running operation; nothing is retried. ``str(error)`` is the one-line
diagnostic printed after ``Error:``; the structured details live in
``context``.
"""

from typing import Optional, Dict, Any, List


class S3RepoError(Exception):
    """Base class for all helm-s3repo errors."""

    error_code = "S3REPO_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """
        Args:
            message: Diagnostic shown to the user
            error_code: Overrides the class error code
            context: Structured details (bucket, key, chart path, ...)
            cause: Lower-level exception being translated
        """
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code
        self.context = context or {}
        self.cause = cause

    @staticmethod
    def _merge_context(kwargs: Dict[str, Any], **details: Any) -> Dict[str, Any]:
        """Fold the non-empty ``details`` into ``kwargs['context']``."""
        context = dict(kwargs.pop('context', None) or {})
        context.update({name: value for name, value in details.items() if value is not None})
        kwargs['context'] = context
        return kwargs

    def __str__(self) -> str:
        return self.message


class MissingDependencyError(S3RepoError):
    """A required executable (helm, aws) is not installed."""

    error_code = "MISSING_DEPENDENCY"

    def __init__(self, message: str, binary: Optional[str] = None, **kwargs):
        super().__init__(message, **self._merge_context(kwargs, binary=binary))
        self.binary = binary


class RepositoryStateError(S3RepoError):
    """
    The bucket, its index or a chart object is not in the state the
    operation needs, and the user declined to change it.
    """

    error_code = "REPOSITORY_STATE"

    def __init__(self, message: str, bucket: Optional[str] = None, key: Optional[str] = None, **kwargs):
        super().__init__(message, **self._merge_context(kwargs, bucket=bucket, key=key))
        self.bucket = bucket
        self.key = key


class PreconditionFailedError(RepositoryStateError):
    """Bucket is missing or inaccessible and creating it was declined."""

    error_code = "PRECONDITION_FAILED"


class AlreadyInitializedError(RepositoryStateError):
    """Bucket already holds an index and overwriting it was declined."""

    error_code = "ALREADY_INITIALIZED"


class ArtifactConflictError(RepositoryStateError):
    """A chart with the same filename exists and overwriting was declined."""

    error_code = "ARTIFACT_CONFLICT"


class NotARepositoryError(RepositoryStateError):
    """The bucket's index could not be fetched."""

    error_code = "NOT_A_REPOSITORY"


class ArtifactError(S3RepoError):
    """Base for problems with the local chart passed to ``add``."""

    error_code = "ARTIFACT_ERROR"

    def __init__(self, message: str, chart_path: Optional[str] = None, **kwargs):
        super().__init__(message, **self._merge_context(kwargs, chart_path=chart_path))
        self.chart_path = chart_path


class InvalidArtifactError(ArtifactError):
    """Chart does not pass ``helm lint``."""

    error_code = "INVALID_ARTIFACT"


class ArtifactNotFoundError(ArtifactError):
    """Chart path is not an existing regular file."""

    error_code = "ARTIFACT_NOT_FOUND"


class CopyFailedError(ArtifactError):
    """Chart could not be copied into the working directory."""

    error_code = "COPY_FAILED"


class BadInputError(S3RepoError):
    """Malformed command invocation: missing arguments or conflicting flags."""

    error_code = "BAD_INPUT"

    def __init__(self, message: str, missing: Optional[List[str]] = None, **kwargs):
        super().__init__(message, **self._merge_context(kwargs, missing=missing or None))
        self.missing = missing or []


class StorageError(S3RepoError):
    """
    Unexpected object storage failure.

    Covers bucket creation, upload and download errors reported by S3 or
    the aws CLI, as opposed to a conflict the user declined.
    """

    error_code = "STORAGE_ERROR"

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        bucket: Optional[str] = None,
        key: Optional[str] = None,
        **kwargs
    ):
        """
        Args:
            message: Diagnostic shown to the user
            operation: Store method that failed (``create_bucket``, ``put_object``, ...)
            bucket: Bucket involved
            key: Object key involved
        """
        super().__init__(
            message, **self._merge_context(kwargs, operation=operation, bucket=bucket, key=key)
        )
        self.operation = operation
        self.bucket = bucket
        self.key = key


class CommandError(S3RepoError):
    """A required external command exited non-zero."""

    error_code = "COMMAND_FAILED"

    def __init__(
        self,
        message: str,
        command: Optional[List[str]] = None,
        returncode: Optional[int] = None,
        stderr: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **self._merge_context(
            kwargs,
            command=" ".join(command) if command else None,
            returncode=returncode
        ))
        self.command = command or []
        self.returncode = returncode
        self.stderr = stderr


class ConfigurationError(S3RepoError):
    """A configuration file or value is invalid."""

    error_code = "CONFIGURATION_ERROR"

    def __init__(
        self,
        message: str,
        config_section: Optional[str] = None,
        config_key: Optional[str] = None,
        **kwargs
    ):
        super().__init__(message, **self._merge_context(
            kwargs, config_section=config_section, config_key=config_key
        ))
        self.config_section = config_section
        self.config_key = config_key
