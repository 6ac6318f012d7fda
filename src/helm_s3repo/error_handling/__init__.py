"""
Error handling for helm-s3repo.
"""

from .exceptions import (
    S3RepoError, MissingDependencyError, PreconditionFailedError,
    AlreadyInitializedError, InvalidArtifactError, ArtifactNotFoundError,
    RepositoryStateError, ArtifactError,
    CopyFailedError, ArtifactConflictError, NotARepositoryError,
    BadInputError, StorageError, CommandError, ConfigurationError
)
from .error_handler import ErrorHandler, ErrorSeverity

__all__ = [
    "S3RepoError",
    "MissingDependencyError",
    "PreconditionFailedError",
    "AlreadyInitializedError",
    "InvalidArtifactError",
    "ArtifactNotFoundError",
    "CopyFailedError",
    "ArtifactConflictError",
    "NotARepositoryError",
    "BadInputError",
    "RepositoryStateError",
    "ArtifactError",
    "StorageError",
    "CommandError",
    "ConfigurationError",
    "ErrorHandler",
    "ErrorSeverity"
]
