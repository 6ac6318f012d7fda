"""
Repository management: storage backends, the Helm client and the
configure/add workflows.
"""

from .command_runner import CommandRunner, CommandResult
from .confirmation import ConflictMode, Confirmer, AssumeYes, AssumeNo, InteractivePrompt, create_confirmer
from .helm_client import HelmClient
from .storage import ObjectStore, S3ObjectStore, AwsCliObjectStore, create_object_store
from .repository_manager import RepositoryManager

__all__ = [
    "CommandRunner",
    "CommandResult",
    "ConflictMode",
    "Confirmer",
    "AssumeYes",
    "AssumeNo",
    "InteractivePrompt",
    "create_confirmer",
    "HelmClient",
    "ObjectStore",
    "S3ObjectStore",
    "AwsCliObjectStore",
    "create_object_store",
    "RepositoryManager"
]
