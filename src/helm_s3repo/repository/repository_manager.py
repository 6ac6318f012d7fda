"""
Repository manager for configuring S3 buckets as Helm chart repositories
and adding charts to them.
"""

import logging
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Union

import yaml

from ..config import AppConfig
from ..error_handling import (
    PreconditionFailedError, AlreadyInitializedError, InvalidArtifactError,
    ArtifactNotFoundError, CopyFailedError, ArtifactConflictError,
    NotARepositoryError, StorageError
)
from ..models import ChartRepository, ChartArtifact, IndexDocument, ConfigureResult, AddResult
from .command_runner import CommandRunner
from .confirmation import Confirmer, ConflictMode, create_confirmer
from .helm_client import HelmClient
from .storage import ObjectStore, PUBLIC_READ, create_object_store

logger = logging.getLogger(__name__)

MERGE_SOURCE = "old_index.yaml"
WORKDIR_PREFIX = "s3repo."


class RepositoryManager:
    """
    Sequences the storage and Helm calls behind ``configure`` and ``add``.

    Every operation runs in its own temporary working directory, which is
    removed on every exit path. Any failure aborts the operation at once;
    remote writes that already happened are not rolled back.
    """

    def __init__(
        self,
        store: ObjectStore,
        helm: HelmClient,
        confirmer: Confirmer,
        domain: str = "s3.amazonaws.com",
        acl: str = PUBLIC_READ,
        index_content_type: str = "text/yaml",
        temp_dir: Optional[Union[str, Path]] = None
    ):
        """
        Initialize repository manager.

        Args:
            store: Object storage backend
            helm: Helm client
            confirmer: Strategy answering create/overwrite questions
            domain: Storage domain used to build public URLs
            acl: Canned ACL applied to every upload
            index_content_type: Content type of the uploaded index
            temp_dir: Parent directory for working directories (system default if None)
        """
        self.store = store
        self.helm = helm
        self.confirmer = confirmer
        self.domain = domain
        self.acl = acl
        self.index_content_type = index_content_type
        self.temp_dir = Path(temp_dir) if temp_dir else None

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        mode: ConflictMode,
        runner: Optional[CommandRunner] = None
    ) -> "RepositoryManager":
        """Build a manager wired to the configured storage backend and helm binary."""
        runner = runner or CommandRunner()
        return cls(
            store=create_object_store(config.storage, runner=runner),
            helm=HelmClient(binary=config.helm.binary, runner=runner),
            confirmer=create_confirmer(mode),
            domain=config.storage.domain,
            acl=config.storage.acl,
            index_content_type=config.storage.index_content_type
        )

    def check_dependencies(self) -> None:
        """
        Fail before doing any work if a required tool is missing.

        Raises:
            MissingDependencyError: If helm or the storage tool is not installed
        """
        self.helm.ensure_available()
        self.store.ensure_available()

    def repository(self, bucket: str) -> ChartRepository:
        return ChartRepository(bucket=bucket, domain=self.domain)

    def configure(self, bucket: str) -> ConfigureResult:
        """
        Set up a bucket as an empty public Helm repository.

        Creates the bucket if needed (after confirmation), then uploads an
        index with no entries.

        Args:
            bucket: S3 bucket name

        Returns:
            What was done and the public repository URL

        Raises:
            PreconditionFailedError: Bucket missing and creation declined
            AlreadyInitializedError: Index exists and overwrite declined
        """
        self.check_dependencies()
        repository = self.repository(bucket)
        result = ConfigureResult(bucket=bucket, repository_url=repository.base_url)

        result.bucket_created = self._ensure_bucket(repository)

        if self.store.object_exists(bucket, repository.index_key):
            situation = (
                f"Bucket '{bucket}' already has an {repository.index_key}. "
                "(Maybe it's already a helm repository?)"
            )
            if not self.confirmer.confirm(
                f"WARNING! {situation}\nWould you like to delete this index and start a new repo in this bucket?"
            ):
                raise AlreadyInitializedError(situation, bucket=bucket, key=repository.index_key)
            result.index_overwritten = True

        with self.working_directory() as workdir:
            index_path = self.helm.repo_index(workdir)
            self.store.put_object(
                bucket, repository.index_key, index_path,
                content_type=self.index_content_type, acl=self.acl
            )

        logger.info(f"Repository {repository.base_url} is set up and empty")
        return result

    def add(self, bucket: str, chart_path: Union[str, Path]) -> AddResult:
        """
        Upload a packaged chart and regenerate the repository index.

        The chart is uploaded before the index that references it. A
        ``.prov`` file next to the input chart is uploaded too.

        Args:
            bucket: S3 bucket name of a configured repository
            chart_path: Path to a packaged chart (.tgz)

        Returns:
            What was uploaded

        Raises:
            ArtifactNotFoundError: Path missing or not a regular file
            InvalidArtifactError: Chart fails helm lint
            CopyFailedError: Chart cannot be copied into the working directory
            ArtifactConflictError: Chart exists remotely and overwrite declined
            NotARepositoryError: The bucket has no readable index
        """
        self.check_dependencies()
        repository = self.repository(bucket)
        artifact = self._validate_artifact(chart_path)

        with self.working_directory() as workdir:
            self._stage_artifact(artifact, workdir)
            filename = artifact.filename
            result = AddResult(bucket=bucket, filename=filename, repository_url=repository.base_url)

            chart_key = repository.chart_key(filename)
            if self.store.object_exists(bucket, chart_key):
                situation = f"Chart {filename} already exists in S3"
                if not self.confirmer.confirm(f"{situation}. Would you like to delete and overwrite it?"):
                    raise ArtifactConflictError(situation, bucket=bucket, key=chart_key)
                result.chart_overwritten = True

            merge_path = workdir / MERGE_SOURCE
            try:
                self.store.download_object(bucket, repository.index_key, merge_path)
            except StorageError as e:
                raise NotARepositoryError(
                    f"Bucket '{bucket}' does not appear to be a valid helm repository. "
                    "Run 'helm s3repo configure' first",
                    bucket=bucket, key=repository.index_key, cause=e
                )

            index_path = self.helm.repo_index(workdir, merge=merge_path, url=repository.charts_url)
            result.index_entries = self._inspect_index(index_path, filename)

            self.store.put_object(bucket, chart_key, artifact.staged_path, acl=self.acl)
            result.uploaded_keys.append(chart_key)
            logger.info("Chart uploaded")

            self.store.put_object(
                bucket, repository.index_key, index_path,
                content_type=self.index_content_type, acl=self.acl
            )
            result.uploaded_keys.append(repository.index_key)
            logger.info("Index updated")

        if artifact.has_provenance():
            provenance_key = repository.provenance_key(filename)
            self.store.put_object(bucket, provenance_key, artifact.provenance_path, acl=self.acl)
            result.uploaded_keys.append(provenance_key)
            result.provenance_uploaded = True
            logger.info("Additional .prov file found and uploaded")

        return result

    def _ensure_bucket(self, repository: ChartRepository) -> bool:
        """
        Make sure the bucket exists, creating it after confirmation.

        Returns:
            True if the bucket was created
        """
        bucket = repository.bucket
        created = False

        while not self.store.bucket_exists(bucket):
            situation = f"S3 bucket '{bucket}' either doesn't exist, or you don't have access to it"
            if not self.confirmer.confirm(f"{situation}. Would you like to try to create this bucket?"):
                raise PreconditionFailedError(situation, bucket=bucket)
            self.store.create_bucket(bucket)
            created = True

        return created

    def _validate_artifact(self, chart_path: Union[str, Path]) -> ChartArtifact:
        artifact = ChartArtifact(path=Path(chart_path))

        if not artifact.path.exists():
            raise ArtifactNotFoundError(
                f"{chart_path} is not a valid file", chart_path=str(chart_path)
            )

        if not self.helm.lint(artifact.path):
            raise InvalidArtifactError(
                f"'{chart_path}' does not appear to be a valid helm chart (Doesn't pass helm lint)",
                chart_path=str(chart_path)
            )

        # A chart directory passes lint but cannot be uploaded
        if not artifact.path.is_file():
            raise ArtifactNotFoundError(
                f"{chart_path} is not a valid file. "
                "Make sure to use 'helm package' first and point to the valid .tgz file",
                chart_path=str(chart_path)
            )

        return artifact

    def _stage_artifact(self, artifact: ChartArtifact, workdir: Path) -> None:
        try:
            staged = shutil.copy2(artifact.path, workdir)
        except OSError as e:
            raise CopyFailedError(
                f"Chart {artifact.path} isn't able to be copied. Maybe a permissions issue?",
                chart_path=str(artifact.path), cause=e
            )
        artifact.staged_path = Path(staged)
        logger.debug(f"Staged {artifact.path} as {artifact.staged_path}")

    def _inspect_index(self, index_path: Path, filename: str) -> Optional[int]:
        """Report how many entries the regenerated index holds."""
        try:
            document = IndexDocument.load(index_path)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not read regenerated index {index_path}: {e}")
            return None

        if document.find_by_filename(filename) is None:
            logger.warning(f"Regenerated index does not reference {filename}")
        logger.debug(f"Regenerated index lists {document.entry_count} chart versions")
        return document.entry_count

    @contextmanager
    def working_directory(self) -> Iterator[Path]:
        """
        Context manager for a private working directory with automatic cleanup.

        Yields:
            Path of the new directory
        """
        if self.temp_dir:
            self.temp_dir.mkdir(parents=True, exist_ok=True)
        workdir = Path(tempfile.mkdtemp(prefix=WORKDIR_PREFIX, dir=self.temp_dir))
        logger.debug(f"Created working directory {workdir}")
        try:
            yield workdir
        finally:
            try:
                shutil.rmtree(workdir)
                logger.debug(f"Cleaned up working directory {workdir}")
            except OSError as e:
                logger.error(f"Failed to clean up working directory {workdir}: {e}")
