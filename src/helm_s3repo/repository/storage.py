"""
Object storage backends for the chart repository.

Two implementations of the same interface: ``S3ObjectStore`` talks to S3
through boto3, ``AwsCliObjectStore`` drives the ``aws`` command-line tool.
Both authenticate with whatever AWS credentials are configured in the
environment.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from ..config import StorageConfig
from ..error_handling import StorageError
from .command_runner import CommandRunner

logger = logging.getLogger(__name__)

PUBLIC_READ = "public-read"
DEFAULT_REGION = "us-east-1"


class ObjectStore(ABC):
    """Abstract base class for the storage operations a repository needs."""

    def ensure_available(self) -> None:
        """
        Check that the backend can be used at all.

        Backends driving an external tool override this; SDK backends have
        nothing to check before the first request.

        Raises:
            MissingDependencyError: If a required tool is not installed
        """

    @abstractmethod
    def bucket_exists(self, bucket: str) -> bool:
        """
        Check whether a bucket exists and is accessible.

        Args:
            bucket: Bucket name

        Returns:
            False if the bucket is missing or access is denied
        """
        pass

    @abstractmethod
    def create_bucket(self, bucket: str) -> None:
        """
        Create a bucket able to serve publicly readable objects.

        Raises:
            StorageError: If creation fails
        """
        pass

    @abstractmethod
    def object_exists(self, bucket: str, key: str) -> bool:
        """Check whether an object exists at exactly ``key``."""
        pass

    @abstractmethod
    def put_object(
        self,
        bucket: str,
        key: str,
        source: Union[str, Path],
        content_type: Optional[str] = None,
        acl: str = PUBLIC_READ
    ) -> None:
        """
        Upload a local file.

        Raises:
            StorageError: If the upload fails
        """
        pass

    @abstractmethod
    def download_object(self, bucket: str, key: str, destination: Union[str, Path]) -> None:
        """
        Copy a remote object to a local path.

        Raises:
            StorageError: If the object cannot be fetched
        """
        pass


class S3ObjectStore(ObjectStore):
    """
    S3 storage through boto3.
    """

    def __init__(self, region: Optional[str] = None, client=None):
        """
        Initialize S3 store.

        Args:
            region: AWS region (ambient configuration when None)
            client: Pre-built boto3 S3 client
        """
        self.region = region
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client('s3', region_name=self.region)
            logger.debug(f"Initialized S3 client for region: {self._client.meta.region_name}")
        return self._client

    def bucket_exists(self, bucket: str) -> bool:
        try:
            self.client.head_bucket(Bucket=bucket)
            return True
        except ClientError as e:
            logger.debug(f"head_bucket {bucket}: {_error_code(e)}")
            return False
        except NoCredentialsError as e:
            raise StorageError(
                "AWS credentials not found. Please configure AWS credentials",
                operation="head_bucket", bucket=bucket, cause=e
            )
        except BotoCoreError as e:
            raise StorageError(
                f"Unable to reach S3: {e}",
                operation="head_bucket", bucket=bucket, cause=e
            )

    def create_bucket(self, bucket: str) -> None:
        region = self.client.meta.region_name
        params = {"Bucket": bucket, "ObjectOwnership": "ObjectWriter"}
        if region and region != DEFAULT_REGION:
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}

        try:
            self.client.create_bucket(**params)
            # New buckets block public ACLs; public-read uploads need the block lifted
            self.client.delete_public_access_block(Bucket=bucket)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(
                f"Failed to create S3 bucket '{bucket}': {e}",
                operation="create_bucket", bucket=bucket, cause=e
            )

        logger.info(f"Created S3 bucket {bucket}")

    def object_exists(self, bucket: str, key: str) -> bool:
        try:
            self.client.head_object(Bucket=bucket, Key=key)
            return True
        except ClientError as e:
            logger.debug(f"head_object s3://{bucket}/{key}: {_error_code(e)}")
            return False
        except BotoCoreError as e:
            raise StorageError(
                f"Unable to reach S3: {e}",
                operation="head_object", bucket=bucket, key=key, cause=e
            )

    def put_object(
        self,
        bucket: str,
        key: str,
        source: Union[str, Path],
        content_type: Optional[str] = None,
        acl: str = PUBLIC_READ
    ) -> None:
        params = {"Bucket": bucket, "Key": key, "ACL": acl}
        if content_type:
            params["ContentType"] = content_type

        try:
            with open(source, 'rb') as body:
                self.client.put_object(Body=body, **params)
        except OSError as e:
            raise StorageError(
                f"Unable to read {source}: {e}",
                operation="put_object", bucket=bucket, key=key, cause=e
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(
                f"Failed to upload s3://{bucket}/{key}: {e}",
                operation="put_object", bucket=bucket, key=key, cause=e
            )

        logger.info(f"Uploaded {source} to s3://{bucket}/{key}")

    def download_object(self, bucket: str, key: str, destination: Union[str, Path]) -> None:
        try:
            self.client.download_file(bucket, key, str(destination))
        except (ClientError, BotoCoreError) as e:
            raise StorageError(
                f"Failed to download s3://{bucket}/{key}: {e}",
                operation="download_object", bucket=bucket, key=key, cause=e
            )

        logger.debug(f"Downloaded s3://{bucket}/{key} to {destination}")


class AwsCliObjectStore(ObjectStore):
    """
    S3 storage through the ``aws`` command-line tool.
    """

    def __init__(
        self,
        binary: str = "aws",
        region: Optional[str] = None,
        runner: Optional[CommandRunner] = None
    ):
        self.binary = binary
        self.region = region
        self.runner = runner or CommandRunner()

    def _command(self, *args: str) -> list:
        command = [self.binary, *args]
        if self.region:
            command.extend(["--region", self.region])
        return command

    def ensure_available(self) -> None:
        self.runner.require(self.binary)

    def bucket_exists(self, bucket: str) -> bool:
        return self.runner.run(self._command("s3", "ls", f"s3://{bucket}")).ok

    def create_bucket(self, bucket: str) -> None:
        commands = [
            self._command("s3", "mb", f"s3://{bucket}"),
            self._command(
                "s3api", "put-bucket-ownership-controls", "--bucket", bucket,
                "--ownership-controls", "Rules=[{ObjectOwnership=ObjectWriter}]"
            ),
            # New buckets block public ACLs; public-read uploads need the block lifted
            self._command("s3api", "delete-public-access-block", "--bucket", bucket),
        ]
        for command in commands:
            result = self.runner.run(command)
            if not result.ok:
                raise StorageError(
                    f"Failed to create S3 bucket '{bucket}': {result.stderr.strip()}",
                    operation="create_bucket", bucket=bucket
                )

        logger.info(f"Created S3 bucket {bucket}")

    def object_exists(self, bucket: str, key: str) -> bool:
        # "aws s3 ls" matches by prefix, so compare the listed names exactly
        result = self.runner.run(self._command("s3", "ls", f"s3://{bucket}/{key}"))
        if not result.ok:
            return False

        name = key.rsplit("/", 1)[-1]
        for line in result.stdout.splitlines():
            fields = line.split()
            if fields and fields[-1] == name:
                return True
        return False

    def put_object(
        self,
        bucket: str,
        key: str,
        source: Union[str, Path],
        content_type: Optional[str] = None,
        acl: str = PUBLIC_READ
    ) -> None:
        args = [
            "s3api", "put-object", "--bucket", bucket, "--key", key,
            "--body", str(source), "--acl", acl
        ]
        if content_type:
            args.extend(["--content-type", content_type])

        result = self.runner.run(self._command(*args))
        if not result.ok:
            raise StorageError(
                f"Failed to upload s3://{bucket}/{key}: {result.stderr.strip()}",
                operation="put_object", bucket=bucket, key=key
            )

        logger.info(f"Uploaded {source} to s3://{bucket}/{key}")

    def download_object(self, bucket: str, key: str, destination: Union[str, Path]) -> None:
        result = self.runner.run(self._command("s3", "cp", f"s3://{bucket}/{key}", str(destination)))
        if not result.ok:
            raise StorageError(
                f"Failed to download s3://{bucket}/{key}: {result.stderr.strip()}",
                operation="download_object", bucket=bucket, key=key
            )


def create_object_store(config: StorageConfig, runner: Optional[CommandRunner] = None) -> ObjectStore:
    """Build the object store selected by ``storage.backend``."""
    if config.backend == "awscli":
        return AwsCliObjectStore(binary=config.aws_binary, region=config.region, runner=runner)
    return S3ObjectStore(region=config.region)


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "Unknown")
