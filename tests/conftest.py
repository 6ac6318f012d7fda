"""
Shared fixtures and in-memory collaborators for the helm-s3repo test suite.
"""

from pathlib import Path
from typing import Dict, List, Optional

import pytest
import yaml

from helm_s3repo.config import reset_config_manager
from helm_s3repo.error_handling import MissingDependencyError, StorageError
from helm_s3repo.logging import close_logging
from helm_s3repo.repository import (
    AssumeNo, AssumeYes, ConflictMode, HelmClient, ObjectStore, RepositoryManager,
    create_confirmer
)
from helm_s3repo.repository.storage import PUBLIC_READ


class FakeObjectStore(ObjectStore):
    """Object store keeping buckets in memory and recording every write."""

    def __init__(self, buckets: Optional[List[str]] = None):
        self.buckets: Dict[str, Dict[str, dict]] = {name: {} for name in buckets or []}
        self.writes: List[str] = []
        self.created: List[str] = []
        self.fail_put_keys = set()
        self.fail_create = False

    def bucket_exists(self, bucket: str) -> bool:
        return bucket in self.buckets

    def create_bucket(self, bucket: str) -> None:
        if self.fail_create:
            raise StorageError(f"Failed to create S3 bucket '{bucket}'", operation="create_bucket")
        self.buckets[bucket] = {}
        self.created.append(bucket)

    def object_exists(self, bucket: str, key: str) -> bool:
        return key in self.buckets.get(bucket, {})

    def put_object(self, bucket, key, source, content_type=None, acl=PUBLIC_READ) -> None:
        if key in self.fail_put_keys:
            raise StorageError(f"Failed to upload s3://{bucket}/{key}", operation="put_object")
        self.buckets[bucket][key] = {
            "body": Path(source).read_bytes(),
            "content_type": content_type,
            "acl": acl,
        }
        self.writes.append(key)

    def download_object(self, bucket, key, destination) -> None:
        try:
            body = self.buckets[bucket][key]["body"]
        except KeyError:
            raise StorageError(f"Failed to download s3://{bucket}/{key}", operation="download_object")
        Path(destination).write_bytes(body)

    # helpers for assertions

    def keys(self, bucket: str) -> List[str]:
        return sorted(self.buckets.get(bucket, {}))

    def index(self, bucket: str) -> dict:
        return yaml.safe_load(self.buckets[bucket]["index.yaml"]["body"])

    def snapshot(self, bucket: str) -> dict:
        return {key: dict(obj) for key, obj in self.buckets.get(bucket, {}).items()}


class FakeHelm(HelmClient):
    """
    Stand-in for the helm binary.

    ``lint`` accepts ``.tgz`` files and chart directories holding a
    Chart.yaml. ``repo_index`` behaves like ``helm repo index``: one entry per
    ``<name>-<version>.tgz`` in the directory, merged into ``--merge``.
    """

    def __init__(self):
        super().__init__(binary="helm", runner=None)
        self.missing = False
        self.index_calls: List[dict] = []

    def ensure_available(self) -> None:
        if self.missing:
            raise MissingDependencyError("'helm' was not found", binary="helm")

    def lint(self, chart_path) -> bool:
        path = Path(chart_path)
        if path.is_dir():
            return (path / "Chart.yaml").exists()
        return path.is_file() and path.name.endswith(".tgz")

    def repo_index(self, directory, merge=None, url=None) -> Path:
        directory = Path(directory)
        self.index_calls.append({"directory": directory, "merge": merge, "url": url})

        document = {"apiVersion": "v1", "entries": {}, "generated": "2024-01-01T00:00:00Z"}
        if merge is not None:
            merged = yaml.safe_load(Path(merge).read_text()) or {}
            document["entries"] = merged.get("entries") or {}

        for package in sorted(directory.glob("*.tgz")):
            name, version = package.name[:-len(".tgz")].rsplit("-", 1)
            versions = [v for v in document["entries"].get(name, []) if v["version"] != version]
            versions.append({
                "name": name,
                "version": version,
                "urls": [f"{url}{package.name}" if url else package.name],
                "digest": "sha256:fake",
            })
            document["entries"][name] = versions

        index_path = directory / "index.yaml"
        index_path.write_text(yaml.safe_dump(document))
        return index_path


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep host configuration and logging handlers out of every test."""
    for name in ("LOG_LEVEL", "LOG_FILE", "LOG_FORMAT", "LOG_STRUCTURED", "HELM_BIN",
                 "S3REPO_BACKEND", "S3REPO_DOMAIN", "S3REPO_ACL", "S3REPO_AWS_BIN",
                 "AWS_REGION", "AWS_DEFAULT_REGION", "HELM_PLUGIN_NAME"):
        monkeypatch.delenv(name, raising=False)
    reset_config_manager()
    yield
    reset_config_manager()
    close_logging()


@pytest.fixture
def store():
    return FakeObjectStore()


@pytest.fixture
def helm():
    return FakeHelm()


@pytest.fixture
def make_manager(store, helm, tmp_path):
    """Build a manager over the fakes; accepts a ConflictMode or a Confirmer."""
    def factory(mode=ConflictMode.ASSUME_YES):
        confirmer = create_confirmer(mode) if isinstance(mode, ConflictMode) else mode
        return RepositoryManager(
            store=store,
            helm=helm,
            confirmer=confirmer,
            temp_dir=tmp_path / "work"
        )
    return factory


@pytest.fixture
def yes_manager(make_manager):
    return make_manager(AssumeYes())


@pytest.fixture
def no_manager(make_manager):
    return make_manager(AssumeNo())


@pytest.fixture
def make_chart(tmp_path):
    """Create a packaged chart file, optionally with a .prov beside it."""
    charts_dir = tmp_path / "charts"
    charts_dir.mkdir()

    def factory(filename="foo-0.1.0.tgz", provenance=False) -> Path:
        chart = charts_dir / filename
        chart.write_bytes(b"packaged chart " + filename.encode())
        if provenance:
            Path(f"{chart}.prov").write_text("-----BEGIN PGP SIGNED MESSAGE-----\n")
        return chart
    return factory


@pytest.fixture
def work_dir(tmp_path):
    return tmp_path / "work"
