"""
Chart repository and chart artifact models.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

INDEX_KEY = "index.yaml"
CHARTS_PREFIX = "charts/"
PROVENANCE_SUFFIX = ".prov"


@dataclass(frozen=True)
class ChartRepository:
    """
    A bucket used as a public Helm chart repository.

    The bucket holds ``index.yaml`` at its root and every chart, plus its
    optional provenance file, under ``charts/``. A bucket "is" a
    repository exactly when ``index.yaml`` exists.
    """

    bucket: str
    domain: str = "s3.amazonaws.com"

    def __post_init__(self):
        if not self.bucket:
            raise ValueError("bucket name must not be empty")

    @property
    def index_key(self) -> str:
        return INDEX_KEY

    @property
    def base_url(self) -> str:
        """Public URL consumers pass to ``helm repo add``."""
        return f"https://{self.bucket}.{self.domain}/"

    @property
    def charts_url(self) -> str:
        """Base URL written into every index entry."""
        return f"{self.base_url}{CHARTS_PREFIX}"

    def chart_key(self, filename: str) -> str:
        return f"{CHARTS_PREFIX}{filename}"

    def provenance_key(self, filename: str) -> str:
        return f"{CHARTS_PREFIX}{filename}{PROVENANCE_SUFFIX}"


@dataclass
class ChartArtifact:
    """
    A packaged chart (``.tgz``) on the local filesystem.

    ``path`` is what the user passed in. ``staged_path`` is set once the
    chart has been copied into the working directory; its basename is the
    chart's canonical filename in the repository.
    """

    path: Path
    staged_path: Optional[Path] = None

    def __post_init__(self):
        self.path = Path(self.path)

    @property
    def filename(self) -> str:
        source = self.staged_path or self.path
        return source.name

    @property
    def provenance_path(self) -> Path:
        """Sibling ``.prov`` file of the original input, which may not exist."""
        return self.path.with_name(self.path.name + PROVENANCE_SUFFIX)

    def has_provenance(self) -> bool:
        return self.provenance_path.is_file()
