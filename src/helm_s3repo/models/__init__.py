"""
Data models for helm-s3repo.
"""

from .repository import ChartRepository, ChartArtifact, INDEX_KEY, CHARTS_PREFIX, PROVENANCE_SUFFIX
from .index_document import IndexDocument, ChartEntry
from .results import ConfigureResult, AddResult

__all__ = [
    "ChartRepository",
    "ChartArtifact",
    "INDEX_KEY",
    "CHARTS_PREFIX",
    "PROVENANCE_SUFFIX",
    "IndexDocument",
    "ChartEntry",
    "ConfigureResult",
    "AddResult"
]
