"""
Records describing what a repository operation did.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ConfigureResult:
    bucket: str
    repository_url: str
    bucket_created: bool = False
    index_overwritten: bool = False


@dataclass
class AddResult:
    bucket: str
    filename: str
    repository_url: str
    uploaded_keys: List[str] = field(default_factory=list)
    chart_overwritten: bool = False
    provenance_uploaded: bool = False
    index_entries: Optional[int] = None
