"""
Read-only view of a Helm repository ``index.yaml``.

Helm generates and merges the index; this model only parses the result so
the tool can report what the repository contains after a change.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
import logging

import yaml

logger = logging.getLogger(__name__)


@dataclass
class ChartEntry:
    """One chart version listed in the index."""
    name: str
    version: str
    urls: List[str] = field(default_factory=list)
    digest: Optional[str] = None

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "ChartEntry":
        return cls(
            name=name,
            version=str(data.get("version", "")),
            urls=list(data.get("urls") or []),
            digest=data.get("digest")
        )

    def references(self, filename: str) -> bool:
        """True if one of the entry's URLs points at ``filename``."""
        return any(url.rstrip("/").rsplit("/", 1)[-1] == filename for url in self.urls)


@dataclass
class IndexDocument:
    """Parsed repository index."""

    api_version: str = "v1"
    entries: Dict[str, List[ChartEntry]] = field(default_factory=dict)
    generated: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "IndexDocument":
        data = data or {}
        entries = {}
        for name, versions in (data.get("entries") or {}).items():
            entries[name] = [ChartEntry.from_dict(name, v) for v in versions or []]

        generated = data.get("generated")
        return cls(
            api_version=str(data.get("apiVersion", "v1")),
            entries=entries,
            generated=str(generated) if generated is not None else None
        )

    @classmethod
    def load(cls, path: Union[str, Path]) -> "IndexDocument":
        """
        Parse an index file.

        Args:
            path: Path to ``index.yaml``

        Returns:
            Parsed index document

        Raises:
            OSError: If the file cannot be read
            yaml.YAMLError: If the file is not valid YAML
        """
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        if data is not None and not isinstance(data, dict):
            raise yaml.YAMLError(f"{path} does not contain a mapping")

        document = cls.from_dict(data)
        logger.debug(f"Loaded index {path} with {document.entry_count} entries")
        return document

    @property
    def entry_count(self) -> int:
        """Total number of chart versions across all charts."""
        return sum(len(versions) for versions in self.entries.values())

    def all_entries(self) -> List[ChartEntry]:
        return [entry for versions in self.entries.values() for entry in versions]

    def find_by_filename(self, filename: str) -> Optional[ChartEntry]:
        for entry in self.all_entries():
            if entry.references(filename):
                return entry
        return None
