"""
Vector Repository
=================
Durable store of indexed records: one ``VectorEntry`` per product url.

``Repository`` is the contract the pipeline and the retriever depend on;
``JsonRepository`` keeps the entries in a JSON array file.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .persistence import JsonArrayFile

logger = logging.getLogger(__name__)


@dataclass
class VectorEntry:
    """An indexed record: raw text, its vector and the source record."""
    url: str
    product_name: str = ""
    content: str = ""
    vector: List[float] = field(default_factory=list)
    json_data: Dict[str, Any] = field(default_factory=dict)
    created_at: str = ""

    def __post_init__(self):
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'url': self.url,
            'product_name': self.product_name,
            'content': self.content,
            'vector': self.vector,
            'json_data': self.json_data,
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VectorEntry":
        return cls(
            url=data['url'],
            product_name=data.get('product_name', '') or '',
            content=data.get('content', '') or '',
            vector=list(data.get('vector') or []),
            json_data=data.get('json_data') or {},
            created_at=data.get('created_at', '') or '',
        )


class Repository(ABC):
    """Key-value record store keyed by url."""

    @abstractmethod
    def create(self, **fields) -> VectorEntry:
        """Build an unsaved entry."""
        ...

    @abstractmethod
    def save(self, entry: VectorEntry) -> VectorEntry:
        """Insert or replace by url."""
        ...

    def save_all(self, entries: List[VectorEntry]) -> List[VectorEntry]:
        """Save several entries; stores with a costly write batch them."""
        return [self.save(entry) for entry in entries]

    @abstractmethod
    def find(self) -> List[VectorEntry]:
        ...

    @abstractmethod
    def find_one_by_url(self, url: str) -> Optional[VectorEntry]:
        ...


class JsonRepository(Repository):
    """``Repository`` persisted as a JSON array file."""

    def __init__(self, path: Union[str, Path], *, strict: bool = False):
        self._file = JsonArrayFile(path, strict=strict)
        self._entries: Dict[str, VectorEntry] = {}
        for raw in self._file.items:
            if raw.get('url'):
                self._entries[raw['url']] = VectorEntry.from_dict(raw)

    def create(self, **fields) -> VectorEntry:
        return VectorEntry(**fields)

    def save(self, entry: VectorEntry) -> VectorEntry:
        return self.save_all([entry])[0]

    def save_all(self, entries: List[VectorEntry]) -> List[VectorEntry]:
        """Insert or replace every entry, then rewrite the file once."""
        for entry in entries:
            if not entry.url:
                raise ValueError("Cannot save an entry without a url")
        for entry in entries:
            self._entries[entry.url] = entry
        self._file.replace([e.to_dict() for e in self._entries.values()])
        return list(entries)

    def find(self) -> List[VectorEntry]:
        return list(self._entries.values())

    def find_one_by_url(self, url: str) -> Optional[VectorEntry]:
        return self._entries.get(url)

    def __len__(self) -> int:
        return len(self._entries)
