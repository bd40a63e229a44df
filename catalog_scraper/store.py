"""
Canonical Merge Store
=====================
Url-keyed, deduplicated record collection backed by a JSON array file.

Two merge policies, used by different pipeline stages:

- ``upsert``               product store: the first captured record for a
                           url is kept, later ones are only added when absent
- ``merge_internal_links`` category -> product aggregation: internal-link
                           lists are unioned by link url and missing fields
                           are filled in; a present field never regresses to
                           empty

Both are idempotent: applying the same record twice leaves the store as a
single application would.
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .persistence import JsonArrayFile

logger = logging.getLogger(__name__)

INTERNAL_LINKS_FIELD = 'internal_links'


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict, tuple)):
        return len(value) == 0
    return False


def _link_identity(link: Any) -> Optional[str]:
    if isinstance(link, dict):
        return link.get('url') or None
    if isinstance(link, str):
        return link or None
    return None


def union_links(*link_lists: Iterable[Any]) -> List[Any]:
    """Union of link lists by link url, first occurrence kept."""
    seen = set()
    merged = []
    for links in link_lists:
        for link in links or []:
            identity = _link_identity(link)
            if identity is None or identity in seen:
                continue
            seen.add(identity)
            merged.append(link)
    return merged


class RecordStore:
    """
    Records keyed by ``url``, loaded on construction, flushed on every write.
    """

    def __init__(self, path: Union[str, Path], *, strict: bool = False):
        self._file = JsonArrayFile(path, strict=strict)
        self._records: Dict[str, Dict[str, Any]] = {}
        for record in self._file.items:
            url = record.get('url')
            if url and url not in self._records:
                self._records[url] = record

    @property
    def path(self) -> Path:
        return self._file.path

    # ------------------------------------------------------------------
    # Merge policies
    # ------------------------------------------------------------------

    def upsert(self, record: Dict[str, Any]) -> bool:
        """Add ``record`` unless its url is already stored.

        Returns:
            True if the record was added
        """
        url = record.get('url')
        if not url:
            raise ValueError("Cannot store a record without a url")
        if url in self._records:
            logger.debug(f"[STORE] Keeping existing record for {url}")
            return False
        self._records[url] = copy.deepcopy(record)
        self._flush()
        return True

    def merge_internal_links(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Merge ``record`` into the stored one, unioning internal links.

        Returns:
            The merged record as stored
        """
        url = record.get('url')
        if not url:
            raise ValueError("Cannot store a record without a url")

        existing = self._records.get(url)
        if existing is None:
            merged = copy.deepcopy(record)
            merged[INTERNAL_LINKS_FIELD] = union_links(record.get(INTERNAL_LINKS_FIELD))
        else:
            merged = copy.deepcopy(existing)
            for key, value in record.items():
                if key == INTERNAL_LINKS_FIELD or _is_empty(value):
                    continue
                merged[key] = copy.deepcopy(value)
            merged[INTERNAL_LINKS_FIELD] = union_links(
                existing.get(INTERNAL_LINKS_FIELD), record.get(INTERNAL_LINKS_FIELD)
            )

        if merged != existing:
            self._records[url] = merged
            self._flush()
        return merged

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def all(self) -> List[Dict[str, Any]]:
        return list(self._records.values())

    def get(self, url: str) -> Optional[Dict[str, Any]]:
        return self._records.get(url)

    def contains(self, url: str) -> bool:
        return url in self._records

    def _flush(self) -> None:
        self._file.replace(list(self._records.values()))

    def __contains__(self, url) -> bool:
        return url in self._records

    def __len__(self) -> int:
        return len(self._records)
