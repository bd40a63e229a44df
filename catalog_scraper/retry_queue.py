"""
Failed Target Queue
Durable, url-keyed set of targets that no tier has extracted yet.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Union

from .models import CrawlTarget, FailedTarget
from .persistence import JsonArrayFile

logger = logging.getLogger(__name__)


class FailedTargetQueue:
    """
    At most one entry per url. An entry is added when a tier fails a target
    and removed exactly when a later tier succeeds.
    """

    def __init__(self, path: Union[str, Path], *, strict: bool = False):
        self._file = JsonArrayFile(path, strict=strict)
        self._entries: Dict[str, FailedTarget] = {}
        for raw in self._file.items:
            entry = FailedTarget.from_dict(raw)
            if entry is not None and entry.url not in self._entries:
                self._entries[entry.url] = entry

    @property
    def path(self) -> Path:
        return self._file.path

    def add(self, entry: FailedTarget) -> bool:
        """Enqueue a failure. Returns False if the url is already queued."""
        if entry.url in self._entries:
            logger.warning(f"[QUEUE] Duplicate failed target ignored: {entry.url}")
            return False
        self._entries[entry.url] = entry
        self._flush()
        logger.info(f"[QUEUE] Saved failed target: {entry.url} ({entry.error})")
        return True

    def remove(self, url: str) -> bool:
        """Dequeue a url. Returns False if it was not queued."""
        if self._entries.pop(url, None) is None:
            return False
        self._flush()
        logger.info(f"[QUEUE] Removed successfully processed target: {url}")
        return True

    def clear(self) -> None:
        self._entries.clear()
        self._flush()

    def contains(self, url: str) -> bool:
        return url in self._entries

    def entries(self) -> List[FailedTarget]:
        return list(self._entries.values())

    def targets(self) -> List[CrawlTarget]:
        """Snapshot of queued targets, in enqueue order."""
        return [entry.to_target() for entry in self._entries.values()]

    def _flush(self) -> None:
        self._file.replace([entry.to_dict() for entry in self._entries.values()])

    def __contains__(self, url) -> bool:
        return url in self._entries

    def __len__(self) -> int:
        return len(self._entries)
