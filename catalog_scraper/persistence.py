"""
JSON Array Files
================
Load-on-construct / flush-on-write persistence for the pipeline artifacts.

Every artifact (failed queue, product store, category tree, ...) is a
pretty-printed JSON array of objects. Writes replace the whole file; there
is no locking, so only one process may write a given file at a time.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from .errors import MalformedPersistedState

logger = logging.getLogger(__name__)


class JsonArrayFile:
    """A JSON array of objects mirrored to disk.

    A missing or empty file loads as ``[]``. A file that cannot be parsed
    (or does not hold an array) raises ``MalformedPersistedState`` when
    ``strict`` is set; otherwise it is logged and treated as empty, and the
    next flush overwrites it.
    """

    def __init__(self, path: Union[str, Path], *, strict: bool = False):
        self.path = Path(path)
        self.strict = strict
        self._items: List[Dict[str, Any]] = self._load()

    def _load(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            logger.debug(f"[PERSIST] {self.path} not found, starting fresh")
            return []

        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            return self._malformed(f"Cannot read {self.path}: {exc}")

        if not raw.strip():
            return []

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            return self._malformed(f"Corrupt JSON in {self.path}: {exc}")

        if not isinstance(data, list):
            return self._malformed(f"{self.path} does not hold a JSON array")

        return [item for item in data if isinstance(item, dict)]

    def _malformed(self, message: str) -> List[Dict[str, Any]]:
        if self.strict:
            raise MalformedPersistedState(message, path=str(self.path))
        logger.warning(f"[PERSIST] {message} - starting from an empty collection")
        return []

    @property
    def items(self) -> List[Dict[str, Any]]:
        return self._items

    def replace(self, items: List[Dict[str, Any]]) -> None:
        """Swap the in-memory contents and flush."""
        self._items = list(items)
        self.flush()

    def flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._items, f, indent=2, ensure_ascii=False)

    def __len__(self) -> int:
        return len(self._items)
