"""
Crawl Data Model
Targets queued for extraction and entries of the durable failed set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

# A record produced by the extraction engine: field name -> text, list of
# texts, nested record(s) or None. Always carries ``url`` and ``link_text``.
FieldValue = Union[str, List[Any], Dict[str, Any], None]
ExtractedRecord = Dict[str, FieldValue]

MISSING_REQUIRED_FIELDS = "Missing required fields"


@dataclass(frozen=True)
class CrawlTarget:
    """A URL plus display name queued for extraction. Identity is the url."""
    url: str
    display_name: str = field(default="", compare=False)

    def to_dict(self) -> dict:
        return {'url': self.url, 'display_name': self.display_name}


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class FailedTarget:
    """A target that no tier has managed to extract yet."""
    url: str
    display_name: str = ""
    error: str = ""
    first_seen_at: str = field(default_factory=_utc_now)

    @classmethod
    def from_target(cls, target: CrawlTarget, error: str) -> "FailedTarget":
        return cls(url=target.url, display_name=target.display_name, error=error)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["FailedTarget"]:
        url = data.get('url')
        if not url:
            return None
        return cls(
            url=url,
            display_name=data.get('display_name', '') or '',
            error=data.get('error', '') or '',
            first_seen_at=data.get('first_seen_at') or _utc_now(),
        )

    def to_target(self) -> CrawlTarget:
        return CrawlTarget(url=self.url, display_name=self.display_name)

    def to_dict(self) -> dict:
        return {
            'url': self.url,
            'display_name': self.display_name,
            'error': self.error,
            'first_seen_at': self.first_seen_at,
        }
