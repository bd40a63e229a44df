"""
Utility Functions
URL sanitization, href resolution and text helpers.
"""

import logging
import re
from typing import Iterable, List, Optional

from .models import CrawlTarget

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r'\s+')
_ABSOLUTE_HTTP_RE = re.compile(r'^https?://', re.IGNORECASE)


def sanitize_url(url: Optional[str], base_origin: str) -> Optional[str]:
    """
    Normalize a discovered href against the catalog origin.

    Rules, applied in order:
      1. ``//host/...``            -> prefixed with ``https:``
      2. starts with base origin   -> a repeated origin prefix (left over
                                      from naive concatenation) collapses
                                      to the last occurrence
      3. ``/path`` (root-relative) -> base origin prepended
      4. starts with ``http``      -> accepted as-is
      5. anything else             -> None (discarded)

    Examples:
        sanitize_url("/foo", "https://x.com") -> "https://x.com/foo"
        sanitize_url("https://x.comhttps://x.com/foo", "https://x.com")
            -> "https://x.com/foo"
        sanitize_url("javascript:void(0)", "https://x.com") -> None
    """
    if not url:
        return None

    url = url.strip()
    base_origin = base_origin.rstrip('/')

    if url.startswith('//'):
        return f"https:{url}"

    if base_origin and url.startswith(base_origin):
        if url.count(base_origin) > 1:
            return url[url.rfind(base_origin):]
        return url

    if url.startswith('/'):
        return f"{base_origin}{url}"

    if url.startswith('http'):
        return url

    return None


def resolve_href(href: Optional[str], base_origin: str) -> Optional[str]:
    """Absolute http(s) hrefs are kept, anything else is prefixed with the origin."""
    if not href:
        return None
    href = href.strip()
    if not href:
        return None
    if _ABSOLUTE_HTTP_RE.match(href):
        return href
    return f"{base_origin.rstrip('/')}/{href.lstrip('/')}"


def collapse_whitespace(text: str) -> str:
    """Replace whitespace runs with a single space and trim."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(' ', text).strip()


def dedupe_targets(targets: Iterable[CrawlTarget]) -> List[CrawlTarget]:
    """Drop repeated urls, keeping the first occurrence and the input order."""
    seen = set()
    unique = []
    for target in targets:
        if target.url in seen:
            continue
        seen.add(target.url)
        unique.append(target)
    return unique
