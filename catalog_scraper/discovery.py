"""
Link Discovery
==============
Walks the two-level catalog: categories -> products -> internal documents.

Each level is located with an ordered selector fallback chain. The first
selector that yields at least one anchor with a non-empty href wins; when
the whole chain comes up empty the result is ``[]`` and the caller decides
whether that is a failure. Every href goes through ``sanitize_url``.
"""

import logging
from typing import List, Optional, Sequence

from .dom import DomNode
from .driver import NavigationSession
from .models import CrawlTarget
from .presets import (
    CATEGORY_LINK_SELECTORS,
    INDEX_LINK_SELECTORS,
    INTERNAL_LINK_SELECTORS,
    PRODUCT_LINK_SELECTORS,
)
from .utils import collapse_whitespace, dedupe_targets, sanitize_url

logger = logging.getLogger(__name__)


def targets_from_document(
    document: DomNode,
    chain: Sequence[str],
    base_origin: str,
) -> List[CrawlTarget]:
    """
    Apply a selector fallback chain to a page.

    Args:
        document: Root of the page
        chain: Anchor selectors, highest priority first
        base_origin: Catalog origin for URL sanitization

    Returns:
        Sanitized, de-duplicated targets from the winning selector
    """
    for selector in chain:
        try:
            anchors = document.select(selector)
        except Exception as e:
            logger.debug(f"[DISCOVERY] Selector not usable: {selector!r} ({e})")
            continue

        hrefs = [(a, (a.attr('href') or '').strip()) for a in anchors]
        hrefs = [(a, href) for a, href in hrefs if href]
        if not hrefs:
            logger.debug(f"[DISCOVERY] No matches for {selector!r}, trying next")
            continue

        targets = []
        discarded = 0
        for anchor, href in hrefs:
            url = sanitize_url(href, base_origin)
            if url is None:
                discarded += 1
                continue
            targets.append(CrawlTarget(url=url, display_name=collapse_whitespace(anchor.text())))

        unique = dedupe_targets(targets)
        logger.info(
            f"[DISCOVERY] selector={selector!r} anchors={len(hrefs)} "
            f"kept={len(unique)} invalid={discarded} "
            f"duplicates={len(targets) - len(unique)}"
        )
        return unique

    logger.warning(f"[DISCOVERY] Fallback chain exhausted ({len(chain)} selectors)")
    return []


class LinkDiscovery:
    """
    Enumerates crawl targets through a navigation session.
    """

    def __init__(
        self,
        session: NavigationSession,
        base_origin: str,
        categories_url: str = "",
        index_url: str = "",
        timeout_ms: int = 60_000,
    ):
        self.session = session
        self.base_origin = base_origin.rstrip('/')
        self.categories_url = categories_url
        self.index_url = index_url
        self.timeout_ms = timeout_ms

    def _load(self, url: str) -> DomNode:
        self.session.goto(url, wait_until="load", timeout_ms=self.timeout_ms)
        return self.session.document()

    def discover_index_targets(self, chain: Optional[Sequence[str]] = None) -> List[CrawlTarget]:
        """Flat A-Z product index."""
        logger.info(f"[DISCOVERY] Extracting index links from {self.index_url}")
        return targets_from_document(
            self._load(self.index_url), chain or INDEX_LINK_SELECTORS, self.base_origin
        )

    def discover_categories(self, chain: Optional[Sequence[str]] = None) -> List[CrawlTarget]:
        logger.info(f"[DISCOVERY] Extracting categories from {self.categories_url}")
        return targets_from_document(
            self._load(self.categories_url), chain or CATEGORY_LINK_SELECTORS, self.base_origin
        )

    def discover_products(
        self,
        category_url: str,
        chain: Optional[Sequence[str]] = None,
    ) -> List[CrawlTarget]:
        return targets_from_document(
            self._load(category_url), chain or PRODUCT_LINK_SELECTORS, self.base_origin
        )

    def discover_internal_links(
        self,
        product_url: str,
        chain: Optional[Sequence[str]] = None,
    ) -> List[CrawlTarget]:
        return targets_from_document(
            self._load(product_url), chain or INTERNAL_LINK_SELECTORS, self.base_origin
        )
