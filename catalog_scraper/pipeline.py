"""
Scraper Service
===============
The operations behind every CLI command, wired from the run config.

Stages and the artifacts they read/write (all inside ``data_dir``)::

    scrape-data-to-json      index -> tier 0 -> retry tiers   products.json, failed_targets.json
    retry-failed             retry tiers only                 products.json, failed_targets.json
    scrape-data-to-database  products.json -> vectors         vector_entries.json (+ vocabulary.json)
    query                    vectors -> top-k -> generation   (read only)
    scrape-new-data          categories -> products -> links  category_products.json
    merge-all-products       tree -> flat list                merged_products.json
    scrape-products-content  internal links -> page text      internal_links_content.json,
                                                              failed_internal_links.json

Stores are constructed per operation so each one starts from what is on
disk. Per-item failures are logged and skipped; only a failure to load a
top-level discovery page ends a phase early.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from .discovery import LinkDiscovery
from .driver import NavigationSession, open_session
from .embeddings import BagOfWordsEmbedder, Embedder, Generator, build_embedder, build_generator
from .errors import CatalogScraperError, NavigationFailure
from .extractor import PageExtractor
from .ladder import RetryLadder, Tier, default_tiers
from .models import CrawlTarget
from .monitor import PhaseMetrics
from .persistence import JsonArrayFile
from .repository import JsonRepository, Repository
from .retrieval import Retriever
from .retry_queue import FailedTargetQueue
from .run_config import (
    CATEGORY_TREE_FILE,
    FAILED_LINKS_FILE,
    FAILED_TARGETS_FILE,
    LINK_CONTENT_FILE,
    MERGED_PRODUCTS_FILE,
    PRODUCTS_FILE,
    REPOSITORY_FILE,
    VOCABULARY_FILE,
    ScraperRunConfig,
)
from .store import INTERNAL_LINKS_FIELD, RecordStore
from .utils import dedupe_targets
from .vectorize import flatten_and_concatenate

logger = logging.getLogger(__name__)

# Tiers at or above this level only need page text
CONTENT_TIER_START = 3


class ScraperService:
    """
    Facade over discovery, extraction, the retry ladder and retrieval.

    Args:
        config: Run configuration
        session_factory: Returns a fresh, unopened navigation session;
                         defaults to the browser/static session the config asks for
        embedder: Embedder override (otherwise built from the config)
        generator: Generator override (otherwise built from the config)
    """

    def __init__(
        self,
        config: ScraperRunConfig,
        session_factory: Optional[Callable[[], NavigationSession]] = None,
        embedder: Optional[Embedder] = None,
        generator: Optional[Generator] = None,
    ):
        self.config = config
        self.session_factory = session_factory or (lambda: open_session(self.config))
        self._embedder = embedder
        self._generator = generator
        self.extractor = PageExtractor(config.base_origin)

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def product_store(self) -> RecordStore:
        return RecordStore(self.config.path(PRODUCTS_FILE))

    def failed_queue(self) -> FailedTargetQueue:
        return FailedTargetQueue(self.config.path(FAILED_TARGETS_FILE))

    def repository(self) -> Repository:
        return JsonRepository(self.config.path(REPOSITORY_FILE))

    def _ladder(self, tiers: List[Tier], queue: FailedTargetQueue, store: RecordStore) -> RetryLadder:
        return RetryLadder(
            tiers,
            queue,
            store,
            self.extractor,
            self.session_factory,
            delay_between_pages=self.config.delay_between_pages,
        )

    def product_ladder(self) -> RetryLadder:
        return self._ladder(default_tiers(self.config), self.failed_queue(), self.product_store())

    def _discovery(self, session: NavigationSession) -> LinkDiscovery:
        return LinkDiscovery(
            session,
            self.config.base_origin,
            categories_url=self.config.categories_url,
            index_url=self.config.index_url,
            timeout_ms=self.config.discovery_timeout_ms,
        )

    # ------------------------------------------------------------------
    # Product crawl
    # ------------------------------------------------------------------

    def run_full_crawl_and_retry_ladder(self) -> List[PhaseMetrics]:
        """Discover the product index, run tier 0 over it, then every retry tier."""
        try:
            with self.session_factory() as session:
                targets = self._discovery(session).discover_index_targets()
        except NavigationFailure as e:
            logger.error(f"[PIPELINE] Could not load the product index: {e}")
            return []

        if not targets:
            logger.warning("[PIPELINE] Product index yielded no targets")
            return []

        logger.info(f"[PIPELINE] {len(targets)} products discovered")
        ladder = self.product_ladder()
        results = [ladder.run_initial(targets)]
        results.extend(ladder.run_ladder())
        logger.info(f"[PIPELINE] Product store now holds {len(ladder.store)} records")
        return results

    def run_retry_ladder(self) -> List[PhaseMetrics]:
        """Replay the persisted failed set through the retry tiers only."""
        ladder = self.product_ladder()
        if not len(ladder.queue):
            logger.info("[PIPELINE] No failed targets to retry")
            return []
        return ladder.run_ladder()

    # ------------------------------------------------------------------
    # Indexing & retrieval
    # ------------------------------------------------------------------

    def sync_json_store_to_repository(self) -> bool:
        """
        Embed every stored product record into the repository.

        With the bag-of-words backend the vocabulary is fitted over the whole
        store and written next to the repository, so later queries are
        vectorized over the same terms.

        Returns:
            True when every record was saved
        """
        records = self.product_store().all()
        if not records:
            logger.warning("[SYNC] Product store is empty, nothing to index")
            return False

        texts = [flatten_and_concatenate(record) for record in records]
        embedder = self._embedder
        if embedder is None:
            fit_on = texts if self.config.embedding_backend == "bow" else None
            embedder = build_embedder(self.config, texts=fit_on)
        if isinstance(embedder, BagOfWordsEmbedder):
            saved_to = embedder.save(self.config.path(VOCABULARY_FILE))
            logger.info(f"[SYNC] Vocabulary of {embedder.dimension} terms written to {saved_to}")

        repository = self.repository()
        entries = []
        failures = 0
        for index, (record, text) in enumerate(zip(records, texts), 1):
            url = record['url']
            try:
                vector = embedder.embed(text)
            except CatalogScraperError as e:
                logger.error(f"[SYNC] Embedding failed for {url}: {e}")
                failures += 1
                continue

            entry = repository.find_one_by_url(url) or repository.create(url=url)
            entry.product_name = record.get('title') or record.get('link_text') or ''
            entry.content = text
            entry.vector = vector
            entry.json_data = record
            entries.append(entry)
            logger.debug(f"[SYNC] {index}/{len(records)} {url}")

        if entries:
            repository.save_all(entries)
        logger.info(f"[SYNC] Indexed {len(records) - failures}/{len(records)} records")
        return failures == 0

    def _query_embedder(self) -> Embedder:
        if self._embedder is not None:
            return self._embedder
        return build_embedder(self.config, vocabulary_path=self.config.path(VOCABULARY_FILE))

    def answer(self, question: str) -> str:
        generator = self._generator or build_generator(self.config)
        retriever = Retriever(
            self.repository(),
            self._query_embedder(),
            generator,
            top_k=self.config.top_k,
        )
        return retriever.answer(question)

    # ------------------------------------------------------------------
    # Category tree
    # ------------------------------------------------------------------

    def run_category_product_discovery(self) -> List[Dict[str, Any]]:
        """
        Walk categories -> products -> internal links and persist the tree.

        A category or product that fails to load is recorded with its error
        and the walk continues.
        """
        tree: List[Dict[str, Any]] = []
        try:
            with self.session_factory() as session:
                discovery = self._discovery(session)
                categories = discovery.discover_categories()
                logger.info(f"[PIPELINE] {len(categories)} categories discovered")

                for index, category in enumerate(categories, 1):
                    logger.info(f"[PIPELINE] Category {index}/{len(categories)}: {category.url}")
                    tree.append(self._walk_category(discovery, category))
        except NavigationFailure as e:
            logger.error(f"[PIPELINE] Could not load the category listing: {e}")
            return []

        JsonArrayFile(self.config.path(CATEGORY_TREE_FILE)).replace(tree)
        products = sum(len(node['products']) for node in tree)
        logger.info(f"[PIPELINE] Category tree saved: {len(tree)} categories, {products} products")
        return tree

    def _walk_category(self, discovery: LinkDiscovery, category: CrawlTarget) -> Dict[str, Any]:
        node: Dict[str, Any] = {**category.to_dict(), 'products': []}
        try:
            products = discovery.discover_products(category.url)
        except Exception as e:
            logger.error(f"[PIPELINE] Error loading category {category.url}: {e}")
            node['error'] = str(e)
            return node

        for product in products:
            entry: Dict[str, Any] = {**product.to_dict(), INTERNAL_LINKS_FIELD: []}
            try:
                links = discovery.discover_internal_links(product.url)
                entry[INTERNAL_LINKS_FIELD] = [link.to_dict() for link in links]
            except Exception as e:
                logger.error(f"[PIPELINE] Error loading product {product.url}: {e}")
                entry['error'] = str(e)
            node['products'].append(entry)
        return node

    def merge_category_products_to_flat_list(self) -> List[Dict[str, Any]]:
        """Flatten the category tree into one record per product url."""
        tree = JsonArrayFile(self.config.path(CATEGORY_TREE_FILE)).items
        if not tree:
            logger.warning("[PIPELINE] Category tree is empty; run scrape-new-data first")
            return []

        store = RecordStore(self.config.path(MERGED_PRODUCTS_FILE))
        for category in tree:
            for product in category.get('products') or []:
                if not product.get('url'):
                    continue
                store.merge_internal_links({
                    'url': product['url'],
                    'link_text': product.get('display_name', ''),
                    'category': category.get('display_name', ''),
                    INTERNAL_LINKS_FIELD: product.get(INTERNAL_LINKS_FIELD) or [],
                })
        logger.info(f"[PIPELINE] Merged product list holds {len(store)} products")
        return store.all()

    # ------------------------------------------------------------------
    # Internal-link content
    # ------------------------------------------------------------------

    def enrich_internal_links_with_content(self) -> List[PhaseMetrics]:
        """
        Capture page text for every internal link of the merged products.

        Uses the content tiers only: the main content container first, the
        whole page body for links that still failed. Links already captured
        are not fetched again.
        """
        store = RecordStore(self.config.path(LINK_CONTENT_FILE))
        queue = FailedTargetQueue(self.config.path(FAILED_LINKS_FILE))
        tiers = [tier for tier in default_tiers(self.config) if tier.level >= CONTENT_TIER_START]
        ladder = self._ladder(tiers, queue, store)

        candidates = []
        for product in RecordStore(self.config.path(MERGED_PRODUCTS_FILE)).all():
            for link in product.get(INTERNAL_LINKS_FIELD) or []:
                url = link.get('url') if isinstance(link, dict) else link
                if url and not store.contains(url):
                    name = link.get('display_name', '') if isinstance(link, dict) else ''
                    candidates.append(CrawlTarget(url=url, display_name=name))
        targets = dedupe_targets(candidates)

        results = []
        if targets:
            logger.info(f"[PIPELINE] Fetching content for {len(targets)} internal links")
            results.append(ladder.run_initial(targets))
        else:
            logger.info("[PIPELINE] No new internal links to fetch")
        results.extend(ladder.run_ladder())
        logger.info(f"[PIPELINE] Internal-link content store holds {len(store)} pages")
        return results
