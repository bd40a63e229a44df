"""
End-to-end tests for ScraperService over fixture pages.
"""

import json

import pytest

from catalog_scraper.persistence import JsonArrayFile
from catalog_scraper.pipeline import ScraperService
from catalog_scraper.repository import JsonRepository
from catalog_scraper.run_config import (
    CATEGORY_TREE_FILE,
    FAILED_LINKS_FILE,
    FAILED_TARGETS_FILE,
    LINK_CONTENT_FILE,
    MERGED_PRODUCTS_FILE,
    PRODUCTS_FILE,
    REPOSITORY_FILE,
    VOCABULARY_FILE,
)
from catalog_scraper.store import RecordStore

from conftest import BODY_ONLY_PAGE, CONTENT_PAGE, LEGACY_PAGE, STRUCTURED_PAGE, url

INDEX_URL = url("/index.html")
CATEGORIES_URL = url("/categories.html")


def read(config, filename):
    return json.loads(config.path(filename).read_text(encoding="utf-8"))


@pytest.fixture
def service(config, session_factory, generator):
    config.index_url = INDEX_URL
    config.categories_url = CATEGORIES_URL
    return ScraperService(config, session_factory=session_factory, generator=generator)


# ====================================================================
# 1. Product crawl
# ====================================================================

INDEX_PAGE = """
<div class="list-section">
  <a href="/p/catalyst.html">Catalyst 9300</a>
  <a href="/p/isr.html">ISR 4000</a>
  <a href="/p/dead.html">Gone</a>
</div>
"""


class TestProductCrawl:
    """Index discovery, tier 0 and the retry tiers."""

    @pytest.fixture(autouse=True)
    def site(self, pages):
        pages.update({
            INDEX_URL: INDEX_PAGE,
            url("/p/catalyst.html"): STRUCTURED_PAGE,
            url("/p/isr.html"): LEGACY_PAGE,
        })

    def test_full_crawl(self, service, config):
        results = service.run_full_crawl_and_retry_ladder()
        products = {record['url']: record for record in read(config, PRODUCTS_FILE)}
        assert products[url("/p/catalyst.html")]['title'] == "Catalyst 9300"
        assert products[url("/p/isr.html")]['link_text'] == "ISR 4000"
        failed = read(config, FAILED_TARGETS_FILE)
        assert [entry['url'] for entry in failed] == [url("/p/dead.html")]
        assert results[0].phase.startswith("tier-0")

    def test_index_failure_ends_phase(self, service, pages, config):
        del pages[INDEX_URL]
        assert service.run_full_crawl_and_retry_ladder() == []
        assert not config.path(PRODUCTS_FILE).exists()

    def test_retry_failed_after_page_recovers(self, service, pages, config):
        service.run_full_crawl_and_retry_ladder()
        pages[url("/p/dead.html")] = BODY_ONLY_PAGE
        service.run_retry_ladder()
        assert read(config, FAILED_TARGETS_FILE) == []
        assert RecordStore(config.path(PRODUCTS_FILE)).get(url("/p/dead.html"))['content'] == "Just text"

    def test_retry_with_empty_queue(self, service, session_factory):
        assert service.run_retry_ladder() == []
        assert session_factory.sessions == []


# ====================================================================
# 2. Indexing and answering
# ====================================================================

class TestSyncAndAnswer:
    """Bag-of-words backend end to end."""

    @pytest.fixture
    def stored(self, config):
        store = RecordStore(config.path(PRODUCTS_FILE))
        store.upsert({'url': "u-router", 'title': "ISR router", 'pre_title': "Routers"})
        store.upsert({'url': "u-switch", 'title': "Catalyst switch", 'pre_title': "Switches"})
        return store

    def test_sync_writes_entries_and_vocabulary(self, service, config, stored):
        assert service.sync_json_store_to_repository() is True
        repo = JsonRepository(config.path(REPOSITORY_FILE))
        entry = repo.find_one_by_url("u-router")
        assert entry.product_name == "ISR router"
        assert entry.json_data['pre_title'] == "Routers"
        vocabulary = read(config, VOCABULARY_FILE)
        assert len(entry.vector) == len(vocabulary)

    def test_sync_is_repeatable(self, service, config, stored):
        service.sync_json_store_to_repository()
        service.sync_json_store_to_repository()
        assert len(JsonRepository(config.path(REPOSITORY_FILE))) == 2

    def test_sync_writes_repository_once(self, service, config, stored, monkeypatch):
        stored.upsert({'url': "u-ap", 'title': "Aironet access point"})
        flushed = []
        original = JsonArrayFile.flush

        def counting_flush(self):
            flushed.append(self.path.name)
            original(self)

        monkeypatch.setattr(JsonArrayFile, "flush", counting_flush)
        assert service.sync_json_store_to_repository() is True
        assert flushed.count(REPOSITORY_FILE) == 1
        assert len(JsonRepository(config.path(REPOSITORY_FILE))) == 3

    def test_empty_store(self, service):
        assert service.sync_json_store_to_repository() is False

    def test_answer_uses_same_vocabulary(self, service, config, stored, generator):
        config.top_k = 1
        service.sync_json_store_to_repository()
        assert service.answer("Which switch?") == "generated answer"
        _, user_prompt = generator.calls[0]
        assert "Catalyst switch" in user_prompt
        assert "ISR router" not in user_prompt


# ====================================================================
# 3. Category tree, merge and internal-link content
# ====================================================================

CATEGORIES_PAGE = """
<div class="cmp-category-list">
  <a href="/cat/switches.html">Switches</a>
  <a href="/cat/broken.html">Broken</a>
</div>
"""

CATEGORY_PAGE = """
<div class="list-section">
  <a href="/p/catalyst.html">Catalyst 9300</a>
  <a href="/p/nolinks.html">No Links</a>
</div>
"""

PRODUCT_PAGE = """
<div id="resources">
  <a href="/docs/ds.html">Data Sheet</a>
  <a href="/docs/guide.html">Guide</a>
  <a href="/docs/missing.html">Missing</a>
</div>
"""


class TestCategoryPipeline:
    """scrape-new-data -> merge-all-products -> scrape-products-content."""

    @pytest.fixture(autouse=True)
    def site(self, pages):
        pages.update({
            CATEGORIES_URL: CATEGORIES_PAGE,
            url("/cat/switches.html"): CATEGORY_PAGE,
            url("/p/catalyst.html"): PRODUCT_PAGE,
            url("/p/nolinks.html"): "<p>nothing here</p>",
            url("/docs/ds.html"): CONTENT_PAGE,
            url("/docs/guide.html"): BODY_ONLY_PAGE,
        })

    def test_discovery_tree(self, service, config):
        tree = service.run_category_product_discovery()
        assert [node['display_name'] for node in tree] == ["Switches", "Broken"]
        assert 'error' in tree[1]
        products = tree[0]['products']
        assert [p['display_name'] for p in products] == ["Catalyst 9300", "No Links"]
        assert [link['url'] for link in products[0]['internal_links']] == [
            url("/docs/ds.html"), url("/docs/guide.html"), url("/docs/missing.html"),
        ]
        assert products[1]['internal_links'] == []
        assert read(config, CATEGORY_TREE_FILE) == tree

    def test_merge(self, service, config):
        service.run_category_product_discovery()
        merged = service.merge_category_products_to_flat_list()
        by_url = {record['url']: record for record in merged}
        assert set(by_url) == {url("/p/catalyst.html"), url("/p/nolinks.html")}
        assert by_url[url("/p/catalyst.html")]['category'] == "Switches"
        assert len(read(config, MERGED_PRODUCTS_FILE)) == 2

    def test_merge_is_idempotent(self, service, config):
        service.run_category_product_discovery()
        service.merge_category_products_to_flat_list()
        first = read(config, MERGED_PRODUCTS_FILE)
        service.merge_category_products_to_flat_list()
        assert read(config, MERGED_PRODUCTS_FILE) == first

    def test_merge_without_tree(self, service):
        assert service.merge_category_products_to_flat_list() == []

    def test_enrich_content(self, service, config, pages):
        service.run_category_product_discovery()
        service.merge_category_products_to_flat_list()
        service.enrich_internal_links_with_content()

        content = {record['url']: record for record in read(config, LINK_CONTENT_FILE)}
        assert content[url("/docs/ds.html")]['content'] == "Document text"
        assert content[url("/docs/ds.html")]['link_text'] == "Data Sheet"
        assert content[url("/docs/guide.html")]['content'] == "Just text"
        assert [entry['url'] for entry in read(config, FAILED_LINKS_FILE)] == [url("/docs/missing.html")]

    def test_enrich_skips_captured_links(self, service, session_factory):
        service.run_category_product_discovery()
        service.merge_category_products_to_flat_list()
        service.enrich_internal_links_with_content()
        before = len(session_factory.visits)

        service.enrich_internal_links_with_content()
        revisited = [visit[0] for visit in session_factory.visits[before:]]
        assert set(revisited) == {url("/docs/missing.html")}

    def test_enrich_does_not_touch_product_store(self, service, config):
        service.run_category_product_discovery()
        service.merge_category_products_to_flat_list()
        service.enrich_internal_links_with_content()
        assert JsonArrayFile(config.path(PRODUCTS_FILE)).items == []
