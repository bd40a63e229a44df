"""
Tests for the page extraction engine.

Covers:
  1. Structured (tier 0) extraction of every FieldSpec variant
  2. Retry-tier semantics (first match in collections, modal panels, None for absent scalars)
  3. Content tiers with selector fallbacks
  4. Never raising on bad selectors / empty documents
"""

import pytest

from catalog_scraper.dom import SoupNode
from catalog_scraper.extractor import PageExtractor
from catalog_scraper.presets import (
    CONTENT_CONTAINER_SCHEMA,
    LEGACY_SCHEMA,
    PAGE_BODY_SCHEMA,
    STRUCTURED_SCHEMA,
)
from catalog_scraper.schema import Collection, Scalar, Schema
from catalog_scraper.vectorize import tokenize

from conftest import BODY_ONLY_PAGE, CONTENT_PAGE, LEGACY_PAGE, ORIGIN, STRUCTURED_PAGE


@pytest.fixture
def extractor():
    return PageExtractor(ORIGIN)


def doc(html):
    return SoupNode.from_html(html)


# ====================================================================
# 1. Structured tier
# ====================================================================

class TestStructuredTier:
    """Tier 0 over the current product template."""

    @pytest.fixture
    def record(self, extractor):
        return extractor.extract(
            doc(STRUCTURED_PAGE), STRUCTURED_SCHEMA, 0,
            url=f"{ORIGIN}/p/c9300", link_text="Catalyst 9300",
        )

    def test_hero_scalars(self, record):
        assert record['pre_title'] == "Switches"
        assert record['title'] == "Catalyst 9300"
        assert record['subtitle'] == "Stackable enterprise switching"

    def test_multiple_matches_are_joined(self, record):
        assert record['description'] == "Built for security. Built for IoT."

    def test_multiple_matches_collapse_whitespace(self, extractor):
        schema = Schema('multi', {'title': Scalar('li')})
        record = extractor.extract(doc("<ul><li>A\n  x</li><li>B</li></ul>"), schema, 0)
        assert record['title'] == "A x B"

    def test_url_and_link_text_copied(self, record):
        assert record['url'] == f"{ORIGIN}/p/c9300"
        assert record['link_text'] == "Catalyst 9300"

    def test_collection_items(self, record):
        assert record['benefits'] == [
            {'title': "Secure", 'description': "Trustworthy"},
            {'title': "Fast", 'description': "Up to 100G"},
        ]
        assert record['overview'] == [{'title': "Overview", 'content': "Overview text"}]

    def test_collection_without_container_is_empty(self, record):
        assert record['integrations'] == []

    def test_panels_resolved_through_aria_controls(self, record):
        """Trigger title comes from aria-label; triggers without a panel are skipped."""
        assert record['data_modals'] == [{'title': "Models", 'content': "24 ports"}]

    def test_slide_description_is_list_of_items(self, record):
        """Blank list items are dropped."""
        assert record['product_list'] == [
            {'name': "C9300-24T", 'description': ["24 ports", "Data"]},
        ]

    def test_canonical_fields_are_strings(self, record):
        for key in ('pre_title', 'title', 'subtitle', 'description'):
            assert isinstance(record[key], str)

    def test_absent_scalar_is_empty_string(self, extractor):
        record = extractor.extract(doc(BODY_ONLY_PAGE), STRUCTURED_SCHEMA, 0)
        assert record['title'] == ''
        assert record['pre_title'] == ''
        assert record['data_modals'] == []
        assert record['product_list'] == []


# ====================================================================
# 2. Retry tiers
# ====================================================================

class TestRetryTier:
    """Tiers > 0 over the legacy template."""

    @pytest.fixture
    def record(self, extractor):
        return extractor.extract(doc(LEGACY_PAGE), LEGACY_SCHEMA, 1, url=f"{ORIGIN}/p/isr")

    def test_scalars(self, record):
        assert record['pre_title'] == "Routers"
        assert record['title'] == "ISR 4000"
        assert record['description'] == "Branch routing"

    def test_absent_scalar_is_none(self, record):
        assert record['subtitle'] is None

    def test_collection_reads_first_match_only(self, record):
        assert record['benefits'] == [{'title': "Secure", 'description': "One"}]

    def test_modal_panel(self, record):
        assert record['data_modals'] == {'title': "Models", 'content': ["ISR 4321", "ISR 4331"]}

    def test_modal_keeps_empty_items_as_none(self, extractor):
        page = '<div id="models"><div class="rte-txt"><h3>Models</h3><ul><li>A</li><li> </li></ul></div></div>'
        record = extractor.extract(doc(page), LEGACY_SCHEMA, 1)
        assert record['data_modals'] == {'title': "Models", 'content': ["A", None]}

    def test_modal_absent_is_none(self, extractor):
        record = extractor.extract(doc(BODY_ONLY_PAGE), LEGACY_SCHEMA, 1)
        assert record['data_modals'] is None
        assert record['features'] == []

    def test_href_resolved_against_origin(self, record):
        assert record['resources'] == [
            {'title': "Data Sheet", 'url': f"{ORIGIN}/c/en/us/products/collateral/ds.html"},
        ]


# ====================================================================
# 3. Content tiers
# ====================================================================

class TestContentTiers:
    """Raw-text schemas used by the last rungs."""

    def test_fallback_container(self, extractor):
        record = extractor.extract(doc(CONTENT_PAGE), CONTENT_CONTAINER_SCHEMA, 3)
        assert record['content'] == "Document text"

    def test_no_container_is_none(self, extractor):
        record = extractor.extract(doc(BODY_ONLY_PAGE), CONTENT_CONTAINER_SCHEMA, 3)
        assert record['content'] is None

    def test_page_body(self, extractor):
        record = extractor.extract(doc(BODY_ONLY_PAGE), PAGE_BODY_SCHEMA, 4)
        assert record['content'] == "Just text"

    def test_node_text_with_and_without_separator(self):
        node = doc("<div><h1>A</h1><p> B </p></div>").select('div')[0]
        assert node.text() == "A B "
        assert node.text("\n") == "A\nB"

    def test_container_blocks_stay_separate(self, extractor):
        page = "<div id='fw-content'><h1>Catalyst</h1><p>Switch</p></div>"
        record = extractor.extract(doc(page), CONTENT_CONTAINER_SCHEMA, 3)
        assert record['content'] == "Catalyst\nSwitch"
        assert tokenize(record['content']) == ['catalyst', 'switch']

    def test_body_blocks_stay_separate(self, extractor):
        page = "<html><body><h1>Catalyst</h1>\n  <p>Switch <b>9300</b></p></body></html>"
        record = extractor.extract(doc(page), PAGE_BODY_SCHEMA, 4)
        assert record['content'] == "Catalyst\nSwitch\n9300"
        assert tokenize(record['content']) == ['catalyst', 'switch', '9300']


# ====================================================================
# 4. Robustness
# ====================================================================

class TestRobustness:
    """Extraction never raises."""

    def test_invalid_selector_resolves_empty(self, extractor):
        schema = Schema('broken', {
            'title': Scalar('div[[['),
            'items': Collection(container='ul::bogus', fields={'x': Scalar('li')}),
        })
        record = extractor.extract(doc(STRUCTURED_PAGE), schema, 0)
        assert record['title'] == ''
        assert record['items'] == []

    def test_empty_document(self, extractor):
        record = extractor.extract(doc(""), STRUCTURED_SCHEMA, 2, url="u", link_text="t")
        assert record['title'] is None
        assert record['url'] == "u"
        assert record['link_text'] == "t"

    def test_fallback_selector_used_when_primary_misses(self, extractor):
        schema = Schema('fb', {'title': Scalar('h1.missing', fallbacks=('h2',))})
        record = extractor.extract(doc("<h2>Second</h2>"), schema, 1)
        assert record['title'] == "Second"

    def test_multiple_attribute_values_stay_a_list(self, extractor):
        schema = Schema('links', {'links': Scalar('a', attribute='href')})
        record = extractor.extract(doc('<a href="/a">A</a><a href="https://x.org/b">B</a>'), schema, 0)
        assert record['links'] == [f"{ORIGIN}/a", "https://x.org/b"]
