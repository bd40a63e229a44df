"""
Shared fixtures: an in-memory navigation session serving fixture HTML,
a recording generator, and sample catalog pages.
"""

from typing import Dict, List, Optional, Sequence

import pytest

from catalog_scraper.dom import DomNode, SoupNode
from catalog_scraper.driver import NavigationSession
from catalog_scraper.embeddings import Generator
from catalog_scraper.errors import NavigationFailure
from catalog_scraper.run_config import ScraperRunConfig

ORIGIN = "https://www.cisco.com"


def url(path: str) -> str:
    return f"{ORIGIN}{path}"


# ====================================================================
# Fixture pages
# ====================================================================

STRUCTURED_PAGE = """
<html><body>
<div class="cds-c-hero">
  <div class="cmp-teaser__pretitle">Switches</div>
  <h1 class="cmp-teaser__title">Catalyst 9300</h1>
  <div class="cmp-teaser__description"><p>Stackable enterprise switching</p></div>
</div>
<div class="cds-c-detailblock__description"><p>Built for security.</p><p>Built for IoT.</p></div>
<div class="cds-c-detailblock__benefits-wrap">
  <div class="cds-c-cards"><div class="cds-c-cards__wrapper">
    <h3 class="cmp-teaser__title">Secure</h3>
    <div class="cmp-teaser__description"><p>Trustworthy</p></div>
  </div></div>
  <div class="cds-c-cards"><div class="cds-c-cards__wrapper">
    <h3 class="cmp-teaser__title">Fast</h3>
    <div class="cmp-teaser__description"><p>Up to 100G</p></div>
  </div></div>
  <div class="cmp-accordion">
    <div class="cmp-accordion__item">
      <span class="cmp-accordion__title">Overview</span>
      <div class="cmp-text"><p>Overview text</p></div>
    </div>
  </div>
</div>
<div class="cmp-accordion__desktop-button-wrapper">
  <button class="cmp-accordion__desktop-button" aria-label="Models" aria-controls="panel-1">x</button>
  <button class="cmp-accordion__desktop-button" aria-controls="panel-missing">Orphan</button>
</div>
<div id="panel-1">
  <div class="cmp-accordion__item"><div class="cmp-teaser__description">24 ports</div></div>
</div>
<div class="cds-model-comparison-carousel__slide-wrapper">
  <div class="cds-c-model-comparison-carousel__slide">
    <div class="cds-c-product-detail-card__model-name">C9300-24T</div>
    <div class="cds-c-product-detail-card__model-description">
      <ul><li>24 ports</li><li> </li><li>Data</li></ul>
    </div>
  </div>
</div>
</body></html>
"""

LEGACY_PAGE = """
<html><body>
<div id="fw-pagetitle">Routers</div>
<div class="info-content"><h2>ISR 4000</h2><div class="info-description">Branch routing</div></div>
<div id="benefits"><div class="rte-txt"><h3>Secure</h3><p>One</p><p>Two</p></div></div>
<div id="models"><div class="rte-txt"><h3>Models</h3><ul><li>ISR 4321</li><li>ISR 4331</li></ul></div></div>
<div id="resources"><div class="dmc-list-item"><ul>
  <li><a href="/c/en/us/products/collateral/ds.html">Data Sheet</a></li>
</ul></div></div>
</body></html>
"""

BODY_ONLY_PAGE = "<html><body><p>Just text</p></body></html>"

CONTENT_PAGE = """
<html><body><nav>Menu</nav><div id="fw-c-content"> Document text </div></body></html>
"""


# ====================================================================
# Fakes
# ====================================================================

class FakeSession(NavigationSession):
    """Serves HTML from a dict; unknown urls fail like a timeout."""

    def __init__(self, pages: Dict[str, str]):
        self.pages = pages
        self.visits: List[tuple] = []
        self.opened = False
        self.closed = False
        self._html = ""

    def open(self) -> None:
        self.opened = True

    def close(self) -> None:
        self.closed = True

    def goto(self, url: str, wait_until: str = "load", timeout_ms: int = 0) -> None:
        self.visits.append((url, wait_until, timeout_ms))
        if url not in self.pages:
            raise NavigationFailure(f"Timed out loading {url}", url=url)
        self._html = self.pages[url]

    def wait_for_any(self, selectors: Sequence[str], timeout_ms: int) -> Optional[str]:
        document = self.document()
        for selector in selectors:
            if document.select_one(selector) is not None:
                return selector
        return None

    def document(self) -> DomNode:
        return SoupNode.from_html(self._html)


class SessionFactory:
    """Callable session factory that remembers every session it handed out."""

    def __init__(self, pages: Dict[str, str]):
        self.pages = pages
        self.sessions: List[FakeSession] = []

    def __call__(self) -> FakeSession:
        session = FakeSession(self.pages)
        self.sessions.append(session)
        return session

    @property
    def visits(self) -> List[tuple]:
        return [visit for session in self.sessions for visit in session.visits]


class RecordingGenerator(Generator):
    def __init__(self, reply: str = "generated answer"):
        self.reply = reply
        self.calls: List[tuple] = []

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        return self.reply


# ====================================================================
# Fixtures
# ====================================================================

@pytest.fixture
def pages() -> Dict[str, str]:
    return {}


@pytest.fixture
def session_factory(pages) -> SessionFactory:
    return SessionFactory(pages)


@pytest.fixture
def config(tmp_path) -> ScraperRunConfig:
    return ScraperRunConfig(data_dir=str(tmp_path), embedding_backend="bow")


@pytest.fixture
def generator() -> RecordingGenerator:
    return RecordingGenerator()
