"""
Catalog Scraper Package
Crawls a product catalog, extracts structured records through a tiered
retry ladder, merges them into url-keyed stores and answers questions
over the indexed records.

CLI Usage:
    python -m catalog_scraper <command> [options]

    Commands:
        query                    Answer a question from the indexed catalog
        scrape-data-to-json      Index crawl, tier 0, then the retry tiers
        scrape-data-to-database  Embed the product store into the repository
        scrape-new-data          Category -> product -> internal link tree
        merge-all-products       Flatten the tree into one record per product
        scrape-products-content  Page text for every internal link
        retry-failed             Retry tiers over the persisted failed set
"""

__version__ = "0.1.0"

from .dom import DomNode, SoupNode
from .driver import BrowserSession, NavigationSession, StaticSession, open_session
from .embeddings import BagOfWordsEmbedder, Embedder, Generator, OpenAIEmbedder, OpenAIGenerator
from .errors import (
    CatalogScraperError,
    ConfigurationError,
    MalformedPersistedState,
    NavigationFailure,
    SchemaError,
    ServiceError,
)
from .extractor import PageExtractor
from .ladder import RetryLadder, Tier, default_tiers
from .models import CrawlTarget, FailedTarget
from .pipeline import ScraperService
from .repository import JsonRepository, Repository, VectorEntry
from .retrieval import Retriever
from .retry_queue import FailedTargetQueue
from .run_config import ScraperRunConfig
from .schema import Collection, ExpandablePanel, Scalar, Schema, Slide
from .store import RecordStore

__all__ = [
    '__version__',
    'ScraperService',
    'ScraperRunConfig',
    # Extraction
    'Schema',
    'Scalar',
    'Collection',
    'ExpandablePanel',
    'Slide',
    'PageExtractor',
    'DomNode',
    'SoupNode',
    # Navigation
    'NavigationSession',
    'BrowserSession',
    'StaticSession',
    'open_session',
    # Retry & stores
    'CrawlTarget',
    'FailedTarget',
    'FailedTargetQueue',
    'RecordStore',
    'RetryLadder',
    'Tier',
    'default_tiers',
    # Retrieval
    'Embedder',
    'BagOfWordsEmbedder',
    'OpenAIEmbedder',
    'Generator',
    'OpenAIGenerator',
    'Repository',
    'JsonRepository',
    'VectorEntry',
    'Retriever',
    # Errors
    'CatalogScraperError',
    'ConfigurationError',
    'SchemaError',
    'NavigationFailure',
    'MalformedPersistedState',
    'ServiceError',
]
