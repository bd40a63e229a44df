#!/usr/bin/env python3
"""
Catalog Scraper CLI
===================
One subcommand per pipeline operation. All configuration flows through
``ScraperRunConfig``: environment (and ``.env``) first, then CLI flags.

Run with: python -m catalog_scraper <command> [options]
"""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from .errors import CatalogScraperError, ConfigurationError
from .pipeline import ScraperService
from .run_config import ScraperRunConfig

logger = logging.getLogger(__name__)

COMMANDS = (
    "query",
    "scrape-data-to-json",
    "scrape-data-to-database",
    "scrape-new-data",
    "merge-all-products",
    "scrape-products-content",
    "retry-failed",
)


def _load_env() -> None:
    env_path = Path(__file__).resolve().parent.parent / '.env'
    if env_path.exists():
        load_dotenv(env_path)
    else:
        load_dotenv()  # tries CWD


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='catalog_scraper',
        description='Product catalog scraper with tiered retries and retrieval-backed answers',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m catalog_scraper scrape-data-to-json            # Index crawl + retry ladder
  python -m catalog_scraper retry-failed --static          # Retry tiers over requests
  python -m catalog_scraper scrape-data-to-database --embedding-backend bow
  python -m catalog_scraper query "Which switches support PoE?"
        """
    )
    parser.add_argument('--data-dir', type=str, help='Directory for JSON artifacts (default: data)')
    parser.add_argument('--static', action='store_true',
                        help='Fetch pages with requests instead of a headless browser')
    parser.add_argument('--headed', action='store_true', help='Show the browser window')
    parser.add_argument('--embedding-backend', choices=['openai', 'bow'],
                        help='Embedding backend for indexing and queries (default: openai)')
    parser.add_argument('--top-k', type=int, help='Entries used as answer context (default: 3)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    sub = parser.add_subparsers(dest='command', metavar='command')
    sub.required = True

    query = sub.add_parser('query', help='Answer a question from the indexed catalog')
    query.add_argument('question', nargs='+', help='Question text')

    sub.add_parser('scrape-data-to-json', help='Crawl the product index, then run every retry tier')
    sub.add_parser('scrape-data-to-database', help='Embed the product store into the vector repository')
    sub.add_parser('scrape-new-data', help='Walk categories -> products -> internal links')
    sub.add_parser('merge-all-products', help='Flatten the category tree into one record per product')
    sub.add_parser('scrape-products-content', help='Capture page text for every internal link')
    sub.add_parser('retry-failed', help='Replay the failed set through the retry tiers')
    return parser


def run_command(service: ScraperService, args) -> int:
    """Dispatch one subcommand; returns the process exit status."""
    command = args.command
    if command == 'query':
        print(service.answer(' '.join(args.question)))
    elif command == 'scrape-data-to-json':
        service.run_full_crawl_and_retry_ladder()
    elif command == 'scrape-data-to-database':
        if not service.sync_json_store_to_repository():
            return 1
    elif command == 'scrape-new-data':
        service.run_category_product_discovery()
    elif command == 'merge-all-products':
        products = service.merge_category_products_to_flat_list()
        print(f"Merged {len(products)} products")
    elif command == 'scrape-products-content':
        service.enrich_internal_links_with_content()
    elif command == 'retry-failed':
        service.run_retry_ladder()
    return 0


def main(argv=None) -> int:
    _load_env()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s | %(levelname)s | %(message)s',
        datefmt='%H:%M:%S'
    )

    cfg = ScraperRunConfig.from_env().apply_cli_args(args)
    try:
        cfg.validate()
        if args.command == 'query' or (
            args.command == 'scrape-data-to-database' and cfg.needs_openai
        ):
            cfg.require_openai()
        cfg.log_summary(args.command)
        return run_command(ScraperService(cfg), args)
    except ConfigurationError as exc:
        logger.error(f"Configuration error: {exc}")
        return 2
    except CatalogScraperError as exc:
        logger.error(f"{args.command} failed: {exc}", exc_info=args.verbose)
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130


if __name__ == '__main__':
    sys.exit(main())
