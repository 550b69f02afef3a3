"""Command-line entry point.

Usage:
    fashion-scrape [--dry-run] [--verbose] scrape [URL ...]
    fashion-scrape build-index
    fashion-scrape [--dry-run] migrate data/picks.json
"""

import argparse
import asyncio
import json
import signal
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from fashion.config import settings
from fashion.logging_config import configure_logging
from fashion.scrapers.scraper_service import BatchResult, ScraperService
from fashion.scrapers.stores import StoreRegistry
from fashion.scrapers.utils.browser_manager import BrowserManager
from fashion.services.catalog_service import migrate_flat_list
from fashion.services.catalog_writer import CatalogWriter
from fashion.services.image_service import ImageService, build_uploader
from fashion.services.queue_service import finalize_queue, read_queue

logger = structlog.get_logger(__name__)


async def run_scrape(urls: List[str], dry_run: bool = False) -> BatchResult:
    """Scrape ``urls`` with one browser for the whole batch."""
    writer = CatalogWriter(settings.DATA_DIR)
    image_service = ImageService(uploader=build_uploader())

    async with BrowserManager() as browser:
        service = ScraperService(
            browser=browser,
            writer=writer,
            image_service=image_service,
            stores=StoreRegistry.from_settings(),
            dry_run=dry_run,
        )
        return await service.run_batch(urls)


async def _run_cancellable(coro):
    """Run ``coro`` so SIGINT/SIGTERM cancel it (and close the browser)."""
    task = asyncio.ensure_future(coro)
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, task.cancel)
        except NotImplementedError:
            # Windows event loops have no signal handlers
            pass
    return await task


def cmd_scrape(args: argparse.Namespace) -> int:
    from_queue = not args.urls
    urls = args.urls or read_queue(settings.queue_path)
    if not urls:
        logger.info("queue_empty", path=str(settings.queue_path))
        return 0

    logger.info("scrape_started", urls=len(urls), dry_run=args.dry_run)
    try:
        result = asyncio.run(_run_cancellable(run_scrape(urls, dry_run=args.dry_run)))
    except asyncio.CancelledError:
        logger.warning("scrape_interrupted")
        return 130

    if from_queue and not args.dry_run:
        finalize_queue(settings.queue_path, settings.done_path, result.processed_urls, result.failed_urls)

    for item in result.items:
        logger.info("scrape_item", status=item.status, product_id=item.product_id, url=item.url, error=item.error)
    return 1 if result.failed and not result.success else 0


def cmd_build_index(args: argparse.Namespace) -> int:
    CatalogWriter(settings.DATA_DIR).rebuild_index()
    return 0


def cmd_migrate(args: argparse.Namespace) -> int:
    data = json.loads(Path(args.picks).read_text(encoding="utf-8"))
    picks = data.get("picks", []) if isinstance(data, dict) else data

    products = migrate_flat_list(picks)
    if args.dry_run:
        return 0

    writer = CatalogWriter(settings.DATA_DIR)
    for product in products:
        writer.save_product(product)
    writer.rebuild_index()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fashion-scrape", description="FASHION. sale scraper")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--dry-run", action="store_true", help="Do not write any files")
    sub = parser.add_subparsers(dest="command", required=True)

    scrape = sub.add_parser("scrape", help="Scrape URLs (default: the queue file)")
    scrape.add_argument("urls", nargs="*", help="Product URLs; omit to process the queue")
    scrape.set_defaults(func=cmd_scrape)

    index = sub.add_parser("build-index", help="Rebuild index.json from product files")
    index.set_defaults(func=cmd_build_index)

    migrate = sub.add_parser("migrate", help="Convert a flat picks.json into product files")
    migrate.add_argument("picks", help="Path to picks.json")
    migrate.set_defaults(func=cmd_migrate)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
