"""Command-line entry point for a crawl run."""

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from catalog_crawler.config import Settings
from catalog_crawler.crawler import Crawler
from catalog_crawler.logging_config import setup_logging
from catalog_crawler.storage.sink import MemorySink

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_BLOCKED = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Crawl a paginated catalog site into JSON records")
    parser.add_argument("--base-url", help="Root of the target site")
    parser.add_argument("--start-path", help="List entry point (e.g. /apps)")
    parser.add_argument("--max-pages", type=int, help="Pagination ceiling")
    parser.add_argument("--max-retries", type=int, help="Attempts per request (default: 4)")
    parser.add_argument("--output", help="JSON output path")
    parser.add_argument("--log-level", help="Log level (default: INFO)")
    parser.add_argument(
        "--no-robots-check",
        action="store_true",
        help="Skip the advisory robots.txt check",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Crawl but keep records in memory instead of writing them",
    )
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Environment/.env settings with CLI overrides applied."""
    overrides = {
        "base_url": args.base_url,
        "start_path": args.start_path,
        "max_pages": args.max_pages,
        "max_retries": args.max_retries,
        "output_path": args.output,
        "log_level": args.log_level,
    }
    config = Settings(**{k: v for k, v in overrides.items() if v is not None})
    if args.no_robots_check:
        config.robots_check_enabled = False
    return config


async def run_crawl(config: Settings, dry_run: bool = False) -> int:
    """Run one crawl and map the outcome to an exit code."""
    sink = MemorySink() if dry_run else None
    async with Crawler(config=config, sink=sink) as crawler:
        crawl_run = await crawler.run()

    if crawl_run.blocked:
        logger.error(f"Run stopped by bot protection; saved {len(crawl_run.items)} items")
        return EXIT_BLOCKED
    logger.info(f"DONE! Scraped {len(crawl_run.items)} items")
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = settings_from_args(args)
    setup_logging(level=config.log_level, json_logs=config.json_logs, log_dir=config.log_dir)

    try:
        return asyncio.run(run_crawl(config, dry_run=args.dry_run))
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return EXIT_ERROR
    except Exception:
        logger.exception("Crawl failed")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
