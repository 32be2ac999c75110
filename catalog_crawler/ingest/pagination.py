"""Pagination controller: walks list pages and collects item stubs."""

import logging
from typing import Optional

from catalog_crawler import metrics
from catalog_crawler.config import settings
from catalog_crawler.ingest.page_parser import BasePageParser
from catalog_crawler.ingest.pacing import Pacer
from catalog_crawler.ingest.session import BlockSignal, CrawlSession, FetchFailure
from catalog_crawler.models import CrawlItem, CrawlRun

logger = logging.getLogger(__name__)


def list_page_path(start_path: str, page: int) -> str:
    """Path of list page ``page`` (1-based)."""
    if page <= 1:
        return start_path
    return f"{start_path.rstrip('/')}/page/{page}/"


class PaginationController:
    """
    Fetches list pages 1..max_pages in order and collects new items.

    A failed page is logged and skipped. A block stops pagination and keeps
    everything collected so far; the block is recorded on the run.
    """

    def __init__(
        self,
        session: CrawlSession,
        parser: BasePageParser,
        pacer: Pacer,
        start_path: Optional[str] = None,
    ):
        self.session = session
        self.parser = parser
        self.pacer = pacer
        self.start_path = start_path or settings.start_path

    async def run(self, max_pages: Optional[int] = None, crawl_run: Optional[CrawlRun] = None) -> CrawlRun:
        """
        Walk the list pages.

        Args:
            max_pages: Pagination ceiling (defaults to config)
            crawl_run: Run to append to (a new one if omitted)

        Returns:
            The CrawlRun holding the collected items
        """
        max_pages = max_pages if max_pages is not None else settings.max_pages
        crawl_run = crawl_run if crawl_run is not None else CrawlRun()

        page = 1
        while page <= max_pages:
            if page > 1:
                await self.pacer.wait(f"list page {page}")

            path = list_page_path(self.start_path, page)
            logger.info(f"Fetching list page {page}/{max_pages}")
            try:
                html = await self.session.fetch(path, kind="list")
            except BlockSignal as e:
                logger.error(f"Pagination stopped at page {page}: {e}")
                crawl_run.block = e
                break
            except FetchFailure as e:
                logger.warning(f"Failed list page {page}: {e}")
                crawl_run.failed_pages.append(page)
                page += 1
                continue

            try:
                added = self._collect(html, self.session.resolve(path), crawl_run)
            except Exception as e:
                logger.warning(f"Could not parse list page {page}: {e!r}")
                crawl_run.failed_pages.append(page)
                page += 1
                continue

            metrics.record_items("listing", added)
            logger.info(f"Page {page}: +{added} items ({len(crawl_run.items)} total)")
            page += 1

        return crawl_run

    def _collect(self, html: str, page_url: str, crawl_run: CrawlRun) -> int:
        added = 0
        for entry in self.parser.parse_list_page(html, page_url):
            if not entry.is_complete:
                logger.debug(f"Dropping incomplete entry: title={entry.title!r} url={entry.detail_url!r}")
                continue
            item = CrawlItem.from_entry(entry)
            if not item.slug:
                logger.debug(f"Dropping entry without a slug: {item.detail_url!r}")
                continue
            if crawl_run.add(item):
                added += 1
            else:
                logger.debug(f"Skipping duplicate slug {item.slug!r}")
        return added
