"""Detail fetcher: enriches collected items from their detail pages."""

import logging

from catalog_crawler import metrics
from catalog_crawler.ingest.page_parser import BasePageParser
from catalog_crawler.ingest.pacing import Pacer
from catalog_crawler.ingest.session import BlockSignal, CrawlSession, FetchFailure
from catalog_crawler.models import CrawlRun

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 50


class DetailFetcher:
    """Fetches each item's detail page in order and merges the fields."""

    def __init__(self, session: CrawlSession, parser: BasePageParser, pacer: Pacer):
        self.session = session
        self.parser = parser
        self.pacer = pacer

    async def enrich(self, crawl_run: CrawlRun) -> CrawlRun:
        """
        Enrich the run's items in place.

        Stops at the first block (remaining items keep their placeholders).
        Any other per-item failure is logged and the item is left untouched.

        Args:
            crawl_run: Run whose items are enriched

        Returns:
            The same CrawlRun
        """
        if crawl_run.blocked:
            logger.warning("Skipping detail enrichment: run already blocked")
            return crawl_run

        total = len(crawl_run.items)
        for index, item in enumerate(crawl_run.items):
            if index % PROGRESS_EVERY == 0:
                logger.info(f"Details: {index}/{total} items...")

            await self.pacer.wait(f"detail {item.slug}")

            try:
                html = await self.session.fetch(item.detail_url, kind="detail")
            except BlockSignal as e:
                logger.error(f"Detail enrichment stopped at {index}/{total}: {e}")
                crawl_run.block = e
                break
            except FetchFailure as e:
                logger.warning(f"Failed details for {item.title}: {e}")
                crawl_run.failed_items.append(item.slug)
                continue

            try:
                details = self.parser.parse_detail_page(html, item.detail_url)
            except Exception as e:
                logger.warning(f"Could not parse details for {item.title}: {e!r}")
                crawl_run.failed_items.append(item.slug)
                continue

            item.merge_details(details)
            metrics.record_items("detail")

        logger.info(f"Details done: {crawl_run.enriched_count}/{total} items enriched")
        return crawl_run
