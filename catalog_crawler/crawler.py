"""Crawl run orchestration: pre-flight, warmup, listing, details, flush."""

from __future__ import annotations

import logging
import random
from typing import Awaitable, Callable, Optional

import httpx

from catalog_crawler.config import Settings, settings as default_settings
from catalog_crawler.ingest.block_detector import BlockDetector
from catalog_crawler.ingest.cookie_store import CookieStore
from catalog_crawler.ingest.detail import DetailFetcher
from catalog_crawler.ingest.identity import IdentityRotator
from catalog_crawler.ingest.pacing import Pacer
from catalog_crawler.ingest.page_parser import BasePageParser, CatalogPageParser
from catalog_crawler.ingest.pagination import PaginationController
from catalog_crawler.ingest.retry_policy import RetryPolicy
from catalog_crawler.ingest.robots import check_robots
from catalog_crawler.ingest.session import BlockSignal, CrawlSession
from catalog_crawler.ingest.warmup import warm_up
from catalog_crawler.logging_config import get_logger
from catalog_crawler.models import CrawlRun
from catalog_crawler.storage.sink import JsonFileSink, RecordSink

logger = logging.getLogger(__name__)


class Crawler:
    """
    Runs one single-pass crawl and flushes the result exactly once.

    Phases run strictly in sequence. A block during warmup or listing skips
    the detail phase entirely; whatever was collected is still written.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
        parser: Optional[BasePageParser] = None,
        sink: Optional[RecordSink] = None,
        rng: Optional[random.Random] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
        identity_rotator: Optional[IdentityRotator] = None,
        block_detector: Optional[BlockDetector] = None,
    ):
        """
        Initialize crawler.

        Args:
            config: Settings instance (module settings if omitted)
            client: httpx AsyncClient (created and owned if omitted)
            parser: Page parser (CatalogPageParser if omitted)
            sink: Record sink (JsonFileSink on config.output_path if omitted)
            rng: Random source shared by identity rotation and pacing
            sleep: Awaitable sleep for pacing and backoff
            identity_rotator: Identity source (config pools if omitted)
            block_detector: Block detector (config signatures if omitted)
        """
        self.config = config or default_settings
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=self.config.request_timeout_seconds,
            follow_redirects=True,
            limits=httpx.Limits(max_connections=1, max_keepalive_connections=1),
        )
        self.parser = parser or CatalogPageParser(
            description_max_chars=self.config.description_max_chars,
            max_screenshots=self.config.max_screenshots,
        )
        self.sink = sink or JsonFileSink(self.config.output_path)
        rng = rng or random.Random()

        self.identity_rotator = identity_rotator or IdentityRotator(
            self.config.user_agents, self.config.referers, rng=rng
        )
        self.session = CrawlSession(
            client=self.client,
            base_url=self.config.base_url,
            cookie_store=CookieStore(),
            identity_rotator=self.identity_rotator,
            retry_policy=RetryPolicy(
                max_attempts=self.config.max_retries,
                base_delay_ms=self.config.backoff_base_ms,
                max_delay_ms=self.config.backoff_cap_ms,
            ),
            block_detector=block_detector or BlockDetector(self.config.block_signatures),
            sleep=sleep,
            timeout=self.config.request_timeout_seconds,
        )
        min_ms, max_ms = self.config.pace_range_ms
        pacer = Pacer(min_ms, max_ms, rng=rng, sleep=sleep)
        self.pagination = PaginationController(self.session, self.parser, pacer, self.config.start_path)
        self.detail_fetcher = DetailFetcher(self.session, self.parser, pacer)

    async def __aenter__(self) -> "Crawler":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this crawler created it."""
        if self._owns_client:
            await self.client.aclose()

    async def run(self) -> CrawlRun:
        """
        Execute the crawl.

        Returns:
            The flushed CrawlRun (check ``blocked`` for an early stop)

        Raises:
            SinkError: If the result cannot be persisted
        """
        crawl_run = CrawlRun()
        log = get_logger(__name__, run_started_at=crawl_run.started_at)
        log.info(f"Starting crawl of {self.config.base_url}{self.config.start_path} (max {self.config.max_pages} pages)")

        try:
            if self.config.robots_check_enabled:
                await check_robots(
                    self.client,
                    self.config.base_url,
                    self.config.start_path,
                    self.identity_rotator,
                )

            try:
                await warm_up(self.session, self.config.warmup_path)
            except BlockSignal as e:
                log.error(f"Blocked during warmup: {e}")
                crawl_run.block = e

            if not crawl_run.blocked:
                await self.pagination.run(self.config.max_pages, crawl_run)

            if crawl_run.blocked:
                log.warning("Skipping detail enrichment after block")
            else:
                await self.detail_fetcher.enrich(crawl_run)
        except Exception:
            log.exception(f"Crawl aborted with {len(crawl_run.items)} items in memory")
            raise
        finally:
            crawl_run.finish()
            log.info(f"Crawl finished: {crawl_run.summary()}")
            self.sink.write(crawl_run)

        return crawl_run
