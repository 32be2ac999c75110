"""Tests for detail enrichment."""

import random

import pytest

from catalog_crawler.ingest.detail import DetailFetcher
from catalog_crawler.ingest.pacing import Pacer
from catalog_crawler.ingest.page_parser import CatalogPageParser
from catalog_crawler.models import CrawlItem, CrawlRun, ListEntry

from conftest import BLOCK_PAGE, detail_page


def _run(*slugs: str) -> CrawlRun:
    crawl_run = CrawlRun()
    for slug in slugs:
        crawl_run.add(CrawlItem.from_entry(ListEntry(
            title=slug.title(),
            detail_url=f"https://catalog.test/games/{slug}/",
        )))
    return crawl_run


def _fetcher(session, fake_sleep) -> DetailFetcher:
    pacer = Pacer(2000, 5000, rng=random.Random(0), sleep=fake_sleep)
    return DetailFetcher(session, CatalogPageParser(), pacer)


@pytest.mark.asyncio
async def test_enriches_every_item_with_pacing(router, make_session, fake_sleep, sleeps):
    router.routes.update({
        "/games/alpha/": detail_page(version="1.0", size="10 MB"),
        "/games/beta/": detail_page(version="2.0", size="20 MB"),
    })
    crawl_run = _run("alpha", "beta")

    await _fetcher(make_session(), fake_sleep).enrich(crawl_run)

    assert [item.version for item in crawl_run.items] == ["1.0", "2.0"]
    assert all(item.is_enriched for item in crawl_run.items)
    # Paced before every item, including the first
    assert len(sleeps) == 2
    assert all(2.0 <= s <= 5.0 for s in sleeps)


@pytest.mark.asyncio
async def test_fatal_failure_leaves_item_untouched(router, make_session, fake_sleep):
    router.routes.update({
        "/games/alpha/": detail_page(version="1.0"),
        "/games/beta/": 404,
        "/games/gamma/": detail_page(version="3.0"),
    })
    crawl_run = _run("alpha", "beta", "gamma")
    beta_before = crawl_run.items[1].to_dict()

    await _fetcher(make_session(), fake_sleep).enrich(crawl_run)

    alpha, beta, gamma = crawl_run.items
    assert beta.to_dict() == beta_before
    assert gamma.version == "3.0"
    assert gamma.is_enriched
    assert crawl_run.failed_items == ["beta"]
    assert not crawl_run.blocked


@pytest.mark.asyncio
async def test_block_stops_remaining_items(router, make_session, fake_sleep):
    router.routes.update({
        "/games/alpha/": detail_page(version="1.0"),
        "/games/beta/": BLOCK_PAGE,
        "/games/gamma/": detail_page(version="3.0"),
    })
    crawl_run = _run("alpha", "beta", "gamma")

    await _fetcher(make_session(), fake_sleep).enrich(crawl_run)

    alpha, beta, gamma = crawl_run.items
    assert alpha.version == "1.0"
    assert beta.version == "Latest" and not beta.is_enriched
    assert gamma.version == "Latest" and not gamma.is_enriched
    assert "/games/gamma/" not in router.paths
    assert crawl_run.blocked


@pytest.mark.asyncio
async def test_already_blocked_run_is_not_enriched(router, make_session, fake_sleep, sleeps):
    crawl_run = _run("alpha")
    crawl_run.block = RuntimeError("blocked earlier")

    await _fetcher(make_session(), fake_sleep).enrich(crawl_run)

    assert router.requests == []
    assert sleeps == []


class FlakyParser(CatalogPageParser):
    def parse_detail_page(self, html, page_url=""):
        if page_url.endswith("/beta/"):
            raise AttributeError("'NoneType' object has no attribute 'text'")
        return super().parse_detail_page(html, page_url)


@pytest.mark.asyncio
async def test_parse_error_on_one_item_is_contained(router, make_session, fake_sleep):
    router.routes.update({
        "/games/alpha/": detail_page(version="1.0"),
        "/games/beta/": detail_page(version="2.0"),
        "/games/gamma/": detail_page(version="3.0"),
    })
    crawl_run = _run("alpha", "beta", "gamma")
    pacer = Pacer(2000, 5000, rng=random.Random(0), sleep=fake_sleep)

    await DetailFetcher(make_session(), FlakyParser(), pacer).enrich(crawl_run)

    alpha, beta, gamma = crawl_run.items
    assert router.paths == ["/games/alpha/", "/games/beta/", "/games/gamma/"]
    assert beta.version == "Latest" and not beta.is_enriched
    assert gamma.version == "3.0"
    assert crawl_run.failed_items == ["beta"]
