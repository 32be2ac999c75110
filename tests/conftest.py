"""Shared fixtures: fake transport, recorded sleeps, HTML builders."""

import random
from typing import Callable, Optional

import httpx
import pytest
import pytest_asyncio

from catalog_crawler.ingest.block_detector import BlockDetector
from catalog_crawler.ingest.cookie_store import CookieStore
from catalog_crawler.ingest.identity import IdentityRotator
from catalog_crawler.ingest.retry_policy import RetryPolicy
from catalog_crawler.ingest.session import CrawlSession

BASE_URL = "https://catalog.test"
USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:133.0) Gecko/20100101 Firefox/133.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/18.1 Safari/605.1.15",
]
REFERERS = ["https://www.google.com/", "https://www.bing.com/"]
BLOCK_PAGE = (
    "<html><head><title>Just a moment...</title></head>"
    "<body><p>Checking your browser before accessing the site.</p></body></html>"
)


class Router:
    """Routes requests by path to canned responses and records them."""

    def __init__(self, routes: Optional[dict] = None):
        self.routes: dict[str, object] = dict(routes or {})
        self.requests: list[httpx.Request] = []

    @property
    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        if callable(route):
            return route(request)
        if isinstance(route, httpx.Response):
            return route
        if isinstance(route, int):
            return httpx.Response(route, text="")
        return httpx.Response(200, text=route)


@pytest.fixture
def sleeps() -> list:
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)
    return _sleep


@pytest.fixture
def router() -> Router:
    return Router()


@pytest_asyncio.fixture
async def client(router):
    async with httpx.AsyncClient(transport=httpx.MockTransport(router)) as c:
        yield c


@pytest.fixture
def make_session(client, fake_sleep) -> Callable[..., CrawlSession]:
    def _make(
        rng: Optional[random.Random] = None,
        max_attempts: int = 4,
        user_agents=USER_AGENTS,
        referers=REFERERS,
    ) -> CrawlSession:
        return CrawlSession(
            client=client,
            base_url=BASE_URL,
            cookie_store=CookieStore(),
            identity_rotator=IdentityRotator(user_agents, referers, rng=rng or random.Random(1)),
            retry_policy=RetryPolicy(max_attempts=max_attempts, base_delay_ms=2000, max_delay_ms=30000),
            block_detector=BlockDetector(["checking your browser", "just a moment", "/cdn-cgi/challenge-platform/"]),
            sleep=fake_sleep,
            timeout=5.0,
        )
    return _make


def list_page(*posts) -> str:
    """Build a list page from (title, url, icon) tuples; None drops that part."""
    html = []
    for title, url, icon in posts:
        if url is None:
            link = f"<a>{title or ''}</a>"
        else:
            link = f'<a href="{url}">{title or ""}</a>'
        thumb = f'<div class="post-thumbnail"><img data-src="{icon}"></div>' if icon else ""
        html.append(f'<article class="post"><h2 class="entry-title">{link}</h2>{thumb}</article>')
    return f"<html><body>{''.join(html)}</body></html>"


def detail_page(
    title: str = "Alpha VPN (Premium)",
    description: str = "A fast private VPN.",
    version: str = "2.4.1",
    size: str = "18 MB",
    mod_feature: Optional[str] = None,
    screenshots: int = 0,
) -> str:
    mod = f"<p><strong>MOD feature</strong> {mod_feature}</p>" if mod_feature else ""
    shots = "".join(
        f'<figure class="wp-block-image"><img src="/shots/{i}.jpg"></figure>' for i in range(screenshots)
    )
    return (
        f'<html><body><h1 class="entry-title">{title}</h1>'
        f'<div class="entry-content"><p>{description}</p>{mod}</div>'
        f'<table class="apk-info"><tr><th>Version</th><td>{version}</td></tr>'
        f'<tr><th>Size</th><td>{size}</td></tr></table>'
        f"{shots}</body></html>"
    )
