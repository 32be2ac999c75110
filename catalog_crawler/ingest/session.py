"""Crawl session: identity, cookies, retry and block detection around one fetch."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union
from urllib.parse import urljoin, urlparse

import httpx

from catalog_crawler import metrics
from catalog_crawler.config import settings
from catalog_crawler.ingest.block_detector import BlockDetector
from catalog_crawler.ingest.cookie_store import CookieStore
from catalog_crawler.ingest.identity import IdentityRotator
from catalog_crawler.ingest.retry_policy import FailureClass, RetryPolicy

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class CrawlError(RuntimeError):
    """Base class for crawl failures."""
    pass


class FetchFailure(CrawlError):
    """Raised when a single fetch fails for good (fatal or out of retries)."""

    def __init__(
        self,
        url: str,
        cause: str,
        failure_class: FailureClass,
        attempts: int,
        status_code: Optional[int] = None,
    ):
        super().__init__(f"{cause} for {url} ({failure_class.value}, {attempts} attempt(s))")
        self.url = url
        self.cause = cause
        self.failure_class = failure_class
        self.attempts = attempts
        self.status_code = status_code


class BlockSignal(CrawlError):
    """Raised when a bot challenge is detected. Terminal for the whole run."""

    def __init__(self, url: str, signature: str):
        super().__init__(f"Bot challenge detected at {url}: {signature!r}")
        self.url = url
        self.signature = signature


@dataclass
class RequestAttempt:
    """One dispatch of a logical request."""
    url: str
    attempt: int
    delay_ms: int = 0


class CrawlSession:
    """
    Sequential fetch primitive for an adversarial target.

    Every attempt carries a freshly drawn identity and the current cookie
    jar. Responses feed the cookie store before the block detector sees
    them. Once a block has been detected the session refuses to dispatch
    anything else.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: Optional[str] = None,
        cookie_store: Optional[CookieStore] = None,
        identity_rotator: Optional[IdentityRotator] = None,
        retry_policy: Optional[RetryPolicy] = None,
        block_detector: Optional[BlockDetector] = None,
        sleep: Optional[Sleeper] = None,
        timeout: Union[float, httpx.Timeout, None] = None,
    ):
        """
        Initialize crawl session.

        Args:
            client: httpx AsyncClient used for dispatch
            base_url: Root of the target site (defaults to config)
            cookie_store: Cookie store (new one if omitted)
            identity_rotator: Identity source (config pools if omitted)
            retry_policy: Retry policy (config budget if omitted)
            block_detector: Block detector (config signatures if omitted)
            sleep: Awaitable sleep used for backoff (asyncio.sleep by default)
            timeout: Per-request timeout in seconds or httpx.Timeout
        """
        self.client = client
        self.base_url = (base_url or settings.base_url).rstrip("/") + "/"
        self.cookie_store = cookie_store or CookieStore()
        self.identity_rotator = identity_rotator or IdentityRotator()
        self.retry_policy = retry_policy or RetryPolicy()
        self.block_detector = block_detector or BlockDetector()
        self._sleep = sleep or asyncio.sleep
        if timeout is None:
            timeout = settings.request_timeout_seconds
        self.timeout = timeout if isinstance(timeout, httpx.Timeout) else httpx.Timeout(timeout)

        self.requests_issued = 0
        self.block: Optional[BlockSignal] = None

    @property
    def blocked(self) -> bool:
        return self.block is not None

    def resolve(self, path: str) -> str:
        """
        Resolve a site path or absolute URL against the base URL.

        Raises:
            FetchFailure: If the target is not an http(s) URL with a host
        """
        url = urljoin(self.base_url, (path or "").strip())
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise FetchFailure(
                url=path,
                cause="MalformedURL",
                failure_class=FailureClass.FATAL_REQUEST,
                attempts=0,
            )
        return url

    async def fetch(self, path: str, kind: str = "page") -> str:
        """
        Fetch a document, retrying transient failures.

        Args:
            path: Site-relative path or absolute URL
            kind: Label for logs and metrics (warmup/list/detail)

        Returns:
            Response body text

        Raises:
            BlockSignal: If a bot challenge is detected (now or earlier)
            FetchFailure: If the request fails fatally or exhausts its retries
        """
        if self.block is not None:
            raise self.block

        url = self.resolve(path)
        attempt = RequestAttempt(url=url, attempt=0)

        while True:
            identity, headers = self.identity_rotator.next_headers()
            self.cookie_store.attach(headers)

            logger.debug(
                f"GET {url} [{kind}] attempt {attempt.attempt + 1}/{self.retry_policy.max_attempts} "
                f"ua={identity.user_agent[:40]!r}"
            )

            started = time.monotonic()
            error: Optional[BaseException] = None
            status_code: Optional[int] = None
            self.requests_issued += 1
            try:
                response = await self.client.get(
                    url,
                    headers=headers,
                    timeout=self.timeout,
                    follow_redirects=True,
                )
            except (httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
                error = exc
            else:
                status_code = response.status_code
                self.cookie_store.observe(response)

                verdict = self.block_detector.inspect(response.text)
                if verdict.blocked:
                    metrics.record_fetch_error(kind, time.monotonic() - started)
                    metrics.record_block(verdict.signature)
                    self.block = BlockSignal(url, verdict.signature)
                    logger.error(f"Block detected on {kind} fetch {url}: {verdict.signature!r} (status {status_code})")
                    raise self.block

                if 200 <= status_code < 300:
                    metrics.record_fetch_success(kind, time.monotonic() - started)
                    return response.text

            metrics.record_fetch_error(kind, time.monotonic() - started)
            failure = error if error is not None else status_code
            decision = self.retry_policy.decide(attempt.attempt, failure, url)

            if not decision.retry:
                raise FetchFailure(
                    url=url,
                    cause=decision.cause,
                    failure_class=decision.failure_class,
                    attempts=attempt.attempt + 1,
                    status_code=status_code,
                ) from error

            metrics.record_retry(decision.cause)
            await self._sleep(decision.delay_seconds)
            attempt = RequestAttempt(url=url, attempt=attempt.attempt + 1, delay_ms=decision.delay_ms)
