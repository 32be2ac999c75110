"""One-time session priming before any data-bearing fetch."""

import logging
from typing import Optional

from catalog_crawler.config import settings
from catalog_crawler.ingest.session import CrawlSession, FetchFailure

logger = logging.getLogger(__name__)


async def warm_up(session: CrawlSession, path: Optional[str] = None) -> bool:
    """
    Fetch the home page so protection cookies are set.

    A BlockSignal propagates to the caller. Any other failure is logged and
    the crawl carries on without warm cookies.

    Args:
        session: Crawl session to prime
        path: Warmup path (defaults to config)

    Returns:
        True if the warmup fetch succeeded
    """
    path = path or settings.warmup_path
    logger.info(f"Warming up session with {path}")
    try:
        await session.fetch(path, kind="warmup")
    except FetchFailure as e:
        logger.warning(f"Warmup failed, continuing without primed cookies: {e}")
        return False

    logger.info(f"Warmup complete ({len(session.cookie_store)} cookies stored)")
    return True
