"""Advisory robots.txt pre-flight check."""

import logging
from urllib.parse import urljoin
from urllib.robotparser import RobotFileParser

import httpx

from catalog_crawler.ingest.identity import IdentityRotator

logger = logging.getLogger(__name__)


async def check_robots(
    client: httpx.AsyncClient,
    base_url: str,
    path: str,
    identity_rotator: IdentityRotator,
    timeout: float = 10.0,
) -> bool:
    """
    Check whether robots.txt allows crawling ``path``.

    The result is advisory: a disallow only produces a warning, and a
    missing or unreachable robots.txt counts as allowed.

    Args:
        client: httpx AsyncClient
        base_url: Root of the target site
        path: Path the crawl will start from
        identity_rotator: Source of request headers
        timeout: Request timeout in seconds

    Returns:
        True if allowed (or unknown), False if disallowed
    """
    robots_url = urljoin(base_url.rstrip("/") + "/", "robots.txt")
    identity, headers = identity_rotator.next_headers()

    try:
        response = await client.get(robots_url, headers=headers, timeout=timeout, follow_redirects=True)
    except httpx.HTTPError as e:
        logger.debug(f"Error fetching {robots_url}: {e}")
        return True

    if response.status_code != 200:
        logger.debug(f"No robots policy at {robots_url} (HTTP {response.status_code})")
        return True

    robots = RobotFileParser(robots_url)
    robots.parse(response.text.splitlines())

    target = urljoin(base_url.rstrip("/") + "/", path.lstrip("/"))
    allowed = robots.can_fetch(identity.user_agent, target)
    if not allowed:
        logger.warning(f"robots.txt disallows {target}; proceeding anyway")
    else:
        logger.info(f"robots.txt allows {target}")
    return allowed
