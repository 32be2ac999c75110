"""Per-request browser identity rotation.

Each request gets a user agent and referer drawn independently and uniformly
from fixed pools, expanded into a consistent browser-like header set.
"""

import logging
import random
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from catalog_crawler.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Browser fingerprint used for a single request."""
    user_agent: str
    referer: str

    @property
    def browser(self) -> str:
        """Browser family inferred from the user agent."""
        if "Edg/" in self.user_agent:
            return "edge"
        if "Firefox" in self.user_agent:
            return "firefox"
        if "Chrome" in self.user_agent:
            return "chrome"
        if "Safari" in self.user_agent:
            return "safari"
        return "chrome"


class IdentityRotator:
    """
    Picks a fresh identity on every call.

    Selection is random with replacement and keeps no history, so two
    consecutive requests may share an identity.
    """

    def __init__(
        self,
        user_agents: Optional[Sequence[str]] = None,
        referers: Optional[Sequence[str]] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize identity rotator.

        Args:
            user_agents: User agent pool (defaults to config)
            referers: Referer pool (defaults to config)
            rng: Random source (injectable for deterministic tests)
        """
        self.user_agents = list(user_agents if user_agents is not None else settings.user_agents)
        self.referers = list(referers if referers is not None else settings.referers)
        if not self.user_agents:
            raise ValueError("user agent pool is empty")
        if not self.referers:
            raise ValueError("referer pool is empty")
        self._rng = rng or random.Random()

    def next(self) -> Identity:
        """Draw a new identity."""
        return Identity(
            user_agent=self._rng.choice(self.user_agents),
            referer=self._rng.choice(self.referers),
        )

    def headers(self, identity: Identity) -> Dict[str, str]:
        """
        Build request headers for an identity.

        Args:
            identity: Identity to expand

        Returns:
            Dict of HTTP headers
        """
        headers = {
            "User-Agent": identity.user_agent,
            "Referer": identity.referer,
            "Accept": self._get_accept_header(identity.browser),
            "Accept-Language": "en-US,en;q=0.9",
            "Accept-Encoding": "gzip, deflate, br",
            "Connection": "keep-alive",
            "Upgrade-Insecure-Requests": "1",
        }
        if identity.browser in ("chrome", "edge"):
            headers.update({
                "Sec-Fetch-Dest": "document",
                "Sec-Fetch-Mode": "navigate",
                "Sec-Fetch-Site": "cross-site",
                "Sec-Fetch-User": "?1",
            })
        return headers

    def next_headers(self) -> tuple[Identity, Dict[str, str]]:
        """Draw an identity and expand it in one step."""
        identity = self.next()
        return identity, self.headers(identity)

    @staticmethod
    def _get_accept_header(browser: str) -> str:
        if browser in ("safari", "firefox"):
            return "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
        return "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8"
