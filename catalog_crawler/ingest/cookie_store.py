"""Process-lifetime cookie store for a single target host."""

import logging
from typing import Iterable, MutableMapping, Optional

import httpx

logger = logging.getLogger(__name__)


class CookieStore:
    """
    Name -> value cookie store replayed on every request.

    Cookies are upserted from Set-Cookie directives (last write wins) and
    serialized into a single Cookie header. There is no expiry tracking and
    no domain/path scoping: the store belongs to one crawl of one host.
    """

    def __init__(self):
        self._cookies: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._cookies)

    def __contains__(self, name: str) -> bool:
        return name in self._cookies

    def get(self, name: str) -> Optional[str]:
        return self._cookies.get(name)

    def as_dict(self) -> dict[str, str]:
        return dict(self._cookies)

    @staticmethod
    def parse_directive(directive: str) -> Optional[tuple[str, str]]:
        """
        Parse the name=value pair of one Set-Cookie directive.

        Args:
            directive: Raw Set-Cookie header value

        Returns:
            (name, value) or None if the pair is malformed or empty
        """
        pair = directive.split(";", 1)[0]
        if "=" not in pair:
            return None
        name, value = pair.split("=", 1)
        name = name.strip()
        value = value.strip()
        if not name or not value:
            return None
        return name, value

    def observe_directives(self, directives: Iterable[str]) -> int:
        """
        Upsert cookies from raw Set-Cookie directives.

        Returns:
            Number of pairs stored
        """
        stored = 0
        for directive in directives:
            parsed = self.parse_directive(directive)
            if parsed is None:
                logger.debug(f"Ignoring malformed cookie directive: {directive[:60]!r}")
                continue
            name, value = parsed
            self._cookies[name] = value
            stored += 1
        return stored

    def observe(self, response: httpx.Response) -> int:
        """Upsert every cookie set by a response and the redirects before it."""
        stored = 0
        for hop in [*response.history, response]:
            stored += self.observe_directives(hop.headers.get_list("set-cookie"))
        if stored:
            logger.debug(f"Stored {stored} cookies from {response.url} ({len(self)} total)")
        return stored

    def header_value(self) -> str:
        """Serialize all stored pairs as a Cookie header value."""
        return "; ".join(f"{name}={value}" for name, value in self._cookies.items())

    def attach(self, headers: MutableMapping[str, str]) -> MutableMapping[str, str]:
        """Set the Cookie header on outgoing request headers (if any cookies)."""
        if self._cookies:
            headers["Cookie"] = self.header_value()
        return headers
