"""Crawl data model: list stubs, detail fields, items and runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import urlparse

DEFAULT_VERSION = "Latest"
DEFAULT_SIZE = "Varies"

# Title keywords that mark an entry as an app rather than a game
APP_KEYWORDS = (
    "vpn", "browser", "messenger", "telegram", "whatsapp", "instagram", "tiktok",
    "facebook", "youtube", "spotify", "netflix", "editor", "camera", "photo", "gallery",
    "launcher", "keyboard", "cleaner", "manager", "downloader", "player",
)


def utcnow_iso() -> str:
    """Current UTC time as an ISO-8601 string with a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def slug_from_url(url: str) -> str:
    """Derive an item slug from the last non-empty path segment of its URL."""
    parsed = urlparse(url)
    path = parsed.path if parsed.netloc else url
    segments = [s for s in path.split("/") if s]
    if not segments:
        return ""
    slug = segments[-1]
    if slug.endswith(".html"):
        slug = slug[: -len(".html")]
    return slug


def classify_type(title: str, detail_url: str) -> str:
    """Coarse app/game classification from the URL and title."""
    if "/apps/" in detail_url.lower():
        return "apps"
    lowered = title.lower()
    if any(keyword in lowered for keyword in APP_KEYWORDS):
        return "apps"
    return "games"


@dataclass(frozen=True)
class ListEntry:
    """One entry yielded by a list page, before validation."""

    title: Optional[str]
    detail_url: Optional[str]
    icon_url: Optional[str] = None
    type_hint: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        """Entries without a title or detail URL never become items."""
        return bool(self.title and self.title.strip()) and bool(self.detail_url and self.detail_url.strip())


@dataclass
class DetailFields:
    """Fields extracted from a detail page."""

    description: str = ""
    version: str = DEFAULT_VERSION
    size: str = DEFAULT_SIZE
    mod_features: str = ""
    screenshots: list[str] = field(default_factory=list)


@dataclass
class CrawlItem:
    """A discovered catalog item, enriched in place by the detail phase."""

    slug: str
    title: str
    detail_url: str
    icon: Optional[str] = None
    type: str = "games"
    scraped_at: str = field(default_factory=utcnow_iso)
    description: str = ""
    version: str = DEFAULT_VERSION
    size: str = DEFAULT_SIZE
    mod_features: str = ""
    screenshots: list[str] = field(default_factory=list)
    updated_at: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: ListEntry) -> "CrawlItem":
        """Build an item stub from a complete list entry."""
        title = entry.title.strip()
        detail_url = entry.detail_url.strip()
        return cls(
            slug=slug_from_url(detail_url),
            title=title,
            detail_url=detail_url,
            icon=entry.icon_url or None,
            type=entry.type_hint or classify_type(title, detail_url),
        )

    @property
    def is_enriched(self) -> bool:
        return self.updated_at is not None

    def merge_details(self, details: DetailFields) -> None:
        """Merge detail-page fields into this item."""
        self.description = details.description
        self.version = details.version
        self.size = details.size
        self.mod_features = details.mod_features
        self.screenshots = list(details.screenshots)
        self.updated_at = utcnow_iso()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted record layout."""
        return {
            "slug": self.slug,
            "title": self.title,
            "icon": self.icon,
            "apkUrl": self.detail_url,
            "type": self.type,
            "scrapedAt": self.scraped_at,
            "description": self.description,
            "version": self.version,
            "size": self.size,
            "modFeatures": self.mod_features,
            "screenshots": list(self.screenshots),
            "updatedAt": self.updated_at,
        }


@dataclass
class CrawlRun:
    """Ordered items accumulated in one execution, plus run bookkeeping."""

    items: list[CrawlItem] = field(default_factory=list)
    block: Optional[Exception] = None  # BlockSignal that stopped the run
    failed_pages: list[int] = field(default_factory=list)
    failed_items: list[str] = field(default_factory=list)
    started_at: str = field(default_factory=utcnow_iso)
    finished_at: Optional[str] = None
    _slugs: set[str] = field(default_factory=set, init=False, repr=False)

    @property
    def blocked(self) -> bool:
        return self.block is not None

    @property
    def enriched_count(self) -> int:
        return sum(1 for item in self.items if item.is_enriched)

    def add(self, item: CrawlItem) -> bool:
        """Append an item unless its slug was already collected."""
        if item.slug in self._slugs:
            return False
        self._slugs.add(item.slug)
        self.items.append(item)
        return True

    def finish(self) -> None:
        self.finished_at = utcnow_iso()

    def summary(self) -> dict[str, Any]:
        return {
            "items": len(self.items),
            "enriched": self.enriched_count,
            "failed_pages": list(self.failed_pages),
            "failed_items": len(self.failed_items),
            "blocked": self.blocked,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }
