"""Page parsers turning list and detail HTML into crawl records."""

import logging
import re
from typing import List, Optional
from urllib.parse import urljoin

from selectolax.parser import HTMLParser, Node

from catalog_crawler.config import settings
from catalog_crawler.models import DetailFields, ListEntry, DEFAULT_SIZE, DEFAULT_VERSION

logger = logging.getLogger(__name__)

DEFAULT_MOD_FEATURES = "Premium Unlocked"
MOD_FEATURE_LABEL = "MOD feature"
IMAGE_ATTRS = ("src", "data-src", "data-srcset")


class BasePageParser:
    """Base class for site-specific page parsers."""

    def parse_list_page(self, html: str, page_url: str = "") -> List[ListEntry]:
        """
        Parse a list page into entries.

        Args:
            html: Raw HTML content
            page_url: URL the page was fetched from (for relative links)

        Returns:
            List entries in document order (may include incomplete ones)
        """
        raise NotImplementedError

    def parse_detail_page(self, html: str, page_url: str = "") -> DetailFields:
        """
        Parse a detail page into detail fields.

        Args:
            html: Raw HTML content
            page_url: URL the page was fetched from

        Returns:
            DetailFields with defaults for anything missing
        """
        raise NotImplementedError

    @staticmethod
    def image_source(node: Optional[Node]) -> Optional[str]:
        """First non-empty image source attribute, handling lazy loading."""
        if node is None:
            return None
        for attr in IMAGE_ATTRS:
            value = node.attributes.get(attr)
            if value and value.strip():
                return value.strip()
        return None


class CatalogPageParser(BasePageParser):
    """Parser for WordPress-style catalog list/detail pages."""

    def __init__(
        self,
        description_max_chars: Optional[int] = None,
        max_screenshots: Optional[int] = None,
    ):
        self.description_max_chars = description_max_chars or settings.description_max_chars
        self.max_screenshots = max_screenshots or settings.max_screenshots

    def parse_list_page(self, html: str, page_url: str = "") -> List[ListEntry]:
        parser = HTMLParser(html)
        entries = []

        for post in parser.css(".post"):
            link = post.css_first(".entry-title a")
            title = link.text(strip=True) if link else None
            href = link.attributes.get("href") if link else None
            detail_url = urljoin(page_url, href) if href and page_url else href
            icon = self.image_source(post.css_first(".post-thumbnail img"))
            if icon and page_url:
                icon = urljoin(page_url, icon)

            entries.append(ListEntry(
                title=title,
                detail_url=detail_url,
                icon_url=icon,
            ))

        logger.debug(f"Parsed {len(entries)} list entries from {page_url or 'document'}")
        return entries

    def parse_detail_page(self, html: str, page_url: str = "") -> DetailFields:
        parser = HTMLParser(html)

        description = ""
        first_paragraph = parser.css_first(".entry-content p")
        if first_paragraph:
            description = first_paragraph.text(strip=True)[: self.description_max_chars]

        version = DEFAULT_VERSION
        size = DEFAULT_SIZE
        for row in parser.css("table.apk-info tr"):
            key_node = row.css_first("th")
            value_node = row.css_first("td")
            key = key_node.text(strip=True).lower() if key_node else ""
            value = value_node.text(strip=True) if value_node else ""
            if "version" in key:
                version = value or version
            if "size" in key:
                size = value or size

        screenshots = []
        for img in parser.css(".gallery-item img, .wp-block-image img"):
            if len(screenshots) >= self.max_screenshots:
                break
            src = self.image_source(img)
            if src:
                screenshots.append(urljoin(page_url, src) if page_url else src)

        return DetailFields(
            description=description,
            version=version,
            size=size,
            mod_features=self._extract_mod_features(parser),
            screenshots=screenshots,
        )

    @staticmethod
    def _extract_mod_features(parser: HTMLParser) -> str:
        for strong in parser.css("strong"):
            if MOD_FEATURE_LABEL in strong.text():
                container = strong.parent or strong
                text = container.text(separator=" ").replace(MOD_FEATURE_LABEL, "", 1)
                text = " ".join(text.split()).lstrip(":").strip()
                if text:
                    return text

        title = parser.css_first(".entry-title")
        if title:
            match = re.search(r"\(([^)]+)\)", title.text())
            if match:
                return match.group(1).strip()

        return DEFAULT_MOD_FEATURES
