"""Bot challenge detection on fetched documents."""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from catalog_crawler.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlockVerdict:
    """Result of inspecting a document body."""

    blocked: bool
    signature: Optional[str] = None

    @property
    def clean(self) -> bool:
        return not self.blocked


CLEAN = BlockVerdict(blocked=False)


class BlockDetector:
    """
    Flags interstitial challenge pages by substring match.

    Signatures are matched case-insensitively against the body with runs of
    whitespace collapsed, so markup line breaks do not hide a marker.
    """

    def __init__(self, signatures: Optional[Sequence[str]] = None):
        raw = signatures if signatures is not None else settings.block_signatures
        self.signatures = [" ".join(s.lower().split()) for s in raw if s and s.strip()]

    def inspect(self, body: str) -> BlockVerdict:
        """
        Inspect a document body for challenge markers.

        Args:
            body: Response text

        Returns:
            BlockVerdict naming the first matching signature
        """
        if not body:
            return CLEAN
        haystack = " ".join(body.lower().split())
        for signature in self.signatures:
            if signature in haystack:
                logger.debug(f"Challenge signature matched: {signature!r}")
                return BlockVerdict(blocked=True, signature=signature)
        return CLEAN
