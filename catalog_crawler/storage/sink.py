"""Record sinks that persist a finished crawl run."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from catalog_crawler.config import settings
from catalog_crawler.ingest.session import CrawlError
from catalog_crawler.models import CrawlRun

logger = logging.getLogger(__name__)


class SinkError(CrawlError):
    """Raised when a crawl run cannot be persisted."""
    pass


class RecordSink:
    """Receives the final run exactly once."""

    def write(self, crawl_run: CrawlRun) -> None:
        raise NotImplementedError


class JsonFileSink(RecordSink):
    """Writes run items as a JSON array, replacing the file atomically."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or settings.output_path)

    def write(self, crawl_run: CrawlRun) -> None:
        records = [item.to_dict() for item in crawl_run.items]
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(records, f, indent=2, ensure_ascii=False)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise SinkError(f"Failed to write {len(records)} records to {self.path}: {e}") from e

        logger.info(f"Saved {len(records)} items to {self.path}")


class MemorySink(RecordSink):
    """Keeps written runs in memory (dry runs and tests)."""

    def __init__(self):
        self.runs: list[CrawlRun] = []

    def write(self, crawl_run: CrawlRun) -> None:
        self.runs.append(crawl_run)
        logger.info(f"Collected {len(crawl_run.items)} items in memory")
