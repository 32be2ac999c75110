"""Prometheus metrics for crawl runs."""

from prometheus_client import Counter, Histogram, Info

from catalog_crawler import __version__

# Application info
app_info = Info("catalog_crawler", "Catalog crawler application info")
app_info.info({"version": __version__, "name": "catalog-crawler"})

# Fetch metrics
crawl_fetches_total = Counter(
    "crawl_fetches_total",
    "Total number of crawl fetches by outcome",
    ["kind", "status"],
)

crawl_fetch_duration_seconds = Histogram(
    "crawl_fetch_duration_seconds",
    "Time spent on a single fetch attempt",
    ["kind"],
    buckets=[0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 15.0, 30.0],
)

crawl_retries_total = Counter(
    "crawl_retries_total",
    "Total number of retries scheduled",
    ["cause"],
)

crawl_blocks_total = Counter(
    "crawl_blocks_total",
    "Total number of bot challenges detected",
    ["signature"],
)

# Item metrics
crawl_items_total = Counter(
    "crawl_items_total",
    "Total number of items collected or enriched",
    ["phase"],
)


def record_fetch_success(kind: str, duration: float):
    """Record a successful fetch attempt."""
    crawl_fetches_total.labels(kind=kind, status="success").inc()
    crawl_fetch_duration_seconds.labels(kind=kind).observe(duration)


def record_fetch_error(kind: str, duration: float):
    """Record a failed fetch attempt."""
    crawl_fetches_total.labels(kind=kind, status="error").inc()
    crawl_fetch_duration_seconds.labels(kind=kind).observe(duration)


def record_retry(cause: str):
    """Record a scheduled retry."""
    crawl_retries_total.labels(cause=cause).inc()


def record_block(signature: str):
    """Record a detected bot challenge."""
    crawl_blocks_total.labels(signature=signature).inc()


def record_items(phase: str, count: int = 1):
    """Record items collected (listing) or enriched (detail)."""
    if count > 0:
        crawl_items_total.labels(phase=phase).inc(count)
