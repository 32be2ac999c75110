"""Crawler configuration using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Crawler settings."""

    # Target
    base_url: str = "https://modyolo.com"
    start_path: str = "/apps"
    warmup_path: str = "/"
    max_pages: int = 500

    # Retry / backoff
    max_retries: int = 4  # Total attempts per logical request
    backoff_base_ms: int = 2000
    backoff_cap_ms: int = 30000
    request_timeout_seconds: float = 15.0

    # Pacing between list/detail fetches
    pace_min_ms: int = 2000
    pace_max_ms: int = 5000

    # ==========================================================================
    # Identity pools
    # ==========================================================================
    user_agents: list[str] = [
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/130.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:133.0) Gecko/20100101 Firefox/133.0",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/18.1 Safari/605.1.15",
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36 Edg/131.0.0.0",
    ]
    referers: list[str] = [
        "https://www.google.com/",
        "https://www.bing.com/",
        "https://duckduckgo.com/",
    ]

    # Bot challenge markers (lowercase substring match)
    block_signatures: list[str] = [
        "checking your browser",
        "just a moment",
        "cf-browser-verification",
        "/cdn-cgi/challenge-platform/",
    ]

    # Detail extraction limits
    description_max_chars: int = 500
    max_screenshots: int = 5

    # Output
    output_path: str = "data/items.json"

    # Pre-flight
    robots_check_enabled: bool = True

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    json_logs: bool = True

    model_config = SettingsConfigDict(
        env_prefix="CRAWLER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def pace_range_ms(self) -> tuple[int, int]:
        """Pacing range as (min, max) milliseconds."""
        return (self.pace_min_ms, self.pace_max_ms)


settings = Settings()
