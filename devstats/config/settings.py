from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    debug: bool = False
    cors_origins: list[str] = ["http://localhost:3000"]

    # GitHub - token is optional; without it requests are unauthenticated
    # and GitHub applies the lower anonymous rate limit (60/hour)
    github_token: str = ""
    github_username: str = ""
    github_api_base_url: str = "https://api.github.com"
    github_api_version: str = "2022-11-28"
    github_user_agent: str = "devstats"

    # Cache store (shared by the proxy cache and the stats cache)
    cache_ttl_seconds: float = 60 * 60 * 24 * 14  # 14 days
    cache_max_entries: int = 100
    cache_max_item_bytes: int = 1024 * 1024  # 1 MiB
    cache_cleanup_interval_seconds: float = 60 * 60  # 1 hour
    stats_cache_key: str = "stats_cache"
    languages_cache_key: str = "languages_cache"

    # Batch fetching of per-repo details
    batch_concurrency: int = 5
    batch_item_timeout_seconds: float = 8.0
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 0.5
    retry_backoff_multiplier: float = 2.0

    # Aggregation windows
    language_repo_limit: int = 20
    language_recency_days: int = 365
    top_languages_limit: int = 6
    recent_activity_days: int = 30

    @property
    def github_auth_enabled(self) -> bool:
        """Check if a GitHub token is configured."""
        return bool(self.github_token)


settings = Settings()
