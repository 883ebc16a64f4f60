"""Configuration system using pydantic-settings with environment variable loading."""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from screener.formatters import LEGACY_MULTIPLIERS


class DataSourceSettings(BaseSettings):
    """Supabase (PostgREST) row source connection settings."""

    model_config = SettingsConfigDict(env_prefix="SUPABASE_")

    url: str = "http://localhost:54321"
    anon_key: SecretStr = SecretStr("")
    page_size: int = 1000  # PostgREST max rows per request
    request_timeout: float = 8.0  # seconds per request
    max_attempts: int = 2
    retry_base_delay: float = 0.5


class ScreenerSettings(BaseSettings):
    """Screener behaviour: search normalization, links, defaults and caching.

    token_multipliers is empty by default because base_asset in the
    materialized views already has multipliers removed
    (1000000BABYDOGE -> BABYDOGE). Set SCREENER_TOKEN_MULTIPLIERS to a JSON
    list (e.g. '["1000000", "1000"]') to strip them client-side again, or
    SCREENER_LEGACY_MULTIPLIERS=true to use the old built-in list.
    """

    model_config = SettingsConfigDict(env_prefix="SCREENER_")

    token_multipliers: list[str] = []
    legacy_multipliers: bool = False
    backtester_url: str = "/backtester"
    default_window: str = "now"
    default_page_limit: int = 20
    cache_max_age_seconds: float = 300.0

    @property
    def search_multipliers(self) -> tuple[str, ...]:
        """Multipliers stripped before search matching."""
        if self.token_multipliers:
            return tuple(self.token_multipliers)
        if self.legacy_multipliers:
            return LEGACY_MULTIPLIERS
        return ()


class ApiSettings(BaseSettings):
    """JSON API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8080
    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    data_source: DataSourceSettings = DataSourceSettings()
    screener: ScreenerSettings = ScreenerSettings()
    api: ApiSettings = ApiSettings()
