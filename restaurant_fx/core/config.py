from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

ALLOWED_RATE_PROVIDERS = {"external-http", "static"}


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG,
    BASE_CURRENCY, RATES_CACHE_TTL_SECONDS, EXCHANGE_API_KEY).
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Basic app metadata
    app_name: str = "Restaurant FX"
    debug: bool = False
    version: str = "0.1.0"

    # Exchange rates / caching
    rates_cache_ttl_seconds: int = 3600  # 1 hour
    base_currency: str = "USD"
    # Allowed: 'external-http' (exchangerate-api.com v6), 'static' (built-in fallback table only)
    exchange_rate_provider: str = "external-http"
    exchange_api_base_url: str = "https://v6.exchangerate-api.com/v6"
    exchange_api_key: Optional[str] = None
    http_timeout_seconds: float = 5.0
    http_retries: int = 2

    def init_post_load(self) -> None:
        """Normalise derived fields and validate the provider selection."""
        self.base_currency = self.base_currency.strip().upper()
        if len(self.base_currency) != 3:
            raise ValueError(f"base_currency must be a 3 letter code, got '{self.base_currency}'")
        if self.exchange_rate_provider not in ALLOWED_RATE_PROVIDERS:
            raise ValueError(
                f"Unsupported exchange_rate_provider '{self.exchange_rate_provider}'. Allowed: {ALLOWED_RATE_PROVIDERS}"
            )
        if self.rates_cache_ttl_seconds <= 0:
            raise ValueError("rates_cache_ttl_seconds must be positive")
        self.exchange_api_base_url = self.exchange_api_base_url.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
