import pytest

from restaurant_fx.core.config import Settings


def test_defaults():
    settings = Settings()
    settings.init_post_load()
    assert settings.rates_cache_ttl_seconds == 3600
    assert settings.base_currency == "USD"
    assert settings.exchange_rate_provider == "external-http"


def test_base_currency_is_normalised():
    settings = Settings(base_currency=" ugx ", exchange_api_base_url="https://example.test/v6/")
    settings.init_post_load()
    assert settings.base_currency == "UGX"
    assert settings.exchange_api_base_url == "https://example.test/v6"


def test_unknown_provider_rejected():
    settings = Settings(exchange_rate_provider="carrier-pigeon")
    with pytest.raises(ValueError, match="Unsupported exchange_rate_provider"):
        settings.init_post_load()


def test_non_positive_ttl_rejected():
    settings = Settings(rates_cache_ttl_seconds=0)
    with pytest.raises(ValueError):
        settings.init_post_load()
