import threading
from unittest.mock import patch

import pytest

from conftest import FakeFetcher
from restaurant_fx.core.config import Settings
from restaurant_fx.services.http_client import HttpError
from restaurant_fx.services.rates.base import SOURCE_FALLBACK, SOURCE_STATIC
from restaurant_fx.services.rates.cache_service import EPOCH, ExchangeRateCache, build_rate_cache
from restaurant_fx.services.rates.providers import ExternalHTTPRateFetcher


class TestStaleness:
    def test_new_cache_is_empty_and_stale(self, cache, fetcher):
        assert cache.needs_update() is True
        assert cache.last_refreshed_at == EPOCH
        assert fetcher.calls == []

    def test_fresh_after_refresh(self, cache, clock):
        cache.refresh()
        assert cache.needs_update() is False
        assert cache.last_refreshed_at == clock.now

    def test_stale_after_two_hours(self, cache, clock):
        cache.refresh()
        clock.advance(hours=2)
        assert cache.needs_update() is True

    def test_still_fresh_at_exact_ttl(self, cache, clock):
        cache.refresh()
        clock.advance(hours=1)
        assert cache.needs_update() is False

    def test_empty_table_is_stale_even_when_recent(self, clock):
        cache = ExchangeRateCache(FakeFetcher(rates={}), clock=clock)
        cache.refresh()
        assert cache.needs_update() is True


class TestGetRates:
    def test_first_access_fetches(self, cache, fetcher):
        table = cache.get_rates()
        assert fetcher.calls == ["USD"]
        assert table.get("USD-KES") == 130.0

    def test_fresh_cache_is_reused(self, cache, fetcher, clock):
        first = cache.get_rates()
        clock.advance(minutes=30)
        second = cache.get_rates()
        assert fetcher.calls == ["USD"]
        assert second is first

    def test_stale_cache_is_refetched(self, cache, fetcher, clock):
        first = cache.get_rates()
        clock.advance(hours=2)
        second = cache.get_rates()
        assert fetcher.calls == ["USD", "USD"]
        assert second is not first

    def test_other_base_replaces_table(self, cache, fetcher):
        cache.get_rates()
        table = cache.get_rates("kes")
        assert fetcher.calls == ["USD", "KES"]
        assert table.base_currency == "KES"
        assert cache.base_currency == "KES"

    def test_refresh_ignores_freshness(self, cache, fetcher):
        cache.get_rates()
        cache.refresh()
        assert fetcher.calls == ["USD", "USD"]


class TestTableReplacement:
    def test_refresh_replaces_whole_table(self, cache, fetcher):
        old = cache.get_rates()
        fetcher.rates = {"USD-KES": 131.0}
        new = cache.refresh()

        assert new.get("USD-KES") == 131.0
        assert "USD-UGX" not in new
        # readers holding the old snapshot are unaffected
        assert old.get("USD-UGX") == 3700.0

    def test_published_table_is_read_only(self, cache):
        table = cache.get_rates()
        with pytest.raises(TypeError):
            table.rates["USD-KES"] = 1.0  # type: ignore[index]


class TestFallback:
    def test_fetch_failure_still_yields_rates(self, clock):
        cache = ExchangeRateCache(ExternalHTTPRateFetcher(retries=0), clock=clock)

        with patch("restaurant_fx.services.rates.providers.get_json", side_effect=HttpError("timeout")):
            table = cache.get_rates()

        assert table.source == SOURCE_FALLBACK
        assert "USD-KES" in table
        assert "USD-UGX" in table
        assert cache.needs_update() is False

    def test_raising_fetcher_installs_fallback(self, clock):
        class Broken(FakeFetcher):
            def fetch(self, base_currency):
                raise RuntimeError("socket closed")

        cache = ExchangeRateCache(Broken(), clock=clock)
        table = cache.refresh()

        assert table.source == SOURCE_FALLBACK
        assert table.get("USD-KES") == 130.0


class TestConcurrency:
    def test_concurrent_stale_readers_share_one_fetch(self, clock):
        fetcher = FakeFetcher(delay=0.2)
        cache = ExchangeRateCache(fetcher, clock=clock)
        workers = 12
        barrier = threading.Barrier(workers)
        results = []
        results_lock = threading.Lock()

        def reader():
            barrier.wait()
            table = cache.get_rates()
            with results_lock:
                results.append(table)

        threads = [threading.Thread(target=reader) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)

        assert fetcher.calls == ["USD"]
        assert len(results) == workers
        assert all(table is results[0] for table in results)


def test_build_rate_cache_from_settings():
    settings = Settings(exchange_rate_provider="static", base_currency="ugx", rates_cache_ttl_seconds=60)
    settings.init_post_load()

    cache = build_rate_cache(settings)
    table = cache.get_rates()

    assert cache.ttl.total_seconds() == 60
    assert cache.default_base_currency == "UGX"
    assert table.source == SOURCE_STATIC
    assert table.base_currency == "UGX"
