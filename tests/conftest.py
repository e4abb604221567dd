import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from restaurant_fx.services.rates.base import RateFetcher, RateTable, SOURCE_PROVIDER
from restaurant_fx.services.rates.cache_service import ExchangeRateCache
from restaurant_fx.services.rates.providers import StaticRateFetcher

USD_RATES = {"USD-USD": 1.0, "USD-KES": 130.0, "USD-UGX": 3700.0, "USD-TZS": 2300.0}


class FakeFetcher(RateFetcher):
    """Records calls; optional delay to hold a refresh open."""

    def __init__(self, rates=None, delay: float = 0.0):
        self.rates = dict(USD_RATES if rates is None else rates)
        self.delay = delay
        self.calls = []
        self._lock = threading.Lock()

    def fetch(self, base_currency: str) -> RateTable:
        with self._lock:
            self.calls.append(base_currency)
        if self.delay:
            time.sleep(self.delay)
        return RateTable(rates=self.rates, base_currency=base_currency, source=SOURCE_PROVIDER)


class MutableClock:
    def __init__(self, start=None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return MutableClock()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def cache(fetcher, clock):
    return ExchangeRateCache(fetcher, ttl_seconds=3600, base_currency="USD", clock=clock)


@pytest.fixture
def fallback_cache(clock):
    return ExchangeRateCache(StaticRateFetcher(), base_currency="USD", clock=clock)
