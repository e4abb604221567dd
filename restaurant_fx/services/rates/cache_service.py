from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Callable, Optional, TYPE_CHECKING

from restaurant_fx.core.config import get_settings
from .base import RateFetcher, RateTable
from .providers import fallback_rate_table, make_rate_fetcher

if TYPE_CHECKING:  # pragma: no cover
    from restaurant_fx.core.config import Settings

"""Process-wide exchange rate cache.

Purpose:
    Hold one table of base-relative rates for a configurable TTL
    (settings.rates_cache_ttl_seconds, default one hour) and refresh it on
    demand from the configured RateFetcher.

Design:
    - The cached state is a single immutable RateSnapshot. A refresh builds a
      new snapshot and rebinds one attribute, so readers see either the old
      or the new table, never a mix.
    - Refreshes are single-flight: callers that find the cache stale queue on
      one lock and re-check freshness once inside, so N concurrent requests
      produce one outbound fetch.
    - Fetchers never raise; a fallback table counts as a completed refresh.
"""

logger = logging.getLogger("restaurant_fx.rates.cache")

EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RateSnapshot:
    table: RateTable
    refreshed_at: datetime
    # Base asked for; the table may carry another one when the fallback could not rebase.
    requested_base: str


class ExchangeRateCache:
    """TTL-bound holder of the current rate table."""

    def __init__(
        self,
        fetcher: RateFetcher,
        ttl_seconds: int = 3600,
        base_currency: str = "USD",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._fetcher = fetcher
        self._ttl = timedelta(seconds=ttl_seconds)
        self._default_base = base_currency.upper()
        self._clock = clock
        self._refresh_lock = threading.Lock()
        self._snapshot = RateSnapshot(
            table=RateTable(rates={}, base_currency=self._default_base),
            refreshed_at=EPOCH,
            requested_base=self._default_base,
        )

    # Internal --------------------------------------------------
    def _is_stale(self, snapshot: RateSnapshot) -> bool:
        if snapshot.table.is_empty:
            return True
        return self._clock() - snapshot.refreshed_at > self._ttl

    def _needs_refresh_for(self, snapshot: RateSnapshot, base: str) -> bool:
        return self._is_stale(snapshot) or snapshot.requested_base != base

    def _fetch_and_swap(self, base: str) -> RateSnapshot:
        try:
            table = self._fetcher.fetch(base)
        except Exception:
            logger.exception(
                "rate fetcher raised for %s, installing fallback table",
                base,
                extra={"event": "rate_fetch_failed", "base_currency": base},
            )
            table = fallback_rate_table(base)
        snapshot = RateSnapshot(table=table, refreshed_at=self._clock(), requested_base=base)
        self._snapshot = snapshot
        logger.info(
            "rate cache refreshed for %s from %s (%d entries)",
            table.base_currency,
            table.source,
            len(table),
            extra={
                "event": "rate_cache_refreshed",
                "base_currency": table.base_currency,
                "source": table.source,
                "entries": len(table),
            },
        )
        return snapshot

    # Public API -----------------------------------------------
    @property
    def ttl(self) -> timedelta:
        return self._ttl

    @property
    def default_base_currency(self) -> str:
        return self._default_base

    @property
    def snapshot(self) -> RateSnapshot:
        return self._snapshot

    @property
    def last_refreshed_at(self) -> datetime:
        return self._snapshot.refreshed_at

    @property
    def base_currency(self) -> str:
        return self._snapshot.table.base_currency

    def needs_update(self) -> bool:
        return self._is_stale(self._snapshot)

    def get_rates(self, base_currency: Optional[str] = None) -> RateTable:
        """Current table, refreshing synchronously first when stale or empty."""
        base = (base_currency or self._default_base).upper()
        snapshot = self._snapshot
        if not self._needs_refresh_for(snapshot, base):
            return snapshot.table
        with self._refresh_lock:
            # Another caller may have refreshed while we waited.
            snapshot = self._snapshot
            if self._needs_refresh_for(snapshot, base):
                snapshot = self._fetch_and_swap(base)
        return snapshot.table

    def refresh(self, base_currency: Optional[str] = None) -> RateTable:
        """Force a fetch and full table replacement regardless of staleness."""
        base = (base_currency or self._default_base).upper()
        with self._refresh_lock:
            return self._fetch_and_swap(base).table


def build_rate_cache(settings: Optional["Settings"] = None) -> ExchangeRateCache:
    """Factory wiring a cache to the fetcher selected in settings."""
    settings = settings or get_settings()
    return ExchangeRateCache(
        fetcher=make_rate_fetcher(settings.exchange_rate_provider, settings),
        ttl_seconds=settings.rates_cache_ttl_seconds,
        base_currency=settings.base_currency,
    )


# Shared instance dependency helper used by FastAPI DI
@lru_cache
def get_rate_cache_service() -> ExchangeRateCache:
    return build_rate_cache()
