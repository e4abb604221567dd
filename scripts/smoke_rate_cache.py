"""Smoke script for the exchange rate cache and converter.

Demonstrates:
 1. First access triggers a fetch (static provider unless RESTAURANT_FX_LIVE=1).
 2. Subsequent access within TTL reuses the same table (same refreshed_at).
 3. Backdating the clock past the TTL forces a refresh.
 4. A small menu batch converted USD -> KES and USD -> UGX.

NOTE: This is a lightweight diagnostic and not a formal test.
"""

import os
from datetime import datetime, timedelta, timezone
from pprint import pprint

from restaurant_fx.services.rates.cache_service import ExchangeRateCache
from restaurant_fx.services.rates.conversion import CurrencyConverter, format_conversion_result
from restaurant_fx.services.rates.providers import make_rate_fetcher


class _Clock:
    def __init__(self):
        self.offset = timedelta()

    def __call__(self) -> datetime:
        return datetime.now(timezone.utc) + self.offset


def run():
    kind = "external-http" if os.environ.get("RESTAURANT_FX_LIVE") == "1" else "static"
    clock = _Clock()
    cache = ExchangeRateCache(make_rate_fetcher(kind), clock=clock)
    out = {}

    table = cache.get_rates()
    out["initial"] = {"source": table.source, "refreshed_at": cache.last_refreshed_at.isoformat()}

    cache.get_rates()
    out["second"] = {"refreshed_at": cache.last_refreshed_at.isoformat()}

    clock.offset = cache.ttl + timedelta(seconds=5)
    out["stale_before_read"] = cache.needs_update()
    cache.get_rates()
    out["forced_refresh"] = {"refreshed_at": cache.last_refreshed_at.isoformat()}

    converter = CurrencyConverter(cache)
    menu = [{"id": 1, "price": 4.5}, {"id": 2, "price": 12}, {"id": 3, "price": "market"}]
    for target in ("KES", "UGX"):
        outcome = converter.convert_menu_items(menu, "USD", target)
        out[f"menu_{target}"] = {
            "summary": format_conversion_result(outcome),
            "prices": [e.get("price") for e in outcome.converted_entities],
        }

    pprint(out)


if __name__ == "__main__":
    run()
