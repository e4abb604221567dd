from __future__ import annotations

"""Concrete rate fetchers, the offline fallback table and the fetcher factory.

'external-http' talks to exchangerate-api.com (v6 ``latest`` endpoint).
'static' never touches the network and serves the fallback table, which is
also what the HTTP fetcher degrades to whenever the provider misbehaves.
"""
import logging
import math
from typing import Any, Callable, Dict, Mapping, Optional, TYPE_CHECKING

from restaurant_fx.services.http_client import HttpError, get_json
from .base import (
    RateFetcher,
    RateTable,
    SOURCE_FALLBACK,
    SOURCE_PROVIDER,
    SOURCE_STATIC,
    pair_key,
)

if TYPE_CHECKING:  # pragma: no cover
    from restaurant_fx.core.config import Settings

logger = logging.getLogger("restaurant_fx.rates.providers")

FALLBACK_REFERENCE_CURRENCY = "USD"

# Units of each currency per 1 USD. Approximate, hand maintained, never refreshed.
_USD_FALLBACK_RATES: Dict[str, float] = {
    "USD": 1.0,
    # East Africa
    "KES": 130.0,
    "UGX": 3700.0,
    "TZS": 2300.0,
    "RWF": 1270.0,
    "BIF": 2820.0,
    "SCR": 14.3,
    "MUR": 45.1,
    "SOS": 562.0,
    "DJF": 175.8,
    "ETB": 54.8,
    "ERN": 15.0,
    "SDD": 600.0,
    "SSP": 1300.0,
    # Southern / Central Africa
    "ZMW": 21.2,
    "MWK": 1014.0,
    "MZN": 63.0,
    "MGA": 4400.0,
    "CDF": 2720.0,
    "AOA": 840.0,
    "NAD": 18.3,
    "BWP": 13.3,
    "SZL": 18.3,
    "LSL": 18.3,
    "ZAR": 18.3,
    # West Africa
    "CVE": 101.4,
    "GHS": 12.4,
    "NGN": 766.0,
    "XAF": 600.0,
    "GMD": 57.7,
    "LRD": 183.0,
    "SLL": 21240.0,
    "GNF": 8660.0,
    "GNQ": 600.0,
    "KMF": 455.0,
    "MRO": 373.0,
    "MRU": 37.4,
    # International
    "EUR": 0.92,
    "GBP": 0.79,
    "JPY": 150.0,
    "CNY": 7.2,
    "INR": 83.0,
    "AUD": 1.52,
    "CAD": 1.36,
    "CHF": 0.88,
    "AED": 3.6725,
    "SAR": 3.75,
}

# Curated East African cross rates quoted by local bureaux.
_CROSS_FALLBACK_RATES: Dict[str, float] = {
    "KES-UGX": 28.7,
    "KES-TZS": 17.8,
    "KES-RWF": 9.8,
    "TZS-KES": 0.056,
    "TZS-UGX": 1.61,
    "TZS-RWF": 0.55,
    "RWF-KES": 0.102,
    "RWF-UGX": 2.94,
    "RWF-TZS": 1.82,
}


def fallback_rate_table(base_currency: str = "USD", *, source: str = SOURCE_FALLBACK) -> RateTable:
    """Build the offline table quoted against ``base_currency``.

    Bases missing from the reference set keep the USD-relative table (the
    returned ``base_currency`` says which one is in effect).
    """
    base = base_currency.upper()
    base_per_usd = _USD_FALLBACK_RATES.get(base)
    if base_per_usd is None:
        logger.warning(
            "no fallback rates for base %s, serving %s-relative table",
            base,
            FALLBACK_REFERENCE_CURRENCY,
            extra={"event": "fallback_rebase_skipped", "base_currency": base},
        )
        base = FALLBACK_REFERENCE_CURRENCY
        base_per_usd = 1.0
    rates: Dict[str, float] = {
        pair_key(base, code): per_usd / base_per_usd
        for code, per_usd in _USD_FALLBACK_RATES.items()
    }
    for key, rate in _CROSS_FALLBACK_RATES.items():
        rates.setdefault(key, rate)
    return RateTable(rates=rates, base_currency=base, source=source)


class ProviderResponseError(ValueError):
    """The provider answered, but not with a usable rate list."""


def parse_latest_response(base_currency: str, data: Mapping[str, Any]) -> RateTable:
    """Flatten a ``/latest/{base}`` body into ``BASE-XXX`` keys.

    Expected shape: ``{"result": "success", "conversion_rates": {"KES": 130.2, ...}}``.
    Anything else raises ProviderResponseError.
    """
    if data.get("result") != "success":
        raise ProviderResponseError(
            f"provider reported {data.get('error-type') or data.get('result') or 'unknown error'}"
        )
    conversion_rates = data.get("conversion_rates")
    if not isinstance(conversion_rates, Mapping) or not conversion_rates:
        raise ProviderResponseError("conversion_rates missing or empty")
    rates: Dict[str, float] = {}
    for code, value in conversion_rates.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ProviderResponseError(f"non-numeric rate for {code!r}")
        if not math.isfinite(value) or value <= 0:
            raise ProviderResponseError(f"invalid rate {value!r} for {code!r}")
        rates[pair_key(base_currency, str(code).upper())] = float(value)
    return RateTable(rates=rates, base_currency=base_currency, source=SOURCE_PROVIDER)


class StaticRateFetcher(RateFetcher):
    def fetch(self, base_currency: str) -> RateTable:  # type: ignore[override]
        return fallback_rate_table(base_currency, source=SOURCE_STATIC)


class ExternalHTTPRateFetcher(RateFetcher):
    """exchangerate-api.com v6 client; degrades to the fallback table on any failure."""

    def __init__(
        self,
        base_url: str = "https://v6.exchangerate-api.com/v6",
        api_key: Optional[str] = None,
        timeout: float = 5.0,
        retries: int = 2,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._retries = retries

    def url_for(self, base_currency: str) -> str:
        if self._api_key:
            return f"{self._base_url}/{self._api_key}/latest/{base_currency}"
        return f"{self._base_url}/latest/{base_currency}"

    def fetch(self, base_currency: str) -> RateTable:  # type: ignore[override]
        base = base_currency.upper()
        try:
            data = get_json(self.url_for(base), timeout=self._timeout, retries=self._retries)
            table = parse_latest_response(base, data)
        except (HttpError, ProviderResponseError) as e:
            logger.warning(
                "rate fetch for %s failed, using fallback table: %s",
                base,
                e,
                extra={"event": "rate_fetch_failed", "base_currency": base},
            )
            return fallback_rate_table(base)
        except Exception:
            logger.exception(
                "unexpected error fetching rates for %s, using fallback table",
                base,
                extra={"event": "rate_fetch_failed", "base_currency": base},
            )
            return fallback_rate_table(base)
        logger.info(
            "fetched %d rates for base %s",
            len(table),
            base,
            extra={"event": "rate_fetch_ok", "base_currency": base, "entries": len(table)},
        )
        return table


def _external_http(settings: Optional["Settings"]) -> RateFetcher:
    if settings is None:
        return ExternalHTTPRateFetcher()
    return ExternalHTTPRateFetcher(
        base_url=settings.exchange_api_base_url,
        api_key=settings.exchange_api_key,
        timeout=settings.http_timeout_seconds,
        retries=settings.http_retries,
    )


_FETCHER_REGISTRY: Dict[str, Callable[[Optional["Settings"]], RateFetcher]] = {
    "external-http": _external_http,
    "static": lambda _settings: StaticRateFetcher(),
}


def make_rate_fetcher(kind: str, settings: Optional["Settings"] = None) -> RateFetcher:
    factory = _FETCHER_REGISTRY.get(kind)
    if not factory:
        raise ValueError(f"Unknown rate provider kind '{kind}'")
    return factory(settings)
