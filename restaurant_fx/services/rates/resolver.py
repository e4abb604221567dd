from __future__ import annotations

import logging
from typing import Callable, Optional

from .base import RateTable, pair_key

logger = logging.getLogger("restaurant_fx.rates.resolver")

UnresolvedHook = Callable[[str, str], None]


def _positive(value: Optional[float]) -> Optional[float]:
    if value is None or value <= 0:
        return None
    return value


class RateResolver:
    """Find the rate for any currency pair in a base-relative table.

    Lookup order: identity, direct key, inverse key, triangulation through
    the table's base currency. A pair none of those reach resolves to 1.0;
    that degradation is logged and reported to ``on_unresolved`` so silent
    1:1 conversions can be monitored.
    """

    def __init__(self, on_unresolved: Optional[UnresolvedHook] = None):
        self._on_unresolved = on_unresolved

    def resolve(self, from_currency: str, to_currency: str, table: RateTable) -> float:
        src = from_currency.strip().upper()
        dst = to_currency.strip().upper()
        if src == dst:
            return 1.0

        direct = _positive(table.get(pair_key(src, dst)))
        if direct is not None:
            return direct

        inverse = _positive(table.get(pair_key(dst, src)))
        if inverse is not None:
            return 1.0 / inverse

        base = table.base_currency
        base_to_src = _positive(table.get(pair_key(base, src)))
        base_to_dst = _positive(table.get(pair_key(base, dst)))
        if base_to_src is not None and base_to_dst is not None:
            return base_to_dst / base_to_src

        logger.warning(
            "no exchange rate found for %s to %s, falling back to 1:1",
            src,
            dst,
            extra={
                "event": "rate_unresolved",
                "from_currency": src,
                "to_currency": dst,
                "base_currency": base,
            },
        )
        if self._on_unresolved is not None:
            self._on_unresolved(src, dst)
        return 1.0


_default_resolver = RateResolver()


def resolve_rate(from_currency: str, to_currency: str, table: RateTable) -> float:
    return _default_resolver.resolve(from_currency, to_currency, table)
