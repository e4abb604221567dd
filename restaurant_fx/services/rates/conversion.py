from __future__ import annotations

import copy
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

from restaurant_fx.services.money import round_to_currency
from .base import RateTable
from .resolver import RateResolver

"""Price conversion engine.

Centralizes logic for moving priced records (menu items, inventory rows) from
one currency to another:
    - Read one rate snapshot per call from the injected rate cache.
    - Resolve the pair once and reuse it for every record in a batch.
    - Apply currency precision rounding in a single place (money.round_to_currency).
    - Isolate per-record failures; a bad row is passed through and counted.

Records are treated as plain mappings and are never mutated; converted rows
are fresh dicts carrying provenance keys (original_<field>, original_currency,
converted_currency, converted_at, exchange_rate).
"""

logger = logging.getLogger("restaurant_fx.rates.conversion")


class SupportsRateTable(Protocol):
    def get_rates(self, base_currency: Optional[str] = None) -> RateTable: ...


class EntityConversionError(ValueError):
    pass


@dataclass(frozen=True)
class MonetaryField:
    """One monetary column of a record, optionally known under legacy names."""

    name: str
    aliases: Tuple[str, ...] = ()
    required: bool = True

    def locate(self, entity: Mapping[str, Any]) -> Optional[str]:
        for key in (self.name, *self.aliases):
            if entity.get(key) is not None:
                return key
        return None


MENU_ITEM_FIELDS: Tuple[MonetaryField, ...] = (MonetaryField("price"),)
INVENTORY_FIELDS: Tuple[MonetaryField, ...] = (
    MonetaryField("cost", aliases=("unit_cost",)),
    MonetaryField("price", aliases=("selling_price",), required=False),
)


@dataclass
class ConversionOutcome:
    converted_entities: List[Any]
    converted_count: int
    failed_count: int
    success: bool
    message: str
    from_currency: str
    to_currency: str
    exchange_rate: Optional[float] = None
    failed_ids: List[Any] = field(default_factory=list)


def _as_amount(value: Any, label: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise EntityConversionError(f"{label} is not numeric: {value!r}")
    amount = float(value)
    if not math.isfinite(amount):
        raise EntityConversionError(f"{label} is not finite: {value!r}")
    return amount


def _checked_product(amount: float, rate: float, label: str) -> float:
    product = amount * rate
    if not math.isfinite(product):
        raise EntityConversionError(f"{label} overflows when converted: {amount!r} x {rate!r}")
    return product


def _entity_id(entity: Any) -> Any:
    return entity.get("id") if isinstance(entity, Mapping) else None


def _summary(converted: int, failed: int) -> str:
    message = f"Converted {converted} items"
    if failed:
        message += f" ({failed} failed)"
    return message


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CurrencyConverter:
    def __init__(
        self,
        rate_cache: SupportsRateTable,
        resolver: Optional[RateResolver] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._rate_cache = rate_cache
        self._resolver = resolver or RateResolver()
        self._clock = clock

    # Single amounts --------------------------------------------
    def current_rates(self) -> RateTable:
        """One snapshot of the cache, for callers converting several things at once."""
        return self._rate_cache.get_rates()

    def get_exchange_rate(
        self, from_currency: str, to_currency: str, rates: Optional[RateTable] = None
    ) -> float:
        table = rates if rates is not None else self.current_rates()
        return self._resolver.resolve(from_currency, to_currency, table)

    def apply_rate(self, amount: float, rate: float, to_currency: str) -> float:
        value = _as_amount(amount, "amount")
        return round_to_currency(_checked_product(value, rate, "amount"), to_currency)

    def convert_amount(
        self, amount: float, from_currency: str, to_currency: str, rates: Optional[RateTable] = None
    ) -> float:
        value = _as_amount(amount, "amount")
        rate = self.get_exchange_rate(from_currency, to_currency, rates)
        return self.apply_rate(value, rate, to_currency)

    # Batches ---------------------------------------------------
    def convert_batch(
        self,
        entities: Iterable[Any],
        from_currency: str,
        to_currency: str,
        fields: Sequence[MonetaryField] = MENU_ITEM_FIELDS,
        rates: Optional[RateTable] = None,
    ) -> ConversionOutcome:
        src = from_currency.strip().upper()
        dst = to_currency.strip().upper()
        items = list(entities)
        logger.info("converting %d items from %s to %s", len(items), src, dst)

        try:
            rate = self.get_exchange_rate(src, dst, rates)
        except Exception as e:
            logger.exception(
                "rate lookup failed, batch left unconverted",
                extra={"event": "batch_conversion_failed", "from_currency": src, "to_currency": dst},
            )
            return ConversionOutcome(
                converted_entities=[copy.copy(item) for item in items],
                converted_count=0,
                failed_count=len(items),
                success=False,
                message=f"Conversion failed: {e}",
                from_currency=src,
                to_currency=dst,
                failed_ids=[_entity_id(item) for item in items],
            )

        converted_at = self._clock().isoformat()
        converted: List[Any] = []
        failed_ids: List[Any] = []
        for entity in items:
            try:
                converted.append(self._convert_entity(entity, fields, src, dst, rate, converted_at))
            except (EntityConversionError, TypeError, ArithmeticError) as e:
                logger.warning(
                    "failed to convert item %s: %s",
                    _entity_id(entity),
                    e,
                    extra={"event": "item_conversion_failed", "entity_id": _entity_id(entity)},
                )
                failed_ids.append(_entity_id(entity))
                converted.append(copy.copy(entity))

        failed_count = len(failed_ids)
        converted_count = len(items) - failed_count
        logger.info(
            "batch conversion %s->%s done",
            src,
            dst,
            extra={"event": "batch_converted", "converted": converted_count, "failed": failed_count},
        )
        return ConversionOutcome(
            converted_entities=converted,
            converted_count=converted_count,
            failed_count=failed_count,
            success=failed_count == 0,
            message=_summary(converted_count, failed_count),
            from_currency=src,
            to_currency=dst,
            exchange_rate=rate,
            failed_ids=failed_ids,
        )

    def convert_menu_items(
        self, items: Iterable[Any], from_currency: str, to_currency: str, rates: Optional[RateTable] = None
    ) -> ConversionOutcome:
        return self.convert_batch(items, from_currency, to_currency, MENU_ITEM_FIELDS, rates)

    def convert_inventory_items(
        self, items: Iterable[Any], from_currency: str, to_currency: str, rates: Optional[RateTable] = None
    ) -> ConversionOutcome:
        return self.convert_batch(items, from_currency, to_currency, INVENTORY_FIELDS, rates)

    @staticmethod
    def _convert_entity(
        entity: Any,
        fields: Sequence[MonetaryField],
        src: str,
        dst: str,
        rate: float,
        converted_at: str,
    ) -> Dict[str, Any]:
        if not isinstance(entity, Mapping):
            raise EntityConversionError(f"record is not a mapping: {type(entity).__name__}")
        updated = dict(entity)
        for monetary in fields:
            key = monetary.locate(entity)
            if key is None:
                if monetary.required:
                    raise EntityConversionError(f"missing monetary field '{monetary.name}'")
                continue
            amount = _as_amount(entity[key], f"field '{key}'")
            # Same-currency batches keep values untouched; only provenance is stamped.
            if src != dst:
                updated[key] = round_to_currency(_checked_product(amount, rate, f"field '{key}'"), dst)
            updated[f"original_{key}"] = entity[key]
        updated.update(
            original_currency=src,
            converted_currency=dst,
            converted_at=converted_at,
            exchange_rate=rate,
        )
        return updated


def format_conversion_result(outcome: ConversionOutcome) -> str:
    return f"{'✅' if outcome.success else '❌'} {outcome.message}"
