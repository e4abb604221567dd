from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from restaurant_fx.models.conversion import (
    AmountConversion,
    BatchConversionRequest,
    BatchConversionResponse,
    CollectionResult,
    CurrencyOut,
    RateQuote,
    RefreshResponse,
)
from restaurant_fx.models.currencies import currencies_by_region
from restaurant_fx.services.money import format_amount
from restaurant_fx.services.rates.cache_service import (
    ExchangeRateCache,
    get_rate_cache_service,
)
from restaurant_fx.services.rates.conversion import ConversionOutcome, CurrencyConverter

"""Currency router.

Endpoints:
    - GET  /currency/currencies        -> supported currencies grouped by region
    - GET  /currency/rate              -> exchange rate for a pair
    - GET  /currency/convert           -> convert a single amount
    - POST /currency/convert           -> convert menu / inventory collections
    - POST /currency/rates/refresh     -> force a rate table refresh

Handlers are plain ``def`` so FastAPI runs them in its threadpool; a stale
cache refresh blocks on network I/O. Persisting converted rows is the
caller's job; collections come in with the request and go back converted.
"""

logger = logging.getLogger("restaurant_fx.routers.currency")

router = APIRouter(prefix="/currency", tags=["currency"])


def get_cache_service() -> ExchangeRateCache:
    return get_rate_cache_service()


def get_converter(cache: ExchangeRateCache = Depends(get_cache_service)) -> CurrencyConverter:
    return CurrencyConverter(cache)


def _collection_result(outcome: ConversionOutcome) -> CollectionResult:
    return CollectionResult(
        success=outcome.success,
        converted_count=outcome.converted_count,
        failed_count=outcome.failed_count,
        message=outcome.message,
        items=outcome.converted_entities,
        failed_ids=outcome.failed_ids,
    )


@router.get("/currencies", summary="List supported currencies by region")
def list_supported_currencies() -> Dict[str, List[CurrencyOut]]:
    return {
        region: [CurrencyOut(**asdict(c)) for c in currencies]
        for region, currencies in currencies_by_region().items()
    }


@router.get("/rate", response_model=RateQuote, summary="Exchange rate between two currencies")
def get_rate(
    from_currency: str = Query(..., alias="from", min_length=1),
    to_currency: str = Query(..., alias="to", min_length=1),
    cache: ExchangeRateCache = Depends(get_cache_service),
    converter: CurrencyConverter = Depends(get_converter),
):
    rate = converter.get_exchange_rate(from_currency, to_currency)
    return RateQuote(
        from_currency=from_currency.upper(),
        to_currency=to_currency.upper(),
        exchange_rate=rate,
        base_currency=cache.base_currency,
        last_update=cache.last_refreshed_at,
    )


@router.get("/convert", response_model=AmountConversion, summary="Convert a single amount")
def convert_amount(
    from_currency: str = Query(..., alias="from", min_length=1),
    to_currency: str = Query(..., alias="to", min_length=1),
    amount: float = Query(...),
    cache: ExchangeRateCache = Depends(get_cache_service),
    converter: CurrencyConverter = Depends(get_converter),
):
    rates = converter.current_rates()
    rate = converter.get_exchange_rate(from_currency, to_currency, rates)
    try:
        converted = converter.apply_rate(amount, rate, to_currency)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return AmountConversion(
        from_currency=from_currency.upper(),
        to_currency=to_currency.upper(),
        exchange_rate=rate,
        base_currency=rates.base_currency,
        last_update=cache.last_refreshed_at,
        amount=amount,
        converted_amount=converted,
        formatted=format_amount(converted, to_currency),
    )


@router.post("/convert", response_model=BatchConversionResponse, summary="Convert menu and inventory prices")
def convert_collections(
    payload: BatchConversionRequest,
    converter: CurrencyConverter = Depends(get_converter),
):
    if payload.from_currency == payload.to_currency:
        raise HTTPException(status_code=400, detail="Source and target currencies are the same")

    logger.info("converting prices from %s to %s (%s)", payload.from_currency, payload.to_currency, payload.conversion_type)
    # Both collections and the reported rate come from one snapshot.
    rates = converter.current_rates()
    rate = converter.get_exchange_rate(payload.from_currency, payload.to_currency, rates)
    menu: Optional[ConversionOutcome] = None
    inventory: Optional[ConversionOutcome] = None
    if payload.conversion_type in ("menu", "all"):
        menu = converter.convert_menu_items(payload.menu_items, payload.from_currency, payload.to_currency, rates)
    if payload.conversion_type in ("inventory", "all"):
        inventory = converter.convert_inventory_items(
            payload.inventory_items, payload.from_currency, payload.to_currency, rates
        )

    outcomes = [o for o in (menu, inventory) if o is not None]
    total_converted = sum(o.converted_count for o in outcomes)
    total_failed = sum(o.failed_count for o in outcomes)
    return BatchConversionResponse(
        success=all(o.success for o in outcomes),
        message=f"Currency conversion completed. {total_converted} items converted, {total_failed} failed.",
        menu_items=_collection_result(menu) if menu is not None else None,
        inventory_items=_collection_result(inventory) if inventory is not None else None,
        exchange_rate=rate,
        conversion_timestamp=datetime.now(timezone.utc),
    )


@router.post("/rates/refresh", response_model=RefreshResponse, summary="Force an exchange rate refresh")
def refresh_rates(
    base: Optional[str] = Query(None, min_length=3, max_length=3),
    cache: ExchangeRateCache = Depends(get_cache_service),
):
    table = cache.refresh(base)
    return RefreshResponse(
        base_currency=table.base_currency,
        source=table.source,
        entries=len(table),
        refreshed_at=cache.last_refreshed_at,
    )
