from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class CurrencyOut(BaseModel):
    code: str
    name: str
    symbol: str
    country: str
    decimal_digits: int


class RateQuote(BaseModel):
    from_currency: str
    to_currency: str
    exchange_rate: float = Field(..., gt=0)
    base_currency: str
    last_update: datetime


class AmountConversion(RateQuote):
    amount: float
    converted_amount: float
    formatted: str


class BatchConversionRequest(BaseModel):
    from_currency: str = Field(..., min_length=3, max_length=3)
    to_currency: str = Field(..., min_length=3, max_length=3)
    conversion_type: Literal["menu", "inventory", "all"] = "all"
    menu_items: List[Dict[str, Any]] = Field(default_factory=list)
    inventory_items: List[Dict[str, Any]] = Field(default_factory=list)

    @field_validator("from_currency", "to_currency")
    @classmethod
    def upper_code(cls, v: str) -> str:
        return v.strip().upper()


class CollectionResult(BaseModel):
    success: bool = True
    converted_count: int = 0
    failed_count: int = 0
    message: str = "Converted 0 items"
    items: List[Any] = Field(default_factory=list)
    failed_ids: List[Any] = Field(default_factory=list)


class BatchConversionResponse(BaseModel):
    success: bool
    message: str
    menu_items: Optional[CollectionResult] = None
    inventory_items: Optional[CollectionResult] = None
    exchange_rate: float
    conversion_timestamp: datetime


class RefreshResponse(BaseModel):
    base_currency: str
    source: str
    entries: int
    refreshed_at: datetime
