"""Currency metadata and API payload models for the Restaurant FX service."""

from .currencies import (
    CURRENCIES,
    Currency,
    get_currency,
    decimal_digits_for,
)  # re-export
from .conversion import (
    BatchConversionRequest,
    BatchConversionResponse,
    RateQuote,
)

__all__ = [
    "CURRENCIES",
    "Currency",
    "get_currency",
    "decimal_digits_for",
    "BatchConversionRequest",
    "BatchConversionResponse",
    "RateQuote",
]
