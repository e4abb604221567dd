"""Supported currencies and their display / precision metadata.

Static lookup table loaded at import time. Covers the African markets the
dashboard is sold into plus the major international currencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

DEFAULT_DECIMAL_DIGITS = 2


@dataclass(frozen=True)
class Currency:
    code: str
    name: str
    symbol: str
    country: str
    decimal_digits: int = DEFAULT_DECIMAL_DIGITS


_AFRICAN: List[Currency] = [
    Currency("KES", "Kenyan Shilling", "KSh", "Kenya"),
    Currency("UGX", "Ugandan Shilling", "USh", "Uganda", 0),
    Currency("TZS", "Tanzanian Shilling", "TSh", "Tanzania"),
    Currency("RWF", "Rwandan Franc", "RF", "Rwanda", 0),
    Currency("BIF", "Burundian Franc", "FBu", "Burundi", 0),
    Currency("SCR", "Seychellois Rupee", "SR", "Seychelles"),
    Currency("MUR", "Mauritian Rupee", "Rs", "Mauritius"),
    Currency("SOS", "Somali Shilling", "SSh", "Somalia", 0),
    Currency("DJF", "Djiboutian Franc", "Fdj", "Djibouti", 0),
    Currency("ETB", "Ethiopian Birr", "Br", "Ethiopia"),
    Currency("ERN", "Eritrean Nakfa", "Nfk", "Eritrea"),
    Currency("SDD", "Sudanese Pound", "LSd", "Sudan"),
    Currency("SSP", "South Sudanese Pound", "SSP", "South Sudan"),
    Currency("ZMW", "Zambian Kwacha", "ZK", "Zambia"),
    Currency("MWK", "Malawian Kwacha", "MK", "Malawi"),
    Currency("MZN", "Mozambican Metical", "MTn", "Mozambique"),
    Currency("MGA", "Malagasy Ariary", "Ar", "Madagascar"),
    Currency("CDF", "Congolese Franc", "FC", "DRC"),
    Currency("AOA", "Angolan Kwanza", "Kz", "Angola"),
    Currency("NAD", "Namibian Dollar", "N$", "Namibia"),
    Currency("BWP", "Botswana Pula", "P", "Botswana"),
    Currency("SZL", "Eswatini Lilangeni", "E", "Eswatini"),
    Currency("LSL", "Lesotho Loti", "L", "Lesotho"),
    Currency("ZAR", "South African Rand", "R", "South Africa"),
    Currency("CVE", "Cape Verdean Escudo", "$", "Cape Verde"),
    Currency("GHS", "Ghanaian Cedi", "GH₵", "Ghana"),
    Currency("NGN", "Nigerian Naira", "₦", "Nigeria"),
    Currency("XAF", "Central African CFA Franc", "FCFA", "Central Africa", 0),
    Currency("GMD", "Gambian Dalasi", "D", "Gambia"),
    Currency("LRD", "Liberian Dollar", "$", "Liberia"),
    Currency("SLL", "Sierra Leonean Leone", "Le", "Sierra Leone"),
    Currency("GNF", "Guinean Franc", "FG", "Guinea", 0),
    Currency("GNQ", "Guinea-Bissau CFA Franc", "CFA", "Guinea-Bissau", 0),
    Currency("KMF", "Comorian Franc", "CF", "Comoros", 0),
    Currency("MRO", "Mauritanian Ouguiya", "UM", "Mauritania"),
    Currency("MRU", "Mauritanian Ouguiya", "UM", "Mauritania"),
]

_INTERNATIONAL: List[Currency] = [
    Currency("USD", "US Dollar", "$", "United States"),
    Currency("EUR", "Euro", "€", "European Union"),
    Currency("GBP", "British Pound", "£", "United Kingdom"),
    Currency("JPY", "Japanese Yen", "¥", "Japan", 0),
    Currency("CNY", "Chinese Yuan", "¥", "China"),
    Currency("INR", "Indian Rupee", "₹", "India"),
    Currency("AUD", "Australian Dollar", "A$", "Australia"),
    Currency("CAD", "Canadian Dollar", "C$", "Canada"),
    Currency("CHF", "Swiss Franc", "CHF", "Switzerland"),
    Currency("AED", "UAE Dirham", "د.إ", "United Arab Emirates"),
    Currency("SAR", "Saudi Riyal", "﷼", "Saudi Arabia"),
]

CURRENCIES: Dict[str, Currency] = {c.code: c for c in (*_AFRICAN, *_INTERNATIONAL)}


def get_currency(code: str | None) -> Optional[Currency]:
    if not code:
        return None
    return CURRENCIES.get(code.strip().upper())


def decimal_digits_for(code: str | None) -> int:
    """Rounding precision for ``code``; unknown codes get two decimals."""
    currency = get_currency(code)
    return currency.decimal_digits if currency else DEFAULT_DECIMAL_DIGITS


def supported_codes() -> List[str]:
    return list(CURRENCIES)


def list_currencies() -> List[Currency]:
    return list(CURRENCIES.values())


def african_currencies() -> List[Currency]:
    return list(_AFRICAN)


def currencies_by_region() -> Dict[str, List[Currency]]:
    return {"africa": african_currencies(), "international": list(_INTERNATIONAL)}
