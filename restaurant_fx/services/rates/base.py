from __future__ import annotations

"""Rate table value type and fetcher abstraction.

A ``RateTable`` maps directed pair keys ``"FROM-TO"`` to the number of ``TO``
units one ``FROM`` unit buys. Tables are immutable; the cache replaces them
wholesale on refresh.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

SOURCE_PROVIDER = "provider"
SOURCE_FALLBACK = "fallback"
SOURCE_STATIC = "static"


def pair_key(from_currency: str, to_currency: str) -> str:
    return f"{from_currency}-{to_currency}"


@dataclass(frozen=True)
class RateTable:
    rates: Mapping[str, float] = field(default_factory=dict)
    base_currency: str = "USD"
    source: str = SOURCE_PROVIDER

    def __post_init__(self) -> None:
        # Freeze a private copy so callers cannot mutate a published table.
        object.__setattr__(self, "rates", MappingProxyType(dict(self.rates)))

    def get(self, key: str) -> Optional[float]:
        return self.rates.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.rates

    def __len__(self) -> int:
        return len(self.rates)

    def __iter__(self) -> Iterator[str]:
        return iter(self.rates)

    @property
    def is_empty(self) -> bool:
        return not self.rates


class RateFetcher(ABC):
    """Loads every rate quoted against one base currency.

    Implementations must never raise: on any failure they return the
    fallback table instead.
    """

    @abstractmethod
    def fetch(self, base_currency: str) -> RateTable:
        raise NotImplementedError
