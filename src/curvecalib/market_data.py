"""
Market data inputs to calibration.

- QuoteKey / MarketQuotes: immutable snapshot of scalar quotes
- FixingSeries: historic index fixings keyed by date
- FxMatrix: cross-currency conversion rates

All objects are immutable once built so a snapshot can be shared by
independent calibrations running in parallel.
"""

from dataclasses import dataclass
from datetime import date
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple, Union

import pandas as pd

from .errors import MissingQuoteError


@dataclass(frozen=True, order=True)
class QuoteKey:
    """
    Opaque market data identifier.

    Attributes:
        value: Identifier within the scheme (e.g. "OIS1Y")
        scheme: Identifier namespace
    """
    value: str
    scheme: str = "CALIBRATION"

    @classmethod
    def of(cls, value: str, scheme: str = "CALIBRATION") -> "QuoteKey":
        return cls(value=value, scheme=scheme)

    def __str__(self) -> str:
        return f"{self.scheme}~{self.value}"


class MarketQuotes(Mapping):
    """
    Immutable snapshot of market quotes at a single point in time.

    Keys may be given as QuoteKey or as plain strings (converted with the
    default scheme). Lookups of absent keys raise MissingQuoteError.
    """

    def __init__(self, quotes: Optional[Mapping] = None, quote_date: Optional[date] = None):
        data: Dict[QuoteKey, float] = {}
        for key, value in (quotes or {}).items():
            data[_as_key(key)] = float(value)
        self._quotes = MappingProxyType(data)
        self.quote_date = quote_date

    @classmethod
    def of(cls, quotes: Mapping, quote_date: Optional[date] = None) -> "MarketQuotes":
        return cls(quotes, quote_date)

    @classmethod
    def empty(cls) -> "MarketQuotes":
        return cls()

    def __getitem__(self, key) -> float:
        key = _as_key(key)
        try:
            return self._quotes[key]
        except KeyError:
            raise MissingQuoteError(key) from None

    def __iter__(self) -> Iterator[QuoteKey]:
        return iter(self._quotes)

    def __len__(self) -> int:
        return len(self._quotes)

    def value(self, key, node_label: Optional[str] = None) -> float:
        """Quote for `key`, naming the requesting node when absent."""
        key = _as_key(key)
        if key not in self._quotes:
            raise MissingQuoteError(key, node_label)
        return self._quotes[key]

    def without(self, key) -> "MarketQuotes":
        """Copy of the snapshot with one key removed."""
        key = _as_key(key)
        return MarketQuotes({k: v for k, v in self._quotes.items() if k != key}, self.quote_date)

    def with_quote(self, key, value: float) -> "MarketQuotes":
        """Copy of the snapshot with one quote added or replaced."""
        data = dict(self._quotes)
        data[_as_key(key)] = float(value)
        return MarketQuotes(data, self.quote_date)

    def __repr__(self) -> str:
        return f"MarketQuotes(n={len(self._quotes)}, date={self.quote_date})"


def _as_key(key: Union[QuoteKey, str]) -> QuoteKey:
    if isinstance(key, QuoteKey):
        return key
    return QuoteKey.of(str(key))


class FixingSeries:
    """
    Immutable series of historic fixings for one index.

    Backed by a read-only pandas Series indexed by date.
    """

    def __init__(self, fixings: Optional[Union[Mapping[date, float], pd.Series]] = None):
        if fixings is None:
            series = pd.Series(dtype=float)
        elif isinstance(fixings, pd.Series):
            series = fixings.astype(float).copy()
        else:
            series = pd.Series(dict(fixings), dtype=float)
        series.index = [pd.Timestamp(d).date() for d in series.index]
        series = series.sort_index()
        if series.index.has_duplicates:
            raise ValueError("Fixing series has duplicate dates")
        self._series = series

    @classmethod
    def empty(cls) -> "FixingSeries":
        return cls()

    @classmethod
    def of(cls, fixings: Mapping[date, float]) -> "FixingSeries":
        return cls(fixings)

    def get(self, fixing_date: date) -> Optional[float]:
        if fixing_date in self._series.index:
            return float(self._series[fixing_date])
        return None

    def __contains__(self, fixing_date: date) -> bool:
        return fixing_date in self._series.index

    def __len__(self) -> int:
        return len(self._series)

    def is_empty(self) -> bool:
        return self._series.empty

    @property
    def latest(self) -> Optional[Tuple[date, float]]:
        if self._series.empty:
            return None
        return self._series.index[-1], float(self._series.iloc[-1])

    def to_series(self) -> pd.Series:
        """Copy of the underlying series."""
        return self._series.copy()

    def __repr__(self) -> str:
        return f"FixingSeries(n={len(self._series)})"


class FxMatrix:
    """
    Matrix of FX rates between currencies.

    A rate stored for (base, counter) means 1 unit of base buys `rate`
    units of counter. Inverse rates are implied, and rates between two
    currencies without a direct quote are triangulated through a currency
    quoted against both.
    """

    def __init__(self, rates: Optional[Mapping[Tuple[str, str], float]] = None):
        data: Dict[Tuple[str, str], float] = {}
        for (base, counter), rate in (rates or {}).items():
            if rate <= 0:
                raise ValueError(f"FX rate {base}/{counter} must be positive, got {rate}")
            data[(base.upper(), counter.upper())] = float(rate)
            data[(counter.upper(), base.upper())] = 1.0 / float(rate)
        self._rates = MappingProxyType(data)

    @classmethod
    def empty(cls) -> "FxMatrix":
        return cls()

    @classmethod
    def of(cls, rates: Mapping[Tuple[str, str], float]) -> "FxMatrix":
        return cls(rates)

    @property
    def currencies(self) -> Tuple[str, ...]:
        return tuple(sorted({ccy for pair in self._rates for ccy in pair}))

    def fx_rate(self, base: str, counter: str) -> float:
        """Rate converting one unit of `base` into `counter`."""
        base, counter = base.upper(), counter.upper()
        if base == counter:
            return 1.0
        direct = self._rates.get((base, counter))
        if direct is not None:
            return direct
        for via in self.currencies:
            first = self._rates.get((base, via))
            second = self._rates.get((via, counter))
            if first is not None and second is not None:
                return first * second
        raise KeyError(f"No FX rate available for {base}/{counter}")

    def convert(self, amount: float, from_ccy: str, to_ccy: str) -> float:
        return amount * self.fx_rate(from_ccy, to_ccy)

    def __repr__(self) -> str:
        return f"FxMatrix(currencies={list(self.currencies)})"


__all__ = [
    "QuoteKey",
    "MarketQuotes",
    "FixingSeries",
    "FxMatrix",
]
