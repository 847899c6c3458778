"""
Curve nodes.

A node binds an instrument template to a market quote key. Given a
valuation date and reference data it produces:
1. its reference (pillar) date on the curve
2. a resolved instrument priced at the quoted rate
3. a seed rate for the solver's initial guess

Resolution is a pure function of the node, the quote, the valuation date
and the reference data; it never looks at other nodes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..conventions import ReferenceData, year_fraction
from ..dates import DateUtils, generate_schedule
from ..indices import (
    CdsConvention,
    FixedIborSwapConvention,
    FixedOvernightSwapConvention,
    IborIndex,
    TermDepositConvention,
)
from ..market_data import MarketQuotes, QuoteKey
from .curve import NodeMetadata
from .instruments import (
    AccrualPeriod,
    ResolvedCds,
    ResolvedFixedIborSwap,
    ResolvedFixedOvernightSwap,
    ResolvedFra,
    ResolvedIborFixingDeposit,
    ResolvedTermDeposit,
)


class CurveNode(ABC):
    """Abstract base for curve nodes."""

    quote_key: QuoteKey
    label: str

    @abstractmethod
    def date(self, valuation_date: date, ref_data: ReferenceData) -> date:
        """Reference date of the node on the curve."""

    @abstractmethod
    def resolve(self, valuation_date: date, quotes: MarketQuotes, ref_data: ReferenceData):
        """
        Resolve the template into a priceable instrument at the quoted rate.

        Raises:
            MissingQuoteError: If the node's quote key is not in `quotes`
        """

    @property
    def tenor(self) -> Optional[str]:
        return None

    def metadata(self, valuation_date: date, ref_data: ReferenceData) -> NodeMetadata:
        return NodeMetadata(self.date(valuation_date, ref_data), self.label, self.tenor)

    def quote(self, quotes: MarketQuotes) -> float:
        return quotes.value(self.quote_key, self.label)

    def initial_guess(self, quotes: MarketQuotes) -> float:
        """Seed rate for the solver; the quote itself for rate instruments."""
        return self.quote(quotes)

    def _set_default_label(self, label: str) -> None:
        if not self.label:
            object.__setattr__(self, "label", label)
        if isinstance(self.quote_key, str):
            object.__setattr__(self, "quote_key", QuoteKey.of(self.quote_key))


def _fixed_periods(schedule, day_count) -> tuple:
    return tuple(
        AccrualPeriod(p.start, p.end, p.payment, year_fraction(p.start, p.end, day_count))
        for p in schedule
    )


@dataclass(frozen=True)
class TermDepositCurveNode(CurveNode):
    """Term deposit from spot over `tenor`."""
    tenor_period: str
    convention: TermDepositConvention
    quote_key: QuoteKey
    label: str = ""

    def __post_init__(self):
        DateUtils.parse_tenor(self.tenor_period)
        self._set_default_label(f"Deposit{self.tenor_period.upper()}")

    @property
    def tenor(self) -> Optional[str]:
        return self.tenor_period

    def _dates(self, valuation_date: date, ref_data: ReferenceData):
        conv = self.convention
        cal = ref_data.calendar(conv.calendar)
        start = cal.shift(valuation_date, conv.spot_lag)
        end = cal.adjust(DateUtils.add_tenor(start, self.tenor_period), conv.business_day)
        return start, end

    def date(self, valuation_date: date, ref_data: ReferenceData) -> date:
        return self._dates(valuation_date, ref_data)[1]

    def resolve(self, valuation_date: date, quotes: MarketQuotes,
                ref_data: ReferenceData) -> ResolvedTermDeposit:
        rate = self.quote(quotes)
        start, end = self._dates(valuation_date, ref_data)
        return ResolvedTermDeposit(
            currency=self.convention.currency,
            start=start,
            end=end,
            year_fraction=year_fraction(start, end, self.convention.day_count),
            rate=rate,
        )


@dataclass(frozen=True)
class IborFixingDepositCurveNode(CurveNode):
    """Ibor fixing at the valuation date, pinning the index forward at spot."""
    index: IborIndex
    quote_key: QuoteKey
    label: str = ""

    def __post_init__(self):
        self._set_default_label(f"Fixing-{self.index.name}")

    @property
    def tenor(self) -> Optional[str]:
        return self.index.tenor

    def _dates(self, valuation_date: date, ref_data: ReferenceData):
        start = self.index.effective_date(valuation_date, ref_data)
        end = self.index.maturity_date(start, ref_data)
        fixing = self.index.fixing_date(start, ref_data)
        return fixing, start, end

    def date(self, valuation_date: date, ref_data: ReferenceData) -> date:
        return self._dates(valuation_date, ref_data)[2]

    def resolve(self, valuation_date: date, quotes: MarketQuotes,
                ref_data: ReferenceData) -> ResolvedIborFixingDeposit:
        rate = self.quote(quotes)
        fixing, start, end = self._dates(valuation_date, ref_data)
        return ResolvedIborFixingDeposit(
            index=self.index,
            fixing_date=fixing,
            start=start,
            end=end,
            year_fraction=year_fraction(start, end, self.index.day_count),
            rate=rate,
        )


@dataclass(frozen=True)
class FraCurveNode(CurveNode):
    """
    FRA starting `period_to_start` after spot on an Ibor index.

    A 3M period to start on a 3M index is the "3x6" FRA.
    """
    period_to_start: str
    index: IborIndex
    quote_key: QuoteKey
    label: str = ""

    def __post_init__(self):
        start_months = DateUtils.tenor_months(self.period_to_start)
        end_months = start_months + DateUtils.tenor_months(self.index.tenor)
        self._set_default_label(f"FRA{start_months}Mx{end_months}M")

    def _dates(self, valuation_date: date, ref_data: ReferenceData):
        index = self.index
        cal = ref_data.calendar(index.calendar)
        spot = index.effective_date(valuation_date, ref_data)
        start = cal.adjust(DateUtils.add_tenor(spot, self.period_to_start), index.business_day)
        end = index.maturity_date(start, ref_data)
        fixing = index.fixing_date(start, ref_data)
        return fixing, start, end

    def date(self, valuation_date: date, ref_data: ReferenceData) -> date:
        return self._dates(valuation_date, ref_data)[2]

    def resolve(self, valuation_date: date, quotes: MarketQuotes,
                ref_data: ReferenceData) -> ResolvedFra:
        rate = self.quote(quotes)
        fixing, start, end = self._dates(valuation_date, ref_data)
        return ResolvedFra(
            index=self.index,
            fixing_date=fixing,
            start=start,
            end=end,
            year_fraction=year_fraction(start, end, self.index.day_count),
            fixed_rate=rate,
        )


@dataclass(frozen=True)
class FixedOvernightSwapCurveNode(CurveNode):
    """Par OIS of length `tenor` starting at spot (plus `period_to_start`)."""
    tenor_period: str
    convention: FixedOvernightSwapConvention
    quote_key: QuoteKey
    label: str = ""
    period_to_start: str = "0D"

    def __post_init__(self):
        DateUtils.parse_tenor(self.tenor_period)
        self._set_default_label(f"OIS{self.tenor_period.upper()}")

    @property
    def tenor(self) -> Optional[str]:
        return self.tenor_period

    def _schedule(self, valuation_date: date, ref_data: ReferenceData):
        conv = self.convention
        cal = ref_data.calendar(conv.index.calendar)
        spot = cal.shift(valuation_date, conv.spot_lag)
        start = DateUtils.add_tenor(spot, self.period_to_start)
        end = DateUtils.add_tenor(start, self.tenor_period)
        return generate_schedule(start, end, conv.frequency_months, conv.business_day,
                                 cal, conv.payment_lag)

    def date(self, valuation_date: date, ref_data: ReferenceData) -> date:
        return self._schedule(valuation_date, ref_data)[-1].end

    def resolve(self, valuation_date: date, quotes: MarketQuotes,
                ref_data: ReferenceData) -> ResolvedFixedOvernightSwap:
        rate = self.quote(quotes)
        schedule = self._schedule(valuation_date, ref_data)
        conv = self.convention
        return ResolvedFixedOvernightSwap(
            index=conv.index,
            fixed_rate=rate,
            fixed_periods=_fixed_periods(schedule, conv.fixed_day_count),
            float_periods=_fixed_periods(schedule, conv.index.day_count),
        )


@dataclass(frozen=True)
class FixedIborSwapCurveNode(CurveNode):
    """Par fixed vs Ibor swap of length `tenor` starting at spot (plus `period_to_start`)."""
    tenor_period: str
    convention: FixedIborSwapConvention
    quote_key: QuoteKey
    label: str = ""
    period_to_start: str = "0D"

    def __post_init__(self):
        DateUtils.parse_tenor(self.tenor_period)
        self._set_default_label(f"IRS{self.tenor_period.upper()}")

    @property
    def tenor(self) -> Optional[str]:
        return self.tenor_period

    def _bounds(self, valuation_date: date, ref_data: ReferenceData):
        conv = self.convention
        cal = ref_data.calendar(conv.index.calendar)
        spot = cal.shift(valuation_date, conv.spot_lag)
        start = DateUtils.add_tenor(spot, self.period_to_start)
        end = DateUtils.add_tenor(start, self.tenor_period)
        return cal, start, end

    def date(self, valuation_date: date, ref_data: ReferenceData) -> date:
        cal, _, end = self._bounds(valuation_date, ref_data)
        return cal.adjust(end, self.convention.business_day)

    def resolve(self, valuation_date: date, quotes: MarketQuotes,
                ref_data: ReferenceData) -> ResolvedFixedIborSwap:
        rate = self.quote(quotes)
        conv = self.convention
        index = conv.index
        cal, start, end = self._bounds(valuation_date, ref_data)
        fixed = generate_schedule(start, end, conv.fixed_frequency_months, conv.business_day, cal)
        floating = generate_schedule(start, end, conv.float_frequency_months, conv.business_day, cal)
        float_periods = tuple(
            AccrualPeriod(
                p.start, p.end, p.payment,
                year_fraction(p.start, p.end, index.day_count),
                index.fixing_date(p.start, ref_data),
            )
            for p in floating
        )
        return ResolvedFixedIborSwap(
            index=index,
            fixed_rate=rate,
            fixed_periods=_fixed_periods(fixed, conv.fixed_day_count),
            float_periods=float_periods,
        )


@dataclass(frozen=True)
class CdsCurveNode(CurveNode):
    """
    Par CDS on a reference entity, quoted as a running spread.

    Protection starts `spot_lag` business days after the valuation date
    and runs for `tenor`; premiums are paid on the convention frequency.
    """
    tenor_period: str
    entity: str
    convention: CdsConvention
    quote_key: QuoteKey
    label: str = ""

    def __post_init__(self):
        DateUtils.parse_tenor(self.tenor_period)
        self._set_default_label(f"CDS-{self.entity}-{self.tenor_period.upper()}")

    @property
    def tenor(self) -> Optional[str]:
        return self.tenor_period

    def _schedule(self, valuation_date: date, ref_data: ReferenceData):
        conv = self.convention
        cal = ref_data.calendar(conv.calendar)
        start = cal.shift(valuation_date, conv.spot_lag)
        end = DateUtils.add_tenor(start, self.tenor_period)
        return start, generate_schedule(start, end, conv.frequency_months, conv.business_day, cal)

    def date(self, valuation_date: date, ref_data: ReferenceData) -> date:
        return self._schedule(valuation_date, ref_data)[1][-1].end

    def resolve(self, valuation_date: date, quotes: MarketQuotes,
                ref_data: ReferenceData) -> ResolvedCds:
        spread = self.quote(quotes)
        start, schedule = self._schedule(valuation_date, ref_data)
        conv = self.convention
        return ResolvedCds(
            entity=self.entity,
            currency=conv.currency,
            protection_start=start,
            premium_periods=_fixed_periods(schedule, conv.day_count),
            recovery_rate=conv.recovery_rate,
            spread=spread,
        )

    def initial_guess(self, quotes: MarketQuotes) -> float:
        # Credit triangle: hazard rate ~ spread / loss given default
        return self.quote(quotes) / (1.0 - self.convention.recovery_rate)


__all__ = [
    "CurveNode",
    "TermDepositCurveNode",
    "IborFixingDepositCurveNode",
    "FraCurveNode",
    "FixedOvernightSwapCurveNode",
    "FixedIborSwapCurveNode",
    "CdsCurveNode",
]
