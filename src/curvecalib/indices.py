"""
Rate indices and instrument conventions.

Conventions are plain immutable containers, in the same spirit as the
per-market factory conventions: a standard set is defined as module
constants and callers may build their own.
"""

from dataclasses import dataclass
from datetime import date
from typing import Union

from .conventions import BusinessDayConvention, DayCount, ReferenceData
from .dates import DateUtils


@dataclass(frozen=True)
class OvernightIndex:
    """
    Overnight rate index (EONIA, ESTR, SOFR).

    Attributes:
        name: Index name
        currency: Currency code
        day_count: Accrual day count
        calendar: Fixing calendar name
    """
    name: str
    currency: str
    day_count: DayCount = DayCount.ACT_360
    calendar: str = "WEEKENDS"

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class IborIndex:
    """
    Term rate index (EURIBOR, LIBOR).

    Attributes:
        name: Index name
        currency: Currency code
        tenor: Index tenor (e.g. "3M")
        day_count: Accrual day count
        spot_lag: Business days from fixing to effective date
        business_day: Adjustment of the maturity date
        calendar: Fixing calendar name
    """
    name: str
    currency: str
    tenor: str
    day_count: DayCount = DayCount.ACT_360
    spot_lag: int = 2
    business_day: BusinessDayConvention = BusinessDayConvention.MODIFIED_FOLLOWING
    calendar: str = "WEEKENDS"

    def effective_date(self, fixing_date: date, ref_data: ReferenceData) -> date:
        return ref_data.calendar(self.calendar).shift(fixing_date, self.spot_lag)

    def maturity_date(self, effective_date: date, ref_data: ReferenceData) -> date:
        cal = ref_data.calendar(self.calendar)
        return cal.adjust(DateUtils.add_tenor(effective_date, self.tenor), self.business_day)

    def fixing_date(self, effective_date: date, ref_data: ReferenceData) -> date:
        return ref_data.calendar(self.calendar).shift(effective_date, -self.spot_lag)

    def __str__(self) -> str:
        return self.name


RateIndex = Union[OvernightIndex, IborIndex]


@dataclass(frozen=True)
class TermDepositConvention:
    """Conventions for a term deposit starting at spot."""
    name: str
    currency: str
    day_count: DayCount = DayCount.ACT_360
    spot_lag: int = 2
    business_day: BusinessDayConvention = BusinessDayConvention.MODIFIED_FOLLOWING
    calendar: str = "WEEKENDS"


@dataclass(frozen=True)
class FixedOvernightSwapConvention:
    """
    Conventions for a fixed vs compounded overnight swap (OIS).

    Attributes:
        name: Convention name
        index: Overnight index of the floating leg
        fixed_day_count: Day count of the fixed leg
        frequency_months: Payment frequency of both legs, 0 for a single
            term payment
        spot_lag: Business days from trade to start
        payment_lag: Business days from period end to payment
        business_day: Adjustment of schedule dates
    """
    name: str
    index: OvernightIndex
    fixed_day_count: DayCount = DayCount.ACT_360
    frequency_months: int = 12
    spot_lag: int = 2
    payment_lag: int = 0
    business_day: BusinessDayConvention = BusinessDayConvention.MODIFIED_FOLLOWING

    @property
    def currency(self) -> str:
        return self.index.currency


@dataclass(frozen=True)
class FixedIborSwapConvention:
    """
    Conventions for a fixed vs Ibor swap (IRS).

    The floating leg pays at the index tenor.
    """
    name: str
    index: IborIndex
    fixed_day_count: DayCount = DayCount.THIRTY_360
    fixed_frequency_months: int = 12
    spot_lag: int = 2
    business_day: BusinessDayConvention = BusinessDayConvention.MODIFIED_FOLLOWING

    @property
    def currency(self) -> str:
        return self.index.currency

    @property
    def float_frequency_months(self) -> int:
        return DateUtils.tenor_months(self.index.tenor)


@dataclass(frozen=True)
class CdsConvention:
    """
    Conventions for a single-name credit default swap.

    Attributes:
        name: Convention name
        currency: Premium and protection currency
        day_count: Premium accrual day count
        frequency_months: Premium payment frequency
        recovery_rate: Assumed recovery used to value the protection leg
        spot_lag: Business days from trade to protection start
        business_day: Adjustment of premium dates
        calendar: Holiday calendar name
    """
    name: str
    currency: str
    day_count: DayCount = DayCount.ACT_360
    frequency_months: int = 3
    recovery_rate: float = 0.4
    spot_lag: int = 1
    business_day: BusinessDayConvention = BusinessDayConvention.FOLLOWING
    calendar: str = "WEEKENDS"

    def __post_init__(self):
        if not 0.0 <= self.recovery_rate < 1.0:
            raise ValueError(f"recovery_rate must be in [0, 1), got {self.recovery_rate}")


# Standard indices
EUR_EONIA = OvernightIndex("EUR-EONIA", "EUR", DayCount.ACT_360, "EUTA")
EUR_ESTR = OvernightIndex("EUR-ESTR", "EUR", DayCount.ACT_360, "EUTA")
USD_SOFR = OvernightIndex("USD-SOFR", "USD", DayCount.ACT_360, "USGS")
EUR_EURIBOR_3M = IborIndex("EUR-EURIBOR-3M", "EUR", "3M", DayCount.ACT_360, 2,
                           BusinessDayConvention.MODIFIED_FOLLOWING, "EUTA")
EUR_EURIBOR_6M = IborIndex("EUR-EURIBOR-6M", "EUR", "6M", DayCount.ACT_360, 2,
                           BusinessDayConvention.MODIFIED_FOLLOWING, "EUTA")

# Standard conventions
EUR_DEPOSIT_T2 = TermDepositConvention("EUR-Deposit-T2", "EUR", DayCount.ACT_360, 2,
                                       BusinessDayConvention.MODIFIED_FOLLOWING, "EUTA")
EUR_FIXED_1Y_EONIA_OIS = FixedOvernightSwapConvention(
    "EUR-FIXED-1Y-EONIA-OIS", EUR_EONIA, DayCount.ACT_360, 12, 2, 1)
USD_FIXED_1Y_SOFR_OIS = FixedOvernightSwapConvention(
    "USD-FIXED-1Y-SOFR-OIS", USD_SOFR, DayCount.ACT_360, 12, 2, 2)
EUR_FIXED_1Y_EURIBOR_3M = FixedIborSwapConvention(
    "EUR-FIXED-1Y-EURIBOR-3M", EUR_EURIBOR_3M, DayCount.THIRTY_360, 12, 2)
EUR_FIXED_1Y_EURIBOR_6M = FixedIborSwapConvention(
    "EUR-FIXED-1Y-EURIBOR-6M", EUR_EURIBOR_6M, DayCount.THIRTY_360, 12, 2)
EUR_STANDARD_CDS = CdsConvention("EUR-STANDARD-CDS", "EUR", calendar="EUTA")
USD_STANDARD_CDS = CdsConvention("USD-STANDARD-CDS", "USD", calendar="USNY")


__all__ = [
    "OvernightIndex",
    "IborIndex",
    "RateIndex",
    "TermDepositConvention",
    "FixedOvernightSwapConvention",
    "FixedIborSwapConvention",
    "CdsConvention",
    "EUR_EONIA",
    "EUR_ESTR",
    "USD_SOFR",
    "EUR_EURIBOR_3M",
    "EUR_EURIBOR_6M",
    "EUR_DEPOSIT_T2",
    "EUR_FIXED_1Y_EONIA_OIS",
    "USD_FIXED_1Y_SOFR_OIS",
    "EUR_FIXED_1Y_EURIBOR_3M",
    "EUR_FIXED_1Y_EURIBOR_6M",
    "EUR_STANDARD_CDS",
    "USD_STANDARD_CDS",
]
