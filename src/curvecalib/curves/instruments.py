"""
Resolved curve instruments.

A curve node resolves its template against a valuation date, reference
data and a quote into one of these instruments. They hold only adjusted
dates, accrual fractions and the quoted rate; pricing lives in the
calibration measures.

- ResolvedTermDeposit: Deposit from spot to maturity
- ResolvedIborFixingDeposit: Deposit whose rate is an Ibor fixing
- ResolvedFra: Forward Rate Agreement
- ResolvedFixedOvernightSwap: Fixed vs compounded overnight (OIS)
- ResolvedFixedIborSwap: Fixed vs Ibor (IRS)
- ResolvedCds: Single-name credit default swap
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

from ..indices import IborIndex, OvernightIndex


@dataclass(frozen=True)
class AccrualPeriod:
    """
    One accrual period of a leg.

    Attributes:
        start: Accrual start (adjusted)
        end: Accrual end (adjusted)
        payment: Payment date
        year_fraction: Accrual fraction on the leg's day count
        fixing_date: Ibor fixing date, None for fixed and overnight periods
    """
    start: date
    end: date
    payment: date
    year_fraction: float
    fixing_date: Optional[date] = None


@dataclass(frozen=True)
class ResolvedTermDeposit:
    """
    Money market deposit.

    Simple interest instrument: the depositor receives (1 + R*tau) at maturity.
    Par rate: R = (DF(start)/DF(end) - 1) / tau
    """
    currency: str
    start: date
    end: date
    year_fraction: float
    rate: float


@dataclass(frozen=True)
class ResolvedIborFixingDeposit:
    """
    Deposit paying the Ibor fixing; calibrates the index forward at spot.

    Par rate: the index rate observed on the fixing date.
    """
    index: IborIndex
    fixing_date: date
    start: date
    end: date
    year_fraction: float
    rate: float

    @property
    def currency(self) -> str:
        return self.index.currency


@dataclass(frozen=True)
class ResolvedFra:
    """
    Forward Rate Agreement.

    FRA rate: F = (DF(T1)/DF(T2) - 1) / tau on the index curve.
    """
    index: IborIndex
    fixing_date: date
    start: date
    end: date
    year_fraction: float
    fixed_rate: float

    @property
    def currency(self) -> str:
        return self.index.currency


@dataclass(frozen=True)
class ResolvedFixedOvernightSwap:
    """
    Overnight Index Swap.

    Fixed leg pays K * tau_i. Floating leg pays the compounded overnight
    rate; the compounded accrual over a period is DF_f(start)/DF_f(end).
    Par swap rate: R = PV_float / sum(tau_i * DF_d(pay_i))
    """
    index: OvernightIndex
    fixed_rate: float
    fixed_periods: Tuple[AccrualPeriod, ...]
    float_periods: Tuple[AccrualPeriod, ...]

    @property
    def currency(self) -> str:
        return self.index.currency

    @property
    def start(self) -> date:
        return self.fixed_periods[0].start

    @property
    def end(self) -> date:
        return self.fixed_periods[-1].end


@dataclass(frozen=True)
class ResolvedFixedIborSwap:
    """
    Fixed vs Ibor interest rate swap.

    Par swap rate: R = sum(tau_j * F_j * DF_d(pay_j)) / sum(tau_i * DF_d(pay_i))
    """
    index: IborIndex
    fixed_rate: float
    fixed_periods: Tuple[AccrualPeriod, ...]
    float_periods: Tuple[AccrualPeriod, ...]

    @property
    def currency(self) -> str:
        return self.index.currency

    @property
    def start(self) -> date:
        return self.fixed_periods[0].start

    @property
    def end(self) -> date:
        return self.fixed_periods[-1].end


@dataclass(frozen=True)
class ResolvedCds:
    """
    Single-name credit default swap.

    Premium leg: spread * sum(tau_i * DF(T_i) * Q(T_i)) plus accrual on
    default, approximated as half a period of premium on the default
    probability of each period.
    Protection leg: (1 - R) * sum(DF(T_i) * (Q(T_{i-1}) - Q(T_i))).
    Par spread: protection / risky annuity.
    """
    entity: str
    currency: str
    protection_start: date
    premium_periods: Tuple[AccrualPeriod, ...]
    recovery_rate: float
    spread: float

    @property
    def end(self) -> date:
        return self.premium_periods[-1].end


__all__ = [
    "AccrualPeriod",
    "ResolvedTermDeposit",
    "ResolvedIborFixingDeposit",
    "ResolvedFra",
    "ResolvedFixedOvernightSwap",
    "ResolvedFixedIborSwap",
    "ResolvedCds",
]
