"""
Date utilities for curve instruments.

Provides:
- Tenor parsing and date arithmetic
- Schedule generation for swap legs and CDS premium legs
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Tuple
import calendar
import re

from .conventions import BusinessDayConvention, HolidayCalendar, WEEKENDS


class DateUtils:
    """Utility class for date manipulation in rates contexts."""

    # Tenor regex pattern: number + unit (D/W/M/Y)
    TENOR_PATTERN = re.compile(r'^(\d+)([DWMY])$', re.IGNORECASE)

    @staticmethod
    def parse_tenor(tenor: str) -> Tuple[int, str]:
        """
        Parse a tenor string into (amount, unit).

        Args:
            tenor: Tenor string like "1D", "3M", "2Y"

        Returns:
            Tuple of (amount, unit) where unit is D/W/M/Y

        Raises:
            ValueError: If tenor format is invalid
        """
        match = DateUtils.TENOR_PATTERN.match(tenor.upper().strip())
        if not match:
            raise ValueError(f"Invalid tenor format: {tenor}. Expected format like '3M', '2Y'")

        return int(match.group(1)), match.group(2).upper()

    @staticmethod
    def tenor_months(tenor: str) -> int:
        """Number of months in a month or year tenor."""
        amount, unit = DateUtils.parse_tenor(tenor)
        if unit == 'M':
            return amount
        if unit == 'Y':
            return 12 * amount
        raise ValueError(f"Tenor {tenor} is not expressible in months")

    @staticmethod
    def add_tenor(start: date, tenor: str) -> date:
        """
        Add a calendar tenor to a date (no business day adjustment).

        Days and weeks are calendar days; months and years keep the day of
        month where possible, clipping to month end.
        """
        amount, unit = DateUtils.parse_tenor(tenor)

        if unit == 'D':
            return start + timedelta(days=amount)
        elif unit == 'W':
            return start + timedelta(weeks=amount)
        elif unit == 'M':
            return add_months(start, amount)
        elif unit == 'Y':
            return add_months(start, 12 * amount)
        raise ValueError(f"Unknown tenor unit: {unit}")

    @staticmethod
    def tenor_to_years(tenor: str) -> float:
        """Convert tenor to approximate year fraction."""
        amount, unit = DateUtils.parse_tenor(tenor)

        if unit == 'D':
            return amount / 365.0
        elif unit == 'W':
            return amount * 7 / 365.0
        elif unit == 'M':
            return amount / 12.0
        return float(amount)


def add_months(start: date, months: int) -> date:
    """Add months, preserving day of month where possible."""
    year = start.year + (start.month + months - 1) // 12
    month = (start.month + months - 1) % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def add_business_days(start: date, days: int, cal: Optional[HolidayCalendar] = None) -> date:
    """Move `days` business days on `cal` (weekends only when omitted)."""
    return (cal or WEEKENDS).shift(start, days)


@dataclass(frozen=True)
class SchedulePeriod:
    """One accrual period of a schedule (dates already adjusted)."""
    start: date
    end: date
    payment: date


def generate_schedule(
    start: date,
    end: date,
    frequency_months: int,
    convention: BusinessDayConvention = BusinessDayConvention.MODIFIED_FOLLOWING,
    cal: Optional[HolidayCalendar] = None,
    payment_lag: int = 0
) -> List[SchedulePeriod]:
    """
    Generate an accrual schedule between start and end dates.

    Dates are rolled backward from the unadjusted end date so that any
    stub is a short front stub. A frequency of 0 means a single period
    (term payment).

    Args:
        start: Accrual start (unadjusted)
        end: Accrual end (unadjusted)
        frequency_months: Months per period, 0 for a single period
        convention: Business day adjustment for period boundaries
        cal: Holiday calendar (weekends only when omitted)
        payment_lag: Business days between accrual end and payment

    Returns:
        List of adjusted schedule periods
    """
    if end <= start:
        raise ValueError(f"Schedule end {end} must be after start {start}")
    if frequency_months < 0:
        raise ValueError("Frequency must be non-negative")
    cal = cal or WEEKENDS

    unadjusted = [end]
    if frequency_months > 0:
        n = 1
        while True:
            prev_date = add_months(end, -frequency_months * n)
            # Avoid a stub of a few days by merging it into the first period
            if prev_date <= start + timedelta(days=7):
                break
            unadjusted.insert(0, prev_date)
            n += 1
    unadjusted.insert(0, start)

    adjusted = [cal.adjust(d, convention) for d in unadjusted]

    periods = []
    for period_start, period_end in zip(adjusted[:-1], adjusted[1:]):
        payment = cal.shift(period_end, payment_lag) if payment_lag else period_end
        periods.append(SchedulePeriod(start=period_start, end=period_end, payment=payment))
    return periods


__all__ = [
    "DateUtils",
    "SchedulePeriod",
    "add_months",
    "add_business_days",
    "generate_schedule",
]
