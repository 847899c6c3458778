"""
Day count conventions, business day adjustments and holiday calendars.

Supported Day Counts:
- ACT/360: Actual days / 360 (money markets, OIS)
- ACT/365F: Actual days / 365 fixed (curve time axis)
- ACT/365: Alias kept for quotes that omit the "F"
- ACT/ACT: Actual days / actual days in year (ISDA)
- 30/360: 30 days per month / 360 (bond basis)

Business Day Conventions:
- Modified Following: Move to next business day, unless it falls in next month (then previous)
- Following: Move to next business day
- Preceding: Move to previous business day
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Iterable, Mapping, Optional
import calendar


class DayCount(Enum):
    """Day count convention enumeration."""
    ACT_360 = "ACT/360"
    ACT_365F = "ACT/365F"
    ACT_365 = "ACT/365"
    ACT_ACT = "ACT/ACT"
    THIRTY_360 = "30/360"

    @classmethod
    def from_string(cls, s: str) -> "DayCount":
        """Parse day count from string representation."""
        mapping = {
            "ACT/360": cls.ACT_360,
            "ACT360": cls.ACT_360,
            "ACT/365F": cls.ACT_365F,
            "ACT365F": cls.ACT_365F,
            "ACT/365": cls.ACT_365,
            "ACT365": cls.ACT_365,
            "ACT/ACT": cls.ACT_ACT,
            "ACTACT": cls.ACT_ACT,
            "30/360": cls.THIRTY_360,
            "30360": cls.THIRTY_360,
        }
        key = s.upper().replace(" ", "")
        if key in mapping:
            return mapping[key]
        raise ValueError(f"Unknown day count convention: {s}")


class BusinessDayConvention(Enum):
    """Business day adjustment convention."""
    MODIFIED_FOLLOWING = "ModifiedFollowing"
    FOLLOWING = "Following"
    PRECEDING = "Preceding"
    UNADJUSTED = "Unadjusted"


def year_fraction(start: date, end: date, day_count: DayCount) -> float:
    """
    Calculate year fraction between two dates using specified day count convention.

    Unlike an accrual fraction this is signed: a start after the end gives
    a negative fraction, which curves need for dates before the valuation date.

    Args:
        start: Start date
        end: End date
        day_count: Day count convention

    Returns:
        Year fraction as float
    """
    if start == end:
        return 0.0
    if start > end:
        return -year_fraction(end, start, day_count)

    actual_days = (end - start).days

    if day_count == DayCount.ACT_360:
        return actual_days / 360.0

    elif day_count in (DayCount.ACT_365F, DayCount.ACT_365):
        return actual_days / 365.0

    elif day_count == DayCount.ACT_ACT:
        # ISDA ACT/ACT: split by year boundaries
        if start.year == end.year:
            return actual_days / _days_in_year(start.year)
        total = (date(start.year + 1, 1, 1) - start).days / _days_in_year(start.year)
        for year in range(start.year + 1, end.year):
            total += 1.0
        total += (end - date(end.year, 1, 1)).days / _days_in_year(end.year)
        return total

    elif day_count == DayCount.THIRTY_360:
        # 30/360 US convention
        d1 = min(start.day, 30)
        d2 = end.day
        if d2 == 31 and d1 == 30:
            d2 = 30
        return (360 * (end.year - start.year) + 30 * (end.month - start.month) + (d2 - d1)) / 360.0

    else:
        raise ValueError(f"Unknown day count: {day_count}")


def _days_in_year(year: int) -> int:
    return 366 if calendar.isleap(year) else 365


@dataclass(frozen=True)
class HolidayCalendar:
    """
    Immutable holiday calendar.

    Saturdays and Sundays are never business days; `holidays` adds
    further non-business dates.

    Attributes:
        name: Calendar identifier (e.g. "EUTA", "USNY")
        holidays: Non-business dates in addition to weekends
    """
    name: str
    holidays: FrozenSet[date] = frozenset()

    @classmethod
    def of(cls, name: str, holidays: Iterable[date] = ()) -> "HolidayCalendar":
        return cls(name=name, holidays=frozenset(holidays))

    def is_business_day(self, d: date) -> bool:
        return is_business_day(d, self.holidays)

    def adjust(self, d: date, convention: BusinessDayConvention) -> date:
        return adjust_business_day(d, convention, self.holidays)

    def shift(self, d: date, days: int) -> date:
        """Move `days` business days forward (negative moves backward)."""
        step = timedelta(days=1 if days >= 0 else -1)
        remaining = abs(days)
        result = d
        while remaining > 0:
            result += step
            if self.is_business_day(result):
                remaining -= 1
        return result


WEEKENDS = HolidayCalendar.of("WEEKENDS")


@dataclass(frozen=True)
class ReferenceData:
    """
    Reference data used to resolve curve nodes.

    Maps calendar names to calendars; unknown names fall back to the
    weekend-only calendar.
    """
    calendars: Mapping[str, HolidayCalendar] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "calendars", MappingProxyType(dict(self.calendars)))

    @classmethod
    def standard(cls) -> "ReferenceData":
        return cls()

    @classmethod
    def of(cls, *calendars: HolidayCalendar) -> "ReferenceData":
        return cls({cal.name: cal for cal in calendars})

    def calendar(self, name: Optional[str]) -> HolidayCalendar:
        if name is None:
            return WEEKENDS
        cal = self.calendars.get(name)
        if cal is None:
            return HolidayCalendar.of(name)
        return cal


def is_business_day(d: date, holidays: Optional[Iterable[date]] = None) -> bool:
    """
    Check if a date is a business day.

    Uses weekend-only calendar by default (Saturday/Sunday are non-business days).
    """
    # Weekend check (0 = Monday, 5 = Saturday, 6 = Sunday)
    if d.weekday() >= 5:
        return False

    if holidays and d in holidays:
        return False

    return True


def adjust_business_day(
    d: date,
    convention: BusinessDayConvention,
    holidays: Optional[Iterable[date]] = None
) -> date:
    """
    Adjust a date according to business day convention.

    Args:
        d: Date to adjust
        convention: Business day adjustment rule
        holidays: Optional set of holiday dates

    Returns:
        Adjusted date
    """
    if convention == BusinessDayConvention.UNADJUSTED:
        return d

    if is_business_day(d, holidays):
        return d

    if convention == BusinessDayConvention.FOLLOWING:
        adjusted = d
        while not is_business_day(adjusted, holidays):
            adjusted += timedelta(days=1)
        return adjusted

    elif convention == BusinessDayConvention.PRECEDING:
        adjusted = d
        while not is_business_day(adjusted, holidays):
            adjusted -= timedelta(days=1)
        return adjusted

    elif convention == BusinessDayConvention.MODIFIED_FOLLOWING:
        adjusted = d
        while not is_business_day(adjusted, holidays):
            adjusted += timedelta(days=1)

        # If we crossed into next month, go preceding instead
        if adjusted.month != d.month:
            adjusted = d
            while not is_business_day(adjusted, holidays):
                adjusted -= timedelta(days=1)

        return adjusted

    return d


__all__ = [
    "DayCount",
    "BusinessDayConvention",
    "HolidayCalendar",
    "ReferenceData",
    "WEEKENDS",
    "year_fraction",
    "is_business_day",
    "adjust_business_day",
]
