"""
Unit tests for conventions module.
"""

from datetime import date
import pytest

from curvecalib.conventions import (
    DayCount,
    BusinessDayConvention,
    HolidayCalendar,
    ReferenceData,
    adjust_business_day,
    is_business_day,
    year_fraction,
)


class TestDayCount:
    """Tests for day count conventions."""

    def test_act_360(self):
        """Test ACT/360 day count."""
        start = date(2024, 1, 15)
        end = date(2024, 4, 15)  # 91 days

        yf = year_fraction(start, end, DayCount.ACT_360)
        assert abs(yf - 91 / 360) < 1e-12

    def test_act_365f(self):
        """Test ACT/365F day count."""
        start = date(2024, 1, 15)
        end = date(2024, 4, 15)

        yf = year_fraction(start, end, DayCount.ACT_365F)
        assert abs(yf - 91 / 365) < 1e-12

    def test_act_act_full_leap_year(self):
        """Test ACT/ACT over a calendar year split across year ends."""
        yf = year_fraction(date(2024, 1, 1), date(2025, 1, 1), DayCount.ACT_ACT)
        assert abs(yf - 1.0) < 1e-12

        yf = year_fraction(date(2024, 7, 1), date(2025, 7, 1), DayCount.ACT_ACT)
        expected = 184 / 366 + 181 / 365
        assert abs(yf - expected) < 1e-12

    def test_thirty_360(self):
        """Test 30/360 day count."""
        yf = year_fraction(date(2024, 1, 15), date(2024, 4, 15), DayCount.THIRTY_360)
        assert abs(yf - 90 / 360) < 1e-12

    def test_year_fraction_same_date(self):
        """Test year fraction for same date returns 0."""
        d = date(2024, 1, 15)
        assert year_fraction(d, d, DayCount.ACT_360) == 0.0

    def test_year_fraction_is_signed(self):
        """Dates before the start give negative fractions."""
        start = date(2024, 4, 15)
        end = date(2024, 1, 15)
        assert year_fraction(start, end, DayCount.ACT_365F) == pytest.approx(-91 / 365)

    def test_from_string(self):
        """Test parsing day count names."""
        assert DayCount.from_string("ACT/360") == DayCount.ACT_360
        assert DayCount.from_string("act365f") == DayCount.ACT_365F
        assert DayCount.from_string("30/360") == DayCount.THIRTY_360
        with pytest.raises(ValueError):
            DayCount.from_string("BUS/252")


class TestBusinessDays:
    """Tests for business day adjustment."""

    def test_weekend_is_not_business_day(self):
        assert is_business_day(date(2024, 6, 14))  # Friday
        assert not is_business_day(date(2024, 6, 15))  # Saturday
        assert not is_business_day(date(2024, 6, 16))  # Sunday

    def test_holiday_is_not_business_day(self):
        holiday = date(2024, 6, 17)
        assert not is_business_day(holiday, {holiday})

    def test_following(self):
        saturday = date(2024, 6, 15)
        adjusted = adjust_business_day(saturday, BusinessDayConvention.FOLLOWING)
        assert adjusted == date(2024, 6, 17)

    def test_preceding(self):
        saturday = date(2024, 6, 15)
        adjusted = adjust_business_day(saturday, BusinessDayConvention.PRECEDING)
        assert adjusted == date(2024, 6, 14)

    def test_modified_following_stays_in_month(self):
        """Saturday 30 March rolls back to Friday 29 March."""
        adjusted = adjust_business_day(date(2024, 3, 30), BusinessDayConvention.MODIFIED_FOLLOWING)
        assert adjusted == date(2024, 3, 29)

    def test_unadjusted(self):
        saturday = date(2024, 6, 15)
        assert adjust_business_day(saturday, BusinessDayConvention.UNADJUSTED) == saturday


class TestHolidayCalendar:
    """Tests for holiday calendars and reference data."""

    @pytest.fixture
    def calendar(self):
        return HolidayCalendar.of("TEST", [date(2024, 6, 17)])

    def test_shift_forward_skips_holidays(self, calendar):
        assert calendar.shift(date(2024, 6, 14), 1) == date(2024, 6, 18)

    def test_shift_backward(self, calendar):
        assert calendar.shift(date(2024, 6, 18), -1) == date(2024, 6, 14)

    def test_shift_zero_is_identity(self, calendar):
        d = date(2024, 6, 15)
        assert calendar.shift(d, 0) == d

    def test_adjust_uses_holidays(self, calendar):
        adjusted = calendar.adjust(date(2024, 6, 15), BusinessDayConvention.FOLLOWING)
        assert adjusted == date(2024, 6, 18)

    def test_reference_data_lookup(self, calendar):
        ref_data = ReferenceData.of(calendar)
        assert ref_data.calendar("TEST") is calendar

    def test_reference_data_unknown_calendar_is_weekends_only(self):
        cal = ReferenceData.standard().calendar("EUTA")
        assert cal.name == "EUTA"
        assert cal.holidays == frozenset()

    def test_reference_data_is_read_only(self, calendar):
        ref_data = ReferenceData.of(calendar)
        with pytest.raises(TypeError):
            ref_data.calendars["OTHER"] = calendar
