"""
CurveCalib: Multi-Curve Calibration Library

A library for:
- Defining groups of discount, forward and credit curves from market nodes
- Calibrating all curves of a group jointly with Newton-Raphson
- Querying discount factors, forward rates and survival probabilities

Scope: deposits, FRAs, OIS, fixed vs Ibor swaps and single-name CDS.
"""

__version__ = "0.1.0"

# Core modules
from .conventions import (
    DayCount,
    BusinessDayConvention,
    HolidayCalendar,
    ReferenceData,
    year_fraction,
)
from .dates import DateUtils, SchedulePeriod, generate_schedule
from .errors import (
    CurveCalibrationError,
    MissingQuoteError,
    MissingFixingError,
    InvalidConfigurationError,
    SingularJacobianError,
    NonConvergenceError,
    CalibrationCancelledError,
)

# Market data
from .market_data import QuoteKey, MarketQuotes, FixingSeries, FxMatrix
from .loaders import quotes_from_frame, load_quotes_csv, fixings_from_frame, load_fixings_csv

# Indices and conventions
from .indices import (
    OvernightIndex,
    IborIndex,
    TermDepositConvention,
    FixedOvernightSwapConvention,
    FixedIborSwapConvention,
    CdsConvention,
)

# Curves
from .curves import (
    ValueType,
    InterpolatedNodalCurve,
    DiscountFactors,
    SurvivalProbabilities,
    TermDepositCurveNode,
    IborFixingDepositCurveNode,
    FraCurveNode,
    FixedOvernightSwapCurveNode,
    FixedIborSwapCurveNode,
    CdsCurveNode,
    InterpolatedNodalCurveDefinition,
    CurveGroupDefinition,
)

# Calibration
from .calibration import CalibrationMeasures, CurveCalibrator
from .provider import CalibrationDiagnostics, ImmutableRatesProvider

__all__ = [
    "DayCount",
    "BusinessDayConvention",
    "HolidayCalendar",
    "ReferenceData",
    "year_fraction",
    "DateUtils",
    "SchedulePeriod",
    "generate_schedule",
    "CurveCalibrationError",
    "MissingQuoteError",
    "MissingFixingError",
    "InvalidConfigurationError",
    "SingularJacobianError",
    "NonConvergenceError",
    "CalibrationCancelledError",
    "QuoteKey",
    "MarketQuotes",
    "FixingSeries",
    "FxMatrix",
    "quotes_from_frame",
    "load_quotes_csv",
    "fixings_from_frame",
    "load_fixings_csv",
    "OvernightIndex",
    "IborIndex",
    "TermDepositConvention",
    "FixedOvernightSwapConvention",
    "FixedIborSwapConvention",
    "CdsConvention",
    "ValueType",
    "InterpolatedNodalCurve",
    "DiscountFactors",
    "SurvivalProbabilities",
    "TermDepositCurveNode",
    "IborFixingDepositCurveNode",
    "FraCurveNode",
    "FixedOvernightSwapCurveNode",
    "FixedIborSwapCurveNode",
    "CdsCurveNode",
    "InterpolatedNodalCurveDefinition",
    "CurveGroupDefinition",
    "CalibrationMeasures",
    "CurveCalibrator",
    "CalibrationDiagnostics",
    "ImmutableRatesProvider",
]
