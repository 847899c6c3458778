"""
Standard EUR curve group.

Builds and calibrates the EUR group used in examples and tests:
- EUR_EONIA_EOD: discounting for EUR and forwarding for EONIA, from OIS
- EUR_EURIBOR_3M: EURIBOR 3M forwards from the fixing, FRAs and IRS
- EUR_EURIBOR_6M: EURIBOR 6M forwards from the fixing, FRAs and IRS

All three curves are linear in zero rates (ACT/365F) with flat
extrapolation, calibrated at 1e-9 / 1e-9 in at most 100 iterations.
"""

from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence

from .calibration.calibrator import CurveCalibrator
from .calibration.measures import CalibrationMeasures
from .conventions import DayCount
from .curves.curve import ValueType
from .curves.definition import CurveGroupDefinition, InterpolatedNodalCurveDefinition
from .curves.nodes import (
    FixedIborSwapCurveNode,
    FixedOvernightSwapCurveNode,
    FraCurveNode,
    IborFixingDepositCurveNode,
)
from .dates import DateUtils
from .indices import (
    EUR_EONIA,
    EUR_EURIBOR_3M,
    EUR_EURIBOR_6M,
    EUR_FIXED_1Y_EONIA_OIS,
    EUR_FIXED_1Y_EURIBOR_3M,
    EUR_FIXED_1Y_EURIBOR_6M,
)
from .market_data import FixingSeries, FxMatrix, MarketQuotes, QuoteKey
from .provider import ImmutableRatesProvider

SCHEME = "CALIBRATION"
CURVE_DAY_COUNT = DayCount.ACT_365F

DSCON_CURVE_NAME = "EUR_EONIA_EOD"
FWD3_CURVE_NAME = "EUR_EURIBOR_3M"
FWD6_CURVE_NAME = "EUR_EURIBOR_6M"
CURVE_GROUP_NAME = "EUR-DSCON-EURIBOR3M-EURIBOR6M"

# Sample market
DSC_OIS_TENORS = ("1M", "2M", "3M", "6M", "9M", "1Y", "18M", "2Y", "3Y", "4Y", "5Y", "7Y", "10Y")
DSC_OIS_QUOTES = (0.00072, 0.00082, 0.00093, 0.00090, 0.00105, 0.00118,
                  0.00144, 0.00210, 0.00353, 0.00541, 0.00736, 0.01082, 0.01424)
FWD3_FIXING_QUOTE = 0.00143
FWD3_FRA_TENORS = ("3M", "6M")
FWD3_FRA_QUOTES = (0.00193, 0.00234)
FWD3_IRS_TENORS = ("1Y", "2Y", "3Y", "5Y", "7Y", "10Y")
FWD3_IRS_QUOTES = (0.00214, 0.00319, 0.00482, 0.00892, 0.01258, 0.01605)
FWD6_FIXING_QUOTE = 0.00249
FWD6_FRA_TENORS = ("3M",)
FWD6_FRA_QUOTES = (0.00301,)
FWD6_IRS_TENORS = ("1Y", "2Y", "3Y", "5Y", "7Y", "10Y")
FWD6_IRS_QUOTES = (0.00323, 0.00421, 0.00589, 0.00996, 0.01362, 0.01707)


def dsc_id_values(tenors: Sequence[str]) -> List[str]:
    return [f"OIS{t}" for t in tenors]


def fwd_id_values(
    index_months: int,
    fra_tenors: Sequence[str],
    irs_tenors: Sequence[str]
) -> List[str]:
    """Quote identifiers: the fixing, then FRAs, then IRS."""
    ids = [f"FIXING{index_months}M"]
    for t in fra_tenors:
        start = DateUtils.tenor_months(t)
        ids.append(f"FRA{start}Mx{start + index_months}M")
    ids.extend(f"IRS{t}" for t in irs_tenors)
    return ids


def _zero_rate_definition(name: str, nodes) -> InterpolatedNodalCurveDefinition:
    return InterpolatedNodalCurveDefinition(
        name=name,
        nodes=tuple(nodes),
        y_value_type=ValueType.ZERO_RATE,
        day_count=CURVE_DAY_COUNT,
        interpolator="linear",
        extrapolator_left="flat",
        extrapolator_right="flat",
    )


def _forward_nodes(index, swap_convention, fra_tenors, irs_tenors) -> list:
    months = DateUtils.tenor_months(index.tenor)
    ids = fwd_id_values(months, fra_tenors, irs_tenors)
    nodes = [IborFixingDepositCurveNode(index, QuoteKey.of(ids[0], SCHEME))]
    for tenor, key in zip(fra_tenors, ids[1:1 + len(fra_tenors)]):
        nodes.append(FraCurveNode(tenor, index, QuoteKey.of(key, SCHEME)))
    for tenor, key in zip(irs_tenors, ids[1 + len(fra_tenors):]):
        nodes.append(FixedIborSwapCurveNode(tenor, swap_convention, QuoteKey.of(key, SCHEME)))
    return nodes


def eur_standard_config(
    dsc_ois_tenors: Sequence[str] = DSC_OIS_TENORS,
    fwd3_fra_tenors: Sequence[str] = FWD3_FRA_TENORS,
    fwd3_irs_tenors: Sequence[str] = FWD3_IRS_TENORS,
    fwd6_fra_tenors: Sequence[str] = FWD6_FRA_TENORS,
    fwd6_irs_tenors: Sequence[str] = FWD6_IRS_TENORS
) -> CurveGroupDefinition:
    """Group definition of the EUR EONIA / EURIBOR 3M / EURIBOR 6M curves."""
    dsc_nodes = [
        FixedOvernightSwapCurveNode(tenor, EUR_FIXED_1Y_EONIA_OIS, QuoteKey.of(key, SCHEME))
        for tenor, key in zip(dsc_ois_tenors, dsc_id_values(dsc_ois_tenors))
    ]
    fwd3_nodes = _forward_nodes(EUR_EURIBOR_3M, EUR_FIXED_1Y_EURIBOR_3M,
                                fwd3_fra_tenors, fwd3_irs_tenors)
    fwd6_nodes = _forward_nodes(EUR_EURIBOR_6M, EUR_FIXED_1Y_EURIBOR_6M,
                                fwd6_fra_tenors, fwd6_irs_tenors)
    return (CurveGroupDefinition.of(CURVE_GROUP_NAME)
            .add_curve(_zero_rate_definition(DSCON_CURVE_NAME, dsc_nodes), "EUR", EUR_EONIA)
            .add_forward_curve(_zero_rate_definition(FWD3_CURVE_NAME, fwd3_nodes), EUR_EURIBOR_3M)
            .add_forward_curve(_zero_rate_definition(FWD6_CURVE_NAME, fwd6_nodes), EUR_EURIBOR_6M))


def eur_standard_quotes(
    dsc_ois_quotes: Sequence[float] = DSC_OIS_QUOTES,
    dsc_ois_tenors: Sequence[str] = DSC_OIS_TENORS,
    fwd3_fixing_quote: float = FWD3_FIXING_QUOTE,
    fwd3_fra_quotes: Sequence[float] = FWD3_FRA_QUOTES,
    fwd3_irs_quotes: Sequence[float] = FWD3_IRS_QUOTES,
    fwd3_fra_tenors: Sequence[str] = FWD3_FRA_TENORS,
    fwd3_irs_tenors: Sequence[str] = FWD3_IRS_TENORS,
    fwd6_fixing_quote: float = FWD6_FIXING_QUOTE,
    fwd6_fra_quotes: Sequence[float] = FWD6_FRA_QUOTES,
    fwd6_irs_quotes: Sequence[float] = FWD6_IRS_QUOTES,
    fwd6_fra_tenors: Sequence[str] = FWD6_FRA_TENORS,
    fwd6_irs_tenors: Sequence[str] = FWD6_IRS_TENORS,
    quote_date: Optional[date] = None
) -> MarketQuotes:
    """Quote snapshot keyed by the identifiers of `eur_standard_config`."""
    quotes: Dict[QuoteKey, float] = {}
    for key, value in zip(dsc_id_values(dsc_ois_tenors), dsc_ois_quotes):
        quotes[QuoteKey.of(key, SCHEME)] = value
    fwd3 = [fwd3_fixing_quote, *fwd3_fra_quotes, *fwd3_irs_quotes]
    for key, value in zip(fwd_id_values(3, fwd3_fra_tenors, fwd3_irs_tenors), fwd3):
        quotes[QuoteKey.of(key, SCHEME)] = value
    fwd6 = [fwd6_fixing_quote, *fwd6_fra_quotes, *fwd6_irs_quotes]
    for key, value in zip(fwd_id_values(6, fwd6_fra_tenors, fwd6_irs_tenors), fwd6):
        quotes[QuoteKey.of(key, SCHEME)] = value
    return MarketQuotes.of(quotes, quote_date)


def calibrate_eur_standard(
    valuation_date: date,
    quotes: Optional[MarketQuotes] = None,
    group: Optional[CurveGroupDefinition] = None,
    fixings: Optional[Mapping[str, FixingSeries]] = None,
    measures: Optional[CalibrationMeasures] = None,
    cancel_event=None
) -> ImmutableRatesProvider:
    """
    Calibrate the standard EUR group.

    Args:
        valuation_date: Valuation date
        quotes: Market quotes (the sample market when omitted)
        group: Group definition (`eur_standard_config()` when omitted)
        fixings: Historic fixings by index name (empty series when omitted)
        measures: Calibration measures (analytic when omitted)
        cancel_event: Optional cancellation flag passed to the calibrator

    Returns:
        ImmutableRatesProvider with the three calibrated curves
    """
    quotes = quotes if quotes is not None else eur_standard_quotes(quote_date=valuation_date)
    group = group or eur_standard_config()
    if fixings is None:
        fixings = {idx.name: FixingSeries.empty() for idx in (EUR_EONIA, EUR_EURIBOR_3M, EUR_EURIBOR_6M)}
    calibrator = CurveCalibrator.of(1e-9, 1e-9, 100, measures or CalibrationMeasures.DEFAULT)
    return calibrator.calibrate(group, valuation_date, quotes, fixings, FxMatrix.empty(),
                                cancel_event=cancel_event)


__all__ = [
    "DSCON_CURVE_NAME",
    "FWD3_CURVE_NAME",
    "FWD6_CURVE_NAME",
    "CURVE_GROUP_NAME",
    "dsc_id_values",
    "fwd_id_values",
    "eur_standard_config",
    "eur_standard_quotes",
    "calibrate_eur_standard",
]
