"""
Unit tests for calibration measures.
"""

from dataclasses import replace
from datetime import date
import numpy as np
import pytest

from curvecalib.calibration import CalibrationMeasures, ParameterLayout
from curvecalib.conventions import ReferenceData
from curvecalib.curves import (
    CdsCurveNode,
    DiscountFactors,
    FixedIborSwapCurveNode,
    FixedOvernightSwapCurveNode,
    FraCurveNode,
    IborFixingDepositCurveNode,
    InterpolatedNodalCurve,
    SurvivalProbabilities,
    TermDepositCurveNode,
    ValueType,
)
from curvecalib.errors import InvalidConfigurationError
from curvecalib.indices import (
    EUR_DEPOSIT_T2,
    EUR_EURIBOR_3M,
    EUR_FIXED_1Y_EONIA_OIS,
    EUR_FIXED_1Y_EURIBOR_3M,
    EUR_STANDARD_CDS,
)
from curvecalib.market_data import FixingSeries, MarketQuotes
from curvecalib.provider import ImmutableRatesProvider

VAL_DATE = date(2025, 1, 2)
REF_DATA = ReferenceData.standard()
TIMES = [0.25, 1.0, 2.0, 5.0, 10.0]


def make_provider(fixings=None, dsc_type=ValueType.ZERO_RATE):
    if dsc_type == ValueType.DISCOUNT_FACTOR:
        dsc_curve = InterpolatedNodalCurve(
            "EUR-DSC", TIMES, np.exp(-np.array([0.010, 0.012, 0.015, 0.019, 0.022]) * TIMES),
            y_value_type=dsc_type, interpolator="log_linear", anchor=(0.0, 1.0))
    else:
        dsc_curve = InterpolatedNodalCurve(
            "EUR-DSC", TIMES, [0.010, 0.012, 0.015, 0.019, 0.022], interpolator="natural_cubic_spline")
    fwd_curve = InterpolatedNodalCurve("EUR-3M", TIMES, [0.013, 0.015, 0.018, 0.021, 0.024])
    credit_curve = InterpolatedNodalCurve(
        "ACME", [1.0, 3.0, 5.0, 7.0], [0.015, 0.018, 0.022, 0.024],
        y_value_type=ValueType.ZERO_HAZARD_RATE)
    dsc = DiscountFactors(VAL_DATE, dsc_curve)
    return ImmutableRatesProvider(
        valuation_date=VAL_DATE,
        discount_curves={"EUR": dsc},
        index_curves={"EUR-EONIA": dsc, "EUR-EURIBOR-3M": DiscountFactors(VAL_DATE, fwd_curve)},
        credit_curves={("ACME", "EUR"): SurvivalProbabilities(VAL_DATE, credit_curve)},
        fixings=fixings or {},
        ref_data=REF_DATA,
    )


LAYOUT = ParameterLayout(["EUR-DSC", "EUR-3M", "ACME"], [5, 5, 4])

QUOTES = MarketQuotes.of({
    "DEP6M": 0.011, "FIXING3M": 0.013, "FRA6Mx9M": 0.016, "OIS3Y": 0.016,
    "OIS7Y": 0.020, "IRS5Y": 0.020, "CDS5Y": 0.012,
})

NODES = [
    TermDepositCurveNode("6M", EUR_DEPOSIT_T2, "DEP6M"),
    IborFixingDepositCurveNode(EUR_EURIBOR_3M, "FIXING3M"),
    FraCurveNode("6M", EUR_EURIBOR_3M, "FRA6Mx9M"),
    FixedOvernightSwapCurveNode("3Y", EUR_FIXED_1Y_EONIA_OIS, "OIS3Y"),
    FixedOvernightSwapCurveNode("7Y", EUR_FIXED_1Y_EONIA_OIS, "OIS7Y"),
    FixedIborSwapCurveNode("5Y", EUR_FIXED_1Y_EURIBOR_3M, "IRS5Y"),
    CdsCurveNode("5Y", "ACME", EUR_STANDARD_CDS, "CDS5Y"),
]


@pytest.fixture(params=NODES, ids=lambda n: n.label)
def trade(request):
    return request.param.resolve(VAL_DATE, QUOTES, REF_DATA)


class TestParameterLayout:
    """Tests for the parameter vector layout."""

    def test_offsets(self):
        assert LAYOUT.total == 14
        assert LAYOUT.offsets == {"EUR-DSC": 0, "EUR-3M": 5, "ACME": 10}
        assert LAYOUT.slice("ACME") == slice(10, 14)

    def test_split_and_join(self):
        provider = make_provider()
        vector = LAYOUT.join(provider)
        parts = LAYOUT.split(vector)
        np.testing.assert_array_equal(parts["EUR-3M"], [0.013, 0.015, 0.018, 0.021, 0.024])

    def test_split_checks_length(self):
        with pytest.raises(ValueError):
            LAYOUT.split(np.zeros(3))


class TestMeasureValues:
    """Tests for par spread values."""

    def test_deposit_value(self):
        provider = make_provider()
        trade = NODES[0].resolve(VAL_DATE, QUOTES, REF_DATA)
        dsc = provider.discount_factors("EUR")
        fair = (dsc.discount_factor(trade.start) / dsc.discount_factor(trade.end) - 1) / trade.year_fraction
        assert CalibrationMeasures.DEFAULT.value(trade, provider) == pytest.approx(fair - 0.011)

    def test_value_is_linear_in_quote(self, trade):
        """The par spread moves one for one with the quoted rate."""
        provider = make_provider()
        base = CalibrationMeasures.DEFAULT.value(trade, provider)
        field = "spread" if hasattr(trade, "spread") else (
            "fixed_rate" if hasattr(trade, "fixed_rate") else "rate")
        bumped = replace(trade, **{field: getattr(trade, field) + 0.001})
        assert CalibrationMeasures.DEFAULT.value(bumped, provider) == pytest.approx(base - 0.001)

    def test_fixing_deposit_value(self):
        provider = make_provider()
        trade = NODES[1].resolve(VAL_DATE, QUOTES, REF_DATA)
        forward = provider.forward_rate(EUR_EURIBOR_3M, trade.start, trade.end)
        assert CalibrationMeasures.DEFAULT.value(trade, provider) == pytest.approx(forward - 0.013)

    def test_cds_par_spread_positive(self):
        provider = make_provider()
        trade = NODES[-1].resolve(VAL_DATE, QUOTES, REF_DATA)
        par = CalibrationMeasures.DEFAULT.value(trade, provider) + trade.spread
        # Credit triangle: spread ~ hazard * (1 - R)
        assert 0.6 * 0.015 < par < 0.6 * 0.025

    def test_irs_uses_fixing_on_valuation_date(self):
        trade = NODES[5].resolve(VAL_DATE, QUOTES, REF_DATA)
        without = CalibrationMeasures.DEFAULT.value(trade, make_provider())
        fixings = {"EUR-EURIBOR-3M": FixingSeries.of({VAL_DATE: 0.05})}
        with_fixing = CalibrationMeasures.DEFAULT.value(trade, make_provider(fixings))
        assert with_fixing > without

    def test_unregistered_type(self):
        with pytest.raises(InvalidConfigurationError):
            CalibrationMeasures.DEFAULT.value(object(), make_provider())


class TestMeasureSensitivities:
    """Analytic gradients agree with centred finite differences."""

    @pytest.mark.parametrize("dsc_type", [ValueType.ZERO_RATE, ValueType.DISCOUNT_FACTOR])
    def test_analytic_matches_finite_difference(self, trade, dsc_type):
        provider = make_provider(dsc_type=dsc_type)
        analytic = CalibrationMeasures.DEFAULT.derivative(trade, provider, LAYOUT)
        bumped = CalibrationMeasures.finite_difference(1e-6).derivative(trade, provider, LAYOUT)
        assert analytic.shape == (LAYOUT.total,)
        np.testing.assert_allclose(analytic, bumped, atol=1e-7)

    def test_historic_fixing_has_no_sensitivity(self):
        trade = NODES[5].resolve(VAL_DATE, QUOTES, REF_DATA)
        fixings = {"EUR-EURIBOR-3M": FixingSeries.of({VAL_DATE: 0.05})}
        provider = make_provider(fixings)
        analytic = CalibrationMeasures.DEFAULT.derivative(trade, provider, LAYOUT)
        bumped = CalibrationMeasures.finite_difference().derivative(trade, provider, LAYOUT)
        np.testing.assert_allclose(analytic, bumped, atol=1e-7)

    def test_curves_outside_layout_are_ignored(self, trade):
        provider = make_provider()
        layout = ParameterLayout(["EUR-DSC"], [5])
        grad = CalibrationMeasures.DEFAULT.derivative(trade, provider, layout)
        full = CalibrationMeasures.DEFAULT.derivative(trade, provider, LAYOUT)
        np.testing.assert_allclose(grad, full[:5])

    def test_finite_difference_shift_must_be_positive(self):
        with pytest.raises(ValueError):
            CalibrationMeasures.finite_difference(0.0)
