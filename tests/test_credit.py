"""
Unit tests for credit curve calibration.
"""

from datetime import date
import numpy as np
import pytest

from curvecalib.calibration import CalibrationMeasures, CurveCalibrator
from curvecalib.conventions import ReferenceData
from curvecalib.curves import (
    CdsCurveNode,
    CurveGroupDefinition,
    InterpolatedNodalCurveDefinition,
    ValueType,
)
from curvecalib.examples import calibrate_eur_standard, eur_standard_config, eur_standard_quotes
from curvecalib.indices import EUR_STANDARD_CDS

VAL_DATE = date(2025, 1, 2)
REF_DATA = ReferenceData.standard()
CDS_TENORS = ("1Y", "3Y", "5Y", "7Y")
CDS_SPREADS = (0.0050, 0.0075, 0.0100, 0.0115)


def credit_definition():
    nodes = tuple(CdsCurveNode(t, "ACME", EUR_STANDARD_CDS, f"CDS{t}") for t in CDS_TENORS)
    return InterpolatedNodalCurveDefinition(
        "ACME-EUR", nodes, y_value_type=ValueType.ZERO_HAZARD_RATE)


def credit_quotes():
    quotes = eur_standard_quotes()
    for tenor, spread in zip(CDS_TENORS, CDS_SPREADS):
        quotes = quotes.with_quote(f"CDS{tenor}", spread)
    return quotes


@pytest.fixture(scope="module")
def rates_provider():
    return calibrate_eur_standard(VAL_DATE)


@pytest.fixture(scope="module")
def credit_provider(rates_provider):
    group = CurveGroupDefinition.of("ACME").add_credit_curve(credit_definition(), "ACME", "EUR")
    return CurveCalibrator.standard().calibrate(
        group, VAL_DATE, credit_quotes(), known=rates_provider)


class TestCreditCalibration:
    """Tests for survival curves calibrated to par CDS spreads."""

    def test_cds_repriced(self, credit_provider):
        measures = CalibrationMeasures.DEFAULT
        for node in credit_definition().nodes:
            trade = node.resolve(VAL_DATE, credit_quotes(), REF_DATA)
            assert abs(measures.value(trade, credit_provider)) < 1e-9, node.label
        assert credit_provider.diagnostics.curve_names == ("ACME-EUR",)

    def test_survival_decreasing(self, credit_provider):
        dates = [date(2025, 1, 2), date(2026, 1, 2), date(2028, 1, 2), date(2030, 1, 2), date(2035, 1, 2)]
        survival = [credit_provider.survival_probability("ACME", "EUR", d) for d in dates]
        assert survival[0] == pytest.approx(1.0)
        assert all(a > b for a, b in zip(survival, survival[1:]))

    def test_credit_triangle(self, credit_provider):
        hazard = credit_provider.survival_probabilities("ACME", "EUR").zero_hazard_rate(date(2030, 1, 3))
        assert hazard == pytest.approx(0.0100 / 0.6, rel=0.1)

    def test_rates_curves_come_from_known(self, credit_provider, rates_provider):
        assert credit_provider.discount_factors("EUR") is rates_provider.discount_factors("EUR")

    def test_joint_matches_sequential(self, credit_provider):
        """Credit nodes do not move rates curves, so both routes agree."""
        group = eur_standard_config().add_credit_curve(credit_definition(), "ACME", "EUR")
        joint = CurveCalibrator.standard().calibrate(group, VAL_DATE, credit_quotes())
        layout = dict(zip(joint.diagnostics.curve_names, np.split(
            joint.diagnostics.parameters,
            np.cumsum([d.parameter_count for d in group.curve_definitions])[:-1])))
        np.testing.assert_allclose(layout["ACME-EUR"], credit_provider.diagnostics.parameters,
                                   atol=1e-8)

    def test_finite_difference_measures(self, rates_provider, credit_provider):
        group = CurveGroupDefinition.of("ACME").add_credit_curve(credit_definition(), "ACME", "EUR")
        calibrator = CurveCalibrator(measures=CalibrationMeasures.finite_difference())
        bumped = calibrator.calibrate(group, VAL_DATE, credit_quotes(), known=rates_provider)
        np.testing.assert_allclose(bumped.diagnostics.parameters,
                                   credit_provider.diagnostics.parameters, atol=1e-8)
