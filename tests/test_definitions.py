"""
Unit tests for curve nodes and curve / group definitions.
"""

from datetime import date
import pytest

from curvecalib.conventions import DayCount, ReferenceData
from curvecalib.curves import (
    CdsCurveNode,
    CurveGroupDefinition,
    FixedIborSwapCurveNode,
    FixedOvernightSwapCurveNode,
    FraCurveNode,
    IborFixingDepositCurveNode,
    InterpolatedNodalCurveDefinition,
    TermDepositCurveNode,
    ValueType,
)
from curvecalib.errors import InvalidConfigurationError, MissingQuoteError
from curvecalib.indices import (
    EUR_DEPOSIT_T2,
    EUR_EONIA,
    EUR_EURIBOR_3M,
    EUR_FIXED_1Y_EONIA_OIS,
    EUR_FIXED_1Y_EURIBOR_3M,
    EUR_STANDARD_CDS,
    TermDepositConvention,
)
from curvecalib.market_data import MarketQuotes, QuoteKey

VAL_DATE = date(2025, 1, 2)  # Thursday; spot is Monday 6 January
REF_DATA = ReferenceData.standard()


@pytest.fixture
def quotes():
    return MarketQuotes.of({
        "DEP3M": 0.02,
        "FIXING3M": 0.021,
        "FRA3Mx6M": 0.022,
        "OIS1Y": 0.019,
        "OIS2Y": 0.018,
        "IRS2Y": 0.023,
        "CDS5Y": 0.01,
    })


class TestCurveNodes:
    """Tests for node dating and resolution."""

    def test_term_deposit(self, quotes):
        node = TermDepositCurveNode("3M", EUR_DEPOSIT_T2, "DEP3M")
        assert node.label == "Deposit3M"
        assert node.quote_key == QuoteKey.of("DEP3M")
        assert node.date(VAL_DATE, REF_DATA) == date(2025, 4, 7)

        trade = node.resolve(VAL_DATE, quotes, REF_DATA)
        assert trade.start == date(2025, 1, 6)
        assert trade.end == date(2025, 4, 7)
        assert trade.year_fraction == pytest.approx(91 / 360)
        assert trade.rate == 0.02

    def test_ibor_fixing_deposit(self, quotes):
        node = IborFixingDepositCurveNode(EUR_EURIBOR_3M, "FIXING3M")
        trade = node.resolve(VAL_DATE, quotes, REF_DATA)
        assert node.label == "Fixing-EUR-EURIBOR-3M"
        assert node.tenor == "3M"
        assert trade.fixing_date == VAL_DATE
        assert trade.start == date(2025, 1, 6)
        assert trade.end == date(2025, 4, 7)

    def test_fra(self, quotes):
        node = FraCurveNode("3M", EUR_EURIBOR_3M, "FRA3Mx6M")
        trade = node.resolve(VAL_DATE, quotes, REF_DATA)
        assert node.label == "FRA3Mx6M"
        assert trade.start == date(2025, 4, 7)
        assert trade.end == date(2025, 7, 7)
        assert trade.fixing_date == date(2025, 4, 3)
        assert trade.fixed_rate == 0.022

    def test_overnight_swap(self, quotes):
        node = FixedOvernightSwapCurveNode("1Y", EUR_FIXED_1Y_EONIA_OIS, "OIS1Y")
        trade = node.resolve(VAL_DATE, quotes, REF_DATA)
        assert node.label == "OIS1Y"
        assert node.date(VAL_DATE, REF_DATA) == date(2026, 1, 6)
        assert len(trade.fixed_periods) == 1
        assert trade.fixed_periods[0].payment == date(2026, 1, 7)
        assert trade.currency == "EUR"

    def test_ibor_swap(self, quotes):
        node = FixedIborSwapCurveNode("2Y", EUR_FIXED_1Y_EURIBOR_3M, "IRS2Y")
        trade = node.resolve(VAL_DATE, quotes, REF_DATA)
        assert node.date(VAL_DATE, REF_DATA) == date(2027, 1, 6)
        assert len(trade.fixed_periods) == 2
        assert len(trade.float_periods) == 8
        assert trade.float_periods[0].fixing_date == VAL_DATE
        assert trade.fixed_periods[0].year_fraction == pytest.approx(1.0)

    def test_cds(self, quotes):
        node = CdsCurveNode("5Y", "ACME", EUR_STANDARD_CDS, "CDS5Y")
        trade = node.resolve(VAL_DATE, quotes, REF_DATA)
        assert node.label == "CDS-ACME-5Y"
        assert node.tenor == "5Y"
        assert trade.protection_start == date(2025, 1, 3)
        assert trade.end == date(2030, 1, 3)
        assert len(trade.premium_periods) == 20
        assert node.initial_guess(quotes) == pytest.approx(0.01 / 0.6)

    def test_metadata_carries_tenor(self):
        node = CdsCurveNode("5Y", "ACME", EUR_STANDARD_CDS, "CDS5Y")
        metadata = node.metadata(VAL_DATE, REF_DATA)
        assert metadata.tenor == "5Y"
        assert metadata.label == "CDS-ACME-5Y"
        assert metadata.date == date(2030, 1, 3)

    def test_explicit_label(self, quotes):
        node = FixedOvernightSwapCurveNode("1Y", EUR_FIXED_1Y_EONIA_OIS, "OIS1Y", label="EONIA-1Y")
        assert node.label == "EONIA-1Y"

    def test_missing_quote(self):
        node = FixedOvernightSwapCurveNode("5Y", EUR_FIXED_1Y_EONIA_OIS, "OIS5Y")
        with pytest.raises(MissingQuoteError) as exc_info:
            node.resolve(VAL_DATE, MarketQuotes.empty(), REF_DATA)
        assert exc_info.value.node_label == "OIS5Y"

    def test_resolution_is_pure(self, quotes):
        node = FixedIborSwapCurveNode("2Y", EUR_FIXED_1Y_EURIBOR_3M, "IRS2Y")
        assert node.resolve(VAL_DATE, quotes, REF_DATA) == node.resolve(VAL_DATE, quotes, REF_DATA)


def ois_definition(name="EUR-DSC", tenors=("1Y", "2Y"), **kwargs):
    nodes = [FixedOvernightSwapCurveNode(t, EUR_FIXED_1Y_EONIA_OIS, f"OIS{t}") for t in tenors]
    return InterpolatedNodalCurveDefinition(name=name, nodes=nodes, **kwargs)


class TestCurveDefinition:
    """Tests for InterpolatedNodalCurveDefinition."""

    def test_nodes_are_sorted_by_date(self):
        defn = ois_definition(tenors=("2Y", "1Y"))
        resolved = defn.resolved_nodes(VAL_DATE, REF_DATA)
        assert [r.node.label for r in resolved] == ["OIS1Y", "OIS2Y"]
        assert resolved[0].x_value == pytest.approx(
            (date(2026, 1, 6) - VAL_DATE).days / 365)

    def test_duplicate_dates_rejected(self):
        defn = ois_definition(tenors=("1Y", "12M"))
        with pytest.raises(InvalidConfigurationError) as exc_info:
            defn.resolved_nodes(VAL_DATE, REF_DATA)
        assert exc_info.value.curve_name == "EUR-DSC"

    def test_node_on_valuation_date_rejected(self):
        conv = TermDepositConvention("ON", "EUR", DayCount.ACT_360, spot_lag=0)
        defn = InterpolatedNodalCurveDefinition("BAD", (TermDepositCurveNode("0D", conv, "ON"),))
        with pytest.raises(InvalidConfigurationError):
            defn.resolved_nodes(VAL_DATE, REF_DATA)

    def test_empty_definition_rejected(self):
        with pytest.raises(InvalidConfigurationError):
            InterpolatedNodalCurveDefinition("EMPTY", ())

    def test_unknown_interpolator_rejected(self):
        with pytest.raises(InvalidConfigurationError):
            ois_definition(interpolator="quadratic")

    def test_parameter_count(self):
        assert ois_definition(tenors=("1Y", "2Y", "5Y")).parameter_count == 3

    def test_curve_for_discount_factors(self):
        defn = ois_definition(y_value_type=ValueType.DISCOUNT_FACTOR, interpolator="log_linear")
        curve = defn.curve(VAL_DATE, REF_DATA, [0.99, 0.97])
        assert curve.anchor == (0.0, 1.0)
        assert curve.parameter_count == 2
        assert [m.label for m in curve.metadata] == ["OIS1Y", "OIS2Y"]

    def test_curve_parameter_count_checked(self):
        with pytest.raises(InvalidConfigurationError):
            ois_definition().curve(VAL_DATE, REF_DATA, [0.01])


class TestCurveGroupDefinition:
    """Tests for group validation."""

    @pytest.fixture
    def fwd_definition(self):
        nodes = [
            IborFixingDepositCurveNode(EUR_EURIBOR_3M, "FIXING3M"),
            FixedIborSwapCurveNode("2Y", EUR_FIXED_1Y_EURIBOR_3M, "IRS2Y"),
        ]
        return InterpolatedNodalCurveDefinition("EUR-3M", nodes)

    def test_valid_group(self, fwd_definition):
        group = (CurveGroupDefinition.of("EUR")
                 .add_curve(ois_definition(), "EUR", EUR_EONIA)
                 .add_forward_curve(fwd_definition, EUR_EURIBOR_3M))
        group.validate(VAL_DATE, REF_DATA)
        assert group.curve_names == ("EUR-DSC", "EUR-3M")
        assert group.total_parameter_count == 4
        assert group.find_entry("EUR-3M").indices == (EUR_EURIBOR_3M,)

    def test_builder_is_immutable(self):
        base = CurveGroupDefinition.of("EUR")
        extended = base.add_discount_curve(ois_definition(), "EUR")
        assert base.entries == ()
        assert len(extended.entries) == 1

    def test_empty_group(self):
        with pytest.raises(InvalidConfigurationError):
            CurveGroupDefinition.of("EMPTY").validate()

    def test_currency_mapped_twice(self):
        group = (CurveGroupDefinition.of("EUR")
                 .add_discount_curve(ois_definition("A"), "EUR")
                 .add_discount_curve(ois_definition("B"), "EUR"))
        with pytest.raises(InvalidConfigurationError) as exc_info:
            group.validate()
        assert exc_info.value.curve_name == "B"

    def test_index_mapped_twice(self, fwd_definition):
        group = (CurveGroupDefinition.of("EUR")
                 .add_curve(ois_definition(), "EUR", EUR_EURIBOR_3M)
                 .add_forward_curve(fwd_definition, EUR_EURIBOR_3M))
        with pytest.raises(InvalidConfigurationError):
            group.validate()

    def test_credit_key_mapped_twice(self):
        cds = InterpolatedNodalCurveDefinition(
            "ACME", (CdsCurveNode("5Y", "ACME", EUR_STANDARD_CDS, "CDS5Y"),),
            y_value_type=ValueType.ZERO_HAZARD_RATE)
        group = (CurveGroupDefinition.of("CREDIT")
                 .add_credit_curve(cds, "ACME", "EUR")
                 .add_credit_curve(cds.with_nodes(cds.nodes), "ACME", "EUR"))
        with pytest.raises(InvalidConfigurationError):
            group.validate()

    def test_duplicate_curve_name(self):
        group = (CurveGroupDefinition.of("EUR")
                 .add_discount_curve(ois_definition("A"), "EUR")
                 .add_discount_curve(ois_definition("A"), "USD"))
        with pytest.raises(InvalidConfigurationError):
            group.validate()

    def test_curve_without_use(self):
        group = CurveGroupDefinition.of("EUR").add_curve(ois_definition())
        with pytest.raises(InvalidConfigurationError):
            group.validate()

    def test_node_dates_checked_with_valuation_date(self):
        group = CurveGroupDefinition.of("EUR").add_discount_curve(
            ois_definition(tenors=("1Y", "12M")), "EUR")
        group.validate()
        with pytest.raises(InvalidConfigurationError):
            group.validate(VAL_DATE, REF_DATA)
