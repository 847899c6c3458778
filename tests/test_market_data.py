"""
Unit tests for market data containers and loaders.
"""

from datetime import date
import pandas as pd
import pytest

from curvecalib.errors import MissingQuoteError
from curvecalib.loaders import (
    fixings_from_frame,
    load_fixings_csv,
    load_quotes_csv,
    quotes_from_frame,
)
from curvecalib.market_data import FixingSeries, FxMatrix, MarketQuotes, QuoteKey


class TestMarketQuotes:
    """Tests for the quote snapshot."""

    @pytest.fixture
    def quotes(self):
        return MarketQuotes.of({"OIS1Y": 0.01, QuoteKey.of("OIS2Y"): 0.015}, date(2025, 1, 2))

    def test_string_keys_use_default_scheme(self, quotes):
        assert quotes[QuoteKey("OIS1Y", "CALIBRATION")] == 0.01
        assert quotes["OIS2Y"] == 0.015
        assert str(QuoteKey.of("OIS1Y")) == "CALIBRATION~OIS1Y"

    def test_missing_quote_names_key(self, quotes):
        with pytest.raises(MissingQuoteError) as exc_info:
            quotes.value("OIS5Y", "OIS5Y-node")
        assert exc_info.value.key == QuoteKey.of("OIS5Y")
        assert exc_info.value.node_label == "OIS5Y-node"
        assert "OIS5Y" in str(exc_info.value)

    def test_missing_quote_is_a_key_error(self, quotes):
        with pytest.raises(KeyError):
            quotes["OIS5Y"]

    def test_copies_do_not_mutate(self, quotes):
        fewer = quotes.without("OIS1Y")
        more = quotes.with_quote("OIS5Y", 0.02)
        assert len(quotes) == 2
        assert len(fewer) == 1
        assert more["OIS5Y"] == 0.02
        assert more.quote_date == quotes.quote_date


class TestFixingSeries:
    """Tests for historic fixing series."""

    def test_lookup(self):
        series = FixingSeries.of({date(2025, 1, 2): 0.03, date(2024, 12, 31): 0.029})
        assert series.get(date(2025, 1, 2)) == 0.03
        assert series.get(date(2025, 1, 3)) is None
        assert date(2024, 12, 31) in series
        assert series.latest == (date(2025, 1, 2), 0.03)

    def test_empty(self):
        series = FixingSeries.empty()
        assert series.is_empty()
        assert series.latest is None
        assert len(series) == 0

    def test_duplicate_dates_rejected(self):
        s = pd.Series([0.01, 0.02], index=[date(2025, 1, 2), date(2025, 1, 2)])
        with pytest.raises(ValueError):
            FixingSeries(s)

    def test_to_series_is_a_copy(self):
        series = FixingSeries.of({date(2025, 1, 2): 0.03})
        copy = series.to_series()
        copy.iloc[0] = 1.0
        assert series.get(date(2025, 1, 2)) == 0.03


class TestFxMatrix:
    """Tests for FX rates."""

    @pytest.fixture
    def fx(self):
        return FxMatrix.of({("EUR", "USD"): 1.10, ("GBP", "USD"): 1.25})

    def test_direct_and_inverse(self, fx):
        assert fx.fx_rate("EUR", "USD") == pytest.approx(1.10)
        assert fx.fx_rate("USD", "EUR") == pytest.approx(1 / 1.10)
        assert fx.fx_rate("eur", "EUR") == 1.0

    def test_triangulation(self, fx):
        assert fx.fx_rate("EUR", "GBP") == pytest.approx(1.10 / 1.25)

    def test_unknown_pair(self, fx):
        with pytest.raises(KeyError):
            fx.fx_rate("EUR", "JPY")

    def test_rates_must_be_positive(self):
        with pytest.raises(ValueError):
            FxMatrix.of({("EUR", "USD"): 0.0})


class TestLoaders:
    """Tests for CSV and DataFrame loading."""

    def test_quotes_from_frame(self):
        df = pd.DataFrame({
            "Date": ["2025-01-02", "2025-01-02"],
            "Key": ["OIS1Y", "OIS2Y"],
            "Value": [0.01, 0.015],
        })
        quotes = quotes_from_frame(df)
        assert quotes["OIS1Y"] == 0.01
        assert quotes.quote_date == date(2025, 1, 2)

    def test_quotes_from_frame_selects_date(self):
        df = pd.DataFrame({
            "date": ["2025-01-02", "2025-01-03"],
            "key": ["OIS1Y", "OIS1Y"],
            "value": [0.01, 0.011],
        })
        with pytest.raises(ValueError):
            quotes_from_frame(df)
        quotes = quotes_from_frame(df, date(2025, 1, 3))
        assert quotes["OIS1Y"] == 0.011

    def test_duplicate_quote_rejected(self):
        df = pd.DataFrame({"key": ["OIS1Y", "OIS1Y"], "value": [0.01, 0.02]})
        with pytest.raises(ValueError):
            quotes_from_frame(df)

    def test_missing_columns(self):
        with pytest.raises(ValueError):
            quotes_from_frame(pd.DataFrame({"key": ["OIS1Y"]}))

    def test_load_quotes_csv(self, tmp_path):
        path = tmp_path / "quotes.csv"
        path.write_text("date,key,value,scheme\n2025-01-02,OIS1Y,0.01,TICKER\n")
        quotes = load_quotes_csv(str(path))
        assert quotes[QuoteKey.of("OIS1Y", "TICKER")] == 0.01

    def test_fixings_from_frame(self):
        df = pd.DataFrame({
            "date": ["2025-01-02", "2025-01-03", "2025-01-02"],
            "index": ["EUR-EONIA", "EUR-EONIA", "EUR-EURIBOR-3M"],
            "value": [0.029, 0.0291, 0.027],
        })
        fixings = fixings_from_frame(df, up_to=date(2025, 1, 2))
        assert sorted(fixings) == ["EUR-EONIA", "EUR-EURIBOR-3M"]
        assert len(fixings["EUR-EONIA"]) == 1
        assert fixings["EUR-EURIBOR-3M"].get(date(2025, 1, 2)) == 0.027

    def test_load_fixings_csv(self, tmp_path):
        path = tmp_path / "fixings.csv"
        path.write_text("date,index,value\n2025-01-02,EUR-EONIA,0.029\n")
        fixings = load_fixings_csv(str(path))
        assert fixings["EUR-EONIA"].get(date(2025, 1, 2)) == 0.029
