"""
Loading quote snapshots and fixings from CSV files and DataFrames.

Expected quote CSV format:
    date, key, value[, scheme]

Expected fixing CSV format:
    date, index, value
"""

from datetime import date
from typing import Dict, Optional
import logging

import pandas as pd

from .market_data import FixingSeries, MarketQuotes, QuoteKey

logger = logging.getLogger(__name__)


def _standardize(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [c.strip().lower() for c in df.columns]
    if 'date' in df.columns:
        df['date'] = pd.to_datetime(df['date']).dt.date
    return df


def quotes_from_frame(
    df: pd.DataFrame,
    quote_date: Optional[date] = None
) -> MarketQuotes:
    """
    Build a quote snapshot from a DataFrame.

    Args:
        df: Frame with columns key, value and optionally date, scheme
        quote_date: If given, keep only rows for that date

    Returns:
        MarketQuotes snapshot

    Raises:
        ValueError: If required columns are missing, a key is duplicated
            for the snapshot date, or a value is not numeric
    """
    df = _standardize(df)
    missing = {'key', 'value'} - set(df.columns)
    if missing:
        raise ValueError(f"Quote frame is missing columns: {sorted(missing)}")

    if quote_date is not None and 'date' in df.columns:
        df = df[df['date'] == quote_date]
    elif 'date' in df.columns and df['date'].nunique() > 1:
        raise ValueError("Quote frame holds several dates; pass quote_date to select one")

    if 'scheme' not in df.columns:
        df['scheme'] = 'CALIBRATION'

    values = pd.to_numeric(df['value'], errors='raise')
    quotes: Dict[QuoteKey, float] = {}
    for key, scheme, value in zip(df['key'], df['scheme'], values):
        quote_key = QuoteKey.of(str(key).strip(), str(scheme).strip())
        if quote_key in quotes:
            raise ValueError(f"Duplicate quote for key {quote_key}")
        quotes[quote_key] = float(value)

    if quote_date is None and 'date' in df.columns and len(df) > 0:
        quote_date = df['date'].iloc[0]

    logger.debug("Loaded %d quotes for %s", len(quotes), quote_date)
    return MarketQuotes(quotes, quote_date)


def load_quotes_csv(filepath: str, quote_date: Optional[date] = None) -> MarketQuotes:
    """Load a quote snapshot from a CSV file."""
    df = pd.read_csv(filepath)
    logger.info("Reading quotes from %s", filepath)
    return quotes_from_frame(df, quote_date)


def fixings_from_frame(
    df: pd.DataFrame,
    up_to: Optional[date] = None
) -> Dict[str, FixingSeries]:
    """
    Build per-index fixing series from a long-format DataFrame.

    Args:
        df: Frame with columns date, index, value
        up_to: If given, drop fixings after this date

    Returns:
        Dict of index name to FixingSeries
    """
    df = _standardize(df)
    missing = {'date', 'index', 'value'} - set(df.columns)
    if missing:
        raise ValueError(f"Fixing frame is missing columns: {sorted(missing)}")
    if up_to is not None:
        df = df[df['date'] <= up_to]

    result: Dict[str, FixingSeries] = {}
    for index_name, group in df.groupby('index', sort=True):
        series = pd.Series(pd.to_numeric(group['value']).values, index=list(group['date']))
        result[str(index_name)] = FixingSeries(series)
    logger.debug("Loaded fixings for %d indices", len(result))
    return result


def load_fixings_csv(filepath: str, up_to: Optional[date] = None) -> Dict[str, FixingSeries]:
    """Load fixing series from a CSV file."""
    df = pd.read_csv(filepath)
    logger.info("Reading fixings from %s", filepath)
    return fixings_from_frame(df, up_to)


__all__ = [
    "quotes_from_frame",
    "load_quotes_csv",
    "fixings_from_frame",
    "load_fixings_csv",
]
