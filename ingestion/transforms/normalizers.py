"""
Normalizers for transforming provider data to canonical shape.
Pure functions - no IO, network, or side effects.
Minimal normalization - only when necessary.
"""

import pandas as pd
from datetime import date, datetime
from typing import Dict, Any, List


CANONICAL_PRICE_COLUMNS = ['ticker', 'date', 'adjusted_close']
PROVENANCE_COLUMNS = ['source', 'ingested_at']


class NormalizationError(ValueError):
    """Raised when a provider row cannot be mapped to canonical shape."""
    pass


def normalize_prices(
    raw_rows: List[Dict[str, Any]],
    *,
    source: str,
    ingested_at: datetime
) -> List[Dict[str, Any]]:
    """
    Transform provider-native adjusted close rows to canonical shape.

    Minimal normalization:
    - Date strings to date objects (required for schema)
    - Field name mapping (provider uses different names)

    Duplicate dates are kept so validation can reject them.

    Args:
        raw_rows: List of provider-specific price dictionaries
        source: Data provider name
        ingested_at: Pipeline processing timestamp

    Returns:
        List of canonical price dictionaries

    Raises:
        NormalizationError: If a row lacks a ticker, date, or adjusted close
    """
    if not raw_rows:
        return []

    normalized = []

    for raw in raw_rows:
        for key in ('Ticker', 'Date', 'Adj Close'):
            if key not in raw:
                raise NormalizationError(f"Provider row missing '{key}': {raw}")

        # Normalization justified: Schema requires date object, provider gives string
        date_val = raw['Date']
        if isinstance(date_val, datetime):
            row_date = date_val.date()
        elif isinstance(date_val, date):
            row_date = date_val
        else:
            row_date = date.fromisoformat(str(date_val))

        adj_close = raw['Adj Close']

        normalized.append({
            'ticker': str(raw['Ticker']).upper(),
            'date': row_date,
            'adjusted_close': float(adj_close) if adj_close is not None else None,
            'source': source,
            'ingested_at': ingested_at,
        })

    return normalized


def to_price_frame(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    """
    Build the long PriceSeries table from canonical rows.

    Args:
        rows: Canonical price dictionaries

    Returns:
        DataFrame with columns ticker, date, adjusted_close, plus source and
        ingested_at when the rows carry them, sorted by ticker order then date
    """
    if not rows:
        return pd.DataFrame(columns=CANONICAL_PRICE_COLUMNS)

    frame = pd.DataFrame(rows)
    frame = frame[CANONICAL_PRICE_COLUMNS + [c for c in PROVENANCE_COLUMNS if c in frame.columns]]
    ticker_order = {t: i for i, t in enumerate(dict.fromkeys(frame['ticker']))}

    frame = frame.assign(_order=frame['ticker'].map(ticker_order))
    frame = frame.sort_values(['_order', 'date'], kind='mergesort').drop(columns='_order')

    return frame.reset_index(drop=True)
