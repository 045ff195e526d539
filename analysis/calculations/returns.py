"""
Log returns calculation utilities.
Pure functions for per-ticker log returns and date-aligned wide tables.
"""

import math
import numpy as np
import pandas as pd
from typing import List, Optional

from analysis.errors import (
    AnalysisError,
    AnalysisFailures,
    InsufficientDataError,
    InvalidInputError,
    MisalignedSeriesError,
)


PRICE_COLUMNS = ['ticker', 'date', 'adjusted_close']
RETURN_COLUMNS = ['ticker', 'date', 'log_return']


def log_returns(prices: List[float], ticker: str = None) -> np.ndarray:
    """
    Calculate log returns from a price series.

    Formula: r_t = ln(P_t / P_{t-1})

    Args:
        prices: List of prices in chronological order
        ticker: Ticker the prices belong to (used in error messages)

    Returns:
        Numpy array of log returns (length = len(prices) - 1)

    Raises:
        InvalidInputError: If any price is zero, negative, or not finite
        InsufficientDataError: If fewer than 2 prices
    """
    if len(prices) < 2:
        raise InsufficientDataError(
            f"need at least 2 prices for a log return, have {len(prices)}", subject=ticker
        )

    for i, price in enumerate(prices):
        if price is None or not math.isfinite(price):
            raise InvalidInputError(f"price at position {i} is not finite: {price}", subject=ticker)
        if price <= 0:
            raise InvalidInputError(f"price at position {i} must be positive, got {price}", subject=ticker)

    return np.diff(np.log(np.asarray(prices, dtype=float)))


def ticker_log_returns(ticker_prices: pd.DataFrame, ticker: str) -> pd.DataFrame:
    """
    Calculate the log return series for a single ticker.

    The first observation has no return and is dropped; every other row
    keeps its (ticker, date).

    Args:
        ticker_prices: Price rows for one ticker
        ticker: Ticker symbol

    Returns:
        DataFrame with columns ticker, date, log_return

    Raises:
        InvalidInputError: On duplicate dates or invalid prices
        InsufficientDataError: If fewer than 2 prices
    """
    duplicated = ticker_prices['date'].duplicated(keep=False)
    if duplicated.any():
        dupes = sorted({str(d) for d in ticker_prices.loc[duplicated, 'date']})
        raise InvalidInputError(f"duplicate dates: {', '.join(dupes)}", subject=ticker)

    ordered = ticker_prices.sort_values('date')
    returns = log_returns(ordered['adjusted_close'].tolist(), ticker=ticker)

    return pd.DataFrame({
        'ticker': ticker,
        'date': ordered['date'].iloc[1:].to_numpy(),
        'log_return': returns,
    })


def compute_log_returns(
    price_df: pd.DataFrame,
    failures: Optional[List[AnalysisError]] = None
) -> pd.DataFrame:
    """
    Calculate log returns for every ticker in a long price table.

    Tickers are processed independently; all invalid-input failures are
    collected before raising so the caller sees every bad ticker at once.
    A ticker with too few prices is appended to failures and left out of
    the result when a failures list is given; otherwise it is raised with
    the rest.

    Args:
        price_df: DataFrame with columns ticker, date, adjusted_close
        failures: Optional list that receives per-ticker InsufficientDataError

    Returns:
        Long DataFrame with columns ticker, date, log_return

    Raises:
        InvalidInputError: If required columns are missing or the table is empty
        AnalysisFailures: If any ticker has invalid prices
    """
    missing = set(PRICE_COLUMNS) - set(price_df.columns)
    if missing:
        raise InvalidInputError(f"price table missing columns: {sorted(missing)}")

    if price_df.empty:
        raise InvalidInputError("price table is empty")

    frames = []
    invalid: List[AnalysisError] = []
    short: List[AnalysisError] = []

    for ticker, group in price_df.groupby('ticker', sort=False):
        try:
            frames.append(ticker_log_returns(group, ticker))
        except InsufficientDataError as e:
            short.append(e)
        except AnalysisError as e:
            invalid.append(e)

    if failures is None:
        invalid.extend(short)
    if invalid:
        raise AnalysisFailures(invalid)

    failures.extend(short)

    if not frames:
        return pd.DataFrame(columns=RETURN_COLUMNS)

    return pd.concat(frames, ignore_index=True)[RETURN_COLUMNS]


def pivot_wide_returns(returns_df: pd.DataFrame) -> pd.DataFrame:
    """
    Pivot long returns into one column per ticker, keeping shared dates only.

    Args:
        returns_df: Long DataFrame with columns ticker, date, log_return

    Returns:
        DataFrame indexed by date, one column per ticker (inner join)

    Raises:
        MisalignedSeriesError: If no date is shared by every ticker
    """
    tickers = list(dict.fromkeys(returns_df['ticker']))

    if not tickers:
        raise MisalignedSeriesError("no tickers have returns to align", subject='aligned returns')

    wide = returns_df.pivot(index='date', columns='ticker', values='log_return')
    wide = wide[tickers].dropna(how='any').sort_index()
    wide.columns.name = None

    if wide.empty:
        raise MisalignedSeriesError(
            f"no overlapping dates across tickers {', '.join(tickers)}",
            subject='aligned returns',
        )

    return wide
