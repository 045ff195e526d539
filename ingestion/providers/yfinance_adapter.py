"""
yfinance adapter - fetch adjusted close prices from Yahoo Finance.
Network IO allowed here, but minimal business logic.
"""

import logging
import yfinance as yf
import pandas as pd
from datetime import date, timedelta
from typing import Dict, Any, List


logger = logging.getLogger(__name__)


class YFinanceError(Exception):
    """Raised when yfinance operations fail."""
    pass


def fetch_adjusted_closes(tickers: List[str], start: date, end: date) -> List[Dict[str, Any]]:
    """
    Fetch daily adjusted close prices for several tickers within a date window.
    Returns raw data in provider format - no normalization.

    Args:
        tickers: Ticker symbols (e.g., ['SPY', 'AGG'])
        start: Start date (inclusive)
        end: End date (inclusive)

    Returns:
        List of raw rows with 'Ticker', 'Date' and 'Adj Close' keys

    Raises:
        YFinanceError: If fetch fails or validation fails
    """
    _validate_date_range(start, end)
    if not tickers:
        raise YFinanceError("At least one ticker is required")
    for ticker in tickers:
        _validate_ticker(ticker)

    try:
        # yfinance uses exclusive end dates, so add 1 day
        yf_end = end + timedelta(days=1)

        data = yf.download(
            list(tickers),
            start=start.isoformat(),
            end=yf_end.isoformat(),
            auto_adjust=False,
            progress=False
        )
    except Exception as e:
        raise YFinanceError(f"Failed to fetch prices for {', '.join(tickers)}: {e}") from e

    if data is None or data.empty:
        logger.warning("yfinance returned no data for %s", ', '.join(tickers))
        return []

    adj_close = _extract_adjusted_close(data, tickers)

    rows = []
    for ticker in tickers:
        if ticker not in adj_close.columns:
            logger.warning("No adjusted close column returned for %s", ticker)
            continue

        for date_idx, value in adj_close[ticker].items():
            # Missing values mean the ticker did not trade that day
            if pd.isna(value):
                continue
            rows.append({
                'Ticker': ticker,
                'Date': date_idx.strftime('%Y-%m-%d'),
                'Adj Close': float(value),
            })

    logger.info("Fetched %d adjusted close rows for %d tickers", len(rows), len(tickers))
    return rows


def _extract_adjusted_close(data: pd.DataFrame, tickers: List[str]) -> pd.DataFrame:
    """
    Pull the 'Adj Close' field out of a yfinance download frame.

    Multi-ticker downloads use (field, ticker) MultiIndex columns; older
    single-ticker downloads use flat field columns.
    """
    if isinstance(data.columns, pd.MultiIndex):
        if 'Adj Close' not in data.columns.get_level_values(0):
            raise YFinanceError("yfinance response has no 'Adj Close' field")
        return data.xs('Adj Close', axis=1, level=0)

    if 'Adj Close' not in data.columns:
        raise YFinanceError("yfinance response has no 'Adj Close' field")

    if len(tickers) != 1:
        raise YFinanceError("Flat yfinance response for multiple tickers")

    return data[['Adj Close']].rename(columns={'Adj Close': tickers[0]})


def _validate_date_range(start: date, end: date) -> None:
    """
    Validate date range parameters.

    Args:
        start: Start date
        end: End date

    Raises:
        YFinanceError: If validation fails
    """
    if start > end:
        raise YFinanceError(f"start date ({start}) must be <= end date ({end})")

    # Don't allow future dates
    today = date.today()
    if start > today or end > today:
        raise YFinanceError("Future dates not allowed for historical data")


def _validate_ticker(ticker: str) -> None:
    """
    Basic ticker validation.

    Args:
        ticker: Ticker symbol

    Raises:
        YFinanceError: If ticker is invalid
    """
    if not ticker or not isinstance(ticker, str):
        raise YFinanceError("Ticker must be non-empty string")

    if len(ticker) > 10:  # Reasonable limit
        raise YFinanceError("Ticker too long (max 10 characters)")

    # Allow alphanumeric plus common ticker chars
    allowed_chars = set('ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789.-^')
    if not set(ticker.upper()).issubset(allowed_chars):
        raise YFinanceError(f"Ticker contains invalid characters: {ticker}")
