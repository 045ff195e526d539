"""
Core validators for canonical price rows.
Pure functions - no IO, network, or side effects.
"""

import math
from collections import Counter
from datetime import date, datetime
from typing import Dict, Any, List

from analysis.errors import AnalysisError, AnalysisFailures, InvalidInputError


class ValidationError(InvalidInputError):
    """Raised when data validation fails."""
    pass


def validate_price_row(row: Dict[str, Any]) -> None:
    """
    Validate a canonical price row.

    Args:
        row: Dictionary containing adjusted close data

    Raises:
        ValidationError: If validation fails
    """
    required_keys = {'ticker', 'date', 'adjusted_close', 'source', 'ingested_at'}

    missing = required_keys - set(row.keys())
    if missing:
        raise ValidationError(f"Missing required keys: {sorted(missing)}")

    ticker = row['ticker']
    if not isinstance(ticker, str) or not ticker:
        raise ValidationError(f"ticker must be non-empty string, got {ticker!r}")

    if not isinstance(row['date'], date):
        raise ValidationError(f"date must be date, got {type(row['date'])}", subject=ticker)

    if not isinstance(row['ingested_at'], datetime):
        raise ValidationError(f"ingested_at must be datetime, got {type(row['ingested_at'])}", subject=ticker)

    if not isinstance(row['source'], str):
        raise ValidationError(f"source must be string, got {type(row['source'])}", subject=ticker)

    adj_close = row['adjusted_close']
    if isinstance(adj_close, bool) or not isinstance(adj_close, (int, float)):
        raise ValidationError(
            f"adjusted_close on {row['date']} must be numeric, got {type(adj_close)}", subject=ticker
        )

    if not math.isfinite(adj_close):
        raise ValidationError(f"adjusted_close on {row['date']} must be finite, got {adj_close}", subject=ticker)

    if adj_close <= 0:
        raise ValidationError(f"adjusted_close on {row['date']} must be positive, got {adj_close}", subject=ticker)


def check_price_date_monotonicity(prices: List[Dict[str, Any]]) -> None:
    """
    Check that dates are strictly increasing for each ticker.

    Args:
        prices: List of price rows with 'ticker' and 'date' fields

    Raises:
        ValidationError: If dates are not monotonic or have duplicates
    """
    if not prices:
        return

    ticker_dates: Dict[str, List[date]] = {}
    for row in prices:
        ticker_dates.setdefault(row.get('ticker'), []).append(row.get('date'))

    for ticker, dates in ticker_dates.items():
        if len(dates) <= 1:
            continue

        if len(dates) != len(set(dates)):
            dupes = sorted(d for d, count in Counter(dates).items() if count > 1)
            raise ValidationError(
                f"Duplicate dates: {', '.join(str(d) for d in dupes)}", subject=ticker
            )

        for i in range(1, len(dates)):
            if dates[i] <= dates[i - 1]:
                raise ValidationError(
                    f"dates not monotonic: {dates[i - 1]} >= {dates[i]}", subject=ticker
                )


def validate_price_rows(rows: List[Dict[str, Any]]) -> None:
    """
    Validate every row and every ticker's date ordering.

    Each ticker is checked independently and all failures are collected,
    one per ticker, so a single bad row does not hide problems elsewhere.

    Args:
        rows: Canonical price rows

    Raises:
        AnalysisFailures: If any row or ticker fails validation
    """
    failures: List[AnalysisError] = []
    failed_tickers = set()

    for row in rows:
        ticker = row.get('ticker')
        if ticker in failed_tickers:
            continue
        try:
            validate_price_row(row)
        except ValidationError as e:
            failures.append(e)
            failed_tickers.add(ticker)

    by_ticker: Dict[str, List[Dict[str, Any]]] = {}
    for row in rows:
        by_ticker.setdefault(row.get('ticker'), []).append(row)

    for ticker, ticker_rows in by_ticker.items():
        if ticker in failed_tickers:
            continue
        try:
            check_price_date_monotonicity(ticker_rows)
        except ValidationError as e:
            failures.append(e)

    if failures:
        raise AnalysisFailures(failures)
