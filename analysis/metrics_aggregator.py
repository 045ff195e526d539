"""
Metrics aggregator - composes every statistic the report needs.
Runs each analysis independently and collects failures instead of stopping
at the first one.
"""

import logging
import pandas as pd
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from analysis.calculations.correlation import (
    CorrelationMatrix,
    RollingCorrelation,
    kendall_correlation_matrix,
    rolling_correlation,
)
from analysis.calculations.moments import MomentSummary, moment_summary
from analysis.calculations.normality import (
    NormalityResult,
    jarque_bera_test,
    kolmogorov_smirnov_test,
)
from analysis.calculations.returns import compute_log_returns, pivot_wide_returns
from analysis.errors import AnalysisError, InsufficientDataError, InvalidInputError


logger = logging.getLogger(__name__)

CALCULATION_VERSION = '1.0.0'


@dataclass(frozen=True)
class ReportData:
    """Every derived artifact of one report run."""
    tickers: List[str]
    prices: pd.DataFrame
    returns: pd.DataFrame
    wide_returns: Optional[pd.DataFrame]
    moments: Dict[str, MomentSummary]
    correlation: Optional[CorrelationMatrix]
    rolling: Optional[RollingCorrelation]
    normality: Dict[str, NormalityResult]
    goodness_of_fit: Optional[NormalityResult]
    failures: List[AnalysisError] = field(default_factory=list)
    calculated_at: str = ''

    @property
    def data_period(self) -> Dict[str, Any]:
        dates = pd.to_datetime(self.prices['date'])
        return {
            'start_date': dates.min().date().isoformat(),
            'end_date': dates.max().date().isoformat(),
            'trading_days': int(dates.nunique()),
            'aligned_return_days': 0 if self.wide_returns is None else len(self.wide_returns),
        }

    @property
    def provenance(self) -> Dict[str, Any]:
        """Data source names and latest ingestion time carried on the price rows."""
        sources = None
        ingested_at = None
        if 'source' in self.prices.columns:
            sources = sorted(self.prices['source'].dropna().unique().tolist())
        if 'ingested_at' in self.prices.columns and self.prices['ingested_at'].notna().any():
            ingested_at = pd.Timestamp(self.prices['ingested_at'].max()).isoformat()
        return {'sources': sources, 'ingested_at': ingested_at}

    @property
    def complete(self) -> bool:
        return not self.failures

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tickers': list(self.tickers),
            'data_period': self.data_period,
            'moments': {t: m.to_dict() for t, m in self.moments.items()},
            'correlation': self.correlation.to_dict() if self.correlation else None,
            'rolling_correlation': self.rolling.to_dict() if self.rolling else None,
            'normality': {t: n.to_dict() for t, n in self.normality.items()},
            'goodness_of_fit': self.goodness_of_fit.to_dict() if self.goodness_of_fit else None,
            'failures': [f.to_dict() for f in self.failures],
            'metadata': {
                'calculated_at': self.calculated_at,
                'calculation_version': CALCULATION_VERSION,
                'provenance': self.provenance,
                'conventions': {
                    'standard_deviation': 'sample (ddof=1)',
                    'skewness': 'population moments, normal = 0',
                    'kurtosis': 'non-excess, normal = 3',
                    'rolling_window': 'trailing, inclusive of current date',
                },
            },
        }


def compose_report_data(
    price_df: pd.DataFrame,
    *,
    rolling_pair: Tuple[str, str],
    rolling_windows: Sequence[int] = (25, 75, 252),
    confidence_level: float = 0.95,
    goodness_of_fit_ticker: Optional[str] = None
) -> ReportData:
    """
    Compose every statistic from a long adjusted-close price table.

    Invalid prices stop the run before any statistic is computed. A ticker
    with fewer than 2 prices is recorded as a failure and left out of every
    statistic. Each remaining per-ticker and cross-asset statistic is
    computed on its own; a failure is recorded in ReportData.failures and
    the rest still run.

    Args:
        price_df: DataFrame with columns ticker, date, adjusted_close
        rolling_pair: Tickers for the rolling correlation
        rolling_windows: Trailing window lengths in trading days
        confidence_level: Confidence level for correlation significance
        goodness_of_fit_ticker: Ticker for the Kolmogorov-Smirnov test

    Returns:
        ReportData

    Raises:
        AnalysisFailures: If any ticker has invalid prices
        InvalidInputError: If the price table is malformed
    """
    failures: List[AnalysisError] = []

    returns_df = compute_log_returns(price_df, failures=failures)
    tickers = list(dict.fromkeys(price_df['ticker']))
    short_tickers = {f.subject for f in failures}

    for failure in failures:
        logger.warning("Analysis failure: %s", failure)

    moments = {}
    normality = {}
    for ticker in tickers:
        if ticker in short_tickers:
            continue
        ticker_returns = returns_df.loc[returns_df['ticker'] == ticker, 'log_return'].to_numpy()

        result = _attempt(failures, moment_summary, ticker_returns, ticker=ticker)
        if result is not None:
            moments[ticker] = result

        result = _attempt(failures, jarque_bera_test, ticker_returns, ticker=ticker)
        if result is not None:
            normality[ticker] = result

    goodness_of_fit = None
    if goodness_of_fit_ticker is not None:
        if goodness_of_fit_ticker not in tickers:
            failures.append(InvalidInputError(
                f"ticker {goodness_of_fit_ticker} not in price data",
                subject='Kolmogorov-Smirnov',
            ))
        elif goodness_of_fit_ticker not in short_tickers:
            gof_returns = returns_df.loc[returns_df['ticker'] == goodness_of_fit_ticker, 'log_return'].to_numpy()
            goodness_of_fit = _attempt(failures, kolmogorov_smirnov_test, gof_returns, ticker=goodness_of_fit_ticker)

    wide = _attempt(failures, pivot_wide_returns, returns_df)

    correlation = None
    rolling = None
    if wide is not None:
        correlation = _attempt(failures, kendall_correlation_matrix, wide, confidence_level=confidence_level)
        rolling = _attempt(failures, rolling_correlation, wide, pair=tuple(rolling_pair), windows=list(rolling_windows))

        if rolling is not None:
            for window in rolling.unavailable_windows():
                failure = InsufficientDataError(
                    f"{rolling.n_observations} aligned observations is less than the window",
                    subject=f"rolling correlation {window}-day window",
                )
                logger.warning("Analysis failure: %s", failure)
                failures.append(failure)

    logger.info(
        "Composed report data for %d tickers with %d failure(s)", len(tickers), len(failures)
    )

    return ReportData(
        tickers=tickers,
        prices=price_df,
        returns=returns_df,
        wide_returns=wide,
        moments=moments,
        correlation=correlation,
        rolling=rolling,
        normality=normality,
        goodness_of_fit=goodness_of_fit,
        failures=failures,
        calculated_at=datetime.now().isoformat(),
    )


def _attempt(failures: List[AnalysisError], func, *args, **kwargs):
    """Run one analysis; record an AnalysisError and return None on failure."""
    try:
        return func(*args, **kwargs)
    except AnalysisError as e:
        logger.warning("Analysis failure: %s", e)
        failures.append(e)
        return None
