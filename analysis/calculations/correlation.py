"""
Correlation utilities.
Pure functions for the static rank correlation matrix and trailing-window
Pearson correlation between two assets.
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass
from itertools import combinations
from scipy import stats
from scipy.cluster.hierarchy import leaves_list, linkage
from scipy.spatial.distance import squareform
from typing import Dict, List, Sequence, Tuple

from analysis.errors import InsufficientDataError, InvalidInputError


MIN_OVERLAPPING_DATES = 2
MIN_WINDOW = 2


@dataclass(frozen=True)
class CorrelationMatrix:
    """Kendall tau matrix with two-sided p-values over aligned returns."""
    coefficients: pd.DataFrame
    p_values: pd.DataFrame
    confidence_level: float
    display_order: List[str]
    n_observations: int
    method: str = 'kendall'

    @property
    def significant(self) -> pd.DataFrame:
        """True where the coefficient is significant at the confidence level."""
        return self.p_values < (1.0 - self.confidence_level)

    def ordered(self) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """Coefficients and p-values reordered for display."""
        order = self.display_order
        return (
            self.coefficients.loc[order, order],
            self.p_values.loc[order, order],
        )

    def to_dict(self) -> dict:
        return {
            'method': self.method,
            'confidence_level': self.confidence_level,
            'n_observations': self.n_observations,
            'display_order': list(self.display_order),
            'coefficients': self.coefficients.to_dict(),
            'p_values': self.p_values.to_dict(),
        }


@dataclass(frozen=True)
class RollingCorrelation:
    """Trailing-window Pearson correlation for one ticker pair."""
    pair: Tuple[str, str]
    series: Dict[int, pd.Series]
    static_kendall: float
    static_kendall_p_value: float
    n_observations: int

    @property
    def windows(self) -> List[int]:
        return sorted(self.series)

    def unavailable_windows(self) -> List[int]:
        """Windows longer than the aligned history, which have no values."""
        return [w for w in self.windows if self.series[w].empty]

    def to_dict(self) -> dict:
        return {
            'pair': list(self.pair),
            'static_kendall': self.static_kendall,
            'static_kendall_p_value': self.static_kendall_p_value,
            'n_observations': self.n_observations,
            'windows': {
                str(w): [
                    {'date': str(idx), 'correlation': None if pd.isna(v) else float(v)}
                    for idx, v in self.series[w].items()
                ]
                for w in self.windows
            },
        }


def kendall_correlation_matrix(
    wide_returns: pd.DataFrame,
    confidence_level: float = 0.95
) -> CorrelationMatrix:
    """
    Compute the Kendall tau matrix with paired two-sided p-values.

    Display order comes from complete-linkage hierarchical clustering on the
    distance 1 - tau; the numeric matrices keep input column order.

    Args:
        wide_returns: Date-aligned returns, one column per ticker
        confidence_level: Confidence level for the significance mask

    Returns:
        CorrelationMatrix

    Raises:
        InvalidInputError: If fewer than 2 tickers or bad confidence level
        InsufficientDataError: If fewer than 2 overlapping dates or a constant series
    """
    tickers = list(wide_returns.columns)

    if len(tickers) < 2:
        raise InvalidInputError(
            f"correlation matrix needs at least 2 tickers, have {len(tickers)}",
            subject='kendall correlation',
        )

    if not 0.0 < confidence_level < 1.0:
        raise InvalidInputError(
            f"confidence level must be in (0, 1), got {confidence_level}",
            subject='kendall correlation',
        )

    n_obs = len(wide_returns)
    if n_obs < MIN_OVERLAPPING_DATES:
        raise InsufficientDataError(
            f"need at least {MIN_OVERLAPPING_DATES} overlapping dates, have {n_obs}",
            subject='kendall correlation',
        )

    coefficients = pd.DataFrame(np.eye(len(tickers)), index=tickers, columns=tickers)
    p_values = pd.DataFrame(np.zeros((len(tickers), len(tickers))), index=tickers, columns=tickers)

    for a, b in combinations(tickers, 2):
        tau, p_value = kendall_tau(wide_returns[a], wide_returns[b], subject=f"kendall correlation {a}/{b}")
        coefficients.loc[a, b] = coefficients.loc[b, a] = tau
        p_values.loc[a, b] = p_values.loc[b, a] = p_value

    return CorrelationMatrix(
        coefficients=coefficients,
        p_values=p_values,
        confidence_level=confidence_level,
        display_order=cluster_order(coefficients),
        n_observations=n_obs,
    )


def kendall_tau(x: Sequence[float], y: Sequence[float], subject: str = None) -> Tuple[float, float]:
    """
    Kendall's tau-b and its two-sided p-value for two aligned series.

    Raises:
        InsufficientDataError: If the coefficient is undefined (constant series)
    """
    result = stats.kendalltau(x, y)
    tau, p_value = float(result.statistic), float(result.pvalue)

    if np.isnan(tau):
        raise InsufficientDataError("Kendall tau undefined for a constant series", subject=subject)

    return tau, p_value


def cluster_order(coefficients: pd.DataFrame) -> List[str]:
    """
    Order tickers by hierarchical clustering of a correlation matrix.

    Args:
        coefficients: Symmetric correlation matrix

    Returns:
        Ticker labels in dendrogram leaf order
    """
    labels = list(coefficients.columns)
    if len(labels) < 3:
        return labels

    distance = np.clip(1.0 - coefficients.to_numpy(), 0.0, None)
    np.fill_diagonal(distance, 0.0)
    distance = (distance + distance.T) / 2.0

    tree = linkage(squareform(distance, checks=False), method='complete')
    return [labels[i] for i in leaves_list(tree)]


def rolling_correlation(
    wide_returns: pd.DataFrame,
    pair: Tuple[str, str],
    windows: Sequence[int] = (25, 75, 252)
) -> RollingCorrelation:
    """
    Trailing-window Pearson correlation for a ticker pair.

    For window W the value at date t uses the W observations ending at t
    (inclusive). Dates before the W-th observation are excluded.

    The whole-history Kendall tau of the pair is included as an overlay
    reference; it is a different correlation definition from the
    trailing Pearson series.

    Args:
        wide_returns: Date-aligned returns, one column per ticker
        pair: The two tickers to correlate
        windows: Window lengths in trading days, each >= 2

    Returns:
        RollingCorrelation with one series per window

    Raises:
        InvalidInputError: If the pair is not in the table or a window is < 2
        InsufficientDataError: If the history is shorter than the smallest window
    """
    first, second = pair
    subject = f"rolling correlation {first}/{second}"

    for ticker in pair:
        if ticker not in wide_returns.columns:
            raise InvalidInputError(f"ticker {ticker} not in aligned returns", subject=subject)

    if first == second:
        raise InvalidInputError("pair must name two different tickers", subject=subject)

    if not windows:
        raise InvalidInputError("at least one window is required", subject=subject)

    for window in windows:
        if int(window) != window or window < MIN_WINDOW:
            raise InvalidInputError(f"window must be an integer >= {MIN_WINDOW}, got {window}", subject=subject)

    n_obs = len(wide_returns)
    smallest = min(windows)
    if n_obs < smallest:
        raise InsufficientDataError(
            f"{n_obs} aligned observations is less than the smallest window {smallest}",
            subject=subject,
        )

    x = wide_returns[first]
    y = wide_returns[second]

    series = {}
    for window in windows:
        window = int(window)
        rolled = x.rolling(window=window, min_periods=window).corr(y)
        series[window] = rolled.iloc[window - 1:].rename(f"{window}D")

    tau, p_value = kendall_tau(x, y, subject=subject)

    return RollingCorrelation(
        pair=(first, second),
        series=series,
        static_kendall=tau,
        static_kendall_p_value=p_value,
        n_observations=n_obs,
    )
