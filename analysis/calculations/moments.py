"""
Distribution moment utilities.
Pure functions for mean, standard deviation, skewness, and kurtosis of returns.

Conventions:
- Standard deviation is the sample estimate (ddof=1).
- Skewness and kurtosis use population moments (no bias correction).
- Kurtosis is non-excess: a normal distribution has kurtosis 3.
"""

import numpy as np
from dataclasses import dataclass, asdict
from scipy import stats
from typing import Sequence

from analysis.errors import InsufficientDataError, InvalidInputError


MIN_OBSERVATIONS = 2


@dataclass(frozen=True)
class MomentSummary:
    """Distribution moments for one ticker's full return history."""
    ticker: str
    mean: float
    standard_deviation: float
    skewness: float
    kurtosis: float
    n_observations: int

    @property
    def excess_kurtosis(self) -> float:
        return self.kurtosis - 3.0

    def to_dict(self) -> dict:
        return {k: None if isinstance(v, float) and np.isnan(v) else v for k, v in asdict(self).items()}


def moment_summary(returns: Sequence[float], ticker: str = None) -> MomentSummary:
    """
    Compute distribution moments of a return series.

    Args:
        returns: Log returns in any order
        ticker: Ticker the returns belong to

    Returns:
        MomentSummary with sample standard deviation and non-excess kurtosis;
        skewness and kurtosis are NaN when the returns have zero variance

    Raises:
        InsufficientDataError: If fewer than 2 observations
        InvalidInputError: If any return is NaN or infinite
    """
    values = np.asarray(returns, dtype=float)

    if len(values) < MIN_OBSERVATIONS:
        raise InsufficientDataError(
            f"moment summary needs at least {MIN_OBSERVATIONS} returns, have {len(values)}",
            subject=ticker,
        )

    if not np.all(np.isfinite(values)):
        raise InvalidInputError("returns contain NaN or infinite values", subject=ticker)

    std_dev = float(np.std(values, ddof=1))

    # Standardized moments are undefined for a constant series
    if std_dev == 0.0:
        skewness = kurtosis = float('nan')
    else:
        skewness = float(stats.skew(values, bias=True))
        kurtosis = float(stats.kurtosis(values, fisher=False, bias=True))

    return MomentSummary(
        ticker=ticker,
        mean=float(np.mean(values)),
        standard_deviation=std_dev,
        skewness=skewness,
        kurtosis=kurtosis,
        n_observations=int(len(values)),
    )
