"""
Normality test utilities.
Jarque-Bera for every ticker and a one-sample Kolmogorov-Smirnov test
against the standard normal for one designated ticker.
"""

import numpy as np
from dataclasses import dataclass, asdict
from scipy import stats
from typing import Sequence

from analysis.errors import InsufficientDataError, InvalidInputError


# Minimum sample size for both tests. Jarque-Bera is only asymptotically
# chi-squared, so very small samples are refused.
MIN_NORMALITY_OBSERVATIONS = 8

JARQUE_BERA_LABEL = 'Jarque-Bera'
KOLMOGOROV_SMIRNOV_LABEL = 'Kolmogorov-Smirnov (vs N(0, 1))'


@dataclass(frozen=True)
class NormalityResult:
    """Outcome of one normality test on one ticker."""
    ticker: str
    test_statistic: float
    p_value: float
    method_label: str
    n_observations: int

    def rejects_normality(self, alpha: float = 0.05) -> bool:
        return self.p_value < alpha

    def to_dict(self) -> dict:
        return asdict(self)


def _checked_sample(returns: Sequence[float], ticker: str, test_name: str) -> np.ndarray:
    values = np.asarray(returns, dtype=float)

    if len(values) < MIN_NORMALITY_OBSERVATIONS:
        raise InsufficientDataError(
            f"{test_name} needs at least {MIN_NORMALITY_OBSERVATIONS} returns, have {len(values)}",
            subject=ticker,
        )

    if not np.all(np.isfinite(values)):
        raise InvalidInputError(f"{test_name} input contains NaN or infinite values", subject=ticker)

    return values


def jarque_bera_test(returns: Sequence[float], ticker: str = None) -> NormalityResult:
    """
    Jarque-Bera normality test from sample skewness and kurtosis.

    Under normality the statistic is asymptotically chi-squared with 2
    degrees of freedom.

    Args:
        returns: Log returns
        ticker: Ticker the returns belong to

    Returns:
        NormalityResult labelled 'Jarque-Bera'

    Raises:
        InsufficientDataError: If fewer than 8 observations
    """
    values = _checked_sample(returns, ticker, JARQUE_BERA_LABEL)
    result = stats.jarque_bera(values)

    return NormalityResult(
        ticker=ticker,
        test_statistic=float(result.statistic),
        p_value=float(result.pvalue),
        method_label=JARQUE_BERA_LABEL,
        n_observations=int(len(values)),
    )


def kolmogorov_smirnov_test(returns: Sequence[float], ticker: str = None) -> NormalityResult:
    """
    One-sample Kolmogorov-Smirnov test against the standard normal N(0, 1).

    Returns are compared as-is, without standardizing. Daily returns have a
    much smaller spread than N(0, 1), so the test rejects for almost any real
    return series; it measures distance from the standard normal reference,
    not normality up to location and scale.

    Args:
        returns: Log returns
        ticker: Ticker the returns belong to

    Returns:
        NormalityResult labelled 'Kolmogorov-Smirnov (vs N(0, 1))'

    Raises:
        InsufficientDataError: If fewer than 8 observations
    """
    values = _checked_sample(returns, ticker, 'Kolmogorov-Smirnov')
    result = stats.kstest(values, 'norm')

    return NormalityResult(
        ticker=ticker,
        test_statistic=float(result.statistic),
        p_value=float(result.pvalue),
        method_label=KOLMOGOROV_SMIRNOV_LABEL,
        n_observations=int(len(values)),
    )
