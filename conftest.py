"""
Shared pytest fixtures: deterministic synthetic adjusted close prices.
"""

import numpy as np
import pandas as pd
import pytest


def make_price_frame(tickers, n_days=300, seed=7, start='2016-01-04'):
    """Long price table of geometric random walks on business days."""
    rng = np.random.default_rng(seed)
    dates = pd.bdate_range(start, periods=n_days).date

    frames = []
    for i, ticker in enumerate(tickers):
        returns = rng.normal(0.0003, 0.01 + 0.002 * i, size=n_days - 1)
        prices = 100.0 * np.exp(np.concatenate([[0.0], np.cumsum(returns)]))
        frames.append(pd.DataFrame({'ticker': ticker, 'date': dates, 'adjusted_close': prices}))

    return pd.concat(frames, ignore_index=True)


@pytest.fixture
def price_frame_factory():
    """Factory for synthetic long price tables."""
    return make_price_frame


@pytest.fixture
def five_asset_prices():
    """Five tickers, 300 trading days each."""
    return make_price_frame(['SPY', 'EFA', 'IJS', 'EEM', 'AGG'])


@pytest.fixture
def five_asset_report(five_asset_prices):
    """Composed report data for the five-asset fixture."""
    from analysis.metrics_aggregator import compose_report_data

    return compose_report_data(
        five_asset_prices,
        rolling_pair=('SPY', 'AGG'),
        rolling_windows=(25, 75, 252),
        goodness_of_fit_ticker='SPY'
    )
