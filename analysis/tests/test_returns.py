"""
Tests for log returns calculation utilities.
Pure functions with deterministic synthetic data for hand verification.
"""

import math
import pytest
import numpy as np
import pandas as pd
from datetime import date

from analysis.calculations.returns import (
    log_returns,
    ticker_log_returns,
    compute_log_returns,
    pivot_wide_returns,
)
from analysis.errors import (
    AnalysisFailures,
    InsufficientDataError,
    InvalidInputError,
    MisalignedSeriesError,
)


class TestLogReturns:
    """Tests for log_returns on plain price lists."""

    def test_log_returns_up_and_back(self):
        """Prices 100 -> 105 -> 100 give symmetric log returns."""
        returns = log_returns([100.0, 105.0, 100.0])

        assert len(returns) == 2
        assert returns[0] == pytest.approx(math.log(1.05))
        assert returns[1] == pytest.approx(math.log(100.0 / 105.0))
        assert returns[0] == pytest.approx(0.04879, abs=1e-5)
        assert returns[1] == pytest.approx(-0.04879, abs=1e-5)
        assert np.mean(returns) == pytest.approx(0.0, abs=1e-15)

    def test_log_returns_round_trip(self):
        """exp(cumsum(returns)) * P0 rebuilds every later price."""
        rng = np.random.default_rng(11)
        prices = 50.0 * np.exp(np.cumsum(rng.normal(0, 0.02, size=200)))

        returns = log_returns(prices.tolist())
        rebuilt = prices[0] * np.exp(np.cumsum(returns))

        np.testing.assert_allclose(rebuilt, prices[1:], rtol=1e-10)
        assert rebuilt[-1] == pytest.approx(prices[-1], rel=1e-10)

    def test_log_returns_single_price(self):
        with pytest.raises(InsufficientDataError, match="at least 2 prices"):
            log_returns([100.0], ticker='SPY')

    def test_log_returns_zero_price(self):
        with pytest.raises(InvalidInputError, match="must be positive") as exc_info:
            log_returns([100.0, 0.0, 101.0], ticker='SPY')

        assert exc_info.value.subject == 'SPY'

    def test_log_returns_negative_price(self):
        with pytest.raises(InvalidInputError):
            log_returns([100.0, -5.0])

    def test_log_returns_nan_price(self):
        with pytest.raises(InvalidInputError, match="not finite"):
            log_returns([100.0, float('nan'), 101.0])


class TestTickerLogReturns:
    """Tests for per-ticker return frames."""

    def test_first_observation_dropped(self):
        prices = pd.DataFrame({
            'ticker': 'X',
            'date': [date(2024, 1, 2), date(2024, 1, 3), date(2024, 1, 4)],
            'adjusted_close': [100.0, 105.0, 100.0],
        })

        result = ticker_log_returns(prices, 'X')

        assert list(result.columns) == ['ticker', 'date', 'log_return']
        assert list(result['date']) == [date(2024, 1, 3), date(2024, 1, 4)]
        assert result['log_return'].iloc[0] == pytest.approx(math.log(1.05))

    def test_unsorted_input_is_ordered_by_date(self):
        prices = pd.DataFrame({
            'ticker': 'X',
            'date': [date(2024, 1, 4), date(2024, 1, 2), date(2024, 1, 3)],
            'adjusted_close': [121.0, 100.0, 110.0],
        })

        result = ticker_log_returns(prices, 'X')

        assert list(result['date']) == [date(2024, 1, 3), date(2024, 1, 4)]
        np.testing.assert_allclose(result['log_return'], [math.log(1.1), math.log(1.1)])

    def test_duplicate_dates_rejected(self):
        prices = pd.DataFrame({
            'ticker': 'X',
            'date': [date(2024, 1, 2), date(2024, 1, 2), date(2024, 1, 3)],
            'adjusted_close': [100.0, 101.0, 102.0],
        })

        with pytest.raises(InvalidInputError, match="duplicate dates: 2024-01-02"):
            ticker_log_returns(prices, 'X')


class TestComputeLogReturns:
    """Tests for the long multi-ticker return table."""

    def test_returns_are_subset_of_prices(self, five_asset_prices):
        returns = compute_log_returns(five_asset_prices)

        assert len(returns) == len(five_asset_prices) - 5

        price_keys = set(zip(five_asset_prices['ticker'], five_asset_prices['date']))
        return_keys = set(zip(returns['ticker'], returns['date']))
        assert return_keys < price_keys

    def test_all_failing_tickers_reported(self, price_frame_factory):
        prices = price_frame_factory(['AAA', 'BBB', 'CCC'], n_days=20)
        prices.loc[(prices['ticker'] == 'AAA') & (prices.index % 20 == 5), 'adjusted_close'] = 0.0
        prices.loc[(prices['ticker'] == 'CCC') & (prices.index % 20 == 9), 'adjusted_close'] = -1.0

        with pytest.raises(AnalysisFailures) as exc_info:
            compute_log_returns(prices)

        subjects = {f.subject for f in exc_info.value.failures}
        assert subjects == {'AAA', 'CCC'}
        assert all(isinstance(f, InvalidInputError) for f in exc_info.value.failures)

    def test_short_ticker_collected_when_failures_given(self, price_frame_factory):
        prices = pd.concat([
            price_frame_factory(['SPY', 'AGG'], n_days=30),
            price_frame_factory(['EFA'], n_days=1),
        ], ignore_index=True)
        failures = []

        returns = compute_log_returns(prices, failures=failures)

        assert list(dict.fromkeys(returns['ticker'])) == ['SPY', 'AGG']
        assert len(returns) == 58
        assert [f.subject for f in failures] == ['EFA']
        assert isinstance(failures[0], InsufficientDataError)

    def test_short_ticker_raised_without_failures_list(self, price_frame_factory):
        prices = price_frame_factory(['EFA'], n_days=1)

        with pytest.raises(AnalysisFailures, match="at least 2 prices"):
            compute_log_returns(prices)

    def test_invalid_prices_still_abort_with_failures_list(self, price_frame_factory):
        prices = pd.concat([
            price_frame_factory(['SPY'], n_days=30),
            price_frame_factory(['EFA'], n_days=1),
        ], ignore_index=True)
        prices.loc[4, 'adjusted_close'] = -2.0
        failures = []

        with pytest.raises(AnalysisFailures) as exc_info:
            compute_log_returns(prices, failures=failures)

        assert [f.subject for f in exc_info.value.failures] == ['SPY']

    def test_missing_columns(self):
        with pytest.raises(InvalidInputError, match="missing columns"):
            compute_log_returns(pd.DataFrame({'ticker': ['X'], 'date': [date(2024, 1, 2)]}))

    def test_empty_table(self):
        with pytest.raises(InvalidInputError, match="empty"):
            compute_log_returns(pd.DataFrame(columns=['ticker', 'date', 'adjusted_close']))


class TestPivotWideReturns:
    """Tests for the date-aligned wide table."""

    def test_inner_join_keeps_shared_dates(self):
        returns = pd.DataFrame({
            'ticker': ['A', 'A', 'A', 'B', 'B'],
            'date': [date(2024, 1, 2), date(2024, 1, 3), date(2024, 1, 4),
                     date(2024, 1, 3), date(2024, 1, 4)],
            'log_return': [0.01, 0.02, 0.03, -0.01, -0.02],
        })

        wide = pivot_wide_returns(returns)

        assert list(wide.columns) == ['A', 'B']
        assert list(wide.index) == [date(2024, 1, 3), date(2024, 1, 4)]
        assert wide.loc[date(2024, 1, 4), 'B'] == pytest.approx(-0.02)

    def test_disjoint_dates_raise_misaligned(self):
        returns = pd.DataFrame({
            'ticker': ['A', 'A', 'B', 'B'],
            'date': [date(2024, 1, 2), date(2024, 1, 3), date(2024, 2, 1), date(2024, 2, 2)],
            'log_return': [0.01, 0.02, -0.01, -0.02],
        })

        with pytest.raises(MisalignedSeriesError, match="no overlapping dates"):
            pivot_wide_returns(returns)
