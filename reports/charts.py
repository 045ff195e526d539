"""
Chart data frames and matplotlib drawing for the asset report.
Frame builders are pure; plot functions write PNG files and nothing else.
"""

import pandas as pd
from pathlib import Path
from typing import Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from analysis.calculations.correlation import RollingCorrelation


class ChartError(Exception):
    """Raised when chart input has the wrong shape."""
    pass


def price_line_frame(price_df: pd.DataFrame) -> pd.DataFrame:
    """
    Long (x, y, group) frame of adjusted closes.

    Returns:
        DataFrame with columns date, adjusted_close, ticker
    """
    frame = price_df[['date', 'adjusted_close', 'ticker']].copy()
    frame['date'] = pd.to_datetime(frame['date'])
    return frame.reset_index(drop=True)


def return_histogram_frame(returns_df: pd.DataFrame) -> pd.DataFrame:
    """
    Long frame of log returns grouped by ticker for histograms.

    Returns:
        DataFrame with columns log_return, ticker
    """
    return returns_df[['log_return', 'ticker']].reset_index(drop=True)


def rolling_correlation_frame(rolling: RollingCorrelation) -> pd.DataFrame:
    """
    Long (x, y, group) frame of every rolling window series.

    Returns:
        DataFrame with columns date, correlation, window (e.g. '25-day')
    """
    frames = []
    for window in rolling.windows:
        series = rolling.series[window]
        frames.append(pd.DataFrame({
            'date': pd.to_datetime(series.index),
            'correlation': series.to_numpy(dtype=float),
            'window': f"{window}-day",
        }))

    if not frames:
        return pd.DataFrame(columns=['date', 'correlation', 'window'])

    return pd.concat(frames, ignore_index=True)


def plot_price_history(frame: pd.DataFrame, output_path: Path) -> Path:
    """Line chart of adjusted closes, one line per ticker."""
    if frame.empty:
        raise ChartError("No price data to plot")

    fig, ax = plt.subplots(figsize=(10, 5))
    for ticker, group in frame.groupby('ticker', sort=False):
        ax.plot(group['date'], group['adjusted_close'], label=ticker, linewidth=1)

    ax.set_title("Adjusted close")
    ax.set_ylabel("Price")
    ax.legend()

    return _save(fig, output_path)


def plot_return_histograms(
    frame: pd.DataFrame,
    output_path: Path,
    bins: int = 300,
    clip: Tuple[float, float] = (-0.05, 0.05)
) -> Path:
    """
    One histogram panel per ticker.

    Bins span the full return range; clip only limits the visible x-axis.
    """
    if frame.empty:
        raise ChartError("No return data to plot")

    tickers = list(dict.fromkeys(frame['ticker']))
    fig, axes = plt.subplots(len(tickers), 1, figsize=(10, 2.5 * len(tickers)), sharex=True, squeeze=False)

    for ax, ticker in zip(axes[:, 0], tickers):
        values = frame.loc[frame['ticker'] == ticker, 'log_return'].to_numpy()
        ax.hist(values, bins=bins)
        ax.set_xlim(*clip)
        ax.set_title(ticker)

    axes[-1, 0].set_xlabel("Daily log return")

    return _save(fig, output_path)


def plot_rolling_correlation(
    frame: pd.DataFrame,
    rolling: RollingCorrelation,
    output_path: Path,
    ylim: Tuple[float, float] = (-1.0, 1.0)
) -> Path:
    """
    Rolling Pearson lines with the whole-history Kendall tau as a reference line.

    ylim sets the visible correlation range.
    """
    if frame.empty or frame['correlation'].isna().all():
        raise ChartError("No rolling correlation values to plot")

    first, second = rolling.pair
    fig, ax = plt.subplots(figsize=(10, 5))

    for window, group in frame.groupby('window', sort=False):
        ax.plot(group['date'], group['correlation'], label=window, linewidth=1)

    ax.axhline(rolling.static_kendall, linestyle='--', color='black',
               label=f"Kendall tau (full history) = {rolling.static_kendall:.2f}")
    ax.set_ylim(*ylim)
    ax.set_title(f"Rolling correlation {first} / {second}")
    ax.legend()

    return _save(fig, output_path)


def _save(fig, output_path: Path) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        fig.tight_layout()
        fig.savefig(output_path)
    finally:
        plt.close(fig)
    return output_path
