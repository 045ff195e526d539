"""
Markdown template for rendering ReportData to the narrative report.
Pure function - no I/O, just template rendering.
"""

from datetime import datetime
from typing import Dict, List, Optional

from analysis.metrics_aggregator import CALCULATION_VERSION, ReportData
from reports.formatters import (
    format_date_display,
    format_decimal,
    format_p_value,
    format_percentage,
    format_window_display,
)


class TemplateError(Exception):
    """Raised when template rendering fails."""
    pass


def render_asset_report(report: ReportData, charts: Optional[Dict[str, str]] = None) -> str:
    """
    Render ReportData to a Markdown report.

    Args:
        report: Composed report data
        charts: Chart name to relative image path ('prices', 'histograms', 'rolling')

    Returns:
        Formatted Markdown string

    Raises:
        TemplateError: If rendering fails
    """
    if report is None or not report.tickers:
        raise TemplateError("Empty or invalid report data provided")

    charts = charts or {}

    sections = [
        _render_header(report),
        _render_prices(charts.get('prices')),
        _render_moments(report, charts.get('histograms')),
        _render_correlation(report),
        _render_rolling(report, charts.get('rolling')),
        _render_normality(report),
        _render_failures(report),
        _render_footer(report),
    ]

    return '\n\n'.join(section for section in sections if section) + '\n'


def _render_header(report: ReportData) -> str:
    period = report.data_period

    return f"""# Asset Class Return Statistics

**Tickers:** {', '.join(report.tickers)}
**Data Period:** {format_date_display(period['start_date'])} to {format_date_display(period['end_date'])} ({period['trading_days']} trading days)
**Aligned Return Days:** {period['aligned_return_days']}
**Generated:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}

---"""


def _render_prices(chart_path: Optional[str]) -> str:
    if not chart_path:
        return ""
    return f"## Adjusted Prices\n\n![Adjusted close prices]({chart_path})"


def _render_moments(report: ReportData, chart_path: Optional[str]) -> str:
    sections = ["## Return Distributions"]
    sections.append(
        "Daily log returns, ln(P_t / P_t-1). Standard deviation is the sample "
        "estimate; kurtosis is non-excess (a normal distribution has kurtosis 3)."
    )

    rows = ["| Ticker | Mean | Std Dev | Skewness | Kurtosis | Observations |",
            "|--------|------|---------|----------|----------|--------------|"]
    for ticker in report.tickers:
        summary = report.moments.get(ticker)
        if summary is None:
            rows.append(f"| {ticker} | N/A | N/A | N/A | N/A | N/A |")
            continue
        rows.append(
            f"| {ticker} | {format_percentage(summary.mean, 3)} "
            f"| {format_percentage(summary.standard_deviation, 3)} "
            f"| {format_decimal(summary.skewness, 3)} "
            f"| {format_decimal(summary.kurtosis, 3)} "
            f"| {summary.n_observations} |"
        )
    sections.append('\n'.join(rows))

    if chart_path:
        sections.append(f"![Daily log return histograms]({chart_path})")

    return '\n\n'.join(sections)


def _render_correlation(report: ReportData) -> str:
    sections = ["## Correlation Structure"]
    matrix = report.correlation

    if matrix is None:
        sections.append("*Correlation matrix could not be computed. See Computation Failures.*")
        return '\n\n'.join(sections)

    sections.append(
        f"Kendall's tau over {matrix.n_observations} aligned trading days. "
        f"Rows are ordered by hierarchical clustering. "
        f"`*` marks coefficients significant at the {format_percentage(matrix.confidence_level, 0)} level."
    )

    coefficients, _ = matrix.ordered()
    significant = matrix.significant
    order = matrix.display_order

    header = "| | " + " | ".join(order) + " |"
    divider = "|---|" + "|".join("---" for _ in order) + "|"
    rows = [header, divider]
    for row_ticker in order:
        cells = []
        for col_ticker in order:
            value = format_decimal(float(coefficients.loc[row_ticker, col_ticker]), 3)
            if row_ticker != col_ticker and bool(significant.loc[row_ticker, col_ticker]):
                value += '*'
            cells.append(value)
        rows.append(f"| **{row_ticker}** | " + " | ".join(cells) + " |")
    sections.append('\n'.join(rows))

    sections.append("### Pairwise p-values (two-sided)")
    pair_rows = ["| Pair | Kendall tau | p-value |", "|------|-------------|---------|"]
    for i, a in enumerate(order):
        for b in order[i + 1:]:
            pair_rows.append(
                f"| {a} / {b} | {format_decimal(float(matrix.coefficients.loc[a, b]), 3)} "
                f"| {format_p_value(float(matrix.p_values.loc[a, b]))} |"
            )
    sections.append('\n'.join(pair_rows))

    return '\n\n'.join(sections)


def _render_rolling(report: ReportData, chart_path: Optional[str]) -> str:
    sections = ["## Rolling Correlation"]
    rolling = report.rolling

    if rolling is None:
        sections.append("*Rolling correlation could not be computed. See Computation Failures.*")
        return '\n\n'.join(sections)

    first, second = rolling.pair
    sections.append(
        f"Trailing-window Pearson correlation between {first} and {second}. "
        f"The reference line is the full-history Kendall tau "
        f"({format_decimal(rolling.static_kendall, 3)}), a different correlation "
        f"definition shown for comparison only."
    )

    rows = ["| Window | Values | Latest | Min | Max |", "|--------|--------|--------|-----|-----|"]
    for window in rolling.windows:
        series = rolling.series[window].dropna()
        label = format_window_display(window)
        if series.empty:
            rows.append(f"| {label} | 0 | N/A | N/A | N/A |")
            continue
        rows.append(
            f"| {label} | {len(series)} | {format_decimal(float(series.iloc[-1]), 3)} "
            f"| {format_decimal(float(series.min()), 3)} | {format_decimal(float(series.max()), 3)} |"
        )
    sections.append('\n'.join(rows))

    if chart_path:
        sections.append(f"![Rolling correlation]({chart_path})")

    return '\n\n'.join(sections)


def _render_normality(report: ReportData) -> str:
    sections = ["## Normality Tests"]

    rows = ["| Ticker | Test | Statistic | p-value | Normal at 5%? |",
            "|--------|------|-----------|---------|---------------|"]
    for ticker in report.tickers:
        result = report.normality.get(ticker)
        if result is None:
            rows.append(f"| {ticker} | Jarque-Bera | N/A | N/A | N/A |")
            continue
        rows.append(
            f"| {ticker} | {result.method_label} | {format_decimal(result.test_statistic, 2)} "
            f"| {format_p_value(result.p_value)} | {'Rejected' if result.rejects_normality() else 'Not rejected'} |"
        )
    sections.append('\n'.join(rows))

    gof = report.goodness_of_fit
    if gof is not None:
        sections.append(
            f"**{gof.method_label}, {gof.ticker}:** D = {format_decimal(gof.test_statistic, 4)}, "
            f"p-value {format_p_value(gof.p_value)} ({gof.n_observations} observations)"
        )

    return '\n\n'.join(sections)


def _render_failures(report: ReportData) -> str:
    if not report.failures:
        return ""

    rows: List[str] = ["## Computation Failures", "| Subject | Error | Reason |", "|---------|-------|--------|"]
    for failure in report.failures:
        info = failure.to_dict()
        rows.append(f"| {info['subject'] or 'report'} | {info['error_type']} | {info['reason']} |")

    header, *table = rows
    return header + "\n\n" + '\n'.join(table)


def _render_footer(report: ReportData) -> str:
    return f"""---

## Report Metadata

**Calculation Time:** {report.calculated_at or 'Unknown'}
**Engine Version:** {CALCULATION_VERSION}
**Prices Ingested:** {report.provenance['ingested_at'] or 'Unknown'}
**Data Source:** Yahoo Finance adjusted close

*This report is for informational purposes only. Not investment advice.*"""
