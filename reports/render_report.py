"""
Report renderer - draws charts, renders Markdown, and writes the report bundle.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Tuple

from analysis.metrics_aggregator import ReportData
from reports.atomic_writer import write_both_atomic
from reports.charts import (
    ChartError,
    plot_price_history,
    plot_return_histograms,
    plot_rolling_correlation,
    price_line_frame,
    return_histogram_frame,
    rolling_correlation_frame,
)
from reports.markdown_template import render_asset_report


logger = logging.getLogger(__name__)

REPORT_FILENAME = 'report.md'
SIDECAR_FILENAME = 'report_data.json'
CHART_FILENAMES = {
    'prices': 'prices.png',
    'histograms': 'return_histograms.png',
    'rolling': 'rolling_correlation.png',
}


def render_report(
    report: ReportData,
    output_dir: Path,
    histogram_bins: int = 300,
    return_clip: Tuple[float, float] = (-0.05, 0.05),
    correlation_range: Tuple[float, float] = (-1.0, 1.0)
) -> Dict[str, Any]:
    """
    Render the full report bundle into output_dir.

    Writes report.md, report_data.json and one PNG per chart. A chart that
    has no data is skipped and left out of the Markdown.

    Args:
        report: Composed report data
        output_dir: Directory for the bundle
        histogram_bins: Histogram bin count
        return_clip: Visible x-axis range for return histograms
        correlation_range: Visible y-axis range for the rolling correlation chart

    Returns:
        Dictionary with render results
    """
    start_time = datetime.now()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    charts = {}

    chart_jobs = [
        ('prices', lambda path: plot_price_history(price_line_frame(report.prices), path)),
        ('histograms', lambda path: plot_return_histograms(
            return_histogram_frame(report.returns), path, bins=histogram_bins, clip=return_clip)),
    ]
    if report.rolling is not None:
        chart_jobs.append(('rolling', lambda path: plot_rolling_correlation(
            rolling_correlation_frame(report.rolling), report.rolling, path, ylim=correlation_range)))

    for name, draw in chart_jobs:
        filename = CHART_FILENAMES[name]
        try:
            draw(output_dir / filename)
            charts[name] = filename
        except ChartError as e:
            logger.warning("Skipping %s chart: %s", name, e)

    markdown_content = render_asset_report(report, charts)

    report_path = output_dir / REPORT_FILENAME
    sidecar_path = output_dir / SIDECAR_FILENAME

    write_result = write_both_atomic(
        report_content=markdown_content,
        metrics=report.to_dict(),
        report_path=report_path,
        metrics_path=sidecar_path
    )

    if write_result['status'] != 'completed':
        return {
            'status': 'failed',
            'error_message': write_result['error'],
            'output_path': None,
            'charts': charts,
            'duration_seconds': (datetime.now() - start_time).total_seconds()
        }

    logger.info("Report written to %s (%d charts)", report_path, len(charts))

    return {
        'status': 'completed',
        'output_path': str(report_path),
        'sidecar_path': str(sidecar_path),
        'charts': charts,
        'report_size_bytes': write_result['report_bytes'],
        'duration_seconds': (datetime.now() - start_time).total_seconds()
    }
