"""
Asset report DAG - orchestrates the complete report pipeline.
Composes: Provider → Transform → Validate → Analyze → Render.
"""

import logging
from datetime import datetime
from typing import Dict, Any, List

from analysis.errors import AnalysisError, AnalysisFailures, InsufficientDataError
from analysis.metrics_aggregator import compose_report_data
from ingestion.providers.yfinance_adapter import fetch_adjusted_closes
from ingestion.transforms.normalizers import normalize_prices, to_price_frame
from ingestion.transforms.validators import validate_price_rows
from pipeline.config import ReportConfig
from reports.render_report import render_report


logger = logging.getLogger(__name__)


def run_asset_report(config: ReportConfig) -> Dict[str, Any]:
    """
    Run the complete asset report pipeline.

    Pipeline stages:
    1. Fetch adjusted closes from provider
    2. Normalize to canonical format
    3. Validate every ticker (all failures collected)
    4. Compose statistics
    5. Render charts, Markdown, and JSON sidecar

    Status is 'completed' when every statistic was computed, 'partial' when
    the report was written but some statistics failed, and 'failed' when no
    report could be produced.

    Args:
        config: Pipeline configuration

    Returns:
        Dictionary with run results
    """
    start_time = datetime.now()

    result = {
        'tickers': list(config.tickers),
        'start_date': config.start_date,
        'end_date': config.end_date,
        'status': 'running',
        'rows_fetched': 0,
        'failures': [],
        'output_path': None,
        'error_message': None
    }

    try:
        # Stage 1: Fetch raw data from provider
        logger.info("Fetching %s from %s to %s", ', '.join(config.tickers), config.start_date, config.end_date)
        raw_data = fetch_adjusted_closes(
            tickers=config.tickers,
            start=config.start_date,
            end=config.end_date
        )
        result['rows_fetched'] = len(raw_data)

        # Stage 2: Normalize to canonical format
        rows = normalize_prices(raw_data, source='yfinance', ingested_at=datetime.now())

        # Stage 3: Validate every ticker before any statistic is computed
        missing = _missing_tickers(rows, config.tickers)
        if missing:
            raise AnalysisFailures(missing)

        validate_price_rows(rows)
        price_df = to_price_frame(rows)

        # Stage 4: Compose statistics
        report = compose_report_data(
            price_df,
            rolling_pair=config.rolling_pair,
            rolling_windows=config.rolling_windows,
            confidence_level=config.confidence_level,
            goodness_of_fit_ticker=config.goodness_of_fit_ticker
        )
        result['failures'] = [str(f) for f in report.failures]
        result['data_period'] = report.data_period

        # Stage 5: Render report bundle
        render_result = render_report(
            report,
            output_dir=config.output_dir,
            histogram_bins=config.histogram_bins,
            return_clip=config.return_clip,
            correlation_range=config.correlation_range
        )

        if render_result['status'] != 'completed':
            result['status'] = 'failed'
            result['error_message'] = render_result['error_message']
        else:
            result['status'] = 'completed' if report.complete else 'partial'
            result['output_path'] = render_result['output_path']
            result['sidecar_path'] = render_result['sidecar_path']
            result['charts'] = render_result['charts']

    except AnalysisFailures as e:
        result['status'] = 'failed'
        result['failures'] = [str(f) for f in e.failures]
        result['error_message'] = str(e)
    except Exception as e:
        logger.exception("Asset report pipeline failed")
        result['status'] = 'failed'
        result['error_message'] = str(e)

    for failure in result['failures']:
        logger.warning("Report failure: %s", failure)

    result['duration_seconds'] = (datetime.now() - start_time).total_seconds()
    return result


def _missing_tickers(rows: List[Dict[str, Any]], tickers: List[str]) -> List[AnalysisError]:
    """Return one failure per configured ticker with no price rows."""
    present = {row['ticker'] for row in rows}
    return [
        InsufficientDataError("no price data returned by provider", subject=ticker)
        for ticker in tickers
        if ticker not in present
    ]
