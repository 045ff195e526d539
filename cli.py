#!/usr/bin/env python3
"""
Main CLI for the asset class return statistics report.
Usage: python cli.py report [options]
"""

import sys
import logging
import argparse
from datetime import date
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from pipeline.config import ConfigError, load_report_config
from pipeline.report_dag import run_asset_report


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description='Asset class return statistics report',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py report
  python cli.py report --start 2015-01-01 --end 2019-12-31
  python cli.py report --config ./config/asset_report.yml --output-dir ./out
        """
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    report_parser = subparsers.add_parser('report', help='Fetch prices and render the report')
    report_parser.add_argument('--config',
                               type=Path,
                               help='YAML config file (default: $ASSET_REPORT_CONFIG or config/asset_report.yml)')
    report_parser.add_argument('--start',
                               type=date.fromisoformat,
                               help='Start date (YYYY-MM-DD)')
    report_parser.add_argument('--end',
                               type=date.fromisoformat,
                               help='End date (YYYY-MM-DD)')
    report_parser.add_argument('--output-dir',
                               type=Path,
                               help='Directory for the report bundle')
    report_parser.add_argument('--verbose', '-v',
                               action='store_true',
                               help='Show pipeline log messages')
    report_parser.add_argument('--quiet', '-q',
                               action='store_true',
                               help='Minimal output')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    if args.command == 'report':
        return generate_report(args)

    return 1


def generate_report(args) -> int:
    """
    Generate the report bundle.

    Returns:
        Process exit code: 0 when complete, 1 otherwise
    """
    try:
        config = load_report_config(
            args.config,
            start_date=args.start,
            end_date=args.end,
            output_dir=args.output_dir
        )
    except ConfigError as e:
        print(f"ERROR: Invalid configuration: {e}", file=sys.stderr)
        return 1

    if not args.quiet:
        print(f"Generating asset report for {', '.join(config.tickers)}")
        print(f"Date range: {config.start_date} to {config.end_date} ({config.days_range} days)")
        print(f"Output directory: {config.output_dir}")
        print()

    result = run_asset_report(config)

    if result['status'] == 'failed':
        print(f"ERROR: Report generation failed: {result['error_message']}", file=sys.stderr)
        for failure in result['failures']:
            print(f"   - {failure}", file=sys.stderr)
        return 1

    if result['status'] == 'partial':
        print("WARNING: Some statistics could not be computed:", file=sys.stderr)
        for failure in result['failures']:
            print(f"   - {failure}", file=sys.stderr)

    if args.quiet:
        print(result['output_path'])
    else:
        print(f"Rows fetched: {result['rows_fetched']}")
        print(f"Report: {result['output_path']}")
        print(f"Data: {result['sidecar_path']}")
        print(f"Charts: {', '.join(result['charts'].values()) or 'none'}")
        print(f"Duration: {result['duration_seconds']:.1f}s")

    return 0 if result['status'] == 'completed' else 1


if __name__ == '__main__':
    sys.exit(main())
