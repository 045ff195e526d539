"""
Atomic writes for the report bundle.
report.md and report_data.json are written to a temp file in the target
directory, fsynced, then renamed over the final path.
"""

import os
import json
import logging
import tempfile
import time
from pathlib import Path
from typing import Dict, Any


logger = logging.getLogger(__name__)


def write_report_atomic(content: str, output_path: Path) -> Dict[str, Any]:
    """
    Write text to output_path without ever exposing a partial file.

    Args:
        content: Report content to write
        output_path: Final path for the report

    Returns:
        Dictionary with write results
    """
    start_time = time.time()
    output_path = Path(output_path)
    temp_path = None

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)

        # Temp file in same directory so the rename stays on one filesystem
        temp_fd, temp_path_str = tempfile.mkstemp(
            suffix='.tmp',
            prefix=f'{output_path.stem}_',
            dir=output_path.parent
        )
        temp_path = Path(temp_path_str)

        with os.fdopen(temp_fd, 'w', encoding='utf-8') as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())

        os.replace(temp_path, output_path)

        return {
            'status': 'completed',
            'output_path': str(output_path),
            'bytes_written': len(content.encode('utf-8')),
            'duration_seconds': time.time() - start_time
        }

    except OSError as e:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink()

        logger.error("Atomic write to %s failed: %s", output_path, e)
        return {
            'status': 'failed',
            'error': str(e),
            'output_path': str(output_path),
            'bytes_written': 0,
            'duration_seconds': time.time() - start_time
        }


def write_metrics_sidecar(metrics: Dict[str, Any], output_path: Path) -> Dict[str, Any]:
    """
    Write the report data JSON sidecar atomically.

    Args:
        metrics: Report data dictionary
        output_path: Path for JSON file

    Returns:
        Dictionary with write results
    """
    try:
        # Serialize first so serialization errors never touch the filesystem
        json_content = json.dumps(metrics, indent=2, default=str)
    except (TypeError, ValueError) as e:
        return {
            'status': 'failed',
            'error': f'JSON serialization failed: {e}',
            'output_path': str(output_path),
            'bytes_written': 0
        }

    return write_report_atomic(json_content, output_path)


def write_both_atomic(
    report_content: str,
    metrics: Dict[str, Any],
    report_path: Path,
    metrics_path: Path
) -> Dict[str, Any]:
    """
    Write both report and JSON sidecar.

    If the sidecar fails the report is removed again (all-or-nothing).

    Args:
        report_content: Markdown report content
        metrics: Report data dictionary
        report_path: Path for report file
        metrics_path: Path for JSON file

    Returns:
        Dictionary with combined write results
    """
    report_result = write_report_atomic(report_content, report_path)

    if report_result['status'] != 'completed':
        return {
            'status': 'failed',
            'error': f"Report write failed: {report_result.get('error', 'Unknown')}",
            'report_written': False,
            'metrics_written': False
        }

    metrics_result = write_metrics_sidecar(metrics, metrics_path)

    if metrics_result['status'] != 'completed':
        Path(report_path).unlink(missing_ok=True)

        return {
            'status': 'failed',
            'error': f"Metrics write failed: {metrics_result.get('error', 'Unknown')}",
            'report_written': False,
            'metrics_written': False
        }

    return {
        'status': 'completed',
        'report_path': str(report_path),
        'metrics_path': str(metrics_path),
        'report_bytes': report_result['bytes_written'],
        'metrics_bytes': metrics_result['bytes_written'],
        'report_written': True,
        'metrics_written': True
    }
