"""
Tests for atomic writer - temp write → fsync → rename.
Simulated failures to verify nothing partial is left behind.
"""

import json
import pytest
from pathlib import Path
from unittest.mock import patch

from reports.atomic_writer import (
    write_both_atomic,
    write_metrics_sidecar,
    write_report_atomic
)


class TestAtomicWriter:
    """Tests for atomic file writing."""

    def test_write_report_atomic_success(self, tmp_path):
        content = "# Report\n\nAdjusted close statistics for SPY and AGG.\n"
        output_path = tmp_path / 'nested' / 'report.md'

        result = write_report_atomic(content, output_path)

        assert result['status'] == 'completed'
        assert result['bytes_written'] == len(content.encode('utf-8'))
        assert output_path.read_text(encoding='utf-8') == content
        assert list(output_path.parent.glob('*.tmp')) == []

    def test_overwrite_existing_file(self, tmp_path):
        output_path = tmp_path / 'report.md'
        output_path.write_text('old')

        write_report_atomic('new', output_path)

        assert output_path.read_text() == 'new'

    def test_rename_failure_leaves_no_temp_file(self, tmp_path):
        output_path = tmp_path / 'report.md'
        output_path.write_text('previous report')

        with patch('reports.atomic_writer.os.replace', side_effect=OSError("disk full")):
            result = write_report_atomic('new content', output_path)

        assert result['status'] == 'failed'
        assert 'disk full' in result['error']
        assert output_path.read_text() == 'previous report'
        assert list(tmp_path.glob('*.tmp')) == []

    def test_sidecar_is_json(self, tmp_path):
        output_path = tmp_path / 'report_data.json'

        result = write_metrics_sidecar({'tickers': ['SPY'], 'p_value': 0.5}, output_path)

        assert result['status'] == 'completed'
        assert json.loads(output_path.read_text()) == {'tickers': ['SPY'], 'p_value': 0.5}

    def test_sidecar_serialization_failure(self, tmp_path):
        circular = {}
        circular['self'] = circular
        result = write_metrics_sidecar(circular, tmp_path / 'circular.json')

        assert result['status'] == 'failed'
        assert 'JSON serialization failed' in result['error']
        assert not (tmp_path / 'circular.json').exists()


class TestWriteBothAtomic:
    """Tests for the report + sidecar pair."""

    def test_both_written(self, tmp_path):
        result = write_both_atomic('# Report\n', {'tickers': ['SPY']}, tmp_path / 'report.md', tmp_path / 'data.json')

        assert result['status'] == 'completed'
        assert result['report_written'] and result['metrics_written']
        assert (tmp_path / 'report.md').exists()
        assert (tmp_path / 'data.json').exists()

    def test_sidecar_failure_removes_report(self, tmp_path):
        circular = {}
        circular['self'] = circular

        result = write_both_atomic('# Report\n', circular, tmp_path / 'report.md', tmp_path / 'data.json')

        assert result['status'] == 'failed'
        assert 'Metrics write failed' in result['error']
        assert not (tmp_path / 'report.md').exists()
        assert not (tmp_path / 'data.json').exists()
