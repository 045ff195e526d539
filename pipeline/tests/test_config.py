"""
Tests for report configuration loading and validation.
"""

import pytest
from datetime import date
from pathlib import Path

from pipeline.config import (
    DEFAULT_CONFIG_PATH,
    ConfigError,
    ReportConfig,
    load_report_config
)


MINIMAL_YAML = """
tickers: [spy, agg, eem]
start_date: 2015-01-02
end_date: 2016-12-30
rolling_correlation:
  pair: [spy, agg]
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv('ASSET_REPORT_CONFIG', raising=False)
    monkeypatch.delenv('ASSET_REPORT_OUTPUT_DIR', raising=False)


def _base(**overrides):
    values = dict(
        tickers=['SPY', 'AGG'],
        start_date=date(2015, 1, 2),
        end_date=date(2016, 12, 30),
        rolling_pair=('SPY', 'AGG'),
    )
    values.update(overrides)
    return ReportConfig(**values)


class TestReportConfig:
    """Tests for ReportConfig validation."""

    def test_defaults(self):
        config = _base()

        assert config.rolling_windows == [25, 75, 252]
        assert config.confidence_level == 0.95
        assert config.histogram_bins == 300
        assert config.return_clip == (-0.05, 0.05)
        assert config.correlation_range == (-1.0, 1.0)
        assert config.days_range == 728

    def test_string_dates_and_lowercase_tickers(self):
        config = _base(tickers=['spy', 'agg'], start_date='2015-01-02', rolling_pair=['spy', 'agg'])

        assert config.tickers == ['SPY', 'AGG']
        assert config.rolling_pair == ('SPY', 'AGG')
        assert config.start_date == date(2015, 1, 2)

    @pytest.mark.parametrize('overrides, message', [
        ({'tickers': []}, 'non-empty'),
        ({'tickers': ['SPY', 'spy', 'AGG']}, 'unique'),
        ({'start_date': date(2017, 1, 1)}, 'start_date must be <= end_date'),
        ({'start_date': '01/02/2015'}, 'YYYY-MM-DD'),
        ({'rolling_pair': ('SPY', 'EEM')}, 'EEM not in tickers'),
        ({'rolling_pair': ('SPY', 'SPY')}, 'two different tickers'),
        ({'rolling_pair': ('SPY',)}, 'exactly 2'),
        ({'rolling_windows': [25, 1]}, 'integer >= 2'),
        ({'rolling_windows': []}, 'must not be empty'),
        ({'correlation_method': 'spearman'}, 'Unsupported correlation method'),
        ({'confidence_level': 1.0}, 'confidence_level'),
        ({'goodness_of_fit_ticker': 'QQQ'}, 'QQQ not in tickers'),
        ({'histogram_bins': 0}, 'histogram_bins'),
        ({'return_clip': (0.05, -0.05)}, 'return_clip'),
        ({'correlation_range': (0.5, -0.5)}, 'correlation_range'),
        ({'correlation_range': (-1.5, 1.0)}, 'correlation_range'),
    ])
    def test_invalid_values(self, overrides, message):
        with pytest.raises(ConfigError, match=message):
            _base(**overrides)


class TestLoadReportConfig:
    """Tests for load_report_config."""

    def test_bundled_default(self):
        config = load_report_config()

        assert config.tickers == ['SPY', 'EFA', 'IJS', 'EEM', 'AGG']
        assert config.start_date == date(2012, 12, 31)
        assert config.end_date == date(2017, 12, 31)
        assert config.rolling_pair == ('SPY', 'AGG')
        assert config.goodness_of_fit_ticker == 'SPY'
        assert config.correlation_range == (-1.0, 1.0)
        assert DEFAULT_CONFIG_PATH.exists()

    def test_minimal_file(self, tmp_path):
        path = tmp_path / 'report.yml'
        path.write_text(MINIMAL_YAML)

        config = load_report_config(path)

        assert config.tickers == ['SPY', 'AGG', 'EEM']
        assert config.goodness_of_fit_ticker is None
        assert config.rolling_windows == [25, 75, 252]

    def test_display_ranges(self, tmp_path):
        path = tmp_path / 'report.yml'
        path.write_text(MINIMAL_YAML + "display:\n  return_clip: [-0.1, 0.1]\n  correlation_range: [-0.25, 0.75]\n")

        config = load_report_config(path)

        assert config.return_clip == (-0.1, 0.1)
        assert config.correlation_range == (-0.25, 0.75)

    def test_env_config_path(self, tmp_path, monkeypatch):
        path = tmp_path / 'env.yml'
        path.write_text(MINIMAL_YAML)
        monkeypatch.setenv('ASSET_REPORT_CONFIG', str(path))

        assert load_report_config().tickers == ['SPY', 'AGG', 'EEM']

    def test_env_output_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv('ASSET_REPORT_OUTPUT_DIR', str(tmp_path / 'env-out'))

        assert load_report_config().output_dir == tmp_path / 'env-out'

    def test_overrides_win(self, monkeypatch, tmp_path):
        monkeypatch.setenv('ASSET_REPORT_OUTPUT_DIR', str(tmp_path / 'env-out'))

        config = load_report_config(
            start_date=date(2014, 1, 2),
            end_date=None,
            output_dir=Path('cli-out')
        )

        assert config.start_date == date(2014, 1, 2)
        assert config.end_date == date(2017, 12, 31)
        assert config.output_dir == Path('cli-out')

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_report_config(tmp_path / 'absent.yml')

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / 'bad.yml'
        path.write_text("tickers: [SPY, AGG\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_report_config(path)

    def test_missing_required_value(self, tmp_path):
        path = tmp_path / 'partial.yml'
        path.write_text("tickers: [SPY, AGG]\nstart_date: 2015-01-02\nend_date: 2016-12-30\n")

        with pytest.raises(ConfigError, match="rolling_pair"):
            load_report_config(path)

    def test_unknown_override_key(self):
        with pytest.raises(ConfigError, match="Invalid configuration keys"):
            load_report_config(benchmark='SPY')
