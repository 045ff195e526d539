"""
Report configuration - YAML defaults with environment overrides.
"""

import os
import yaml
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / 'config' / 'asset_report.yml'

SUPPORTED_CORRELATION_METHODS = ('kendall',)


class ConfigError(ValueError):
    """Raised when report configuration is invalid."""
    pass


@dataclass
class ReportConfig:
    """Configuration for the asset class report pipeline."""
    tickers: List[str]
    start_date: date
    end_date: date
    rolling_pair: Tuple[str, str]
    rolling_windows: List[int] = field(default_factory=lambda: [25, 75, 252])
    correlation_method: str = 'kendall'
    confidence_level: float = 0.95
    goodness_of_fit_ticker: Optional[str] = None
    histogram_bins: int = 300
    return_clip: Tuple[float, float] = (-0.05, 0.05)
    correlation_range: Tuple[float, float] = (-1.0, 1.0)
    output_dir: Path = Path('./reports/output')

    def __post_init__(self):
        """Validate and normalize fields."""
        if not self.tickers or not all(isinstance(t, str) and t for t in self.tickers):
            raise ConfigError("tickers must be a non-empty list of strings")

        self.tickers = [t.upper() for t in self.tickers]
        if len(set(self.tickers)) != len(self.tickers):
            raise ConfigError(f"tickers must be unique, got {self.tickers}")

        self.start_date = _coerce_date(self.start_date, 'start_date')
        self.end_date = _coerce_date(self.end_date, 'end_date')
        if self.start_date > self.end_date:
            raise ConfigError("start_date must be <= end_date")

        if len(self.rolling_pair) != 2:
            raise ConfigError(f"rolling_pair must name exactly 2 tickers, got {self.rolling_pair}")
        self.rolling_pair = tuple(t.upper() for t in self.rolling_pair)
        for ticker in self.rolling_pair:
            if ticker not in self.tickers:
                raise ConfigError(f"rolling_pair ticker {ticker} not in tickers")
        if self.rolling_pair[0] == self.rolling_pair[1]:
            raise ConfigError("rolling_pair must name two different tickers")

        if not self.rolling_windows:
            raise ConfigError("rolling_windows must not be empty")
        for window in self.rolling_windows:
            if not isinstance(window, int) or window < 2:
                raise ConfigError(f"rolling window must be an integer >= 2, got {window}")

        if self.correlation_method not in SUPPORTED_CORRELATION_METHODS:
            raise ConfigError(f"Unsupported correlation method: {self.correlation_method}")

        if not 0.0 < self.confidence_level < 1.0:
            raise ConfigError(f"confidence_level must be in (0, 1), got {self.confidence_level}")

        if self.goodness_of_fit_ticker is not None:
            self.goodness_of_fit_ticker = self.goodness_of_fit_ticker.upper()
            if self.goodness_of_fit_ticker not in self.tickers:
                raise ConfigError(f"goodness_of_fit_ticker {self.goodness_of_fit_ticker} not in tickers")

        if not isinstance(self.histogram_bins, int) or self.histogram_bins < 1:
            raise ConfigError(f"histogram_bins must be a positive integer, got {self.histogram_bins}")

        low, high = self.return_clip
        if low >= high:
            raise ConfigError(f"return_clip lower bound must be below upper bound, got {self.return_clip}")
        self.return_clip = (float(low), float(high))

        low, high = self.correlation_range
        if not -1.0 <= low < high <= 1.0:
            raise ConfigError(f"correlation_range must satisfy -1 <= lower < upper <= 1, got {self.correlation_range}")
        self.correlation_range = (float(low), float(high))

        self.output_dir = Path(self.output_dir)

    @property
    def days_range(self) -> int:
        """Calculate number of calendar days in range."""
        return (self.end_date - self.start_date).days


def load_report_config(config_path: Optional[Path] = None, **overrides: Any) -> ReportConfig:
    """
    Load report configuration from YAML.

    Resolution order for the file: explicit argument, ASSET_REPORT_CONFIG,
    then the bundled default. ASSET_REPORT_OUTPUT_DIR overrides output_dir;
    keyword overrides that are not None win over everything.

    Args:
        config_path: Path to a YAML configuration file
        **overrides: ReportConfig field values to override

    Returns:
        Validated ReportConfig

    Raises:
        ConfigError: If the file is missing, malformed, or invalid
    """
    if config_path is None:
        config_path = os.getenv('ASSET_REPORT_CONFIG', str(DEFAULT_CONFIG_PATH))
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"Config root must be a mapping: {config_path}")

    values = _flatten_config(raw)

    env_output_dir = os.getenv('ASSET_REPORT_OUTPUT_DIR')
    if env_output_dir:
        values['output_dir'] = env_output_dir

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return ReportConfig(**values)
    except TypeError as e:
        raise ConfigError(f"Invalid configuration keys in {config_path}: {e}") from e


def _flatten_config(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Map the nested YAML layout onto ReportConfig fields."""
    rolling = raw.get('rolling_correlation') or {}
    correlation = raw.get('correlation') or {}
    display = raw.get('display') or {}

    values = {
        'tickers': raw.get('tickers'),
        'start_date': raw.get('start_date'),
        'end_date': raw.get('end_date'),
        'rolling_pair': rolling.get('pair'),
        'rolling_windows': rolling.get('windows'),
        'correlation_method': correlation.get('method'),
        'confidence_level': correlation.get('confidence_level'),
        'goodness_of_fit_ticker': raw.get('goodness_of_fit_ticker'),
        'histogram_bins': display.get('histogram_bins'),
        'return_clip': tuple(display['return_clip']) if display.get('return_clip') else None,
        'correlation_range': tuple(display['correlation_range']) if display.get('correlation_range') else None,
        'output_dir': raw.get('output_dir'),
    }

    for required in ('tickers', 'start_date', 'end_date', 'rolling_pair'):
        if values[required] is None:
            raise ConfigError(f"Missing required config value: {required}")

    return {k: v for k, v in values.items() if v is not None}


def _coerce_date(value: Any, name: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError as e:
        raise ConfigError(f"{name} must be YYYY-MM-DD, got {value!r}") from e
