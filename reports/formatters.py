"""
Display formatters for report tables.
Deterministic string formatting for percentages, statistics, p-values, and dates.
"""

import math
from datetime import datetime, date
from typing import Optional, Union


NOT_AVAILABLE = "Not available"


class FormatterError(Exception):
    """Raised when formatter input validation fails."""
    pass


def _check_numeric(value, kind: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise FormatterError(f"{kind} value must be numeric, got {type(value)}")


def format_percentage(value: Optional[float], decimal_places: int = 2) -> str:
    """
    Format decimal as percentage with specified precision.

    Args:
        value: Decimal value (0.0845 = 8.45%)
        decimal_places: Number of decimal places (default: 2)

    Returns:
        Formatted percentage string (e.g., "8.45%")
    """
    if value is None:
        return NOT_AVAILABLE

    _check_numeric(value, "Percentage")

    if math.isnan(value):
        return NOT_AVAILABLE

    return f"{value * 100:.{decimal_places}f}%"


def format_decimal(value: Optional[float], decimal_places: int = 4) -> str:
    """
    Format a statistic with fixed precision.

    Args:
        value: Statistic value
        decimal_places: Number of decimal places (default: 4)

    Returns:
        Formatted string (e.g., "-0.2531")
    """
    if value is None:
        return NOT_AVAILABLE

    _check_numeric(value, "Statistic")

    if math.isnan(value):
        return NOT_AVAILABLE

    return f"{value:.{decimal_places}f}"


def format_p_value(value: Optional[float]) -> str:
    """
    Format a p-value; values below 0.0001 are shown as "< 0.0001".

    Args:
        value: p-value in [0, 1]

    Returns:
        Formatted p-value string
    """
    if value is None:
        return NOT_AVAILABLE

    _check_numeric(value, "p-value")

    if math.isnan(value):
        return NOT_AVAILABLE

    if not 0.0 <= value <= 1.0:
        raise FormatterError(f"p-value must be in [0, 1], got {value}")

    if value < 0.0001:
        return "< 0.0001"

    return f"{value:.4f}"


def format_date_display(date_input: Union[str, date, datetime]) -> str:
    """
    Format date as "Month D, YYYY".

    Args:
        date_input: Date as string, date object, or datetime object

    Returns:
        Formatted date string (e.g., "July 15, 2025")
    """
    if date_input is None:
        return NOT_AVAILABLE

    if isinstance(date_input, str):
        try:
            if 'T' in date_input:
                date_obj = datetime.fromisoformat(date_input.replace('Z', '+00:00')).date()
            else:
                date_obj = date.fromisoformat(date_input)
        except ValueError:
            raise FormatterError(f"Invalid date string: {date_input}")
    elif isinstance(date_input, datetime):
        date_obj = date_input.date()
    elif isinstance(date_input, date):
        date_obj = date_input
    else:
        raise FormatterError(f"Date must be string, date, or datetime, got {type(date_input)}")

    return date_obj.strftime("%B %d, %Y")


def format_window_display(window_days: int) -> str:
    """
    Format a rolling window length for display.

    Args:
        window_days: Number of trading days in window

    Returns:
        Formatted window string (e.g., "25-day")
    """
    if window_days is None:
        return NOT_AVAILABLE

    if isinstance(window_days, bool) or not isinstance(window_days, int) or window_days <= 0:
        raise FormatterError(f"Window days must be positive integer, got {window_days}")

    return f"{window_days}-day"
