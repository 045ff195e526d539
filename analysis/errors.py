"""
Error taxonomy for the analysis engine.
Every error names the ticker, window, or test it concerns.
"""

from typing import List, Optional


class AnalysisError(Exception):
    """Base class for analysis failures."""

    def __init__(self, message: str, subject: Optional[str] = None):
        self.subject = subject
        self.reason = message
        if subject:
            message = f"{subject}: {message}"
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            'error_type': type(self).__name__,
            'subject': self.subject,
            'reason': self.reason,
        }


class InvalidInputError(AnalysisError, ValueError):
    """Raised for malformed input: non-positive price, duplicate date, bad parameter."""
    pass


class InsufficientDataError(AnalysisError):
    """Raised when too few observations exist for a statistic or window."""
    pass


class MisalignedSeriesError(AnalysisError):
    """Raised when no dates overlap across tickers after alignment."""
    pass


class AnalysisFailures(AnalysisError):
    """Raised with every collected failure when analysis cannot proceed."""

    def __init__(self, failures: List[AnalysisError]):
        self.failures = list(failures)
        summary = '; '.join(str(f) for f in self.failures)
        super().__init__(f"{len(self.failures)} failure(s): {summary}")
