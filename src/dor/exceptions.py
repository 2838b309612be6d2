"""Exception hierarchy for the returns analysis pipeline.

All package exceptions derive from :class:`DorError` so the command line
driver can report every failure uniformly.
"""

from __future__ import annotations


class DorError(Exception):
    """Base class for analysis errors.

    Derived exceptions should extend this class so that callers can catch all
    package-specific errors uniformly.
    """


class IngestionError(DorError):
    """Raised when the source file cannot be read into typed bars.

    Covers missing files, missing columns, malformed numbers, unparseable
    dates and out-of-order rows.
    """


class DomainError(DorError):
    """Raised when a bar makes a derived statistic undefined.

    Division by a zero open, close or low price is reported with the offending
    date instead of letting NaN or infinity flow downstream.
    """


class ConfigurationError(DorError):
    """Raised when configuration files or parameters are invalid."""


__all__ = [
    "DorError",
    "IngestionError",
    "DomainError",
    "ConfigurationError",
]
