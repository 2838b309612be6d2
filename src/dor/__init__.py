"""Distribution of returns analysis package root."""

from dor.exceptions import ConfigurationError, DomainError, DorError, IngestionError

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "DorError",
    "IngestionError",
    "DomainError",
    "ConfigurationError",
]
