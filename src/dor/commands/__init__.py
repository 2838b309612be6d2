"""CLI command support for the dor tool.

Each command module provides:
- Configuration loading and validation
- Integration with core library functions
"""

from dor.commands.analyze import (
    build_analysis_config,
    load_analysis_config,
    resolve_date_format,
    validate_analysis_config,
)

__all__ = [
    "build_analysis_config",
    "load_analysis_config",
    "resolve_date_format",
    "validate_analysis_config",
]
