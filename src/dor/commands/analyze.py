"""Configuration loading for the dor command.

Example config file (dor.yaml):

    period: 1
    granularity: "quarter"      # month | quarter
    date_format: "%m/%d/%Y"     # Optional, see resolve_date_format
    strategy:
      window: 55
      stop_fraction: 0.10
      force_close_at_end: false
    logging:
      level: "INFO"
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv

from dor.analysis.aggregate import parse_granularity
from dor.exceptions import ConfigurationError
from dor.types import DEFAULT_DATE_FORMAT, AnalysisConfig

# Valid log levels
VALID_LOG_LEVELS = frozenset(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])

DATE_FORMAT_ENV = "DATE_FORMAT"


def resolve_date_format(explicit: str | None = None) -> str:
    """Pick the date format for the Date column.

    An explicit value wins; otherwise the ``DATE_FORMAT`` environment variable
    (a ``.env`` file in the working directory is honoured); otherwise
    ``%m/%d/%Y``.

    :param explicit: Format given in a config file or on the command line.
    :returns: strptime format string.
    """
    if explicit:
        return explicit
    load_dotenv(find_dotenv(usecwd=True))
    return os.environ.get(DATE_FORMAT_ENV) or DEFAULT_DATE_FORMAT


def _require_int(value: Any, name: str, minimum: int = 1) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"'{name}' must be an integer")
    if value < minimum:
        raise ConfigurationError(f"'{name}' must be at least {minimum}, got {value}")
    return value


def validate_analysis_config(config: AnalysisConfig) -> AnalysisConfig:
    """Check run parameters before any data is processed.

    :param config: Configuration to check.
    :returns: The same configuration.
    :raises ConfigurationError: If a parameter is out of range.
    """
    _require_int(config.period, "period")
    _require_int(config.window, "strategy.window")
    if not 0 < config.stop_fraction <= 1:
        raise ConfigurationError(
            f"'strategy.stop_fraction' must be in (0, 1], got {config.stop_fraction}"
        )
    if config.log_level.upper() not in VALID_LOG_LEVELS:
        raise ConfigurationError(
            f"Invalid log level '{config.log_level}'. "
            f"Valid options: {sorted(VALID_LOG_LEVELS)}"
        )
    return config


def build_analysis_config(raw_config: dict[str, Any]) -> AnalysisConfig:
    """Validate a configuration mapping and turn it into an AnalysisConfig.

    :param raw_config: Parsed YAML mapping (see module docstring).
    :returns: Validated AnalysisConfig object.
    :raises ConfigurationError: If any value is invalid.
    """
    defaults = AnalysisConfig()

    period = _require_int(raw_config.get("period", defaults.period), "period")
    granularity = parse_granularity(raw_config.get("granularity", defaults.granularity))

    date_format = raw_config.get("date_format")
    if date_format is not None and not isinstance(date_format, str):
        raise ConfigurationError("'date_format' must be a string")

    # Parse strategy (optional)
    raw_strategy = raw_config.get("strategy", {}) or {}
    if not isinstance(raw_strategy, dict):
        raise ConfigurationError("'strategy' must be a mapping")

    window = _require_int(raw_strategy.get("window", defaults.window), "strategy.window")

    stop_fraction = raw_strategy.get("stop_fraction", defaults.stop_fraction)
    if isinstance(stop_fraction, bool) or not isinstance(stop_fraction, (int, float)):
        raise ConfigurationError("'strategy.stop_fraction' must be a number")

    force_close_at_end = raw_strategy.get("force_close_at_end", defaults.force_close_at_end)
    if not isinstance(force_close_at_end, bool):
        raise ConfigurationError("'strategy.force_close_at_end' must be a boolean")

    # Parse logging (optional)
    raw_logging = raw_config.get("logging", {}) or {}
    if not isinstance(raw_logging, dict):
        raise ConfigurationError("'logging' must be a mapping")
    log_level = str(raw_logging.get("level", defaults.log_level)).upper()

    config = AnalysisConfig(
        period=period,
        granularity=granularity,
        window=window,
        stop_fraction=float(stop_fraction),
        force_close_at_end=force_close_at_end,
        date_format=resolve_date_format(date_format),
        log_level=log_level,
    )
    return validate_analysis_config(config)


def load_analysis_config(config_path: str | Path) -> AnalysisConfig:
    """Parse and validate a dor configuration file.

    :param config_path: Path to YAML configuration file.
    :returns: Validated AnalysisConfig object.
    :raises ConfigurationError: If file cannot be read or config is invalid.
    """
    config_path = Path(config_path)

    try:
        with open(config_path) as f:
            raw_config = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Configuration file not found: {config_path}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e

    if raw_config is None:
        raw_config = {}
    if not isinstance(raw_config, dict):
        raise ConfigurationError("Configuration must be a YAML mapping")

    return build_analysis_config(raw_config)
