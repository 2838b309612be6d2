#!/usr/bin/env python3
"""Command-line interface for distribution-of-returns analysis."""

from __future__ import annotations

import argparse
import sys

from dor.types import AnalysisConfig


def build_config(args: argparse.Namespace) -> AnalysisConfig:
    """Merge the optional YAML config file with command-line overrides.

    :param args: Parsed ``dor`` arguments.
    :returns: Validated configuration.
    :raises ConfigurationError: If the file or any value is invalid.
    """
    from dor.analysis.aggregate import parse_granularity
    from dor.commands.analyze import (
        load_analysis_config,
        resolve_date_format,
        validate_analysis_config,
    )

    if args.config:
        config = load_analysis_config(args.config)
    else:
        config = AnalysisConfig(date_format=resolve_date_format())

    overrides = {
        "period": args.period,
        "window": args.window,
        "stop_fraction": args.stop_fraction,
        "date_format": args.date_format,
        "log_level": args.log_level,
    }
    if args.granularity is not None:
        overrides["granularity"] = parse_granularity(args.granularity)
    if args.force_close:
        overrides["force_close_at_end"] = True

    config = config.model_copy(
        update={k: v for k, v in overrides.items() if v is not None}
    )
    return validate_analysis_config(config)


def cmd_dor(args: argparse.Namespace) -> int:
    """Analyze return distributions and backtest the breakout strategy."""
    from dor.analysis import analyze_files
    from dor.exceptions import ConfigurationError, DorError
    from dor.logger import setup_logger
    from dor.report import format_result

    try:
        config = build_config(args)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logger(level=config.log_level)

    try:
        results = analyze_files(args.file, config, parallel=args.parallel)
    except DorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for result in results:
        print(format_result(result))
        print()

    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="pm",
        description="Distribution of returns analysis for Yahoo Finance CSV downloads",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    dor_parser = subparsers.add_parser(
        "dor", help="Analyze the distribution of returns of one or more CSV files"
    )
    dor_parser.add_argument(
        "--file",
        action="append",
        required=True,
        help="Path to .csv file to analyze (repeat for several files)",
    )
    dor_parser.add_argument(
        "--period",
        type=int,
        help="The period of each datapoint, in rows. 1 = 1 day usually (default: 1)",
    )
    dor_parser.add_argument(
        "-g",
        "--granularity",
        choices=["month", "quarter"],
        help="Rollup period for aggregated bars (default: quarter)",
    )
    dor_parser.add_argument(
        "--window", type=int, help="Breakout lookback window in bars (default: 55)"
    )
    dor_parser.add_argument(
        "--stop-fraction",
        type=float,
        help="Adverse move, as a fraction of entry, that closes a position (default: 0.10)",
    )
    dor_parser.add_argument(
        "--force-close",
        action="store_true",
        help="Close a position still open at the end of data instead of dropping it",
    )
    dor_parser.add_argument("--config", help="Path to YAML configuration file")
    dor_parser.add_argument(
        "--date-format",
        help="strptime format of the Date column (default: $DATE_FORMAT or %%m/%%d/%%Y)",
    )
    dor_parser.add_argument(
        "--parallel", action="store_true", help="Analyze several files in parallel"
    )
    dor_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "dor":
        return cmd_dor(args)

    return 0


if __name__ == "__main__":
    sys.exit(main())
