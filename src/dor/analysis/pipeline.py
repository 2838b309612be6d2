"""End-to-end analysis of one or more daily bar files.

This module wires the ingestion, derivation, aggregation, statistics and
strategy steps together. Files are independent of each other, so a batch can
be spread over worker processes; results always come back in input order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor
from functools import partial
from pathlib import Path
from typing import Sequence

from pydantic import BaseModel, Field

from dor.analysis.aggregate import aggregate_bars
from dor.analysis.derive import derive_bars
from dor.analysis.stats import average_true_range_pct, summarize_returns
from dor.data.sources import load_rows
from dor.strategies.turtle import TurtleBreakoutStrategy
from dor.types import (
    AggregatedBar,
    AnalysisConfig,
    DerivedBar,
    Position,
    RawBar,
    ReturnDistribution,
)

logger = logging.getLogger(__name__)


class AnalysisResult(BaseModel):
    """Results from analyzing one bar series.

    :param source: Where the bars came from (file path), if known.
    :param config: Configuration used for the run.
    :param derived_bars: Per-bar measures.
    :param aggregated_bars: Monthly or quarterly rollups.
    :param positions: Closed breakout positions, in closing order.
    :param average_true_range_pct: Mean true range percentage of the derived bars.
    :param return_distribution: Close-to-close return summary of the derived bars.
    """

    source: str | None = None
    config: AnalysisConfig
    derived_bars: list[DerivedBar] = Field(default_factory=list)
    aggregated_bars: list[AggregatedBar] = Field(default_factory=list)
    positions: list[Position] = Field(default_factory=list)
    average_true_range_pct: float | None = None
    return_distribution: ReturnDistribution | None = None


def analyze_bars(
    rows: Sequence[RawBar],
    config: AnalysisConfig | None = None,
    source: str | None = None,
) -> AnalysisResult:
    """Run every analysis step over one raw bar series.

    The strategy is configured before any bar is derived, so invalid strategy
    parameters are rejected up front.

    :param rows: Date-ascending raw bars.
    :param config: Analysis configuration (defaults if omitted).
    :param source: Label of the series, carried into the result.
    :returns: AnalysisResult with bars, rollups, statistics and positions.
    :raises ConfigurationError: If a parameter is invalid for this series.
    :raises DomainError: If a bar makes a statistic undefined.
    """
    config = config or AnalysisConfig()
    strategy = TurtleBreakoutStrategy(
        {
            "window": config.window,
            "stop_fraction": config.stop_fraction,
            "force_close_at_end": config.force_close_at_end,
        }
    )

    derived = derive_bars(rows, config.period)
    aggregated = aggregate_bars(derived, config.granularity)
    positions = strategy.run(derived)

    return AnalysisResult(
        source=source,
        config=config,
        derived_bars=derived,
        aggregated_bars=aggregated,
        positions=positions,
        average_true_range_pct=average_true_range_pct(derived),
        return_distribution=summarize_returns(derived),
    )


def analyze_file(
    path: str | Path,
    config: AnalysisConfig | None = None,
) -> AnalysisResult:
    """Read a CSV file and analyze it.

    :param path: Path to a Yahoo Finance style CSV file.
    :param config: Analysis configuration (defaults if omitted).
    :returns: AnalysisResult for the file.
    :raises IngestionError: If the file cannot be read.
    :raises ConfigurationError: If a parameter is invalid for this series.
    :raises DomainError: If a bar makes a statistic undefined.
    """
    config = config or AnalysisConfig()
    rows = load_rows(path, config.date_format)
    logger.info("Analyzing %s (%d rows)", path, len(rows))
    return analyze_bars(rows, config, source=str(path))


def analyze_files(
    paths: Sequence[str | Path],
    config: AnalysisConfig | None = None,
    parallel: bool = False,
    max_workers: int | None = None,
) -> list[AnalysisResult]:
    """Analyze several independent files.

    :param paths: CSV files to analyze.
    :param config: Configuration shared by every file.
    :param parallel: If True, analyze files in worker processes.
    :param max_workers: Process pool size (None = executor default).
    :returns: One result per path, in the order of ``paths``.
    :raises DorError: The first failure, in input order; no partial results.
    """
    config = config or AnalysisConfig()
    work = partial(analyze_file, config=config)

    if parallel and len(paths) > 1:
        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(work, paths))

    return [work(path) for path in paths]
