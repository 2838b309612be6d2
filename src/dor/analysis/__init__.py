"""Returns analysis module."""

from dor.analysis.aggregate import aggregate_bars, group_bars, parse_granularity
from dor.analysis.derive import derive_bars
from dor.analysis.pipeline import (
    AnalysisResult,
    analyze_bars,
    analyze_file,
    analyze_files,
)
from dor.analysis.stats import average_true_range_pct, summarize_returns

__all__ = [
    # Per-bar measures
    "derive_bars",
    # Rollups
    "aggregate_bars",
    "group_bars",
    "parse_granularity",
    # Statistics
    "average_true_range_pct",
    "summarize_returns",
    # Pipeline
    "AnalysisResult",
    "analyze_bars",
    "analyze_file",
    "analyze_files",
]
