"""Plain-text rendering of analysis results."""

from __future__ import annotations

from typing import Sequence

from dor.analysis.pipeline import AnalysisResult
from dor.types import DerivedBar, Position, ReturnDistribution

DATE_FMT = "%Y/%m/%d"


def format_bar_table(bars: Sequence[DerivedBar]) -> str:
    """Render bars as a Date/OHLC/TrueRange/TrueRangePct table.

    :param bars: Derived or aggregated bars.
    :returns: Formatted table.
    """
    width = 82
    lines = [
        "=" * width,
        f"{'Date':<12} {'Open':>10} {'High':>10} {'Low':>10} {'Close':>10} "
        f"{'TrueRange':>12} {'TrueRangePct':>12}",
        "-" * width,
    ]
    for bar in bars:
        lines.append(
            f"{bar.date.strftime(DATE_FMT):<12} {bar.open:>10.2f} {bar.high:>10.2f} "
            f"{bar.low:>10.2f} {bar.close:>10.2f} {bar.true_range:>12.2f} "
            f"{bar.true_range_pct:>12.2%}"
        )
    lines.append("=" * width)
    return "\n".join(lines)


def format_position_table(positions: Sequence[Position]) -> str:
    """Render closed positions as an entry/exit table.

    Longs enter at the entry bar's high and exit at the exit bar's low;
    shorts enter at the low and exit at the high.

    :param positions: Positions to render.
    :returns: Formatted table.
    """
    width = 62
    lines = [
        "=" * width,
        f"{'EntryDate':<12} {'ExitDate':<12} {'Direction':<9} {'Entry':>12} {'Exit':>12}",
        "-" * width,
    ]
    for pos in positions:
        exit_date = pos.exit_bar.date.strftime(DATE_FMT) if pos.exit_bar else "None"
        exit_price = f"{pos.exit_price:.2f}" if pos.exit_price is not None else "None"
        lines.append(
            f"{pos.entry_bar.date.strftime(DATE_FMT):<12} {exit_date:<12} "
            f"{pos.direction.value.upper():<9} {pos.entry_price:>12.2f} {exit_price:>12}"
        )
    lines.append("=" * width)
    return "\n".join(lines)


def format_distribution(dist: ReturnDistribution | None) -> str:
    """Render a return distribution summary on a few lines."""
    if dist is None:
        return "Returns:         N/A (no bars)"
    return "\n".join([
        f"Returns ({dist.field}, n={dist.count}):",
        f"   Mean:   {dist.mean:+.4%}   Std: {dist.std:.4%}",
        f"   Min:    {dist.min:+.4%}   Max: {dist.max:+.4%}",
        f"   P5/P25/P50/P75/P95: {dist.p05:+.2%} / {dist.p25:+.2%} / "
        f"{dist.median:+.2%} / {dist.p75:+.2%} / {dist.p95:+.2%}",
    ])


def format_result(result: AnalysisResult) -> str:
    """Render the full report for one analyzed series."""
    config = result.config
    atrp = result.average_true_range_pct
    lines = [
        "=" * 60,
        f"DISTRIBUTION OF RETURNS: {result.source or '<bars>'}",
        "=" * 60,
        f"Period:      {config.period}",
        f"Granularity: {config.granularity.value}",
        f"Bars:        {len(result.derived_bars)} derived, "
        f"{len(result.aggregated_bars)} aggregated",
        "",
        format_bar_table(result.aggregated_bars),
        "",
        f"ATRP:            {atrp:.2%}" if atrp is not None else "ATRP:            N/A",
        format_distribution(result.return_distribution),
        "",
        f"TURTLE BREAKOUT (window={config.window}, stop={config.stop_fraction:.0%}, "
        f"force_close={'on' if config.force_close_at_end else 'off'})",
        format_position_table(result.positions),
        f"Closed positions: {len(result.positions)}",
    ]
    return "\n".join(lines)
