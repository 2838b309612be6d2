"""Tests for plain-text report rendering."""

from datetime import date

from dor.analysis import AnalysisResult
from dor.analysis.stats import summarize_returns
from dor.report import (
    format_bar_table,
    format_distribution,
    format_position_table,
    format_result,
)
from dor.types import AnalysisConfig, DerivedBar, Position, PositionDirection


def make_bar(day: date, high: float, low: float, true_range_pct: float = 0.025) -> DerivedBar:
    return DerivedBar(
        date=day,
        open=100.0,
        high=high,
        low=low,
        close=101.0,
        c2c_return=0.01,
        c2c=1.0,
        h2l_return=(high - low) / low,
        h2l=high - low,
        o2c_return=0.01,
        o2c=1.0,
        true_range=2.5,
        true_range_pct=true_range_pct,
    )


def closed_long() -> Position:
    return Position(
        id=3,
        entry_bar=make_bar(date(2023, 7, 3), 105.0, 100.0),
        direction=PositionDirection.LONG,
    ).close(make_bar(date(2023, 7, 20), 100.0, 94.0))


def closed_short() -> Position:
    return Position(
        id=9,
        entry_bar=make_bar(date(2023, 8, 1), 100.0, 95.0),
        direction=PositionDirection.SHORT,
    ).close(make_bar(date(2023, 8, 15), 105.5, 101.0))


def test_bar_table() -> None:
    table = format_bar_table([make_bar(date(2023, 7, 21), 102.0, 99.5)])
    lines = table.splitlines()

    assert "TrueRangePct" in lines[1]
    assert lines[3].startswith("2023/07/21")
    assert "100.00" in lines[3]
    assert "102.00" in lines[3]
    assert "99.50" in lines[3]
    assert "2.50" in lines[3]
    assert lines[3].rstrip().endswith("2.50%")


def test_empty_bar_table_has_only_frame() -> None:
    assert len(format_bar_table([]).splitlines()) == 4


def test_position_table_prices_by_direction() -> None:
    table = format_position_table([closed_long(), closed_short()])
    lines = table.splitlines()

    long_row = lines[3].split()
    assert long_row == ["2023/07/03", "2023/07/20", "LONG", "105.00", "94.00"]

    short_row = lines[4].split()
    assert short_row == ["2023/08/01", "2023/08/15", "SHORT", "95.00", "105.50"]


def test_position_table_open_position() -> None:
    pos = Position(
        id=1,
        entry_bar=make_bar(date(2023, 7, 3), 105.0, 100.0),
        direction=PositionDirection.LONG,
    )

    row = format_position_table([pos]).splitlines()[3].split()

    assert row == ["2023/07/03", "None", "LONG", "105.00", "None"]


def test_distribution_none() -> None:
    assert "N/A" in format_distribution(None)


def test_distribution_summary() -> None:
    bars = [make_bar(date(2023, 7, d), 102.0, 99.0) for d in (3, 5, 6)]

    text = format_distribution(summarize_returns(bars))

    assert "c2c_return, n=3" in text
    assert "+1.0000%" in text


def test_format_result() -> None:
    config = AnalysisConfig(window=20, stop_fraction=0.05, force_close_at_end=True)
    result = AnalysisResult(
        source="AAPL.csv",
        config=config,
        derived_bars=[make_bar(date(2023, 7, 3), 102.0, 99.0)],
        positions=[closed_long()],
        average_true_range_pct=0.0234,
    )

    text = format_result(result)

    assert "DISTRIBUTION OF RETURNS: AAPL.csv" in text
    assert "Granularity: quarter" in text
    assert "1 derived, 0 aggregated" in text
    assert "ATRP:            2.34%" in text
    assert "N/A (no bars)" in text
    assert "TURTLE BREAKOUT (window=20, stop=5%, force_close=on)" in text
    assert "Closed positions: 1" in text


def test_format_result_without_bars() -> None:
    result = AnalysisResult(config=AnalysisConfig())

    text = format_result(result)

    assert "DISTRIBUTION OF RETURNS: <bars>" in text
    assert "ATRP:            N/A" in text
    assert "force_close=off" in text
    assert "Closed positions: 0" in text
