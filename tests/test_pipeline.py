"""Tests for the end-to-end analysis pipeline."""

import math
from datetime import date, timedelta
from pathlib import Path

import pytest

from dor.analysis import AnalysisResult, analyze_bars, analyze_file, analyze_files
from dor.exceptions import ConfigurationError, DomainError, IngestionError
from dor.types import AnalysisConfig, Granularity, RawBar

START = date(2023, 1, 2)
HEADER = "Date,Open,High,Low,Close,Adj Close,Volume"


def make_rows(n: int, base: float = 100.0) -> list[RawBar]:
    """Oscillating daily bars, one per calendar day."""
    rows = []
    for i in range(n):
        mid = base + 10.0 * math.sin(i / 5.0) + 0.1 * i
        rows.append(
            RawBar(
                date=START + timedelta(days=i),
                open=round(mid - 0.5, 2),
                high=round(mid + 1.5, 2),
                low=round(mid - 1.5, 2),
                close=round(mid + 0.5, 2),
                adj_close=round(mid + 0.5, 2),
                volume=1000 + i,
            )
        )
    return rows


def write_rows(path: Path, rows: list[RawBar]) -> Path:
    lines = [HEADER] + [
        f"{r.date:%m/%d/%Y},{r.open},{r.high},{r.low},{r.close},{r.adj_close},{r.volume}"
        for r in rows
    ]
    path.write_text("\n".join(lines) + "\n")
    return path


CONFIG = AnalysisConfig(window=5, granularity=Granularity.MONTH)


class TestAnalyzeBars:
    """Tests for analyze_bars."""

    def test_result_contents(self) -> None:
        rows = make_rows(120)

        result = analyze_bars(rows, CONFIG, source="synthetic")

        assert isinstance(result, AnalysisResult)
        assert result.source == "synthetic"
        assert result.config == CONFIG
        assert len(result.derived_bars) == 118
        assert [b.period for b in result.aggregated_bars] == [
            "2023/01", "2023/02", "2023/03", "2023/04",
        ]
        assert result.average_true_range_pct is not None
        assert result.return_distribution.count == 118
        assert result.positions
        for pos in result.positions:
            assert not pos.is_open

    def test_default_config(self) -> None:
        result = analyze_bars(make_rows(80))

        assert result.config == AnalysisConfig()
        assert all(b.period.endswith("First") for b in result.aggregated_bars)

    def test_repeatable(self) -> None:
        rows = make_rows(90)
        assert analyze_bars(rows, CONFIG) == analyze_bars(rows, CONFIG)

    def test_window_too_large_for_series(self) -> None:
        with pytest.raises(ConfigurationError, match="must be shorter than the series"):
            analyze_bars(make_rows(20))

    def test_invalid_strategy_rejected_before_derivation(self) -> None:
        """A bad window is reported even when the bars could not be derived."""
        rows = make_rows(20)
        rows[5] = rows[5].model_copy(update={"open": 0.0})

        with pytest.raises(ConfigurationError, match="window"):
            analyze_bars(rows, AnalysisConfig(window=0))

    def test_zero_price_raises(self) -> None:
        rows = make_rows(20)
        rows[5] = rows[5].model_copy(update={"open": 0.0})

        with pytest.raises(DomainError):
            analyze_bars(rows, CONFIG)

    def test_invalid_period(self) -> None:
        with pytest.raises(ConfigurationError, match="period"):
            analyze_bars(make_rows(20), AnalysisConfig(window=5, period=0))


class TestAnalyzeFiles:
    """Tests for analyze_file and analyze_files."""

    def test_analyze_file(self, tmp_path: Path) -> None:
        rows = make_rows(60)
        csv_file = write_rows(tmp_path / "AAA.csv", rows)

        result = analyze_file(csv_file, CONFIG)

        assert result.source == str(csv_file)
        assert result == analyze_bars(rows, CONFIG, source=str(csv_file))

    def test_analyze_file_date_format(self, tmp_path: Path) -> None:
        rows = make_rows(30)
        csv_file = tmp_path / "iso.csv"
        csv_file.write_text(
            "\n".join(
                [HEADER]
                + [
                    f"{r.date:%Y-%m-%d},{r.open},{r.high},{r.low},{r.close},{r.adj_close},{r.volume}"
                    for r in rows
                ]
            )
        )

        config = CONFIG.model_copy(update={"date_format": "%Y-%m-%d"})
        result = analyze_file(csv_file, config)

        assert len(result.derived_bars) == 28

    @pytest.mark.parametrize("parallel", [False, True])
    def test_results_in_input_order(self, tmp_path: Path, parallel: bool) -> None:
        paths = [
            write_rows(tmp_path / "long.csv", make_rows(90)),
            write_rows(tmp_path / "short.csv", make_rows(40, base=50.0)),
            write_rows(tmp_path / "mid.csv", make_rows(60, base=75.0)),
        ]

        results = analyze_files(paths, CONFIG, parallel=parallel, max_workers=2)

        assert [r.source for r in results] == [str(p) for p in paths]
        assert [len(r.derived_bars) for r in results] == [88, 38, 58]

    def test_parallel_matches_sequential(self, tmp_path: Path) -> None:
        paths = [
            write_rows(tmp_path / "a.csv", make_rows(70)),
            write_rows(tmp_path / "b.csv", make_rows(70, base=120.0)),
        ]

        assert analyze_files(paths, CONFIG, parallel=True) == analyze_files(paths, CONFIG)

    @pytest.mark.parametrize("parallel", [False, True])
    def test_failure_propagates(self, tmp_path: Path, parallel: bool) -> None:
        paths = [
            write_rows(tmp_path / "good.csv", make_rows(60)),
            tmp_path / "missing.csv",
        ]

        with pytest.raises(IngestionError, match="missing.csv"):
            analyze_files(paths, CONFIG, parallel=parallel)

    def test_empty_batch(self) -> None:
        assert analyze_files([], CONFIG) == []
