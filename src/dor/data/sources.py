"""Data source implementations for reading daily bars.

This module provides an abstract interface for data sources and a concrete
implementation for Yahoo Finance style CSV downloads.
"""

from __future__ import annotations

import csv
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator

from dor.exceptions import IngestionError
from dor.types import DEFAULT_DATE_FORMAT, RawBar

logger = logging.getLogger(__name__)


class DataSource(ABC):
    """Abstract base class for data sources.

    All data source implementations must inherit from this class and implement
    the `fetch_bars` method.
    """

    @abstractmethod
    def fetch_bars(self) -> Iterator[RawBar]:
        """Yield raw bars in file order.

        :returns: Iterator of RawBar objects.
        :raises IngestionError: If reading or parsing fails.
        """
        ...

    def load(self) -> list[RawBar]:
        """Read every bar and check that dates strictly increase.

        :returns: Date-ascending list of bars.
        :raises IngestionError: If reading fails or dates are out of order.
        """
        bars: list[RawBar] = []
        for bar in self.fetch_bars():
            if bars and bar.date <= bars[-1].date:
                raise IngestionError(
                    f"Dates must be strictly increasing: {bar.date} "
                    f"follows {bars[-1].date}"
                )
            bars.append(bar)
        return bars


class CSVDataSource(DataSource):
    """Data source that reads daily bars from a Yahoo Finance CSV download.

    Expected CSV format (default columns):
    - Date: trading day, parsed with ``date_format``
    - Open, High, Low, Close, Adj Close: prices
    - Volume: integer share volume

    :param source_params: Required parameters:
        - file_path: Path to the CSV file.
        Optional parameters:
        - date_format: strptime format for the date column (default: %m/%d/%Y)
        - date_col: Column name for the date (default: "Date")
        - open_col: Column name for open price (default: "Open")
        - high_col: Column name for high price (default: "High")
        - low_col: Column name for low price (default: "Low")
        - close_col: Column name for close price (default: "Close")
        - adj_close_col: Column name for adjusted close (default: "Adj Close")
        - volume_col: Column name for volume (default: "Volume")
        - delimiter: CSV delimiter (default: ",")
    """

    def __init__(self, source_params: dict[str, Any] | None = None) -> None:
        """Initialize CSV data source.

        :param source_params: Configuration with file_path and optional column mappings.
        :raises IngestionError: If file_path is not provided.
        """
        self.params = source_params or {}
        self.file_path = self.params.get("file_path")
        if not self.file_path:
            raise IngestionError("CSVDataSource requires 'file_path' in source_params")

        self.date_format = self.params.get("date_format") or DEFAULT_DATE_FORMAT
        self.date_col = self.params.get("date_col", "Date")
        self.open_col = self.params.get("open_col", "Open")
        self.high_col = self.params.get("high_col", "High")
        self.low_col = self.params.get("low_col", "Low")
        self.close_col = self.params.get("close_col", "Close")
        self.adj_close_col = self.params.get("adj_close_col", "Adj Close")
        self.volume_col = self.params.get("volume_col", "Volume")
        self.delimiter = self.params.get("delimiter", ",")

    @property
    def columns(self) -> list[str]:
        return [
            self.date_col,
            self.open_col,
            self.high_col,
            self.low_col,
            self.close_col,
            self.adj_close_col,
            self.volume_col,
        ]

    def fetch_bars(self) -> Iterator[RawBar]:
        """Read bar data from the CSV file.

        :returns: Iterator of RawBar objects in file order.
        :raises IngestionError: If the file is missing, a column is missing,
            or any row fails to parse.
        """
        path = Path(self.file_path)
        if not path.exists():
            raise IngestionError(f"CSV file not found: {self.file_path}")

        try:
            with open(path, newline="", encoding="utf-8-sig") as f:
                reader = csv.DictReader(f, delimiter=self.delimiter)

                header = [name.strip() for name in reader.fieldnames or []]
                missing = [col for col in self.columns if col not in header]
                if missing:
                    raise IngestionError(
                        f"Missing column(s) {missing} in {self.file_path}"
                    )
                reader.fieldnames = header

                count = 0
                for line_no, row in enumerate(reader, start=2):
                    yield self._parse_row(row, line_no)
                    count += 1

        except csv.Error as e:
            raise IngestionError(f"CSV parsing error in {self.file_path}: {e}") from e
        except UnicodeDecodeError as e:
            raise IngestionError(f"{self.file_path} is not valid UTF-8: {e}") from e
        except OSError as e:
            raise IngestionError(f"Failed to read CSV file: {e}") from e

        logger.debug("Read %d rows from %s", count, path)

    def _parse_row(self, row: dict[str, str], line_no: int) -> RawBar:
        """Convert one CSV record into a RawBar."""
        date_str = (row.get(self.date_col) or "").strip()
        try:
            day = datetime.strptime(date_str, self.date_format).date()
        except ValueError as e:
            raise IngestionError(
                f"Line {line_no}: failed to parse date '{date_str}' "
                f"with format '{self.date_format}'"
            ) from e

        try:
            return RawBar(
                date=day,
                open=float(row[self.open_col]),
                high=float(row[self.high_col]),
                low=float(row[self.low_col]),
                close=float(row[self.close_col]),
                adj_close=float(row[self.adj_close_col]),
                volume=int(row[self.volume_col]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise IngestionError(f"Line {line_no}: failed to parse row {row}: {e}") from e


def load_rows(
    file_path: str | Path,
    date_format: str | None = None,
) -> list[RawBar]:
    """Read a CSV file into a date-ascending list of raw bars.

    :param file_path: Path to the CSV file.
    :param date_format: strptime format for the date column.
    :returns: List of RawBar objects.
    :raises IngestionError: If reading, parsing or ordering fails.
    """
    source = CSVDataSource({"file_path": str(file_path), "date_format": date_format})
    return source.load()
