"""Data ingestion module."""

from dor.data.sources import CSVDataSource, DataSource, load_rows

__all__ = [
    "DataSource",
    "CSVDataSource",
    "load_rows",
]
