"""Core type definitions for the returns analysis pipeline.

All data models use Pydantic BaseModel for automatic validation, JSON
serialization, and better error messages.
"""

from __future__ import annotations

import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict

# ---------------------------------------------------------------------------
# Base Configuration
# ---------------------------------------------------------------------------


class FrozenModel(BaseModel):
    """Base model with frozen (immutable) configuration."""

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Market Data Types
# ---------------------------------------------------------------------------


class RawBar(FrozenModel):
    """One daily OHLCV row as read from the source file.

    :param date: Trading day this bar represents.
    :param open: Opening price.
    :param high: Highest price during the day.
    :param low: Lowest price during the day.
    :param close: Closing price.
    :param adj_close: Close adjusted for splits and dividends.
    :param volume: Shares traded during the day.
    """

    date: datetime.date
    open: float
    high: float
    low: float
    close: float
    adj_close: float
    volume: int


class DerivedBar(FrozenModel):
    """Bar enriched with return and volatility measures.

    Each measure compares the bar against a reference bar ``period`` rows
    earlier (see :func:`dor.analysis.derive.derive_bars`).

    :param date: Trading day of the bar.
    :param open: Opening price.
    :param high: Highest price.
    :param low: Lowest price.
    :param close: Closing price.
    :param c2c_return: Close-to-close change relative to the current close.
    :param c2c: Close-to-close change.
    :param h2l_return: High-to-low spread relative to the low.
    :param h2l: High-to-low spread.
    :param o2c_return: Open-to-close change relative to the open.
    :param o2c: Open-to-close change.
    :param true_range: Largest of the spread and the gaps from the prior close.
    :param true_range_pct: True range relative to the open.
    """

    date: datetime.date
    open: float
    high: float
    low: float
    close: float
    c2c_return: float
    c2c: float
    h2l_return: float
    h2l: float
    o2c_return: float
    o2c: float
    true_range: float
    true_range_pct: float


class AggregatedBar(DerivedBar):
    """Bar rolled up from every derived bar in one calendar period.

    ``date`` is the first day of the period; a quarter is dated on the first
    day of its first month (``2023/Third`` is 2023-07-01) whatever the dates
    of its bars. Range and return fields are computed against the preceding
    period's aggregated bar.

    :param period: Display label of the period (``2023/07``, ``2023/Third``).
    """

    period: str


class Granularity(str, Enum):
    """Calendar period used to roll up daily bars."""

    MONTH = "month"
    QUARTER = "quarter"


QUARTER_NAMES = ("First", "Second", "Third", "Fourth")


class PeriodKey(FrozenModel):
    """Sortable identity of a calendar period.

    :param granularity: Month or quarter.
    :param year: Calendar year.
    :param index: Month number (1-12) or quarter number (1-4).
    """

    granularity: Granularity
    year: int
    index: int

    @property
    def label(self) -> str:
        """Human-readable key, e.g. ``2023/07`` or ``2023/Third``."""
        if self.granularity is Granularity.MONTH:
            return f"{self.year}/{self.index:02d}"
        return f"{self.year}/{QUARTER_NAMES[self.index - 1]}"

    @property
    def first_day(self) -> datetime.date:
        """First calendar day of the period."""
        if self.granularity is Granularity.MONTH:
            return datetime.date(self.year, self.index, 1)
        return datetime.date(self.year, 3 * (self.index - 1) + 1, 1)

    def sort_key(self) -> tuple[int, int]:
        """Chronological ordering key."""
        return (self.year, self.index)


# ---------------------------------------------------------------------------
# Position Types
# ---------------------------------------------------------------------------


class PositionDirection(str, Enum):
    """Side of a breakout position."""

    LONG = "long"
    SHORT = "short"


class ExitReason(str, Enum):
    """Why a position was closed."""

    STOP = "stop"
    END_OF_DATA = "end_of_data"


class Position(FrozenModel):
    """A breakout position from entry to (optional) exit.

    A position is created open and finalized by copying it with
    ``exit_bar`` set; the direction never changes.

    :param id: Index of the entry bar in the strategy's input sequence.
    :param entry_bar: Bar on which the breakout happened.
    :param exit_bar: Bar on which the position was closed, or None while open.
    :param direction: Long or short.
    :param exit_reason: Why the position was closed, or None while open.
    """

    id: int
    entry_bar: DerivedBar
    exit_bar: DerivedBar | None = None
    direction: PositionDirection
    exit_reason: ExitReason | None = None

    @property
    def is_open(self) -> bool:
        return self.exit_bar is None

    @property
    def entry_price(self) -> float:
        """Breakout level: the entry bar's high for longs, low for shorts."""
        if self.direction is PositionDirection.LONG:
            return self.entry_bar.high
        return self.entry_bar.low

    @property
    def exit_price(self) -> float | None:
        """Stop level: the exit bar's low for longs, high for shorts."""
        if self.exit_bar is None:
            return None
        if self.direction is PositionDirection.LONG:
            return self.exit_bar.low
        return self.exit_bar.high

    @property
    def pnl(self) -> float | None:
        """Per-unit profit or loss, or None while open."""
        exit_price = self.exit_price
        if exit_price is None:
            return None
        if self.direction is PositionDirection.LONG:
            return exit_price - self.entry_price
        return self.entry_price - exit_price

    def close(self, bar: DerivedBar, reason: ExitReason = ExitReason.STOP) -> Position:
        """Return a closed copy of this position.

        :param bar: Bar on which the position exits.
        :param reason: Why the position exits.
        :returns: New position with ``exit_bar`` set.
        :raises ValueError: If the position is already closed.
        """
        if self.exit_bar is not None:
            raise ValueError(f"Position {self.id} is already closed")
        return self.model_copy(update={"exit_bar": bar, "exit_reason": reason})


# ---------------------------------------------------------------------------
# Statistics Types
# ---------------------------------------------------------------------------


class ReturnDistribution(FrozenModel):
    """Summary of one return series.

    :param field: DerivedBar field the series was taken from.
    :param count: Number of observations.
    :param mean: Arithmetic mean.
    :param std: Population standard deviation.
    :param min: Smallest observation.
    :param max: Largest observation.
    :param p05: 5th percentile.
    :param p25: 25th percentile.
    :param median: 50th percentile.
    :param p75: 75th percentile.
    :param p95: 95th percentile.
    """

    field: str
    count: int
    mean: float
    std: float
    min: float
    max: float
    p05: float
    p25: float
    median: float
    p75: float
    p95: float


# ---------------------------------------------------------------------------
# Configuration Types
# ---------------------------------------------------------------------------

DEFAULT_DATE_FORMAT = "%m/%d/%Y"


class AnalysisConfig(FrozenModel):
    """Configuration for one analysis run.

    :param period: Lookback, in rows, for the per-bar return measures.
    :param granularity: Rollup period for aggregated bars.
    :param window: Breakout lookback window, in bars.
    :param stop_fraction: Adverse move, as a fraction of entry, that stops out.
    :param force_close_at_end: Close a still-open position on the last bar.
    :param date_format: strptime format of the Date column.
    :param log_level: Logging level.
    """

    period: int = 1
    granularity: Granularity = Granularity.QUARTER
    window: int = 55
    stop_fraction: float = 0.10
    force_close_at_end: bool = False
    date_format: str = DEFAULT_DATE_FORMAT
    log_level: str = "INFO"


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------

__all__ = [
    # Base models
    "FrozenModel",
    # Market data
    "RawBar",
    "DerivedBar",
    "AggregatedBar",
    "Granularity",
    "PeriodKey",
    "QUARTER_NAMES",
    # Positions
    "PositionDirection",
    "ExitReason",
    "Position",
    # Statistics
    "ReturnDistribution",
    # Configuration
    "DEFAULT_DATE_FORMAT",
    "AnalysisConfig",
]
