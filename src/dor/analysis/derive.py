"""Per-bar return and volatility measures.

Every derived bar compares a raw bar with the raw bar ``period`` rows earlier.
The last raw row is never derived, so every derived close is final for the
day it represents.
"""

from __future__ import annotations

import logging
from typing import Sequence

from dor.exceptions import ConfigurationError, DomainError
from dor.types import DerivedBar, RawBar

logger = logging.getLogger(__name__)


def true_range(high: float, low: float, prev_close: float) -> float:
    """Largest of the high-low spread and the gaps from the previous close."""
    return max(high - low, abs(high - prev_close), abs(prev_close - low))


def derive_bar(cur: RawBar, prev: RawBar) -> DerivedBar:
    """Compute the return and range measures of ``cur`` against ``prev``.

    :param cur: Bar being measured.
    :param prev: Reference bar ``period`` rows earlier.
    :returns: The derived bar.
    :raises DomainError: If the open, close or low of ``cur`` is zero.
    """
    for name in ("open", "close", "low"):
        if getattr(cur, name) == 0:
            raise DomainError(f"Bar {cur.date}: {name} price is zero")

    h2l = cur.high - cur.low
    tr = true_range(cur.high, cur.low, prev.close)
    c2c = cur.close - prev.close
    o2c = cur.close - cur.open

    return DerivedBar(
        date=cur.date,
        open=cur.open,
        high=cur.high,
        low=cur.low,
        close=cur.close,
        c2c_return=c2c / cur.close,
        c2c=c2c,
        h2l_return=h2l / cur.low,
        h2l=h2l,
        o2c_return=o2c / cur.open,
        o2c=o2c,
        true_range=tr,
        true_range_pct=tr / cur.open,
    )


def derive_bars(rows: Sequence[RawBar], period: int = 1) -> list[DerivedBar]:
    """Derive measures for every row that has a reference ``period`` rows back.

    Rows ``0 .. period-1`` have no reference and the final row is excluded, so
    the result holds ``max(0, len(rows) - period - 1)`` bars.

    :param rows: Date-ascending raw bars.
    :param period: Lookback, in rows, of the reference bar.
    :returns: Date-ascending derived bars.
    :raises ConfigurationError: If ``period`` is not a positive integer.
    :raises DomainError: If a bar has a zero open, close or low.
    """
    if isinstance(period, bool) or not isinstance(period, int) or period <= 0:
        raise ConfigurationError(f"period must be a positive integer, got {period!r}")

    derived = [
        derive_bar(rows[idx], rows[idx - period])
        for idx in range(period, len(rows) - 1)
    ]
    logger.debug("Derived %d bars from %d rows (period=%d)", len(derived), len(rows), period)
    return derived
