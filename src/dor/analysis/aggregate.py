"""Monthly and quarterly rollups of derived bars.

Aggregation happens in two passes. Bars are first bucketed by calendar
period; the buckets are then walked in chronological order, each rollup
being chained to the one emitted just before it. The chaining pass must not
depend on the order the buckets were filled in, otherwise the true range and
close-to-close change of every period would be measured against an arbitrary
neighbour.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from dor.analysis.derive import true_range
from dor.exceptions import ConfigurationError, DomainError
from dor.types import AggregatedBar, DerivedBar, Granularity, PeriodKey

logger = logging.getLogger(__name__)


def parse_granularity(value: Granularity | str) -> Granularity:
    """Coerce ``value`` to a Granularity.

    :raises ConfigurationError: If the value is not a known granularity.
    """
    if isinstance(value, Granularity):
        return value
    try:
        return Granularity(str(value).lower())
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid granularity '{value}'. "
            f"Valid options: {[g.value for g in Granularity]}"
        ) from e


def period_key(day: date, granularity: Granularity) -> PeriodKey:
    """Calendar period containing ``day``."""
    if granularity is Granularity.MONTH:
        index = day.month
    else:
        index = (day.month - 1) // 3 + 1
    return PeriodKey(granularity=granularity, year=day.year, index=index)


def group_bars(
    bars: Sequence[DerivedBar],
    granularity: Granularity | str,
) -> dict[PeriodKey, list[DerivedBar]]:
    """Bucket bars by calendar period.

    Buckets come back in chronological key order and each bucket is sorted by
    date, whatever the order of ``bars``.

    :param bars: Derived bars in any order.
    :param granularity: Month or quarter.
    :returns: Mapping of period key to the bars in that period.
    """
    granularity = parse_granularity(granularity)

    buckets: dict[PeriodKey, list[DerivedBar]] = {}
    for bar in bars:
        buckets.setdefault(period_key(bar.date, granularity), []).append(bar)

    return {
        key: sorted(buckets[key], key=lambda b: b.date)
        for key in sorted(buckets, key=PeriodKey.sort_key)
    }


def rollup(
    key: PeriodKey,
    bars: Sequence[DerivedBar],
    previous: AggregatedBar | None,
) -> AggregatedBar:
    """Merge one period's bars into a single bar chained to ``previous``.

    The first period (``previous`` is None) has zero true range and zero
    close-to-close change. ``h2l_return`` repeats the flat ``h2l`` spread and
    ``o2c`` is ``open - close``.

    :param key: Period being rolled up.
    :param bars: Date-ascending bars of the period (non-empty).
    :param previous: Rollup of the chronologically preceding period.
    :returns: The aggregated bar.
    :raises DomainError: If the period opens at zero, or closes at zero while
        a preceding period exists.
    """
    open_ = bars[0].open
    close = bars[-1].close
    high = max(b.high for b in bars)
    low = min(b.low for b in bars)
    h2l = high - low

    if open_ == 0:
        raise DomainError(f"Period {key.label}: open price is zero")

    if previous is None:
        tr = 0.0
        c2c = 0.0
        c2c_return = 0.0
    else:
        if close == 0:
            raise DomainError(f"Period {key.label}: close price is zero")
        tr = true_range(high, low, previous.close)
        c2c = close - previous.close
        c2c_return = c2c / close

    return AggregatedBar(
        date=key.first_day,
        period=key.label,
        open=open_,
        high=high,
        low=low,
        close=close,
        c2c_return=c2c_return,
        c2c=c2c,
        h2l_return=h2l,
        h2l=h2l,
        o2c_return=(close - open_) / open_,
        o2c=open_ - close,
        true_range=tr,
        true_range_pct=tr / open_,
    )


def aggregate_bars(
    bars: Sequence[DerivedBar],
    granularity: Granularity | str = Granularity.QUARTER,
) -> list[AggregatedBar]:
    """Roll derived bars up into one bar per calendar period.

    :param bars: Derived bars (any order; they are bucketed and sorted).
    :param granularity: Month or quarter.
    :returns: Aggregated bars in chronological order.
    :raises ConfigurationError: If ``granularity`` is unknown.
    :raises DomainError: If a period's open or close makes a ratio undefined.
    """
    buckets = group_bars(bars, granularity)

    results: list[AggregatedBar] = []
    previous: AggregatedBar | None = None
    for key, period_bars in buckets.items():
        previous = rollup(key, period_bars, previous)
        results.append(previous)

    logger.debug("Aggregated %d bars into %d periods", len(bars), len(results))
    return results
