"""Summary statistics over derived or aggregated bars."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from dor.exceptions import ConfigurationError
from dor.types import DerivedBar, ReturnDistribution

RETURN_FIELDS = frozenset([
    "c2c_return", "c2c",
    "h2l_return", "h2l",
    "o2c_return", "o2c",
    "true_range", "true_range_pct",
])


def average_true_range_pct(bars: Sequence[DerivedBar]) -> float | None:
    """Mean true range percentage (ATRP) of ``bars``.

    :returns: The mean, or None when there are no bars.
    """
    if not bars:
        return None
    return float(np.mean([b.true_range_pct for b in bars]))


def summarize_returns(
    bars: Sequence[DerivedBar],
    field: str = "c2c_return",
) -> ReturnDistribution | None:
    """Describe the distribution of one return measure.

    :param bars: Bars to summarize.
    :param field: Name of the DerivedBar measure to summarize.
    :returns: Distribution summary, or None when there are no bars.
    :raises ConfigurationError: If ``field`` is not a return measure.
    """
    if field not in RETURN_FIELDS:
        raise ConfigurationError(
            f"Invalid return field '{field}'. Valid options: {sorted(RETURN_FIELDS)}"
        )
    if not bars:
        return None

    values = np.array([getattr(b, field) for b in bars], dtype=np.float64)
    p05, p25, median, p75, p95 = np.percentile(values, [5, 25, 50, 75, 95])

    return ReturnDistribution(
        field=field,
        count=int(values.size),
        mean=float(values.mean()),
        std=float(values.std()),
        min=float(values.min()),
        max=float(values.max()),
        p05=float(p05),
        p25=float(p25),
        median=float(median),
        p75=float(p75),
        p95=float(p95),
    )
