"""Base strategy class that all backtest strategies must implement.

Strategies receive a complete, date-ascending bar sequence and return the
positions they closed over it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from dor.types import DerivedBar, Position


class Strategy(ABC):
    """Abstract base class for batch backtest strategies.

    All strategies must implement the `run` method, which walks the bars once
    and returns the closed positions in the order they closed. Strategies hold
    configuration only; ``run`` keeps its state local so a strategy instance
    can be reused on any number of series.

    :param params: Strategy-specific configuration parameters.

    Example usage::

        class AlwaysFlatStrategy(Strategy):
            def run(self, bars: Sequence[DerivedBar]) -> list[Position]:
                return []
    """

    def __init__(self, params: dict[str, Any] | None = None) -> None:
        """Initialize strategy with parameters.

        :param params: Strategy-specific configuration parameters.
        """
        self.params = params or {}

    @abstractmethod
    def run(self, bars: Sequence[DerivedBar]) -> list[Position]:
        """Backtest the strategy over ``bars``.

        :param bars: Date-ascending derived or aggregated bars.
        :returns: Closed positions, in closing order.
        """
        ...
