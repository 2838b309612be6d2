"""Turtle breakout strategy.

Entry: go long when a bar's high exceeds the highest high of the previous
``window`` bars, or short when its low undercuts the lowest low.
Exit: close when price moves against the entry level by at least
``stop_fraction`` of that level.

Only one position is held at a time and no entry is considered while it is
open. The strategy is expressed as a pure transition function, :func:`step`,
folded over the bars by :meth:`TurtleBreakoutStrategy.run`.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Iterator, Sequence

from dor.exceptions import ConfigurationError
from dor.strategies.base import Strategy
from dor.types import (
    DerivedBar,
    ExitReason,
    FrozenModel,
    Position,
    PositionDirection,
)

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 55
DEFAULT_STOP_FRACTION = 0.10


class BreakoutState(FrozenModel):
    """Strategy state between two bars.

    Flat when ``position`` is None, otherwise long or short according to the
    open position's direction.

    :param position: The open position, if any.
    """

    position: Position | None = None

    @property
    def is_flat(self) -> bool:
        return self.position is None

    @property
    def direction(self) -> PositionDirection | None:
        return None if self.position is None else self.position.direction


FLAT = BreakoutState()


def rolling_channel(
    bars: Sequence[DerivedBar],
    window: int,
) -> Iterator[tuple[int, float, float]]:
    """Highest high and lowest low of the ``window`` bars before each bar.

    Yields ``(index, rolling_high, rolling_low)`` for every ``index >= window``,
    the extremes being taken over ``bars[index - window:index]`` (the bar at
    ``index`` itself is excluded). Monotonic deques of bar indices keep the
    whole pass linear in ``len(bars)``.

    :param bars: Date-ascending bars.
    :param window: Lookback length in bars.
    """
    highs: deque[int] = deque()
    lows: deque[int] = deque()

    for idx, bar in enumerate(bars):
        if idx >= window:
            while highs[0] < idx - window:
                highs.popleft()
            while lows[0] < idx - window:
                lows.popleft()
            yield idx, bars[highs[0]].high, bars[lows[0]].low

        while highs and bars[highs[-1]].high <= bar.high:
            highs.pop()
        highs.append(idx)
        while lows and bars[lows[-1]].low >= bar.low:
            lows.pop()
        lows.append(idx)


def step(
    state: BreakoutState,
    index: int,
    bar: DerivedBar,
    rolling_high: float,
    rolling_low: float,
    stop_fraction: float,
) -> tuple[BreakoutState, Position | None]:
    """Advance the strategy by one bar.

    :param state: State before ``bar``.
    :param index: Position of ``bar`` in the input sequence (used as the id of
        a position opened on it).
    :param bar: Current bar.
    :param rolling_high: Highest high of the lookback window.
    :param rolling_low: Lowest low of the lookback window.
    :param stop_fraction: Adverse move, as a fraction of the entry level,
        that closes the position.
    :returns: The new state and the position closed on this bar, if any.
    """
    position = state.position

    if position is None:
        if bar.high > rolling_high:
            direction = PositionDirection.LONG
        elif bar.low < rolling_low:
            direction = PositionDirection.SHORT
        else:
            return state, None
        opened = Position(id=index, entry_bar=bar, direction=direction)
        return BreakoutState(position=opened), None

    entry = position.entry_price
    if position.direction is PositionDirection.LONG:
        adverse = entry - bar.low
    else:
        adverse = bar.high - entry

    if adverse > 0 and adverse >= stop_fraction * entry:
        return FLAT, position.close(bar, ExitReason.STOP)
    return state, None


class TurtleBreakoutStrategy(Strategy):
    """Breakout strategy over a rolling high/low channel.

    :param params: Configuration parameters:
        - window: Lookback window in bars (default: 55)
        - stop_fraction: Stop distance as a fraction of entry (default: 0.10)
        - force_close_at_end: Close a position still open on the last bar
          instead of dropping it (default: False)
    :raises ConfigurationError: If a parameter has the wrong type or range.
    """

    def __init__(self, params: dict[str, Any] | None = None) -> None:
        """Initialize turtle breakout strategy."""
        super().__init__(params)
        self.window = self.params.get("window", DEFAULT_WINDOW)
        stop_fraction = self.params.get("stop_fraction", DEFAULT_STOP_FRACTION)
        self.force_close_at_end = self.params.get("force_close_at_end", False)

        if isinstance(self.window, bool) or not isinstance(self.window, int) or self.window <= 0:
            raise ConfigurationError(
                f"window must be a positive integer, got {self.window!r}"
            )
        if isinstance(stop_fraction, bool) or not isinstance(stop_fraction, (int, float)):
            raise ConfigurationError(
                f"stop_fraction must be a number, got {stop_fraction!r}"
            )
        self.stop_fraction = float(stop_fraction)
        if not 0 < self.stop_fraction <= 1:
            raise ConfigurationError(
                f"stop_fraction must be in (0, 1], got {self.stop_fraction}"
            )
        if not isinstance(self.force_close_at_end, bool):
            raise ConfigurationError(
                f"force_close_at_end must be a boolean, got {self.force_close_at_end!r}"
            )

    def run(self, bars: Sequence[DerivedBar]) -> list[Position]:
        """Backtest the breakout rules over ``bars``.

        A position still open when the bars run out is dropped, unless
        ``force_close_at_end`` is set; then it is closed on the last bar. A
        position opened on the last bar has no later bar to exit on and is
        dropped either way.

        :param bars: Date-ascending derived or aggregated bars.
        :returns: Closed positions, in closing order.
        :raises ConfigurationError: If ``window`` is not shorter than ``bars``.
        """
        if self.window >= len(bars):
            raise ConfigurationError(
                f"window ({self.window}) must be shorter than the series "
                f"({len(bars)} bars)"
            )

        state = FLAT
        closed: list[Position] = []

        for idx, rolling_high, rolling_low in rolling_channel(bars, self.window):
            was_flat = state.is_flat
            state, position = step(
                state, idx, bars[idx], rolling_high, rolling_low, self.stop_fraction
            )

            if position is not None:
                logger.debug(
                    "Closed %s #%d %s -> %s",
                    position.direction.value,
                    position.id,
                    position.entry_bar.date,
                    bars[idx].date,
                )
                closed.append(position)
            elif was_flat and not state.is_flat:
                logger.debug(
                    "Opened %s #%d on %s", state.direction.value, idx, bars[idx].date
                )

        open_position = state.position
        if open_position is not None:
            if self.force_close_at_end and open_position.id < len(bars) - 1:
                closed.append(open_position.close(bars[-1], ExitReason.END_OF_DATA))
            else:
                logger.info(
                    "Dropping %s position opened on %s: still open at end of data",
                    open_position.direction.value,
                    open_position.entry_bar.date,
                )

        logger.debug("Turtle run over %d bars closed %d positions", len(bars), len(closed))
        return closed


def run_turtle(
    bars: Sequence[DerivedBar],
    window: int = DEFAULT_WINDOW,
    stop_fraction: float = DEFAULT_STOP_FRACTION,
    force_close_at_end: bool = False,
) -> list[Position]:
    """Convenience function to run the breakout strategy once.

    :param bars: Date-ascending derived or aggregated bars.
    :param window: Lookback window in bars.
    :param stop_fraction: Stop distance as a fraction of entry.
    :param force_close_at_end: Close a trailing open position on the last bar.
    :returns: Closed positions, in closing order.
    """
    strategy = TurtleBreakoutStrategy(
        {
            "window": window,
            "stop_fraction": stop_fraction,
            "force_close_at_end": force_close_at_end,
        }
    )
    return strategy.run(bars)
