"""Strategy module for breakout backtests."""

from dor.strategies.base import Strategy
from dor.strategies.turtle import (
    BreakoutState,
    TurtleBreakoutStrategy,
    run_turtle,
    step,
)

__all__ = [
    # Base
    "Strategy",
    # Turtle
    "BreakoutState",
    "TurtleBreakoutStrategy",
    "run_turtle",
    "step",
]
