"""Box-riding puzzle engine and exhaustive solver."""

from __future__ import annotations

from .core import (
    BoxFlightError,
    IllegalMoveError,
    InvalidActionError,
    InvalidLevelError,
    Transition,
    WorldState,
    is_losing,
    is_winning,
    transition,
)
from .env import ACTION_SPACE, BoxFlightEnv
from .solver import CancelToken, SolveResult, SolverOptions, solve

__all__ = [
    "ACTION_SPACE",
    "BoxFlightEnv",
    "BoxFlightError",
    "CancelToken",
    "IllegalMoveError",
    "InvalidActionError",
    "InvalidLevelError",
    "SolveResult",
    "SolverOptions",
    "Transition",
    "WorldState",
    "is_losing",
    "is_winning",
    "solve",
    "transition",
]
