"""Exhaustive breadth-first solver and its helpers."""

from __future__ import annotations

from .filters import edit_distance_at_most, filter_near_duplicates, is_one_edit_apart
from .fingerprint import FingerprintTable, fingerprint
from .graph import SolverEdge, SolverGraph
from .search import (
    CancelToken,
    MoveSequence,
    SolveResult,
    SolverOptions,
    SolverProgress,
    SolverSession,
    SolverStats,
    solve,
)

__all__ = [
    "CancelToken",
    "FingerprintTable",
    "MoveSequence",
    "SolveResult",
    "SolverEdge",
    "SolverGraph",
    "SolverOptions",
    "SolverProgress",
    "SolverSession",
    "SolverStats",
    "edit_distance_at_most",
    "filter_near_duplicates",
    "fingerprint",
    "is_one_edit_apart",
    "solve",
]
