"""Breadth-first solver over the states reachable from a level.

The search is a generator (``SolverSession.run``) that suspends every
``progress_every`` expanded nodes. Cancellation is cooperative: a
``CancelToken`` is only checked at those suspension points, so a node that is
being expanded is always finished.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Literal, TypeAlias

from ..core.engine import DIRECTIONS, MOVE_CODES, transition
from ..core.goals import is_losing, is_winning
from ..core.state import WorldState
from .filters import filter_near_duplicates
from .fingerprint import FingerprintTable
from .graph import SolverEdge, SolverGraph

Termination: TypeAlias = Literal[
    "exhausted", "node_budget", "solution_budget", "cancelled"
]
ProgressCallback: TypeAlias = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class SolverOptions:
    max_depth: int = 100
    max_nodes: int = 200_000
    max_solutions: int = 50
    progress_every: int = 500
    max_edits: int = 2
    seed: int | None = None

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if self.max_nodes < 1:
            raise ValueError("max_nodes must be >= 1")
        if self.max_solutions < 1:
            raise ValueError("max_solutions must be >= 1")
        if self.progress_every < 1:
            raise ValueError("progress_every must be >= 1")
        if self.max_edits < 0:
            raise ValueError("max_edits must be >= 0")


class CancelToken:
    """Shared cancellation flag for one or more solver sessions.

    Safe to set from another thread; sessions only look at it between
    batches of expanded nodes.
    """

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True, slots=True)
class MoveSequence:
    moves: str
    length: int

    @classmethod
    def from_moves(cls, moves: str) -> MoveSequence:
        return cls(moves=moves, length=len(moves))

    def to_dict(self) -> dict[str, Any]:
        return {"moves": self.moves, "length": self.length}


@dataclass(frozen=True, slots=True)
class SolverProgress:
    nodes: int
    queue: int
    solutions: int
    dead_ends: int = 0
    done: bool = False

    @property
    def message(self) -> str:
        if self.done:
            return (
                f"Done. nodes expanded: {self.nodes}, "
                f"solutions: {self.solutions}, dead ends: {self.dead_ends}"
            )
        return (
            f"Searching... nodes:{self.nodes}, queue:{self.queue}, "
            f"solutions:{self.solutions}"
        )


@dataclass(frozen=True, slots=True)
class SolverStats:
    nodes_expanded: int
    raw_solutions: int
    raw_dead_ends: int
    termination: Termination
    frontier_remaining: int = 0
    # States reached at max_depth and left unexpanded; dead ends above them
    # may be solvable beyond the limit.
    depth_cutoffs: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes_expanded": self.nodes_expanded,
            "raw_solutions": self.raw_solutions,
            "raw_dead_ends": self.raw_dead_ends,
            "termination": self.termination,
            "frontier_remaining": self.frontier_remaining,
            "depth_cutoffs": self.depth_cutoffs,
        }


@dataclass(slots=True)
class SolveResult:
    solutions: list[MoveSequence]
    dead_ends: list[MoveSequence]
    stats: SolverStats
    graph: SolverGraph
    cancel_token: CancelToken = field(default_factory=CancelToken)

    @property
    def solved(self) -> bool:
        return bool(self.solutions)

    @property
    def shortest(self) -> MoveSequence | None:
        return self.solutions[0] if self.solutions else None

    def to_dict(self, *, include_graph: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "solutions": [entry.to_dict() for entry in self.solutions],
            "dead_ends": [entry.to_dict() for entry in self.dead_ends],
            "stats": self.stats.to_dict(),
        }
        if include_graph:
            payload["graph"] = self.graph.to_dict()
        return payload


@dataclass(slots=True)
class _FrontierNode:
    state: WorldState
    depth: int
    hash: int


class SolverSession:
    def __init__(
        self,
        initial: WorldState,
        options: SolverOptions | None = None,
        *,
        cancel_token: CancelToken | None = None,
    ) -> None:
        self.initial = initial
        self.options = options or SolverOptions()
        self.cancel_token = cancel_token or CancelToken()
        self.table = FingerprintTable(
            initial.rows, initial.cols, seed=self.options.seed
        )
        self.result: SolveResult | None = None
        self._parents: dict[int, tuple[int | None, str]] = {}

    def run(self) -> Iterator[SolverProgress]:
        """Expand the search, yielding progress; ``self.result`` is set at the end."""
        if self.result is not None:
            raise RuntimeError("solver session already ran")

        options = self.options
        start = self.table.fingerprint(self.initial)
        graph = SolverGraph(start=start)
        graph.depth_by_hash[start] = 0
        parents = self._parents
        parents[start] = (None, "")
        visited = {start}
        queue: deque[_FrontierNode] = deque([_FrontierNode(self.initial, 0, start)])
        raw_solutions: list[MoveSequence] = []
        nodes = 0
        depth_cutoffs = 0

        yield SolverProgress(nodes, len(queue), 0)
        cancelled = self.cancel_token.cancelled

        while (
            not cancelled
            and queue
            and nodes < options.max_nodes
            and len(raw_solutions) < options.max_solutions
        ):
            node = queue.popleft()
            graph.processed.add(node.hash)
            nodes += 1

            if node.depth >= options.max_depth:
                depth_cutoffs += 1
            else:
                for code in MOVE_CODES:
                    step = transition(node.state, DIRECTIONS[code])
                    if not step.changed:
                        continue
                    child = self.table.fingerprint(step.new_state)
                    if child in visited:
                        graph.add_revisit(SolverEdge(node.hash, child, code))
                        continue
                    visited.add(child)

                    losing = is_losing(step.new_state)
                    graph.add_edge(SolverEdge(node.hash, child, code, losing))
                    if losing:
                        continue

                    parents[child] = (node.hash, code)
                    graph.depth_by_hash[child] = node.depth + 1

                    if is_winning(step.new_state):
                        moves = self.path_to(child)
                        raw_solutions.append(MoveSequence.from_moves(moves))
                        graph.goal_hashes.add(child)
                        self._mark_solvable(graph, child)
                        if len(raw_solutions) >= options.max_solutions:
                            break
                        continue

                    queue.append(
                        _FrontierNode(step.new_state, node.depth + 1, child)
                    )

            if nodes % options.progress_every == 0:
                yield SolverProgress(nodes, len(queue), len(raw_solutions))
                if self.cancel_token.cancelled:
                    cancelled = True

        # Path marking misses states that only reach a goal through an
        # already discovered state.
        graph.solvable |= graph.reverse_reachable_from_goals()
        raw_dead_ends = self._classify_dead_ends(graph)
        solutions = filter_near_duplicates(raw_solutions, options.max_edits)
        dead_ends = filter_near_duplicates(raw_dead_ends, options.max_edits)

        if cancelled:
            termination: Termination = "cancelled"
        elif len(raw_solutions) >= options.max_solutions:
            termination = "solution_budget"
        elif not queue:
            termination = "exhausted"
        else:
            termination = "node_budget"

        self.result = SolveResult(
            solutions=solutions,
            dead_ends=dead_ends,
            stats=SolverStats(
                nodes_expanded=nodes,
                raw_solutions=len(raw_solutions),
                raw_dead_ends=len(raw_dead_ends),
                termination=termination,
                frontier_remaining=len(queue),
                depth_cutoffs=depth_cutoffs,
            ),
            graph=graph,
            cancel_token=self.cancel_token,
        )
        yield SolverProgress(
            nodes,
            len(queue),
            len(solutions),
            dead_ends=len(dead_ends),
            done=True,
        )

    def path_to(self, node: int) -> str:
        moves: list[str] = []
        current: int | None = node
        while current is not None and current in self._parents:
            parent, move = self._parents[current]
            if parent is None:
                break
            moves.append(move)
            current = parent
        moves.reverse()
        return "".join(moves)

    def state_for(self, node: int) -> WorldState:
        """Rebuild a discovered state by replaying its path from the root."""
        if node not in self._parents:
            raise KeyError(f"state {node:016x} was not discovered by this session")
        state = self.initial
        for code in self.path_to(node):
            state = transition(state, DIRECTIONS[code]).new_state
        return state

    def _mark_solvable(self, graph: SolverGraph, node: int) -> None:
        current: int | None = node
        while current is not None and current not in graph.solvable:
            graph.solvable.add(current)
            current = self._parents.get(current, (None, ""))[0]

    def _has_solvable_escape(self, graph: SolverGraph, node: int) -> bool:
        state = self.state_for(node)
        for code in MOVE_CODES:
            step = transition(state, DIRECTIONS[code])
            if not step.changed:
                continue
            if is_winning(step.new_state):
                return True
            if self.table.fingerprint(step.new_state) in graph.solvable:
                return True
        return False

    def _classify_dead_ends(self, graph: SolverGraph) -> list[MoveSequence]:
        dead_ends: list[MoveSequence] = []
        for edge in graph.edges:
            if edge.losing:
                continue
            if edge.parent not in graph.solvable:
                continue
            if edge.child in graph.solvable:
                continue
            if edge.child not in graph.processed:
                continue
            if self._has_solvable_escape(graph, edge.child):
                continue
            dead_ends.append(MoveSequence.from_moves(self.path_to(edge.child)))
        return dead_ends


def solve(
    initial: WorldState,
    options: SolverOptions | None = None,
    *,
    on_progress: ProgressCallback | None = None,
    cancel_token: CancelToken | None = None,
) -> SolveResult:
    session = SolverSession(initial, options, cancel_token=cancel_token)
    for progress in session.run():
        if on_progress is not None:
            on_progress(progress.message)
    assert session.result is not None
    return session.result
