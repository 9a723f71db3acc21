from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Iterable


@dataclass(frozen=True, slots=True)
class SolverEdge:
    parent: int
    child: int
    move: str
    losing: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "parent": _hex(self.parent),
            "child": _hex(self.child),
            "move": self.move,
            "losing": self.losing,
        }


@dataclass(slots=True)
class SolverGraph:
    """The explored part of a level's state graph.

    Nodes are state fingerprints. ``edges`` only holds the move that first
    discovered each child, so it forms a tree. Moves that lead back into an
    already discovered state go to ``revisits``; both feed the adjacency used
    for reverse reachability. Losing edges never enter the adjacency.
    """

    start: int
    processed: set[int] = field(default_factory=set)
    edges: list[SolverEdge] = field(default_factory=list)
    revisits: list[SolverEdge] = field(default_factory=list)
    losing: set[int] = field(default_factory=set)
    depth_by_hash: dict[int, int] = field(default_factory=dict)
    goal_hashes: set[int] = field(default_factory=set)
    solvable: set[int] = field(default_factory=set)
    adjacency: dict[int, list[int]] = field(default_factory=dict)
    reverse_adjacency: dict[int, list[int]] = field(default_factory=dict)

    def add_edge(self, edge: SolverEdge) -> None:
        self.edges.append(edge)
        if edge.losing:
            self.losing.add(edge.child)
            return
        self._link(edge)

    def add_revisit(self, edge: SolverEdge) -> None:
        if edge.losing or edge.child in self.losing:
            return
        self.revisits.append(edge)
        self._link(edge)

    def _link(self, edge: SolverEdge) -> None:
        self.adjacency.setdefault(edge.parent, []).append(edge.child)
        self.adjacency.setdefault(edge.child, [])
        self.reverse_adjacency.setdefault(edge.child, []).append(edge.parent)
        self.reverse_adjacency.setdefault(edge.parent, [])

    def predecessors(self, node: int) -> list[int]:
        return self.reverse_adjacency.get(node, [])

    @property
    def node_count(self) -> int:
        nodes = {self.start}
        for edge in self.edges:
            nodes.add(edge.parent)
            nodes.add(edge.child)
        return len(nodes)

    def reverse_reachable_from_goals(
        self, goals: Iterable[int] | None = None
    ) -> set[int]:
        """Nodes from which some goal can be reached over non-losing edges."""
        reachable: set[int] = set()
        queue: deque[int] = deque()
        for goal in self.goal_hashes if goals is None else goals:
            if goal not in reachable:
                reachable.add(goal)
                queue.append(goal)

        while queue:
            node = queue.popleft()
            for parent in self.predecessors(node):
                if parent in reachable:
                    continue
                reachable.add(parent)
                queue.append(parent)
        return reachable

    def to_dict(self) -> dict[str, Any]:
        return {
            "start": _hex(self.start),
            "nodes": self.node_count,
            "processed": len(self.processed),
            "goals": sorted(_hex(goal) for goal in self.goal_hashes),
            "solvable": len(self.solvable),
            "edges": [edge.to_dict() for edge in self.edges],
            "revisits": [edge.to_dict() for edge in self.revisits],
        }


def _hex(value: int) -> str:
    return f"{value:016x}"
