from __future__ import annotations

from typing import Iterable, Protocol, TypeVar


class MoveSequenceLike(Protocol):
    @property
    def moves(self) -> str: ...

    @property
    def length(self) -> int: ...


T = TypeVar("T", bound=MoveSequenceLike)


def is_one_edit_apart(a: str, b: str) -> bool:
    """Exactly one insert, delete or substitution turns ``a`` into ``b``."""
    if a == b:
        return False
    la, lb = len(a), len(b)
    if abs(la - lb) > 1:
        return False
    i = j = edits = 0
    while i < la and j < lb:
        if a[i] == b[j]:
            i += 1
            j += 1
            continue
        edits += 1
        if edits > 1:
            return False
        if la > lb:
            i += 1
        elif lb > la:
            j += 1
        else:
            i += 1
            j += 1
    if i < la or j < lb:
        edits += 1
    return edits == 1


def edit_distance_at_most(a: str, b: str, limit: int) -> bool:
    """Banded Levenshtein check: is the edit distance of ``a`` and ``b`` <= limit?

    Only cells within ``limit`` of the diagonal are computed and the scan stops
    as soon as a whole row exceeds the limit.
    """
    if a == b:
        return True
    if abs(len(a) - len(b)) > limit:
        return False
    if len(a) > len(b):
        a, b = b, a
    la, lb = len(a), len(b)
    out_of_band = limit + 1
    prev = list(range(lb + 1))
    curr = [0] * (lb + 1)
    for i in range(1, la + 1):
        curr[0] = i
        j_start = max(1, i - limit)
        j_end = min(lb, i + limit)
        for j in range(1, j_start):
            curr[j] = out_of_band
        row_min = curr[j_start - 1]
        for j in range(j_start, j_end + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            curr[j] = min(prev[j] + 1, curr[j - 1] + 1, prev[j - 1] + cost)
            if curr[j] < row_min:
                row_min = curr[j]
        for j in range(j_end + 1, lb + 1):
            curr[j] = out_of_band
        if row_min > limit:
            return False
        prev, curr = curr, prev
    return prev[lb] <= limit


def _clashes(entry: MoveSequenceLike, kept: MoveSequenceLike, max_edits: int) -> bool:
    length_gap = entry.length - kept.length
    if length_gap < 0 or length_gap > max_edits:
        return False
    if length_gap == 1 and is_one_edit_apart(entry.moves, kept.moves):
        return True
    return edit_distance_at_most(entry.moves, kept.moves, max_edits)


def filter_near_duplicates(entries: Iterable[T], max_edits: int = 2) -> list[T]:
    """Greedily keep move sequences that are not near-copies of shorter ones.

    Entries are visited shortest first (ties broken by move string); an entry is
    dropped when a kept entry that is no longer than it lies within
    ``max_edits`` edits.
    """
    ordered = sorted(entries, key=lambda entry: (entry.length, entry.moves))
    keep: list[T] = []
    for entry in ordered:
        if not any(_clashes(entry, kept, max_edits) for kept in keep):
            keep.append(entry)
    return keep
