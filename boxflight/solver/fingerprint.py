"""Zobrist fingerprints for search states.

A table of random 64-bit salts is drawn once per solving session. A state's
fingerprint is the XOR of the salts of everything it contains, so equal states
always share a fingerprint within the session. Salts are not stable across
sessions unless a seed is given.
"""

from __future__ import annotations

import random
from typing import Literal, TypeAlias

from ..core.entities import (
    DEFAULT_ORIENTATION,
    ORIENTATIONS,
    PLAYER,
    PUSHABLE_TYPES,
    TRI_BOX,
)
from ..core.entities import FRAGILE_WALL as FRAGILE_ENTITY
from ..core.state import FREE_PLAYER, Direction, WorldState
from ..core.tiles import TILE_TYPES

RideBucket: TypeAlias = Literal["r", "l", "u", "d", "z"]

RIDE_BUCKETS: tuple[RideBucket, ...] = ("r", "l", "u", "d", "z")
SALTED_ENTITY_TYPES: tuple[str, ...] = (*sorted(PUSHABLE_TYPES), FRAGILE_ENTITY)


def ride_bucket(direction: Direction | None) -> RideBucket:
    if direction is None:
        return "z"
    dx, dy = direction
    if dx == 1:
        return "r"
    if dx == -1:
        return "l"
    if dy == -1:
        return "u"
    if dy == 1:
        return "d"
    return "z"


class FingerprintTable:
    def __init__(self, rows: int, cols: int, seed: int | None = None) -> None:
        if rows < 1 or cols < 1:
            raise ValueError("fingerprint table needs a non-empty grid")
        self.rows = rows
        self.cols = cols
        self._rng = random.Random(seed)
        self.salt = self._rng.getrandbits(64)
        self._tiles: dict[str, list[int]] = {
            tile: self._plane() for tile in TILE_TYPES
        }
        self._entities = {name: self._plane() for name in SALTED_ENTITY_TYPES}
        self._player_free = self._plane()
        self._player_inbox = {bucket: self._plane() for bucket in RIDE_BUCKETS}
        self._orientations = {orient: self._plane() for orient in ORIENTATIONS}

    def _plane(self) -> list[int]:
        return [self._rng.getrandbits(64) for _ in range(self.rows * self.cols)]

    def _tile_plane(self, tile: str) -> list[int]:
        plane = self._tiles.get(tile)
        if plane is None:
            # Labels outside the trait table still hash distinctly.
            plane = self._tiles[tile] = self._plane()
        return plane

    def matches(self, state: WorldState) -> bool:
        return state.rows == self.rows and state.cols == self.cols

    def fingerprint(self, state: WorldState) -> int:
        if not self.matches(state):
            raise ValueError(
                f"state is {state.rows}x{state.cols}, "
                f"table is {self.rows}x{self.cols}"
            )
        cols = self.cols
        h = self.salt
        for x, y, tile in state.iter_tiles():
            h ^= self._tile_plane(tile)[y * cols + x]

        for entity in state.entities:
            cell = entity.y * cols + entity.x
            plane = self._entities.get(entity.type)
            if plane is not None:
                h ^= plane[cell]
            if entity.type == PLAYER:
                player = entity.player or FREE_PLAYER
                if player.riding:
                    h ^= self._player_inbox[ride_bucket(player.entry_dir)][cell]
                else:
                    h ^= self._player_free[cell]
            elif entity.type == TRI_BOX:
                plane = self._orientations.get(
                    entity.orient or DEFAULT_ORIENTATION,
                    self._orientations[DEFAULT_ORIENTATION],
                )
                h ^= plane[cell]
        return h


def fingerprint(state: WorldState, table: FingerprintTable | None = None) -> int:
    """Fingerprint one state; builds a fresh table when none is given."""
    if table is None:
        table = FingerprintTable(state.rows, state.cols)
    return table.fingerprint(state)
