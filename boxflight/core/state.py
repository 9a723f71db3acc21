from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Iterator, Literal, Sequence, TypeAlias

from .entities import PLAYER, Orientation, is_pushable
from .tiles import FLOOR

Position: TypeAlias = tuple[int, int]
Direction: TypeAlias = tuple[int, int]
PlayerMode: TypeAlias = Literal["free", "inbox"]
EntityPredicate: TypeAlias = Callable[["Entity"], bool]

NEUTRAL: Direction = (0, 0)


class BoxFlightError(Exception):
    """Base exception for boxflight errors."""


class InvalidLevelError(BoxFlightError, ValueError):
    """Raised when a level document or level text is malformed."""


class InvalidActionError(BoxFlightError, ValueError):
    """Raised when an action cannot be parsed into a direction."""


class IllegalMoveError(BoxFlightError):
    """Raised by controllers when a requested move has no effect."""


def is_neutral(direction: Direction | None) -> bool:
    return direction is None or direction == NEUTRAL


def opposite(direction: Direction) -> Direction:
    return (-direction[0], -direction[1])


@dataclass(frozen=True, slots=True)
class PlayerState:
    mode: PlayerMode = "free"
    entry_dir: Direction = NEUTRAL

    @property
    def riding(self) -> bool:
        return self.mode == "inbox"


FREE_PLAYER = PlayerState()


@dataclass(frozen=True, slots=True)
class Entity:
    type: str
    x: int
    y: int
    player: PlayerState | None = None
    orient: Orientation | None = None
    under_tile: str | None = None

    @property
    def position(self) -> Position:
        return (self.x, self.y)

    def moved_to(self, x: int, y: int) -> Entity:
        return replace(self, x=x, y=y)


def make_player(
    x: int, y: int, *, mode: PlayerMode = "free", entry_dir: Direction = NEUTRAL
) -> Entity:
    return Entity(PLAYER, x, y, player=PlayerState(mode=mode, entry_dir=entry_dir))


class GridView:
    """Read access shared by frozen states and in-flight drafts.

    Entity lookups return slot indices; a draft keeps removed slots as ``None``
    so indices stay valid for the whole transition.
    """

    __slots__ = ()

    rows: int
    cols: int

    def _row(self, y: int) -> Sequence[str]:
        raise NotImplementedError

    def _slots(self) -> Sequence[Entity | None]:
        raise NotImplementedError

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.cols and 0 <= y < self.rows

    def tile_at(self, x: int, y: int) -> str:
        return self._row(y)[x] or FLOOR

    def entity(self, index: int) -> Entity:
        entity = self._slots()[index]
        if entity is None:
            raise KeyError(f"entity slot {index} is empty")
        return entity

    def iter_entities(self) -> Iterator[tuple[int, Entity]]:
        for index, entity in enumerate(self._slots()):
            if entity is not None:
                yield index, entity

    def find_entity(
        self, x: int, y: int, predicate: EntityPredicate | None = None
    ) -> int | None:
        for index, entity in self.iter_entities():
            if entity.x == x and entity.y == y:
                if predicate is None or predicate(entity):
                    return index
        return None

    def entity_at(
        self, x: int, y: int, predicate: EntityPredicate | None = None
    ) -> Entity | None:
        index = self.find_entity(x, y, predicate)
        return None if index is None else self.entity(index)

    def pushable_at(self, x: int, y: int) -> int | None:
        return self.find_entity(x, y, is_pushable)

    def player_index(self) -> int | None:
        for index, entity in self.iter_entities():
            if entity.type == PLAYER:
                return index
        return None

    def find_player(self) -> Entity | None:
        index = self.player_index()
        return None if index is None else self.entity(index)


@dataclass(frozen=True, slots=True)
class WorldState(GridView):
    """Immutable unit of search: grid of tile labels plus entities.

    Rows are tuples shared between successive states; only rows touched by a
    transition are rebuilt.
    """

    rows: int
    cols: int
    grid: tuple[tuple[str, ...], ...]
    entities: tuple[Entity, ...] = field(default=())

    def _row(self, y: int) -> Sequence[str]:
        return self.grid[y]

    def _slots(self) -> Sequence[Entity | None]:
        return self.entities

    @property
    def size(self) -> tuple[int, int]:
        return (self.rows, self.cols)

    def edit(self) -> StateDraft:
        return StateDraft(self)

    def iter_tiles(self) -> Iterator[tuple[int, int, str]]:
        for y, row in enumerate(self.grid):
            for x, tile in enumerate(row):
                yield x, y, tile or FLOOR

    def with_entities(self, entities: Sequence[Entity]) -> WorldState:
        return replace(self, entities=tuple(entities))


class StateDraft(GridView):
    """Mutable working copy of a ``WorldState`` used inside one transition."""

    __slots__ = ("rows", "cols", "_grid", "_entities")

    def __init__(self, state: WorldState) -> None:
        self.rows = state.rows
        self.cols = state.cols
        self._grid: list[tuple[str, ...]] = list(state.grid)
        self._entities: list[Entity | None] = list(state.entities)

    def _row(self, y: int) -> Sequence[str]:
        return self._grid[y]

    def _slots(self) -> Sequence[Entity | None]:
        return self._entities

    def set_tile(self, x: int, y: int, tile: str) -> None:
        row = list(self._grid[y])
        row[x] = tile
        self._grid[y] = tuple(row)

    def replace_entity(self, index: int, entity: Entity) -> None:
        self._entities[index] = entity

    def move_entity(self, index: int, x: int, y: int) -> tuple[Position, Position]:
        entity = self.entity(index)
        self._entities[index] = entity.moved_to(x, y)
        return (entity.position, (x, y))

    def remove_entity(self, index: int) -> Entity:
        entity = self.entity(index)
        self._entities[index] = None
        return entity

    def set_player_state(self, index: int, player: PlayerState) -> None:
        self._entities[index] = replace(self.entity(index), player=player)

    def freeze(self) -> WorldState:
        return WorldState(
            rows=self.rows,
            cols=self.cols,
            grid=tuple(self._grid),
            entities=tuple(e for e in self._entities if e is not None),
        )
