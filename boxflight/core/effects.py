"""Effect log records emitted by the movement engine.

Effects describe what happened during a transition so that renderers can
animate it. They carry no authority over state: everything they report can be
derived by comparing the states before and after the transition.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, ClassVar, TypeAlias, Union

from .entities import Orientation
from .state import Direction, Position


@dataclass(frozen=True, slots=True)
class EntityMoved:
    kind: ClassVar[str] = "entityMoved"
    entity_type: str
    from_pos: Position
    to_pos: Position
    orient: Orientation | None = None


@dataclass(frozen=True, slots=True)
class TileChanged:
    kind: ClassVar[str] = "tileChanged"
    pos: Position
    from_tile: str
    to_tile: str


@dataclass(frozen=True, slots=True)
class BoxFell:
    kind: ClassVar[str] = "boxFell"
    pos: Position
    box_type: str | None = None
    orient: Orientation | None = None
    player_inside: bool = False


@dataclass(frozen=True, slots=True)
class PlayerLaunched:
    kind: ClassVar[str] = "playerLaunched"
    from_pos: Position
    to_pos: Position
    direction: Direction
    distance: int


@dataclass(frozen=True, slots=True)
class PlayerEnteredBox:
    kind: ClassVar[str] = "playerEnteredBox"
    box_type: str
    pos: Position
    entry_dir: Direction


@dataclass(frozen=True, slots=True)
class PlayerExitedBox:
    kind: ClassVar[str] = "playerExitedBox"
    box_type: str
    pos: Position
    exit_dir: Direction


@dataclass(frozen=True, slots=True)
class HeavyNeutral:
    kind: ClassVar[str] = "heavyNeutral"
    pos: Position
    neutral: bool


@dataclass(frozen=True, slots=True)
class Bump:
    kind: ClassVar[str] = "bump"
    pos: Position
    direction: Direction


Effect: TypeAlias = Union[
    EntityMoved,
    TileChanged,
    BoxFell,
    PlayerLaunched,
    PlayerEnteredBox,
    PlayerExitedBox,
    HeavyNeutral,
    Bump,
]

EFFECT_TYPES: tuple[type, ...] = (
    EntityMoved,
    TileChanged,
    BoxFell,
    PlayerLaunched,
    PlayerEnteredBox,
    PlayerExitedBox,
    HeavyNeutral,
    Bump,
)


def effect_to_dict(effect: Effect) -> dict[str, Any]:
    if not isinstance(effect, EFFECT_TYPES):
        raise TypeError(f"not an effect record: {effect!r}")
    payload: dict[str, Any] = {"type": effect.kind}
    for key, value in asdict(effect).items():
        payload[key] = list(value) if isinstance(value, tuple) else value
    return payload
