from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, TypeAlias

if TYPE_CHECKING:
    from .state import Entity

Orientation: TypeAlias = Literal["NE", "NW", "SE", "SW"]

PLAYER = "player"
BOX = "box"
HEAVY_BOX = "heavyBox"
TRI_BOX = "triBox"
FRAGILE_WALL = "fragileWall"

ORIENTATIONS: tuple[Orientation, ...] = ("NE", "NW", "SE", "SW")
DEFAULT_ORIENTATION: Orientation = "NE"


@dataclass(frozen=True, slots=True)
class EntitySpec:
    name: str
    solid: bool = False
    pushable: bool = False
    presses_plate: bool = False
    fragile: bool = False
    oriented: bool = False


ENTITY_REGISTRY: dict[str, EntitySpec] = {
    PLAYER: EntitySpec(PLAYER),
    BOX: EntitySpec(BOX, solid=True, pushable=True, presses_plate=True),
    HEAVY_BOX: EntitySpec(
        HEAVY_BOX, solid=True, pushable=True, presses_plate=True
    ),
    TRI_BOX: EntitySpec(TRI_BOX, solid=True, pushable=True, oriented=True),
    FRAGILE_WALL: EntitySpec(FRAGILE_WALL, solid=True, fragile=True),
}

ENTITY_TYPES: tuple[str, ...] = tuple(ENTITY_REGISTRY)
PUSHABLE_TYPES: frozenset[str] = frozenset(
    name for name, spec in ENTITY_REGISTRY.items() if spec.pushable
)


def _spec(entity_type: str) -> EntitySpec | None:
    return ENTITY_REGISTRY.get(entity_type)


def is_pushable(entity: Entity) -> bool:
    spec = _spec(entity.type)
    return spec is not None and spec.pushable


def is_solid(entity: Entity) -> bool:
    spec = _spec(entity.type)
    return spec is not None and spec.solid


def presses_plate(entity: Entity) -> bool:
    """Boxes and heavy boxes hold a pressure plate down; tri boxes do not."""
    spec = _spec(entity.type)
    return spec is not None and spec.presses_plate


def is_fragile(entity: Entity) -> bool:
    spec = _spec(entity.type)
    return spec is not None and spec.fragile


def is_blocking_solid(entity: Entity) -> bool:
    """Solid entities that cannot be shoved (fragile walls)."""
    return is_solid(entity) and not is_pushable(entity)
