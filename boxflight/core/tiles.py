from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeAlias

TileTrait: TypeAlias = Literal[
    "is_wall_for_player",
    "is_wall_for_box",
    "is_hole_for_player",
    "is_hole_for_box",
    "is_fragile",
    "is_not_fly",
    "is_stick_on_fly",
    "is_end",
    "requires_box",
]

FLOOR = "floor"
WALL = "wall"
HOLE = "hole"
EXIT = "exit"
SPIKES = "spikes"
GRILE = "grile"
PRESSURE_PLATE = "pressurePlate"
HOLE_SPIKES = "holeSpikes"
SLIM_PATH_FLOOR = "slimPathFloor"
SLIM_PATH_HOLE = "slimPathHole"
FRAGILE_WALL = "fragileWall"


@dataclass(frozen=True, slots=True)
class TileTraits:
    name: str
    is_wall_for_player: bool = False
    is_wall_for_box: bool = False
    is_hole_for_player: bool = False
    is_hole_for_box: bool = False
    is_fragile: bool = False
    is_not_fly: bool = False
    is_stick_on_fly: bool = False
    is_end: bool = False
    requires_box: bool = False


TILE_REGISTRY: dict[str, TileTraits] = {
    FLOOR: TileTraits(FLOOR),
    WALL: TileTraits(
        WALL, is_wall_for_player=True, is_wall_for_box=True, is_not_fly=True
    ),
    HOLE: TileTraits(HOLE, is_hole_for_player=True, is_hole_for_box=True),
    EXIT: TileTraits(EXIT, is_end=True),
    # Flight sticks to spikes instead of passing over them.
    SPIKES: TileTraits(SPIKES, is_wall_for_box=True, is_stick_on_fly=True),
    GRILE: TileTraits(GRILE, is_hole_for_player=True),
    PRESSURE_PLATE: TileTraits(PRESSURE_PLATE, requires_box=True),
    HOLE_SPIKES: TileTraits(
        HOLE_SPIKES,
        is_wall_for_box=True,
        is_stick_on_fly=True,
        is_hole_for_player=True,
    ),
    SLIM_PATH_FLOOR: TileTraits(SLIM_PATH_FLOOR, is_wall_for_box=True),
    SLIM_PATH_HOLE: TileTraits(
        SLIM_PATH_HOLE, is_wall_for_box=True, is_hole_for_player=True
    ),
    FRAGILE_WALL: TileTraits(
        FRAGILE_WALL, is_wall_for_player=True, is_wall_for_box=True, is_fragile=True
    ),
}

TILE_TYPES: tuple[str, ...] = tuple(TILE_REGISTRY)


def get_tile_traits(tile: str | None) -> TileTraits:
    """Return the trait set for a tile label; unknown labels behave like floor."""
    if tile is None:
        return TILE_REGISTRY[FLOOR]
    return TILE_REGISTRY.get(tile, TILE_REGISTRY[FLOOR])


def has_trait(tile: str | None, trait: TileTrait) -> bool:
    return bool(getattr(get_tile_traits(tile), trait))
