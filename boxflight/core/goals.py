from __future__ import annotations

from .entities import presses_plate
from .state import FREE_PLAYER, WorldState
from .tiles import has_trait


def exit_active(state: WorldState) -> bool:
    """True when every pressure plate is held down by a box or heavy box."""
    for x, y, tile in state.iter_tiles():
        if not has_trait(tile, "requires_box"):
            continue
        if state.entity_at(x, y, presses_plate) is None:
            return False
    return True


def is_winning(state: WorldState) -> bool:
    player = state.find_player()
    if player is None or (player.player or FREE_PLAYER).riding:
        return False
    if not has_trait(state.tile_at(player.x, player.y), "is_end"):
        return False
    return exit_active(state)


def is_losing(state: WorldState) -> bool:
    player = state.find_player()
    if player is None:
        return False
    tile = state.tile_at(player.x, player.y)
    if (player.player or FREE_PLAYER).riding:
        return has_trait(tile, "is_hole_for_box")
    return has_trait(tile, "is_hole_for_player")
