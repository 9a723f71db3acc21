"""Movement engine: world model, tile traits, effects and transitions."""

from __future__ import annotations

from .effects import (
    EFFECT_TYPES,
    BoxFell,
    Bump,
    Effect,
    EntityMoved,
    HeavyNeutral,
    PlayerEnteredBox,
    PlayerExitedBox,
    PlayerLaunched,
    TileChanged,
    effect_to_dict,
)
from .engine import (
    DIRECTION_NAMES,
    DIRECTIONS,
    MOVE_CODES,
    move_code,
    parse_direction,
    replay_moves,
    transition,
)
from .goals import exit_active, is_losing, is_winning
from .player import Transition
from .state import (
    FREE_PLAYER,
    NEUTRAL,
    BoxFlightError,
    Entity,
    IllegalMoveError,
    InvalidActionError,
    InvalidLevelError,
    PlayerState,
    WorldState,
    make_player,
)

__all__ = [
    "DIRECTIONS",
    "DIRECTION_NAMES",
    "EFFECT_TYPES",
    "FREE_PLAYER",
    "MOVE_CODES",
    "NEUTRAL",
    "BoxFell",
    "BoxFlightError",
    "Bump",
    "Effect",
    "Entity",
    "EntityMoved",
    "HeavyNeutral",
    "IllegalMoveError",
    "InvalidActionError",
    "InvalidLevelError",
    "PlayerEnteredBox",
    "PlayerExitedBox",
    "PlayerLaunched",
    "PlayerState",
    "TileChanged",
    "Transition",
    "WorldState",
    "effect_to_dict",
    "exit_active",
    "is_losing",
    "is_winning",
    "make_player",
    "move_code",
    "parse_direction",
    "replay_moves",
    "transition",
]
