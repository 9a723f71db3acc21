from __future__ import annotations

from typing import Iterable, Literal, TypeAlias

from .player import Transition, step_player_move
from .state import Direction, InvalidActionError, WorldState

MoveCode: TypeAlias = Literal["d", "a", "w", "s"]
DirectionName: TypeAlias = Literal["right", "left", "up", "down"]

# Expansion order used by the solver; move strings are built from these codes.
MOVE_CODES: tuple[MoveCode, ...] = ("d", "a", "w", "s")

DIRECTIONS: dict[MoveCode, Direction] = {
    "d": (1, 0),
    "a": (-1, 0),
    "w": (0, -1),
    "s": (0, 1),
}
DIRECTION_NAMES: dict[DirectionName, MoveCode] = {
    "right": "d",
    "left": "a",
    "up": "w",
    "down": "s",
}
CODE_BY_DIRECTION: dict[Direction, MoveCode] = {
    delta: code for code, delta in DIRECTIONS.items()
}
NAME_BY_CODE: dict[MoveCode, DirectionName] = {
    code: name for name, code in DIRECTION_NAMES.items()
}


def transition(state: WorldState, direction: Direction) -> Transition:
    """Apply one directional input.

    Returns ``Transition(new_state, effects, changed)``. When ``changed`` is
    false the input had no effect and ``new_state`` is the input state (or the
    recovered state when the player was riding a box that no longer exists).
    The input state is never mutated.
    """
    if direction not in CODE_BY_DIRECTION:
        raise InvalidActionError(f"not a cardinal direction: {direction!r}")
    return step_player_move(state, direction)


def parse_direction(action: object) -> Direction:
    if isinstance(action, tuple) and action in CODE_BY_DIRECTION:
        return action  # type: ignore[return-value]
    if isinstance(action, str):
        normalized = action.strip().lower()
        if normalized in DIRECTIONS:
            return DIRECTIONS[normalized]  # type: ignore[index]
        if normalized in DIRECTION_NAMES:
            return DIRECTIONS[DIRECTION_NAMES[normalized]]  # type: ignore[index]
    raise InvalidActionError(
        "action must be a direction name (up/down/left/right), "
        "a move code (w/s/a/d) or a unit (dx, dy) tuple"
    )


def move_code(direction: Direction) -> MoveCode:
    try:
        return CODE_BY_DIRECTION[direction]
    except KeyError:
        raise InvalidActionError(f"not a cardinal direction: {direction!r}") from None


def replay_moves(
    state: WorldState, moves: Iterable[str]
) -> tuple[WorldState, list[Transition]]:
    """Apply a move string (or any iterable of codes/names) from ``state``.

    Ineffective moves are kept in the returned transition list but leave the
    state untouched.
    """
    transitions: list[Transition] = []
    for move in moves:
        result = transition(state, parse_direction(move))
        transitions.append(result)
        state = result.new_state
    return state, transitions
