"""Player state machine.

The player is either walking (``free``) or riding inside a pushable entity
(``inbox``). While riding, input is handled by the handler registered for the
kind of entity under the player. Every handler exposes the same two
operations, ``can_handle`` and ``handle_input``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import ClassVar, Protocol

from .effects import (
    BoxFell,
    Bump,
    Effect,
    EntityMoved,
    HeavyNeutral,
    PlayerEnteredBox,
    PlayerExitedBox,
    PlayerLaunched,
)
from .entities import (
    BOX,
    DEFAULT_ORIENTATION,
    HEAVY_BOX,
    PLAYER,
    TRI_BOX,
    Orientation,
    is_blocking_solid,
)
from .motion import apply_push_chain, plan_push_chain, resolve_flight
from .state import (
    FREE_PLAYER,
    NEUTRAL,
    Direction,
    Entity,
    PlayerState,
    StateDraft,
    WorldState,
    is_neutral,
    opposite,
)
from .tiles import has_trait

# Directions that strike the long (sloped) side of a triangular box, keyed by
# the orientation naming its two short legs.
LONG_SIDE_DIRECTIONS: dict[Orientation, tuple[Direction, Direction]] = {
    "NE": ((0, 1), (-1, 0)),
    "NW": ((1, 0), (0, 1)),
    "SE": ((0, -1), (-1, 0)),
    "SW": ((0, -1), (1, 0)),
}


@dataclass(frozen=True, slots=True)
class Transition:
    new_state: WorldState
    effects: tuple[Effect, ...]
    changed: bool


@dataclass(frozen=True, slots=True)
class MoveInput:
    state: WorldState
    draft: StateDraft
    player_index: int
    direction: Direction

    @property
    def player(self) -> Entity:
        return self.draft.entity(self.player_index)

    @property
    def player_state(self) -> PlayerState:
        return self.player.player or FREE_PLAYER

    @property
    def target(self) -> tuple[int, int]:
        player = self.player
        return (player.x + self.direction[0], player.y + self.direction[1])

    def blocked(self) -> Transition:
        return Transition(
            self.state, (Bump(self.player.position, self.direction),), False
        )

    def done(self, effects: list[Effect]) -> Transition:
        return Transition(self.draft.freeze(), tuple(effects), True)

    def place_player(
        self, x: int, y: int, player_state: PlayerState | None = None
    ) -> EntityMoved:
        player = self.player
        self.draft.replace_entity(
            self.player_index,
            replace(player, x=x, y=y, player=player_state or player.player),
        )
        return EntityMoved(PLAYER, player.position, (x, y))


class PlayerHandler(Protocol):
    def can_handle(self, player: Entity, under: Entity | None) -> bool: ...

    def handle_input(self, move: MoveInput) -> Transition: ...


class FreeHandler:
    def can_handle(self, player: Entity, under: Entity | None) -> bool:
        return not (player.player or FREE_PLAYER).riding

    def handle_input(self, move: MoveInput) -> Transition:
        draft = move.draft
        tx, ty = move.target
        if not draft.in_bounds(tx, ty):
            return move.blocked()
        if has_trait(draft.tile_at(tx, ty), "is_wall_for_player"):
            return move.blocked()

        box_index = draft.pushable_at(tx, ty)
        if box_index is not None:
            box = draft.entity(box_index)
            moved = move.place_player(
                tx, ty, PlayerState(mode="inbox", entry_dir=move.direction)
            )
            return move.done(
                [moved, PlayerEnteredBox(box.type, (tx, ty), move.direction)]
            )

        if draft.find_entity(tx, ty, is_blocking_solid) is not None:
            return move.blocked()
        return move.done([move.place_player(tx, ty)])


class _RidingHandler:
    """Shared behaviour for every kind of ridden box."""

    box_type: ClassVar[str]

    def can_handle(self, player: Entity, under: Entity | None) -> bool:
        riding = (player.player or FREE_PLAYER).riding
        return riding and under is not None and under.type == self.box_type

    def handle_input(self, move: MoveInput) -> Transition:
        tx, ty = move.target
        if not move.draft.in_bounds(tx, ty):
            return move.blocked()
        under_index = move.draft.pushable_at(*move.player.position)
        if under_index is None:
            return recover_vanished_box(move)
        if self._reverse_allowed(move):
            return self._launch(move, under_index)
        return self._ride(move, under_index)

    def _ride(self, move: MoveInput, under_index: int) -> Transition:
        return self._push(move, under_index)

    def _reverse_allowed(self, move: MoveInput) -> bool:
        entry_dir = move.player_state.entry_dir
        if is_neutral(entry_dir) or move.direction != opposite(entry_dir):
            return False
        draft = move.draft
        tx, ty = move.target
        if has_trait(draft.tile_at(tx, ty), "is_wall_for_player"):
            return False
        front_blocker = draft.find_entity(tx, ty, is_blocking_solid)
        return front_blocker is None or draft.pushable_at(tx, ty) is not None

    def _blocked_for_box(self, move: MoveInput) -> bool:
        draft = move.draft
        tx, ty = move.target
        if has_trait(draft.tile_at(tx, ty), "is_wall_for_box"):
            return True
        front_blocker = draft.find_entity(tx, ty, is_blocking_solid)
        return front_blocker is not None and draft.pushable_at(tx, ty) is None

    def _launch(self, move: MoveInput, under_index: int) -> Transition:
        draft = move.draft
        box = draft.entity(under_index)
        start = move.player.position
        dx, dy = move.direction
        flight = resolve_flight(draft, start[0], start[1], dx, dy)
        if flight.mode == "inbox":
            landing = PlayerState(mode="inbox", entry_dir=flight.entry_dir or NEUTRAL)
        else:
            landing = FREE_PLAYER
        end = (flight.x, flight.y)
        distance = abs(end[0] - start[0]) + abs(end[1] - start[1])

        effects: list[Effect] = [
            move.place_player(flight.x, flight.y, landing),
            PlayerLaunched(start, end, move.direction, distance),
        ]
        if landing.riding:
            landed_on = draft.entity_at(flight.x, flight.y, _is_ridable)
            landed_type = landed_on.type if landed_on is not None else box.type
            effects.append(PlayerEnteredBox(landed_type, end, landing.entry_dir))
        else:
            effects.append(PlayerExitedBox(box.type, end, move.direction))
        effects.extend(flight.effects)
        return move.done(effects)

    def _push(
        self,
        move: MoveInput,
        under_index: int,
        *,
        entry_after_solo_move: Direction | None = None,
    ) -> Transition:
        """Shove the ridden box one cell; the player follows it.

        ``entry_after_solo_move`` replaces the ride direction when the box
        moves (or falls) without pushing another box.
        """
        if self._blocked_for_box(move):
            return move.blocked()

        draft = move.draft
        tx, ty = move.target
        dx, dy = move.direction
        effects: list[Effect] = []

        if draft.pushable_at(tx, ty) is not None:
            plan = plan_push_chain(draft, tx, ty, dx, dy)
            if not plan.ok:
                return move.blocked()
            effects.extend(apply_push_chain(draft, plan, dx, dy))
            effects.extend(self._carry(move, under_index))
            return move.done(effects)

        new_state = None
        if entry_after_solo_move is not None:
            new_state = replace(move.player_state, entry_dir=entry_after_solo_move)
        if has_trait(draft.tile_at(tx, ty), "is_hole_for_box"):
            effects.extend(self._sink(move, under_index, new_state))
            return move.done(effects)
        effects.extend(self._carry(move, under_index, new_state))
        return move.done(effects)

    def _carry(
        self,
        move: MoveInput,
        under_index: int,
        player_state: PlayerState | None = None,
        *,
        extra: list[Effect] | None = None,
    ) -> list[Effect]:
        draft = move.draft
        box = draft.entity(under_index)
        tx, ty = move.target
        from_pos, to_pos = draft.move_entity(under_index, tx, ty)
        effects: list[Effect] = [EntityMoved(box.type, from_pos, to_pos, box.orient)]
        if extra:
            effects.extend(extra)
        effects.append(move.place_player(tx, ty, player_state))
        return effects

    def _sink(
        self,
        move: MoveInput,
        under_index: int,
        player_state: PlayerState | None = None,
    ) -> list[Effect]:
        box = move.draft.remove_entity(under_index)
        tx, ty = move.target
        return [
            BoxFell((tx, ty), box_type=box.type, orient=box.orient, player_inside=True),
            move.place_player(tx, ty, player_state),
        ]


class BoxHandler(_RidingHandler):
    box_type = BOX


class HeavyBoxHandler(_RidingHandler):
    """Heavy boxes remember the ride axis.

    Pushing along the entry direction into open space moves the box and
    neutralises the ride direction. From neutral the box cannot shove other
    boxes; the first move sets the ride direction opposite to the input.
    """

    box_type = HEAVY_BOX

    def _ride(self, move: MoveInput, under_index: int) -> Transition:
        entry_dir = move.player_state.entry_dir
        if not is_neutral(entry_dir) and move.direction == entry_dir:
            return self._ride_forward(move, under_index)
        if is_neutral(entry_dir):
            return self._ride_from_neutral(move, under_index)
        return self._push(move, under_index)

    def _ride_forward(self, move: MoveInput, under_index: int) -> Transition:
        draft = move.draft
        tx, ty = move.target
        if self._blocked_for_box(move):
            return move.blocked()
        if draft.pushable_at(tx, ty) is not None:
            return self._push(move, under_index)

        neutral_state = replace(move.player_state, entry_dir=NEUTRAL)
        if has_trait(draft.tile_at(tx, ty), "is_hole_for_box"):
            return move.done(self._sink(move, under_index, neutral_state))
        return move.done(
            self._carry(
                move,
                under_index,
                neutral_state,
                extra=[HeavyNeutral((tx, ty), True)],
            )
        )

    def _ride_from_neutral(self, move: MoveInput, under_index: int) -> Transition:
        draft = move.draft
        tx, ty = move.target
        if draft.pushable_at(tx, ty) is not None:
            return move.blocked()
        if self._blocked_for_box(move):
            return move.blocked()

        effects: list[Effect] = [HeavyNeutral(move.player.position, False)]
        ride_state = replace(move.player_state, entry_dir=opposite(move.direction))
        if has_trait(draft.tile_at(tx, ty), "is_hole_for_box"):
            effects.extend(self._sink(move, under_index, ride_state))
        else:
            effects.extend(self._carry(move, under_index, ride_state))
        return move.done(effects)


class TriBoxHandler(_RidingHandler):
    box_type = TRI_BOX

    def _ride(self, move: MoveInput, under_index: int) -> Transition:
        box = move.draft.entity(under_index)
        long_dirs = LONG_SIDE_DIRECTIONS.get(
            box.orient or DEFAULT_ORIENTATION,
            LONG_SIDE_DIRECTIONS[DEFAULT_ORIENTATION],
        )
        entered_from_long = move.player_state.entry_dir in long_dirs
        if not entered_from_long and move.direction in long_dirs:
            tx, ty = move.target
            if has_trait(move.draft.tile_at(tx, ty), "is_wall_for_player"):
                return move.blocked()
            return self._launch(move, under_index)
        return self._push(move, under_index)


def _is_ridable(entity: Entity) -> bool:
    return entity.type in RIDING_HANDLERS


def recover_vanished_box(move: MoveInput) -> Transition:
    """Drop a player whose ridden box is gone back into free mode."""
    move.draft.set_player_state(move.player_index, FREE_PLAYER)
    return Transition(move.draft.freeze(), (), False)


FREE_HANDLER = FreeHandler()
RIDING_HANDLERS: dict[str, _RidingHandler] = {
    BOX: BoxHandler(),
    HEAVY_BOX: HeavyBoxHandler(),
    TRI_BOX: TriBoxHandler(),
}


def select_handler(player: Entity, under: Entity | None) -> PlayerHandler | None:
    if FREE_HANDLER.can_handle(player, under):
        return FREE_HANDLER
    if under is None:
        return None
    handler = RIDING_HANDLERS.get(under.type)
    if handler is not None and handler.can_handle(player, under):
        return handler
    return None


def step_player_move(state: WorldState, direction: Direction) -> Transition:
    draft = state.edit()
    player_index = draft.player_index()
    if player_index is None:
        return Transition(state, (), False)

    player = draft.entity(player_index)
    under_index = draft.pushable_at(player.x, player.y)
    under = None if under_index is None else draft.entity(under_index)
    move = MoveInput(state, draft, player_index, direction)

    handler = select_handler(player, under)
    if handler is None:
        return recover_vanished_box(move)
    return handler.handle_input(move)
