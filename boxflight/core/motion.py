from __future__ import annotations

from dataclasses import dataclass, field

from .effects import BoxFell, Effect, EntityMoved, TileChanged
from .entities import is_blocking_solid, is_fragile
from .state import Direction, GridView, PlayerMode, Position, StateDraft
from .tiles import FLOOR, has_trait


@dataclass(frozen=True, slots=True)
class PushPlan:
    ok: bool
    chain: tuple[int, ...] = ()
    end: Position | None = None
    end_is_hole: bool = False


@dataclass(frozen=True, slots=True)
class FlightResult:
    x: int
    y: int
    mode: PlayerMode
    entry_dir: Direction | None = None
    effects: tuple[Effect, ...] = field(default=())


_BLOCKED = PushPlan(ok=False)


def plan_push_chain(
    view: GridView, x: int, y: int, dx: int, dy: int
) -> PushPlan:
    """Collect the consecutive pushables starting at ``(x, y)``.

    The plan fails when any box would leave the grid, enter a wall-for-box
    tile, or run into a solid entity that cannot itself be pushed.
    """
    chain: list[int] = []
    cx, cy = x, y
    while True:
        index = view.pushable_at(cx, cy)
        if index is None:
            break
        chain.append(index)
        cx, cy = cx + dx, cy + dy
        if not view.in_bounds(cx, cy):
            return _BLOCKED
        if has_trait(view.tile_at(cx, cy), "is_wall_for_box"):
            return _BLOCKED
        if view.pushable_at(cx, cy) is not None:
            continue
        if view.find_entity(cx, cy, is_blocking_solid) is not None:
            return _BLOCKED
        break

    end = (cx, cy) if chain else (x, y)
    end_is_hole = view.in_bounds(*end) and has_trait(
        view.tile_at(*end), "is_hole_for_box"
    )
    return PushPlan(ok=True, chain=tuple(chain), end=end, end_is_hole=end_is_hole)


def _shift(
    draft: StateDraft, chain: tuple[int, ...], dx: int, dy: int
) -> list[Effect]:
    effects: list[Effect] = []
    # Tail first so no box is moved onto a cell that is still occupied.
    for index in reversed(chain):
        entity = draft.entity(index)
        from_pos, to_pos = draft.move_entity(index, entity.x + dx, entity.y + dy)
        effects.append(EntityMoved(entity.type, from_pos, to_pos, entity.orient))
    return effects


def apply_push_chain(
    draft: StateDraft, plan: PushPlan, dx: int, dy: int
) -> list[Effect]:
    if not plan.ok or not plan.chain:
        return []
    if not plan.end_is_hole:
        return _shift(draft, plan.chain, dx, dy)

    tail = draft.remove_entity(plan.chain[-1])
    effects: list[Effect] = [
        BoxFell((tail.x + dx, tail.y + dy), box_type=tail.type, orient=tail.orient)
    ]
    effects.extend(_shift(draft, plan.chain[:-1], dx, dy))
    return effects


def break_fragile_entity(
    draft: StateDraft, x: int, y: int, effects: list[Effect]
) -> None:
    index = draft.find_entity(x, y, is_fragile)
    if index is None:
        return
    from_tile = draft.tile_at(x, y)
    fragile = draft.remove_entity(index)
    # Without a recorded underlying tile the base tile is left as it is.
    if fragile.under_tile is None:
        return
    if fragile.under_tile != from_tile:
        effects.append(TileChanged((x, y), from_tile, fragile.under_tile))
    draft.set_tile(x, y, fragile.under_tile)


def break_fragile_tile(
    draft: StateDraft, x: int, y: int, effects: list[Effect]
) -> None:
    tile = draft.tile_at(x, y)
    if not has_trait(tile, "is_fragile"):
        return
    draft.set_tile(x, y, FLOOR)
    effects.append(TileChanged((x, y), tile, FLOOR))


def resolve_flight(
    draft: StateDraft, x: int, y: int, dx: int, dy: int
) -> FlightResult:
    """Glide from ``(x, y)`` until something stops the player.

    Fragile walls in the path are broken and the player stops on the cell
    before them. Tiles that stick flight catch the player on the tile itself.
    """
    effects: list[Effect] = []
    cx, cy = x, y
    while True:
        nx, ny = cx + dx, cy + dy
        if not draft.in_bounds(nx, ny):
            return FlightResult(cx, cy, "free", effects=tuple(effects))

        fragile_entity = draft.find_entity(nx, ny, is_fragile) is not None
        if fragile_entity or has_trait(draft.tile_at(nx, ny), "is_fragile"):
            break_fragile_entity(draft, nx, ny, effects)
            break_fragile_tile(draft, nx, ny, effects)
            return FlightResult(cx, cy, "free", effects=tuple(effects))

        tile = draft.tile_at(nx, ny)
        if has_trait(tile, "is_not_fly"):
            return FlightResult(cx, cy, "free", effects=tuple(effects))

        box_ahead = draft.pushable_at(nx, ny) is not None
        if has_trait(tile, "is_stick_on_fly"):
            if box_ahead:
                return FlightResult(nx, ny, "inbox", (dx, dy), tuple(effects))
            return FlightResult(nx, ny, "free", effects=tuple(effects))
        if box_ahead:
            return FlightResult(nx, ny, "inbox", (dx, dy), tuple(effects))

        cx, cy = nx, ny
