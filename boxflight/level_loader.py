from __future__ import annotations

import argparse
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .core.entities import (
    BOX,
    ENTITY_TYPES,
    FRAGILE_WALL,
    HEAVY_BOX,
    ORIENTATIONS,
    PLAYER,
    TRI_BOX,
    Orientation,
    is_solid,
)
from .core.state import (
    NEUTRAL,
    Entity,
    InvalidLevelError,
    PlayerState,
    WorldState,
)
from .core.tiles import (
    EXIT,
    FLOOR,
    FRAGILE_WALL as FRAGILE_TILE,
    GRILE,
    HOLE,
    HOLE_SPIKES,
    PRESSURE_PLATE,
    SLIM_PATH_FLOOR,
    SLIM_PATH_HOLE,
    SPIKES,
    WALL,
)


@dataclass(frozen=True, slots=True)
class LevelEntry:
    world: str
    index: int
    file: str
    title: str | None

    @property
    def level_id(self) -> str:
        return f"{self.world}:{self.index}"


@dataclass(frozen=True, slots=True)
class WorldManifest:
    name: str
    title: str
    levels: tuple[LevelEntry, ...]


@dataclass(frozen=True, slots=True)
class BoxFlightLevel:
    level_id: str
    title: str | None
    state: WorldState

    @property
    def rows(self) -> int:
        return self.state.rows

    @property
    def cols(self) -> int:
        return self.state.cols


# Tile glyphs; a cell without an entity glyph is drawn with its tile glyph.
TILE_GLYPHS: dict[str, str] = {
    FLOOR: " ",
    WALL: "#",
    HOLE: "O",
    EXIT: "E",
    PRESSURE_PLATE: "_",
    SPIKES: "^",
    GRILE: "%",
    HOLE_SPIKES: "v",
    SLIM_PATH_FLOOR: ":",
    SLIM_PATH_HOLE: ";",
    FRAGILE_TILE: "*",
}
TRI_GLYPHS: dict[Orientation, str] = {"NE": "7", "NW": "F", "SE": "J", "SW": "L"}
ENTITY_GLYPHS: dict[str, str] = {
    PLAYER: "@",
    BOX: "$",
    HEAVY_BOX: "H",
    FRAGILE_WALL: "X",
}
# Glyphs for an entity standing on a non-floor tile.
COMBINED_GLYPHS: dict[str, tuple[str, str]] = {
    "=": (BOX, PRESSURE_PLATE),
    "&": (PLAYER, EXIT),
}

_ASCII_TILES: dict[str, str] = {glyph: tile for tile, glyph in TILE_GLYPHS.items()}
_ASCII_TILES["-"] = FLOOR
_ASCII_TRI: dict[str, Orientation] = {glyph: o for o, glyph in TRI_GLYPHS.items()}
_ASCII_ENTITIES: dict[str, str] = {g: kind for kind, g in ENTITY_GLYPHS.items()}


def default_levels_dir() -> Path:
    return Path(__file__).resolve().parent / "levels"


def _load_json(path: Path) -> Any:
    return json.loads(path.read_text())


def _is_safe_relative_file(file_name: str) -> bool:
    path = Path(file_name)
    if path.is_absolute():
        return False
    return all(part not in {"", ".", ".."} for part in path.parts)


def _require_int(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidLevelError(f"{what} must be an integer, got {value!r}")
    return value


def _parse_size(data: dict[str, Any], base: list[Any]) -> tuple[int, int]:
    size = data.get("size")
    if isinstance(size, dict) and size.get("rows") and size.get("cols"):
        return (
            _require_int(size["rows"], "size.rows"),
            _require_int(size["cols"], "size.cols"),
        )
    first_row = base[0] if base else []
    return len(base), len(first_row) if isinstance(first_row, list) else 0


def _parse_grid(base: Any, rows: int, cols: int) -> tuple[tuple[str, ...], ...]:
    if not isinstance(base, list) or len(base) != rows:
        raise InvalidLevelError(f"base must be a list of {rows} rows")
    grid: list[tuple[str, ...]] = []
    for y, row in enumerate(base):
        if not isinstance(row, list) or len(row) != cols:
            raise InvalidLevelError(f"base row {y} must be a list of {cols} tiles")
        cells: list[str] = []
        for x, tile in enumerate(row):
            if tile is None:
                tile = FLOOR
            if not isinstance(tile, str):
                raise InvalidLevelError(f"tile at ({x}, {y}) must be a string")
            cells.append(tile)
        grid.append(tuple(cells))
    return tuple(grid)


def _parse_direction(raw: Any) -> tuple[int, int]:
    if not isinstance(raw, dict):
        return NEUTRAL
    dx = raw.get("dx", 0)
    dy = raw.get("dy", 0)
    if isinstance(dx, bool) or isinstance(dy, bool):
        return NEUTRAL
    if not isinstance(dx, int) or not isinstance(dy, int):
        return NEUTRAL
    return (dx, dy)


def _parse_player_state(raw: Any) -> PlayerState:
    if not isinstance(raw, dict) or raw.get("mode") not in {"free", "inbox"}:
        return PlayerState()
    entry_dir = _parse_direction(raw.get("entryDir"))
    return PlayerState(mode=raw["mode"], entry_dir=entry_dir)


def _parse_entity(raw: Any, index: int, rows: int, cols: int) -> Entity:
    if not isinstance(raw, dict):
        raise InvalidLevelError(f"entities[{index}] must be an object")
    kind = raw.get("type")
    if kind not in ENTITY_TYPES:
        raise InvalidLevelError(f"entities[{index}] has unknown type {kind!r}")
    x = _require_int(raw.get("x"), f"entities[{index}].x")
    y = _require_int(raw.get("y"), f"entities[{index}].y")
    if not (0 <= x < cols and 0 <= y < rows):
        raise InvalidLevelError(f"entities[{index}] at ({x}, {y}) is out of bounds")

    state = raw.get("state")
    if kind == PLAYER:
        return Entity(PLAYER, x, y, player=_parse_player_state(state))
    if kind == TRI_BOX:
        orient = state.get("orient") if isinstance(state, dict) else None
        if orient is not None and orient not in ORIENTATIONS:
            raise InvalidLevelError(
                f"entities[{index}] has invalid orientation {orient!r}"
            )
        return Entity(TRI_BOX, x, y, orient=orient)
    if kind == FRAGILE_WALL:
        under_tile = raw.get("underTile")
        if under_tile is not None and not isinstance(under_tile, str):
            raise InvalidLevelError(f"entities[{index}].underTile must be a string")
        return Entity(FRAGILE_WALL, x, y, under_tile=under_tile)
    return Entity(kind, x, y)


def _legacy_entities(data: dict[str, Any]) -> list[dict[str, Any]]:
    dynamic = data.get("dynamic") if isinstance(data.get("dynamic"), dict) else {}
    entities: list[dict[str, Any]] = []
    for key, kind in (
        ("boxes", BOX),
        ("heavyBoxes", HEAVY_BOX),
        ("fragiles", FRAGILE_WALL),
    ):
        for item in dynamic.get(key) or data.get(key) or []:
            if not isinstance(item, dict):
                raise InvalidLevelError(f"legacy {key} entries must be objects")
            entities.append({"type": kind, "x": item.get("x"), "y": item.get("y")})
    player = dynamic.get("player") or data.get("player")
    if isinstance(player, dict):
        entities.append(
            {
                "type": PLAYER,
                "x": player.get("x"),
                "y": player.get("y"),
                "state": player,
            }
        )
    return entities


def _check_occupancy(entities: list[Entity]) -> None:
    players = [entity for entity in entities if entity.type == PLAYER]
    if len(players) > 1:
        raise InvalidLevelError(f"level has {len(players)} players, expected at most 1")
    occupied: set[tuple[int, int]] = set()
    for entity in entities:
        if not is_solid(entity):
            continue
        if entity.position in occupied:
            raise InvalidLevelError(
                f"more than one solid entity at ({entity.x}, {entity.y})"
            )
        occupied.add(entity.position)


def parse_level_document(document: dict[str, Any] | str) -> WorldState:
    """Build a ``WorldState`` from a serialized level.

    Accepts the unified ``entities`` list as well as older documents that
    keep ``boxes``, ``heavyBoxes``, ``fragiles`` and ``player`` separately
    (at the top level or under ``dynamic``).
    """
    if isinstance(document, str):
        try:
            document = json.loads(document)
        except json.JSONDecodeError as exc:
            raise InvalidLevelError(f"level is not valid JSON: {exc}") from exc
    if not isinstance(document, dict) or "base" not in document:
        raise InvalidLevelError("Invalid level: base missing")

    base = document["base"]
    if not isinstance(base, list) or not base:
        raise InvalidLevelError("Invalid level: base must be a non-empty list")
    rows, cols = _parse_size(document, base)
    if rows < 1 or cols < 1:
        raise InvalidLevelError(f"level size must be positive, got {rows}x{cols}")
    grid = _parse_grid(base, rows, cols)

    raw_entities = document.get("entities")
    if raw_entities is None:
        raw_entities = _legacy_entities(document)
    if not isinstance(raw_entities, list):
        raise InvalidLevelError("entities must be a list")
    entities = [
        _parse_entity(raw, index, rows, cols)
        for index, raw in enumerate(raw_entities)
    ]
    _check_occupancy(entities)
    return WorldState(rows=rows, cols=cols, grid=grid, entities=tuple(entities))


def _entity_to_dict(entity: Entity) -> dict[str, Any]:
    payload: dict[str, Any] = {"type": entity.type, "x": entity.x, "y": entity.y}
    if entity.type == PLAYER:
        player = entity.player or PlayerState()
        payload["state"] = {
            "mode": player.mode,
            "entryDir": {"dx": player.entry_dir[0], "dy": player.entry_dir[1]},
        }
    elif entity.orient is not None:
        payload["state"] = {"orient": entity.orient}
    if entity.under_tile is not None:
        payload["underTile"] = entity.under_tile
    return payload


def level_to_document(state: WorldState) -> dict[str, Any]:
    return {
        "size": {"rows": state.rows, "cols": state.cols},
        "base": [list(row) for row in state.grid],
        "entities": [_entity_to_dict(entity) for entity in state.entities],
    }


def load_level_file(path: str | Path) -> WorldState:
    path_obj = Path(path)
    if not path_obj.exists():
        raise FileNotFoundError(path_obj)
    if path_obj.suffix.lower() == ".json":
        return parse_level_document(path_obj.read_text())
    return parse_ascii_level(path_obj.read_text())


def save_level_file(state: WorldState, path: str | Path) -> Path:
    path_obj = Path(path)
    path_obj.write_text(json.dumps(level_to_document(state), indent=2) + "\n")
    return path_obj


def parse_ascii_level(text: str) -> WorldState:
    """Parse a level drawn with the glyphs in ``TILE_GLYPHS``/``ENTITY_GLYPHS``.

    Blank leading and trailing lines are ignored and short rows are padded
    with floor. ``-`` is accepted as floor so rows can keep their width in
    editors that strip trailing spaces.
    """
    lines = text.splitlines()
    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    if not lines:
        raise InvalidLevelError("level text is empty")

    cols = max(len(line) for line in lines)
    grid: list[tuple[str, ...]] = []
    entities: list[Entity] = []
    for y, line in enumerate(lines):
        row: list[str] = []
        for x in range(cols):
            char = line[x] if x < len(line) else " "
            tile = FLOOR
            if char in _ASCII_TILES:
                tile = _ASCII_TILES[char]
            elif char in COMBINED_GLYPHS:
                kind, tile = COMBINED_GLYPHS[char]
                entities.append(_ascii_entity(kind, x, y))
            elif char in _ASCII_TRI:
                entities.append(Entity(TRI_BOX, x, y, orient=_ASCII_TRI[char]))
            elif char in _ASCII_ENTITIES:
                entities.append(_ascii_entity(_ASCII_ENTITIES[char], x, y))
            else:
                raise InvalidLevelError(
                    f"invalid level character {char!r} at ({x}, {y})"
                )
            row.append(tile)
        grid.append(tuple(row))

    _check_occupancy(entities)
    return WorldState(
        rows=len(grid), cols=cols, grid=tuple(grid), entities=tuple(entities)
    )


def _ascii_entity(kind: str, x: int, y: int) -> Entity:
    if kind == PLAYER:
        return Entity(PLAYER, x, y, player=PlayerState())
    if kind == FRAGILE_WALL:
        return Entity(FRAGILE_WALL, x, y, under_tile=FLOOR)
    return Entity(kind, x, y)


def validate_level_manifest(
    levels_dir: Path,
) -> tuple[list[WorldManifest], list[str]]:
    errors: list[str] = []
    worlds: list[WorldManifest] = []

    manifest_path = levels_dir / "manifest.json"
    if not manifest_path.exists():
        return worlds, [f"Missing manifest file: {manifest_path}"]

    try:
        raw = _load_json(manifest_path)
    except json.JSONDecodeError as exc:
        return worlds, [f"Invalid JSON in {manifest_path}: {exc}"]

    if not isinstance(raw, dict):
        return worlds, ["manifest.json must be a JSON object"]

    version = raw.get("version")
    if version != 1:
        errors.append(f"manifest.json version must be 1, got {version!r}")

    raw_worlds = raw.get("worlds")
    if not isinstance(raw_worlds, list) or not raw_worlds:
        errors.append("manifest.json must include a non-empty 'worlds' array")
        return worlds, errors

    seen_names: set[str] = set()
    for world_index, item in enumerate(raw_worlds, start=1):
        if not isinstance(item, dict):
            errors.append(f"manifest worlds[{world_index}] must be an object")
            continue
        name = item.get("name")
        if not isinstance(name, str) or not name.strip() or ":" in name:
            errors.append(
                f"manifest worlds[{world_index}].name must be a non-empty string "
                "without ':'"
            )
            continue
        if name in seen_names:
            errors.append(f"duplicate world name in manifest: {name}")
            continue
        seen_names.add(name)

        raw_levels = item.get("levels")
        if not isinstance(raw_levels, list) or not raw_levels:
            errors.append(f"manifest world '{name}' must list at least one level")
            continue

        entries: list[LevelEntry] = []
        for level_index, level in enumerate(raw_levels, start=1):
            if isinstance(level, str):
                level = {"file": level}
            if not isinstance(level, dict):
                errors.append(
                    f"manifest world '{name}' levels[{level_index}] must be an object"
                )
                continue
            file_name = level.get("file")
            if not isinstance(file_name, str) or not _is_safe_relative_file(
                file_name
            ):
                errors.append(
                    f"manifest world '{name}' levels[{level_index}].file must be a "
                    f"safe relative path, got {file_name!r}"
                )
                continue
            if not file_name.lower().endswith(".json"):
                errors.append(
                    f"manifest world '{name}' file must end with .json, "
                    f"got {file_name!r}"
                )
                continue
            level_path = levels_dir / name / file_name
            if not level_path.exists():
                errors.append(
                    f"manifest world '{name}' references missing file: {level_path}"
                )
                continue
            title = level.get("title")
            entries.append(
                LevelEntry(
                    world=name,
                    index=level_index,
                    file=file_name,
                    title=title if isinstance(title, str) else None,
                )
            )

        title = item.get("title")
        worlds.append(
            WorldManifest(
                name=name,
                title=title if isinstance(title, str) and title.strip() else name,
                levels=tuple(entries),
            )
        )

    return worlds, errors


def _valid_worlds(levels_dir: Path | None) -> tuple[Path, list[WorldManifest]]:
    resolved_dir = levels_dir or default_levels_dir()
    worlds, errors = validate_level_manifest(resolved_dir)
    if errors:
        bullet_list = "\n".join(f"- {error}" for error in errors)
        raise InvalidLevelError(f"invalid manifest:\n{bullet_list}")
    return resolved_dir, worlds


def list_bundled_worlds(levels_dir: Path | None = None) -> list[WorldManifest]:
    _resolved, worlds = _valid_worlds(levels_dir)
    return worlds


def load_world(name: str, levels_dir: Path | None = None) -> list[BoxFlightLevel]:
    resolved_dir, worlds = _valid_worlds(levels_dir)
    by_name = {world.name: world for world in worlds}
    if name not in by_name:
        raise InvalidLevelError(f"unknown bundled world: {name}")
    return [_load_entry(resolved_dir, entry) for entry in by_name[name].levels]


def _load_entry(levels_dir: Path, entry: LevelEntry) -> BoxFlightLevel:
    path = levels_dir / entry.world / entry.file
    try:
        state = parse_level_document(path.read_text())
    except InvalidLevelError as exc:
        raise InvalidLevelError(f"{entry.level_id} ({path.name}): {exc}") from exc
    return BoxFlightLevel(level_id=entry.level_id, title=entry.title, state=state)


def load_level_by_id(
    level_id: str,
    *,
    levels_dir: Path | None = None,
) -> BoxFlightLevel:
    if ":" not in level_id:
        raise InvalidLevelError(
            f"level id must look like '<world>:<index>', got {level_id!r}"
        )
    world_name, idx_str = level_id.split(":", 1)
    if not idx_str.isdigit() or int(idx_str) < 1:
        raise InvalidLevelError(
            f"level id must look like '<world>:<index>', got {level_id!r}"
        )

    resolved_dir, worlds = _valid_worlds(levels_dir)
    by_name = {world.name: world for world in worlds}
    if world_name not in by_name:
        raise InvalidLevelError(f"unknown bundled world: {world_name}")
    entries = by_name[world_name].levels
    level_index = int(idx_str)
    if level_index > len(entries):
        raise InvalidLevelError(f"level id not found: {level_id}")
    return _load_entry(resolved_dir, entries[level_index - 1])


def load_level(source: str, *, levels_dir: Path | None = None) -> BoxFlightLevel:
    """Load a level from a file path or a bundled ``world:index`` id."""
    path = Path(source)
    if path.exists():
        state = load_level_file(path)
        return BoxFlightLevel(level_id=path.stem, title=None, state=state)
    return load_level_by_id(source, levels_dir=levels_dir)


def validate_bundled_levels(levels_dir: Path | None = None) -> list[str]:
    resolved_dir = levels_dir or default_levels_dir()
    worlds, errors = validate_level_manifest(resolved_dir)
    if errors:
        return errors
    for world in worlds:
        for entry in world.levels:
            try:
                _load_entry(resolved_dir, entry)
            except InvalidLevelError as exc:
                errors.append(str(exc))
    return errors


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Validate bundled boxflight levels.")
    parser.add_argument(
        "--levels-dir",
        default=str(default_levels_dir()),
        help="Directory containing manifest.json and one folder per world.",
    )
    args = parser.parse_args(argv)

    errors = validate_bundled_levels(Path(args.levels_dir))
    if errors:
        print("Level validation failed:")
        for error in errors:
            print(f"- {error}")
        return 2

    print("Level validation passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
