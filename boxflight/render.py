from __future__ import annotations

import argparse
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from .core.effects import (
    BoxFell,
    Bump,
    Effect,
    EntityMoved,
    HeavyNeutral,
    PlayerEnteredBox,
    PlayerExitedBox,
    PlayerLaunched,
    TileChanged,
)
from .core.engine import parse_direction, transition
from .core.entities import DEFAULT_ORIENTATION, PLAYER, TRI_BOX, is_solid
from .core.goals import is_losing, is_winning
from .core.state import FREE_PLAYER, Entity, WorldState
from .level_loader import (
    COMBINED_GLYPHS,
    ENTITY_GLYPHS,
    TILE_GLYPHS,
    TRI_GLYPHS,
    load_level,
)

RIDING_GLYPH = "P"
UNKNOWN_GLYPH = "?"


def _entity_glyph(entity: Entity, tile: str) -> str:
    if entity.type == PLAYER and (entity.player or FREE_PLAYER).riding:
        return RIDING_GLYPH
    for glyph, (kind, under) in COMBINED_GLYPHS.items():
        if entity.type == kind and tile == under:
            return glyph
    if entity.type == TRI_BOX:
        return TRI_GLYPHS.get(entity.orient or DEFAULT_ORIENTATION, UNKNOWN_GLYPH)
    return ENTITY_GLYPHS.get(entity.type, UNKNOWN_GLYPH)


def render_state_ascii(state: WorldState) -> str:
    """Draw a state with the level glyphs; a riding player is drawn as ``P``."""
    rows = [
        [TILE_GLYPHS.get(tile, UNKNOWN_GLYPH) for tile in row] for row in state.grid
    ]
    # Solid entities first so the player is drawn on top of a ridden box.
    ordered = sorted(state.entities, key=lambda entity: not is_solid(entity))
    for entity in ordered:
        if state.in_bounds(entity.x, entity.y):
            rows[entity.y][entity.x] = _entity_glyph(
                entity, state.tile_at(entity.x, entity.y)
            )
    return "\n".join("".join(row) for row in rows)


def _dir_name(direction: tuple[int, int]) -> str:
    return {
        (1, 0): "right",
        (-1, 0): "left",
        (0, -1): "up",
        (0, 1): "down",
        (0, 0): "neutral",
    }.get(direction, str(direction))


def describe_effect(effect: Effect) -> str:
    if isinstance(effect, EntityMoved):
        return f"{effect.entity_type} moved {effect.from_pos} -> {effect.to_pos}"
    if isinstance(effect, TileChanged):
        return f"tile at {effect.pos} changed {effect.from_tile} -> {effect.to_tile}"
    if isinstance(effect, BoxFell):
        rider = " with the player inside" if effect.player_inside else ""
        return f"{effect.box_type or 'box'} fell into the hole at {effect.pos}{rider}"
    if isinstance(effect, PlayerLaunched):
        return (
            f"player launched {_dir_name(effect.direction)} from {effect.from_pos} "
            f"to {effect.to_pos} ({effect.distance} cells)"
        )
    if isinstance(effect, PlayerEnteredBox):
        return (
            f"player entered {effect.box_type} at {effect.pos} "
            f"riding {_dir_name(effect.entry_dir)}"
        )
    if isinstance(effect, PlayerExitedBox):
        return (
            f"player left {effect.box_type} heading {_dir_name(effect.exit_dir)}, "
            f"landed at {effect.pos}"
        )
    if isinstance(effect, HeavyNeutral):
        state = "neutral" if effect.neutral else "engaged"
        return f"heavy box at {effect.pos} is {state}"
    if isinstance(effect, Bump):
        return f"bump at {effect.pos} going {_dir_name(effect.direction)}"
    raise TypeError(f"unknown effect record: {effect!r}")


@dataclass(frozen=True, slots=True)
class PlaybackFrame:
    index: int
    move: str | None
    board: str
    changed: bool = True
    solved: bool = False
    lost: bool = False
    effects: tuple[str, ...] = field(default=())

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "move": self.move,
            "board": self.board,
            "changed": self.changed,
            "solved": self.solved,
            "lost": self.lost,
            "effects": list(self.effects),
        }


def replay_frames(initial: WorldState, moves: Iterable[str]) -> list[PlaybackFrame]:
    state = initial
    frames = [
        PlaybackFrame(
            index=0,
            move=None,
            board=render_state_ascii(state),
            solved=is_winning(state),
            lost=is_losing(state),
        )
    ]
    for index, move in enumerate(moves, start=1):
        result = transition(state, parse_direction(move))
        state = result.new_state
        frames.append(
            PlaybackFrame(
                index=index,
                move=move,
                board=render_state_ascii(state),
                changed=result.changed,
                solved=is_winning(state),
                lost=is_losing(state),
                effects=tuple(describe_effect(effect) for effect in result.effects),
            )
        )
    return frames


def render_playback_ascii(frames: list[PlaybackFrame]) -> str:
    lines: list[str] = []
    for frame in frames:
        status = "solved" if frame.solved else "lost" if frame.lost else "playing"
        lines.append(f"Step {frame.index}: move={frame.move} status={status}")
        for description in frame.effects:
            lines.append(f"  - {description}")
        lines.append(frame.board)
        lines.append("")
    return "\n".join(lines)


def render_playback_html(
    frames: list[PlaybackFrame], *, title: str = "Boxflight Playback"
) -> str:
    payload = {
        "title": title,
        "steps": [frame.to_dict() for frame in frames],
    }
    data = json.dumps(payload)
    template = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8" />
  <title>Boxflight Playback</title>
  <style>
    body { font-family: sans-serif; margin: 20px; }
    .controls button { margin-right: 8px; }
    pre { background: #f7f7f7; padding: 10px; overflow: auto; }
    .meta { color: #666; font-size: 12px; margin-bottom: 12px; }
    .grid { display: grid; grid-template-columns: 1fr 1fr; gap: 16px; }
    .panel { border: 1px solid #ddd; border-radius: 8px; padding: 12px; }
  </style>
</head>
<body>
  <h2 id="title"></h2>
  <div class="meta" id="meta"></div>
  <div class="controls">
    <button onclick="prevStep()">Prev</button>
    <button onclick="nextStep()">Next</button>
    <input type="range" id="slider" min="0" value="0" step="1" />
  </div>
  <div class="grid">
    <div class="panel">
      <h3>Board</h3>
      <pre id="board"></pre>
    </div>
    <div class="panel">
      <h3>Effects</h3>
      <pre id="effects"></pre>
    </div>
  </div>
  <script>
    const payload = __DATA__;
    const steps = payload.steps || [];
    const slider = document.getElementById("slider");
    const meta = document.getElementById("meta");
    const board = document.getElementById("board");
    const effectsEl = document.getElementById("effects");
    document.getElementById("title").textContent = payload.title || "";
    let idx = 0;
    slider.max = Math.max(steps.length - 1, 0);

    function render() {
      if (!steps.length) return;
      const step = steps[idx];
      const status = step.solved ? "solved" : (step.lost ? "lost" : "playing");
      meta.textContent = `step ${step.index} | move ${step.move || "-"} | ${status}`;
      board.textContent = step.board || "";
      effectsEl.textContent = (step.effects || []).join("\\n");
      slider.value = idx;
    }
    function nextStep() { idx = Math.min(idx + 1, steps.length - 1); render(); }
    function prevStep() { idx = Math.max(idx - 1, 0); render(); }
    slider.addEventListener("input", (e) => {
      idx = parseInt(e.target.value, 10);
      render();
    });
    render();
  </script>
</body>
</html>"""
    return template.replace("__DATA__", data)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Render a move sequence on a level.")
    parser.add_argument("level", help="Level file or bundled id such as tutorial:1")
    parser.add_argument("--moves", default="", help="Move codes, e.g. ddsw")
    parser.add_argument("--format", choices=["html", "ascii"], default="ascii")
    parser.add_argument("--out", help="Write to this file instead of stdout")
    args = parser.parse_args(argv)

    level = load_level(args.level)
    frames = replay_frames(level.state, args.moves)
    if args.format == "ascii":
        output = render_playback_ascii(frames)
    else:
        output = render_playback_html(frames, title=level.title or level.level_id)

    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(output)
        print(f"Rendered to: {out_path}")
    else:
        print(output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
