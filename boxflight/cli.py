from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Callable, TextIO

from . import level_loader, render
from .config import config_for_level, load_configs, solver_options_from_config
from .core.state import BoxFlightError
from .env import BoxFlightEnv
from .solver.progress import build_solver_progress_reporter
from .solver.search import CancelToken, SolverSession

LEVEL_HELP = "Level file (.json or text) or bundled id such as tutorial:1"


def _solve_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="boxflight solve", description="Solve a level breadth-first."
    )
    parser.add_argument("level", help=LEVEL_HELP)
    parser.add_argument(
        "--config",
        action="append",
        default=[],
        help=(
            "JSON config with a 'solver' section and optional per-level "
            "'levels' overrides; repeat to layer files"
        ),
    )
    parser.add_argument("--max-depth", type=int, default=None)
    parser.add_argument("--max-nodes", type=int, default=None)
    parser.add_argument("--max-solutions", type=int, default=None)
    parser.add_argument("--max-edits", type=int, default=None)
    parser.add_argument("--progress-every", type=int, default=None)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a progress bar on stderr (uses tqdm when installed)",
    )
    parser.add_argument("--json", action="store_true", help="Print a JSON summary")
    parser.add_argument(
        "--include-graph",
        action="store_true",
        help="Include the explored graph in the JSON summary",
    )
    parser.add_argument("--out", help="Also write the JSON summary to this file")
    return parser


def solve_main(argv: list[str]) -> int:
    args = _solve_parser().parse_args(argv)
    level = level_loader.load_level(args.level)
    config = config_for_level(load_configs(args.config), level.level_id)
    options = solver_options_from_config(
        config,
        overrides={
            "max_depth": args.max_depth,
            "max_nodes": args.max_nodes,
            "max_solutions": args.max_solutions,
            "max_edits": args.max_edits,
            "progress_every": args.progress_every,
            "seed": args.seed,
        },
    )

    session = SolverSession(level.state, options, cancel_token=CancelToken())
    reporter = build_solver_progress_reporter(
        enabled=args.progress,
        max_nodes=options.max_nodes,
        explicit_request=args.progress,
    )
    try:
        for progress in session.run():
            reporter.on_progress(progress)
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return 130
    finally:
        reporter.close()

    result = session.result
    assert result is not None
    summary = {
        "level": level.level_id,
        **result.to_dict(include_graph=args.include_graph),
    }
    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(summary, indent=2) + "\n")

    if args.json:
        print(json.dumps(summary, indent=2))
        return 0

    stats = result.stats
    print(f"Level: {level.level_id}")
    print(
        f"Nodes expanded: {stats.nodes_expanded} ({stats.termination}), "
        f"raw solutions: {stats.raw_solutions}, raw dead ends: {stats.raw_dead_ends}"
    )
    if stats.depth_cutoffs:
        print(
            f"Depth limit reached at {stats.depth_cutoffs} states; "
            "dead ends may be solvable deeper"
        )
    print(f"Solutions ({len(result.solutions)}):")
    for entry in result.solutions:
        print(f"  {entry.moves} ({entry.length})")
    print(f"Dead ends ({len(result.dead_ends)}):")
    for entry in result.dead_ends:
        print(f"  {entry.moves} ({entry.length})")
    return 0


def _play_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="boxflight play", description="Play a level in the terminal."
    )
    parser.add_argument("level", help=LEVEL_HELP)
    parser.add_argument(
        "--moves",
        help="Apply these move codes and exit instead of reading stdin",
    )
    parser.add_argument("--max-steps", type=int, default=None)
    return parser


def _play_loop(env: BoxFlightEnv, stream: TextIO) -> int:
    print(env.format_prompt_state(include_legal_moves=True))
    for raw_line in stream:
        command = raw_line.strip().lower()
        if not command:
            continue
        if command in {"q", "quit", "exit"}:
            break
        if command == "undo":
            try:
                env.undo()
            except BoxFlightError as exc:
                print(f"! {exc}")
                continue
        elif command == "reset":
            env.reset()
        else:
            _state, _reward, done, info = env.step(command)
            if info["illegal_action"]:
                print(f"! {info['error']}")
            for effect in info.get("effects", []):
                print(f"  {effect['type']}")
            if done:
                print(env.format_prompt_state())
                print("Solved!" if info["solved"] else "Game over.")
                return 0 if info["solved"] else 1
        print(env.format_prompt_state(include_legal_moves=True))
    return 0


def play_main(argv: list[str]) -> int:
    args = _play_parser().parse_args(argv)
    level = level_loader.load_level(args.level)
    env = BoxFlightEnv(level, max_steps=args.max_steps, record_history=True)

    if args.moves is None:
        return _play_loop(env, sys.stdin)

    for code in args.moves:
        _state, _reward, done, info = env.step(code)
        if info["illegal_action"]:
            print(f"! {code}: {info['error']}")
        if done:
            break
    print(env.format_prompt_state())
    if env.is_solved():
        print(f"Solved in {env.move_count} moves.")
        return 0
    if env.is_lost():
        print("Game over.")
    return 1


def levels_main(argv: list[str]) -> int:
    parser = argparse.ArgumentParser(
        prog="boxflight levels", description="List or validate bundled levels."
    )
    parser.add_argument("--levels-dir", default=None)
    parser.add_argument("--validate", action="store_true")
    args = parser.parse_args(argv)

    if args.validate:
        forwarded = [] if args.levels_dir is None else ["--levels-dir", args.levels_dir]
        return level_loader.main(forwarded)

    levels_dir = Path(args.levels_dir) if args.levels_dir else None
    for world in level_loader.list_bundled_worlds(levels_dir):
        print(f"{world.name}: {world.title}")
        for entry in world.levels:
            print(f"  {entry.level_id:16s} {entry.title or entry.file}")
    return 0


COMMANDS: dict[str, tuple[str, Callable[[list[str]], int]]] = {
    "solve": ("Solve a level and report solutions and dead ends", solve_main),
    "play": ("Play a level in the terminal", play_main),
    "render": ("Render a move sequence (ascii/html)", render.main),
    "levels": ("List or validate bundled levels", levels_main),
}


def _print_help() -> None:
    print("boxflight <command> [args]\n")
    print("Commands:")
    for name, (desc, _) in COMMANDS.items():
        print(f"  {name:20s} {desc}")


def main(argv: list[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or args[0] in {"-h", "--help"}:
        _print_help()
        return 0

    command = args.pop(0)
    if command not in COMMANDS:
        print(f"Unknown command: {command}\n")
        _print_help()
        return 2

    _, handler = COMMANDS[command]
    try:
        return handler(args)
    except (BoxFlightError, FileNotFoundError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
