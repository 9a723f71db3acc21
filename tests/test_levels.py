from __future__ import annotations

import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

from boxflight.core import InvalidLevelError, PlayerState
from boxflight.core.entities import BOX, FRAGILE_WALL, HEAVY_BOX, PLAYER, TRI_BOX
from boxflight.core.tiles import EXIT, FLOOR, HOLE, PRESSURE_PLATE, WALL
from boxflight.level_loader import (
    default_levels_dir,
    level_to_document,
    list_bundled_worlds,
    load_level,
    load_level_by_id,
    load_level_file,
    load_world,
    main as validate_main,
    parse_ascii_level,
    parse_level_document,
    save_level_file,
    validate_bundled_levels,
    validate_level_manifest,
)

CORRIDOR = {
    "size": {"rows": 3, "cols": 5},
    "base": [
        ["wall", "wall", "wall", "wall", "wall"],
        ["wall", "floor", "floor", "exit", "wall"],
        ["wall", "wall", "wall", "wall", "wall"],
    ],
    "entities": [
        {
            "type": "player",
            "x": 1,
            "y": 1,
            "state": {"mode": "free", "entryDir": {"dx": 0, "dy": 0}},
        },
        {"type": "box", "x": 2, "y": 1},
    ],
}


def _write_manifest(root: Path, manifest: dict) -> None:
    (root / "manifest.json").write_text(json.dumps(manifest))


class TestLevelDocuments(unittest.TestCase):
    def test_parse_unified_document(self) -> None:
        state = parse_level_document(CORRIDOR)
        self.assertEqual(state.size, (3, 5))
        self.assertEqual(state.tile_at(3, 1), EXIT)
        player = state.find_player()
        assert player is not None
        self.assertEqual(player.position, (1, 1))
        self.assertEqual(player.player, PlayerState())
        self.assertEqual(state.entity_at(2, 1).type, BOX)

    def test_parse_from_json_text(self) -> None:
        state = parse_level_document(json.dumps(CORRIDOR))
        self.assertEqual(state, parse_level_document(CORRIDOR))

    def test_missing_base_is_rejected(self) -> None:
        with self.assertRaisesRegex(InvalidLevelError, "base missing"):
            parse_level_document({"size": {"rows": 1, "cols": 1}})
        with self.assertRaises(InvalidLevelError):
            parse_level_document("{not json")

    def test_size_is_inferred_from_base(self) -> None:
        document = {"base": [["floor", "exit"], ["wall", "hole"]]}
        state = parse_level_document(document)
        self.assertEqual(state.size, (2, 2))
        self.assertEqual(state.tile_at(1, 1), HOLE)
        self.assertIsNone(state.find_player())

    def test_ragged_base_is_rejected(self) -> None:
        with self.assertRaises(InvalidLevelError):
            parse_level_document({"base": [["floor", "floor"], ["floor"]]})

    def test_entity_validation(self) -> None:
        base = [["floor", "floor"]]
        with self.assertRaises(InvalidLevelError):
            parse_level_document(
                {"base": base, "entities": [{"type": "ghost", "x": 0, "y": 0}]}
            )
        with self.assertRaises(InvalidLevelError):
            parse_level_document(
                {"base": base, "entities": [{"type": "box", "x": 5, "y": 0}]}
            )
        with self.assertRaises(InvalidLevelError):
            parse_level_document(
                {
                    "base": base,
                    "entities": [
                        {"type": "triBox", "x": 0, "y": 0, "state": {"orient": "UP"}}
                    ],
                }
            )

    def test_occupancy_rules(self) -> None:
        base = [["floor", "floor"]]
        two_players = [
            {"type": "player", "x": 0, "y": 0},
            {"type": "player", "x": 1, "y": 0},
        ]
        with self.assertRaises(InvalidLevelError):
            parse_level_document({"base": base, "entities": two_players})
        stacked = [
            {"type": "box", "x": 0, "y": 0},
            {"type": "heavyBox", "x": 0, "y": 0},
        ]
        with self.assertRaises(InvalidLevelError):
            parse_level_document({"base": base, "entities": stacked})
        riding = [
            {"type": "box", "x": 0, "y": 0},
            {
                "type": "player",
                "x": 0,
                "y": 0,
                "state": {"mode": "inbox", "entryDir": {"dx": 1, "dy": 0}},
            },
        ]
        state = parse_level_document({"base": base, "entities": riding})
        player = state.find_player()
        assert player is not None
        self.assertEqual(player.player, PlayerState("inbox", (1, 0)))

    def test_legacy_document(self) -> None:
        document = {
            "base": [["floor", "floor", "floor", "exit"]],
            "dynamic": {
                "boxes": [{"x": 1, "y": 0}],
                "heavyBoxes": [{"x": 2, "y": 0}],
                "player": {"x": 0, "y": 0},
            },
            "fragiles": [{"x": 3, "y": 0}],
        }
        state = parse_level_document(document)
        kinds = sorted(entity.type for entity in state.entities)
        self.assertEqual(kinds, sorted([BOX, HEAVY_BOX, FRAGILE_WALL, PLAYER]))

    def test_fragile_and_tri_round_trip(self) -> None:
        document = {
            "base": [["floor", "floor", "floor"]],
            "entities": [
                {"type": "fragileWall", "x": 0, "y": 0, "underTile": "exit"},
                {"type": "triBox", "x": 1, "y": 0, "state": {"orient": "SW"}},
                {"type": "player", "x": 2, "y": 0},
            ],
        }
        state = parse_level_document(document)
        fragile = state.entity_at(0, 0)
        tri = state.entity_at(1, 0)
        assert fragile is not None and tri is not None
        self.assertEqual(fragile.under_tile, EXIT)
        self.assertEqual(tri.orient, "SW")
        self.assertEqual(parse_level_document(level_to_document(state)), state)

    def test_save_and_load_file(self) -> None:
        state = parse_level_document(CORRIDOR)
        with tempfile.TemporaryDirectory() as tmp:
            path = save_level_file(state, Path(tmp) / "corridor.json")
            self.assertEqual(load_level_file(path), state)
            text_path = Path(tmp) / "corridor.txt"
            text_path.write_text("#####\n#@$E#\n#####\n")
            self.assertEqual(load_level_file(text_path), state)
            with self.assertRaises(FileNotFoundError):
                load_level_file(Path(tmp) / "missing.json")


class TestAsciiLevels(unittest.TestCase):
    def test_glyphs(self) -> None:
        state = parse_ascii_level("\n#####\n# =7#\n#&H #\n#X_O#\n#####\n\n")
        self.assertEqual(state.size, (5, 5))
        self.assertEqual(state.tile_at(2, 1), PRESSURE_PLATE)
        self.assertEqual(state.entity_at(2, 1).type, BOX)
        self.assertEqual(state.entity_at(3, 1).type, TRI_BOX)
        self.assertEqual(state.entity_at(3, 1).orient, "NE")
        self.assertEqual(state.tile_at(1, 2), EXIT)
        self.assertEqual(state.entity_at(1, 2).type, PLAYER)
        self.assertEqual(state.entity_at(1, 3).under_tile, FLOOR)
        self.assertEqual(state.tile_at(3, 3), HOLE)
        self.assertEqual(state.tile_at(0, 0), WALL)

    def test_short_rows_are_padded(self) -> None:
        state = parse_ascii_level("#####\n#@\n#####")
        self.assertEqual(state.cols, 5)
        self.assertEqual(state.tile_at(4, 1), FLOOR)

    def test_dash_is_floor(self) -> None:
        state = parse_ascii_level("@--E")
        self.assertEqual(state.tile_at(2, 0), FLOOR)

    def test_invalid_glyph(self) -> None:
        with self.assertRaises(InvalidLevelError):
            parse_ascii_level("#@?#")
        with self.assertRaises(InvalidLevelError):
            parse_ascii_level("\n\n")


class TestBundledLevels(unittest.TestCase):
    def test_bundled_manifest_is_valid(self) -> None:
        self.assertEqual(validate_bundled_levels(), [])
        worlds = list_bundled_worlds()
        self.assertEqual([world.name for world in worlds], ["tutorial", "mechanics"])
        self.assertEqual(worlds[0].levels[0].level_id, "tutorial:1")

    def test_every_bundled_level_has_a_player(self) -> None:
        for world in list_bundled_worlds():
            for level in load_world(world.name):
                self.assertIsNotNone(level.state.find_player(), level.level_id)

    def test_load_by_id(self) -> None:
        level = load_level_by_id("tutorial:1")
        self.assertEqual(level.title, "Walk to the exit")
        self.assertEqual((level.rows, level.cols), (3, 5))
        self.assertEqual(load_level("tutorial:1"), level)

    def test_bad_ids(self) -> None:
        for level_id in ("tutorial", "tutorial:0", "tutorial:x", "nowhere:1"):
            with self.assertRaises(InvalidLevelError):
                load_level_by_id(level_id)
        with self.assertRaises(InvalidLevelError):
            load_level_by_id("tutorial:99")
        with self.assertRaises(InvalidLevelError):
            load_world("nowhere")

    def test_load_level_accepts_paths(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "tiny.txt"
            path.write_text("#@E#\n")
            level = load_level(str(path))
            self.assertEqual(level.level_id, "tiny")

    def test_default_dir_ships_manifest(self) -> None:
        self.assertTrue((default_levels_dir() / "manifest.json").exists())

    def test_validate_cli(self) -> None:
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            code = validate_main([])
        self.assertEqual(code, 0)
        self.assertIn("Level validation passed.", stdout.getvalue())


class TestManifestValidation(unittest.TestCase):
    def test_missing_manifest(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            worlds, errors = validate_level_manifest(Path(tmp))
        self.assertEqual(worlds, [])
        self.assertEqual(len(errors), 1)
        self.assertIn("Missing manifest", errors[0])

    def test_reports_every_problem(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "good").mkdir()
            (root / "good" / "a.json").write_text(json.dumps(CORRIDOR))
            _write_manifest(
                root,
                {
                    "version": 2,
                    "worlds": [
                        {"name": "bad:name", "levels": ["a.json"]},
                        {
                            "name": "good",
                            "levels": [
                                "a.json",
                                "../escape.json",
                                "notes.txt",
                                "missing.json",
                            ],
                        },
                    ],
                },
            )
            worlds, errors = validate_level_manifest(root)
        self.assertEqual(len(errors), 5)
        self.assertEqual([world.name for world in worlds], ["good"])
        self.assertEqual(len(worlds[0].levels), 1)
        self.assertEqual(worlds[0].title, "good")

    def test_broken_level_is_reported(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "w").mkdir()
            (root / "w" / "a.json").write_text(json.dumps({"size": {}}))
            _write_manifest(
                root, {"version": 1, "worlds": [{"name": "w", "levels": ["a.json"]}]}
            )
            errors = validate_bundled_levels(root)
            self.assertEqual(len(errors), 1)
            self.assertIn("w:1", errors[0])
            stdout = io.StringIO()
            with contextlib.redirect_stdout(stdout):
                code = validate_main(["--levels-dir", str(root)])
            self.assertEqual(code, 2)
            self.assertIn("Level validation failed", stdout.getvalue())


if __name__ == "__main__":
    unittest.main()
