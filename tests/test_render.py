from __future__ import annotations

import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

from boxflight.core import (
    BoxFell,
    Bump,
    EntityMoved,
    HeavyNeutral,
    PlayerEnteredBox,
    PlayerExitedBox,
    PlayerLaunched,
    TileChanged,
    transition,
)
from boxflight.level_loader import parse_ascii_level
from boxflight.render import (
    describe_effect,
    main as render_main,
    render_playback_ascii,
    render_playback_html,
    render_state_ascii,
    replay_frames,
)

PUSH = "#####\n#@$E#\n#####"


class TestAsciiRendering(unittest.TestCase):
    def test_round_trips_level_text(self) -> None:
        text = "#######\n#@$H7E#\n#_O^X*#\n#######"
        self.assertEqual(render_state_ascii(parse_ascii_level(text)), text)

    def test_combined_glyphs(self) -> None:
        text = "#####\n#&= #\n#####"
        self.assertEqual(render_state_ascii(parse_ascii_level(text)), text)

    def test_riding_player_is_drawn_as_p(self) -> None:
        state = parse_ascii_level(PUSH)
        riding = transition(state, (1, 0)).new_state
        self.assertEqual(render_state_ascii(riding), "#####\n# PE#\n#####")


class TestEffectDescriptions(unittest.TestCase):
    def test_every_effect_has_a_description(self) -> None:
        effects = [
            EntityMoved("box", (1, 1), (2, 1)),
            TileChanged((2, 1), "fragileWall", "floor"),
            BoxFell((3, 1), box_type="box", player_inside=True),
            PlayerLaunched((4, 1), (1, 1), (-1, 0), 3),
            PlayerEnteredBox("box", (2, 1), (1, 0)),
            PlayerExitedBox("triBox", (2, 4), (0, 1)),
            HeavyNeutral((3, 1), True),
            Bump((1, 1), (0, -1)),
        ]
        descriptions = [describe_effect(effect) for effect in effects]
        self.assertIn("with the player inside", descriptions[2])
        self.assertIn("launched left", descriptions[3])
        self.assertIn("riding right", descriptions[4])
        self.assertIn("neutral", descriptions[6])
        self.assertIn("going up", descriptions[7])
        with self.assertRaises(TypeError):
            describe_effect("nothing")  # type: ignore[arg-type]


class TestPlayback(unittest.TestCase):
    def test_replay_frames(self) -> None:
        frames = replay_frames(parse_ascii_level(PUSH), "dwd")
        self.assertEqual(len(frames), 4)
        self.assertIsNone(frames[0].move)
        self.assertFalse(frames[2].changed)
        self.assertEqual(frames[2].board, frames[1].board)
        self.assertFalse(frames[3].solved)
        self.assertEqual(frames[3].board, "#####\n#  P#\n#####")

    def test_ascii_playback(self) -> None:
        frames = replay_frames(parse_ascii_level("####\n#@E#\n####"), "d")
        text = render_playback_ascii(frames)
        self.assertIn("Step 0: move=None status=playing", text)
        self.assertIn("Step 1: move=d status=solved", text)
        self.assertIn("  - player moved (1, 1) -> (2, 1)", text)

    def test_html_playback_embeds_frames(self) -> None:
        frames = replay_frames(parse_ascii_level(PUSH), "d")
        html = render_playback_html(frames, title="Push")
        self.assertIn("<!DOCTYPE html>", html)
        self.assertNotIn("__DATA__", html)
        start = html.index("const payload = ") + len("const payload = ")
        end = html.index(";\n", start)
        payload = json.loads(html[start:end])
        self.assertEqual(payload["title"], "Push")
        self.assertEqual(len(payload["steps"]), 2)
        self.assertEqual(payload["steps"][1]["move"], "d")

    def test_render_cli_writes_html(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            level_path = Path(tmp) / "push.txt"
            level_path.write_text(PUSH)
            out_path = Path(tmp) / "out" / "playback.html"
            stdout = io.StringIO()
            with contextlib.redirect_stdout(stdout):
                code = render_main(
                    [
                        str(level_path),
                        "--moves",
                        "dd",
                        "--format",
                        "html",
                        "--out",
                        str(out_path),
                    ]
                )
            self.assertEqual(code, 0)
            self.assertTrue(out_path.exists())
            self.assertIn("Rendered to:", stdout.getvalue())

    def test_render_cli_prints_ascii(self) -> None:
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            code = render_main(["tutorial:1", "--moves", "dd"])
        self.assertEqual(code, 0)
        self.assertIn("status=solved", stdout.getvalue())


if __name__ == "__main__":
    unittest.main()
