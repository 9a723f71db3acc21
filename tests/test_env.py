from __future__ import annotations

import unittest

from boxflight import ACTION_SPACE, BoxFlightEnv
from boxflight.core import BoxFlightError, IllegalMoveError, InvalidLevelError
from boxflight.level_loader import BoxFlightLevel, load_level_by_id, parse_ascii_level

WALK = "#####\n#@ E#\n#####"


def _env(text: str = WALK, **kwargs) -> BoxFlightEnv:
    return BoxFlightEnv(parse_ascii_level(text), **kwargs)


class TestBoxFlightEnv(unittest.TestCase):
    def test_action_space(self) -> None:
        env = _env()
        self.assertEqual(env.action_space, ("up", "down", "left", "right"))
        self.assertEqual(env.action_space, ACTION_SPACE)

    def test_step_to_solve(self) -> None:
        env = _env()
        state, reward, done, info = env.step("right")
        self.assertEqual(reward, 0.0)
        self.assertFalse(done)
        self.assertFalse(info["illegal_action"])
        self.assertEqual(info["action"], "right")
        self.assertEqual(info["effects"][0]["type"], "entityMoved")
        self.assertEqual(state.find_player().position, (2, 1))

        _state, reward, done, info = env.step(ACTION_SPACE.index("right"))
        self.assertEqual(reward, 1.0)
        self.assertTrue(done)
        self.assertTrue(info["solved"])
        self.assertTrue(env.is_solved())
        self.assertEqual(env.move_count, 2)
        self.assertEqual(env.step_count, 2)

    def test_move_codes_are_accepted(self) -> None:
        env = _env()
        env.step("d")
        env.step("d")
        self.assertTrue(env.is_solved())

    def test_blocked_move_is_penalized(self) -> None:
        env = _env()
        state, reward, done, info = env.step("left")
        self.assertEqual(reward, -1.0)
        self.assertFalse(done)
        self.assertTrue(info["illegal_action"])
        self.assertIn("blocked", info["error"])
        self.assertIs(state, env.level.state)
        self.assertEqual(env.move_count, 0)
        self.assertEqual(env.step_count, 1)

    def test_unparseable_action(self) -> None:
        env = _env()
        _state, reward, _done, info = env.step("jump")
        self.assertEqual(reward, -1.0)
        self.assertTrue(info["illegal_action"])
        _state, _reward, _done, info = env.step(7)
        self.assertTrue(info["illegal_action"])

    def test_illegal_action_behaviors(self) -> None:
        env = _env(illegal_action_behavior="raise")
        with self.assertRaises(IllegalMoveError):
            env.step("up")

        env = _env(illegal_action_behavior="terminate")
        _state, _reward, done, _info = env.step("up")
        self.assertTrue(done)

        with self.assertRaises(ValueError):
            _env(illegal_action_behavior="ignore")

    def test_max_steps_truncates(self) -> None:
        env = _env(max_steps=1)
        _state, _reward, done, info = env.step("right")
        self.assertTrue(done)
        self.assertTrue(info["truncated"])
        with self.assertRaises(ValueError):
            _env(max_steps=0)

    def test_losing_move(self) -> None:
        env = _env("####\n#@O#\n####")
        _state, reward, done, info = env.step("right")
        self.assertEqual(reward, -1.0)
        self.assertTrue(done)
        self.assertTrue(info["lost"])
        self.assertTrue(env.is_lost())
        with self.assertRaises(IllegalMoveError):
            env.move("left")

    def test_undo_and_reset(self) -> None:
        env = _env(record_history=True)
        with self.assertRaises(BoxFlightError):
            env.undo()
        env.move("right")
        self.assertEqual(len(env.history), 1)
        self.assertEqual(env.history[0]["move"], "d")
        env.undo()
        self.assertEqual(env.state, env.level.state)
        self.assertEqual(env.move_count, 0)
        self.assertEqual(env.history, [])

        env.move("right")
        env.move("right")
        self.assertTrue(env.is_solved())
        env.reset()
        self.assertFalse(env.is_solved())
        self.assertEqual(env.get_state(), env.level.state)

    def test_legal_moves(self) -> None:
        env = _env()
        self.assertEqual(env.get_legal_moves(), ["right"])

    def test_prompt_state(self) -> None:
        env = _env()
        text = env.format_prompt_state(include_legal_moves=True)
        self.assertIn("Board (5x3):", text)
        self.assertIn("#@ E#", text)
        self.assertIn("Player mode: free", text)
        self.assertIn("Exit active: True", text)
        self.assertIn("Legal moves: [right]", text)

    def test_plate_keeps_exit_closed(self) -> None:
        env = BoxFlightEnv(load_level_by_id("tutorial:2"))
        self.assertIn("Exit active: False", env.format_prompt_state())
        for code in "sdwdsdd":
            env.step(code)
        self.assertTrue(env.is_solved())

    def test_level_without_player_is_rejected(self) -> None:
        state = parse_ascii_level("#####\n# $E#\n#####")
        with self.assertRaises(InvalidLevelError):
            BoxFlightEnv(state)
        with self.assertRaises(InvalidLevelError):
            BoxFlightEnv(BoxFlightLevel("empty", None, state))


if __name__ == "__main__":
    unittest.main()
