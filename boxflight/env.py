from __future__ import annotations

from typing import Any, Literal

from .core.effects import effect_to_dict
from .core.engine import (
    DIRECTION_NAMES,
    DIRECTIONS,
    NAME_BY_CODE,
    DirectionName,
    move_code,
    parse_direction,
    transition,
)
from .core.goals import exit_active, is_losing, is_winning
from .core.state import (
    FREE_PLAYER,
    BoxFlightError,
    IllegalMoveError,
    InvalidActionError,
    InvalidLevelError,
    WorldState,
)
from .level_loader import BoxFlightLevel
from .render import render_state_ascii

ACTION_SPACE: tuple[DirectionName, ...] = ("up", "down", "left", "right")


def _parse_action(action: object) -> tuple[int, int]:
    if isinstance(action, int) and not isinstance(action, bool):
        if 0 <= action < len(ACTION_SPACE):
            return DIRECTIONS[DIRECTION_NAMES[ACTION_SPACE[action]]]
        raise InvalidActionError(f"action int must be in [0, {len(ACTION_SPACE) - 1}]")
    return parse_direction(action)


class BoxFlightEnv:
    """Step-by-step controller around the movement engine.

    Keeps the current ``WorldState``, an undo stack of earlier states and an
    optional move history. Every move goes through ``transition``.
    """

    def __init__(
        self,
        level: BoxFlightLevel | WorldState,
        *,
        step_penalty: float = 0.0,
        illegal_move_penalty: float = -1.0,
        solve_reward: float = 1.0,
        lose_penalty: float = -1.0,
        illegal_action_behavior: Literal["penalize", "raise", "terminate"] = "penalize",
        max_steps: int | None = None,
        record_history: bool = False,
    ) -> None:
        if illegal_action_behavior not in {"penalize", "raise", "terminate"}:
            raise ValueError(
                "illegal_action_behavior must be one of: penalize, raise, terminate"
            )
        if max_steps is not None and max_steps < 1:
            raise ValueError("max_steps must be >= 1")

        if isinstance(level, WorldState):
            level = BoxFlightLevel(level_id="custom", title=None, state=level)
        if level.state.find_player() is None:
            raise InvalidLevelError(f"level {level.level_id} has no player")

        self.level = level
        self.step_penalty = float(step_penalty)
        self.illegal_move_penalty = float(illegal_move_penalty)
        self.solve_reward = float(solve_reward)
        self.lose_penalty = float(lose_penalty)
        self.illegal_action_behavior = illegal_action_behavior
        self.max_steps = max_steps
        self.record_history = record_history

        self._state = level.state
        self._undo_stack: list[tuple[WorldState, int]] = []

        self.move_count = 0
        self.step_count = 0
        self.history: list[dict[str, Any]] = []

        self.reset()

    @property
    def action_space(self) -> tuple[DirectionName, ...]:
        return ACTION_SPACE

    @property
    def state(self) -> WorldState:
        return self._state

    def get_state(self) -> WorldState:
        return self._state

    def is_solved(self) -> bool:
        return is_winning(self._state)

    def is_lost(self) -> bool:
        return is_losing(self._state)

    def reset(self) -> WorldState:
        self._state = self.level.state
        self._undo_stack = []
        self.move_count = 0
        self.step_count = 0
        self.history = []
        return self._state

    def get_legal_moves(self) -> list[DirectionName]:
        legal: list[DirectionName] = []
        for name in ACTION_SPACE:
            result = transition(self._state, DIRECTIONS[DIRECTION_NAMES[name]])
            if result.changed:
                legal.append(name)
        return legal

    def _apply_max_steps_truncation(self, done: bool, info: dict[str, Any]) -> bool:
        if (
            self.max_steps is not None
            and self.step_count >= self.max_steps
            and not done
        ):
            info["truncated"] = True
            return True
        return done

    def _apply_move(
        self, direction: tuple[int, int]
    ) -> tuple[WorldState, dict[str, Any]]:
        if self.is_solved() or self.is_lost():
            raise IllegalMoveError("level is over; reset or undo first")

        name = NAME_BY_CODE[move_code(direction)]
        result = transition(self._state, direction)
        if not result.changed:
            raise IllegalMoveError(f"move {name} is blocked")

        self._undo_stack.append((self._state, self.move_count))
        self._state = result.new_state
        self.move_count += 1

        effects = [effect_to_dict(effect) for effect in result.effects]
        if self.record_history:
            self.history.append(
                {
                    "direction": name,
                    "move": move_code(direction),
                    "effects": effects,
                    "move_count": self.move_count,
                }
            )
        return self._state, {
            "direction": name,
            "effects": effects,
        }

    def move(self, direction: str) -> WorldState:
        state, _meta = self._apply_move(parse_direction(direction))
        return state

    def step(
        self, action: str | int
    ) -> tuple[WorldState, float, bool, dict[str, Any]]:
        self.step_count += 1
        info: dict[str, Any] = {
            "action_space": list(ACTION_SPACE),
            "step_count": self.step_count,
            "move_count": self.move_count,
            "illegal_action": False,
            "truncated": False,
        }

        try:
            direction = _parse_action(action)
            state, move_meta = self._apply_move(direction)
        except (InvalidActionError, IllegalMoveError) as exc:
            info["illegal_action"] = True
            info["error"] = str(exc)
            if self.illegal_action_behavior == "raise":
                raise
            done = self.illegal_action_behavior == "terminate"
            done = self._apply_max_steps_truncation(done, info)
            info["solved"] = self.is_solved()
            info["lost"] = self.is_lost()
            return (self._state, self.illegal_move_penalty, done, info)

        reward = self.step_penalty
        solved = self.is_solved()
        lost = self.is_lost()
        if solved:
            reward += self.solve_reward
        if lost:
            reward += self.lose_penalty
        done = self._apply_max_steps_truncation(solved or lost, info)

        info["action"] = move_meta["direction"]
        info["effects"] = move_meta["effects"]
        info["move_count"] = self.move_count
        info["solved"] = solved
        info["lost"] = lost
        return (state, reward, done, info)

    def undo(self) -> WorldState:
        if not self._undo_stack:
            raise BoxFlightError("cannot undo: no history")

        self._state, self.move_count = self._undo_stack.pop()
        if self.record_history and self.history:
            self.history.pop()
        return self._state

    def format_prompt_state(self, *, include_legal_moves: bool = False) -> str:
        player = self._state.find_player()
        mode = (player.player or FREE_PLAYER).mode if player is not None else "none"
        lines = [
            f"Board ({self._state.cols}x{self._state.rows}):",
            render_state_ascii(self._state),
            "",
            f"Player mode: {mode}",
            f"Exit active: {exit_active(self._state)}",
        ]
        if include_legal_moves:
            legal = ", ".join(self.get_legal_moves())
            lines.append(f"Legal moves: [{legal}]")
        return "\n".join(lines)
