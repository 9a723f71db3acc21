from __future__ import annotations

from boxflight import BoxFlightEnv, solve
from boxflight.level_loader import load_level_by_id


def main() -> None:
    level = load_level_by_id("tutorial:2")
    result = solve(level.state, on_progress=print)
    if result.shortest is None:
        print("No solution found:", result.stats.termination)
        return

    env = BoxFlightEnv(level, step_penalty=-0.01, solve_reward=1.0)
    episode_reward = 0.0
    for code in result.shortest.moves:
        state, reward, done, info = env.step(code)
        episode_reward += reward
        if done:
            break

    print("Solved:", env.is_solved())
    print("Moves:", env.move_count, "(shortest:", result.shortest.length, ")")
    print("Dead ends:", [entry.moves for entry in result.dead_ends])
    print("Episode reward:", episode_reward)
    print("\nPrompt state:\n", env.format_prompt_state())


if __name__ == "__main__":
    main()
