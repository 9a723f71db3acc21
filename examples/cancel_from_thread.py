from __future__ import annotations

import threading

from boxflight.level_loader import load_level_by_id
from boxflight.solver import CancelToken, SolverOptions, SolverSession


def main() -> None:
    level = load_level_by_id("mechanics:3")
    token = CancelToken()
    session = SolverSession(
        level.state, SolverOptions(progress_every=1), cancel_token=token
    )

    # Another thread may stop the search; it finishes the node it is on.
    timer = threading.Timer(0.01, token.cancel)
    timer.start()
    for progress in session.run():
        print(progress.message)
    timer.cancel()

    result = session.result
    assert result is not None
    print("Termination:", result.stats.termination)
    print("Solutions:", [entry.moves for entry in result.solutions])


if __name__ == "__main__":
    main()
