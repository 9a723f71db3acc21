from __future__ import annotations

import importlib
import sys
import threading
from typing import Any

from .search import SolverProgress


class SolverProgressReporter:
    def on_progress(self, progress: SolverProgress) -> None:
        raise NotImplementedError

    def close(self) -> None:
        raise NotImplementedError


class NoopSolverProgressReporter(SolverProgressReporter):
    def on_progress(self, progress: SolverProgress) -> None:  # noqa: ARG002
        return

    def close(self) -> None:
        return


class TextSolverProgressReporter(SolverProgressReporter):
    """Print solver status lines to a stream (stderr by default)."""

    def __init__(self, *, stream: Any = None) -> None:
        self._stream = stream if stream is not None else sys.stderr

    def on_progress(self, progress: SolverProgress) -> None:
        print(progress.message, file=self._stream, flush=True)

    def close(self) -> None:
        return


class TqdmSolverProgressReporter(SolverProgressReporter):
    def __init__(
        self,
        *,
        max_nodes: int,
        refresh_s: float,
        tqdm_cls: Any,
    ) -> None:
        self._lock = threading.Lock()
        self._seen = 0
        self._bar = tqdm_cls(
            total=max(0, int(max_nodes)),
            desc="Solving",
            unit="node",
            dynamic_ncols=True,
            mininterval=float(refresh_s),
            file=sys.stderr,
            leave=True,
        )

    def on_progress(self, progress: SolverProgress) -> None:
        with self._lock:
            postfix = {
                "queue": str(progress.queue),
                "solutions": str(progress.solutions),
            }
            if progress.done:
                postfix["dead_ends"] = str(progress.dead_ends)
            self._bar.set_postfix(postfix, refresh=False)
            delta = progress.nodes - self._seen
            if delta > 0:
                self._bar.update(delta)
                self._seen = progress.nodes

    def close(self) -> None:
        with self._lock:
            self._bar.close()


def build_solver_progress_reporter(
    *,
    enabled: bool,
    max_nodes: int,
    refresh_s: float = 0.5,
    explicit_request: bool = False,
) -> SolverProgressReporter:
    """Pick a tqdm bar when available, plain status lines otherwise."""
    if not enabled:
        return NoopSolverProgressReporter()

    try:
        tqdm_module = importlib.import_module("tqdm")
    except ImportError:
        if explicit_request:
            print(
                "Progress bar requested but missing dependency: tqdm. Install "
                "with pip install 'boxflight[progress]'.",
                file=sys.stderr,
                flush=True,
            )
        return TextSolverProgressReporter()

    tqdm_cls = getattr(tqdm_module, "tqdm", None)
    if tqdm_cls is None:
        if explicit_request:
            print(
                "Progress bar requested but tqdm.tqdm is unavailable.",
                file=sys.stderr,
                flush=True,
            )
        return TextSolverProgressReporter()
    return TqdmSolverProgressReporter(
        max_nodes=max_nodes,
        refresh_s=refresh_s,
        tqdm_cls=tqdm_cls,
    )
