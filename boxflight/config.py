from __future__ import annotations

import json
import os
from dataclasses import fields
from pathlib import Path
from typing import Any, Iterable

from .solver.search import SolverOptions

# Older configs use the camelCase option names.
_SOLVER_ALIASES = {
    "maxDepth": "max_depth",
    "maxNodes": "max_nodes",
    "maxSolutions": "max_solutions",
    "progressEvery": "progress_every",
    "maxEdits": "max_edits",
}


def load_config(path: str | Path) -> dict[str, Any]:
    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValueError(f"config {path} must be a JSON object")
    return _expand_env_vars(data)


def _expand_env_vars(value: Any) -> Any:
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    if isinstance(value, dict):
        return {str(k): _expand_env_vars(v) for k, v in value.items()}
    return value


def merge_dicts(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {**base}
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


def load_configs(paths: Iterable[str | Path]) -> dict[str, Any]:
    """Load several config files; later files override earlier ones."""
    merged: dict[str, Any] = {}
    for path in paths:
        merged = merge_dicts(merged, load_config(path))
    return merged


def config_for_level(config: dict[str, Any], level_id: str) -> dict[str, Any]:
    """Apply the ``levels.<level_id>`` overrides on top of the shared config."""
    per_level = config.get("levels")
    if per_level is None:
        per_level = {}
    if not isinstance(per_level, dict):
        raise ValueError("levels config must be an object")
    base = {key: value for key, value in config.items() if key != "levels"}
    override = per_level.get(level_id, {})
    if not isinstance(override, dict):
        raise ValueError(f"levels.{level_id} config must be an object")
    return merge_dicts(base, override)


def _coerce_int(key: str, value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"solver.{key} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        # Values expanded from environment variables arrive as strings.
        return int(value.strip())
    raise ValueError(f"solver.{key} must be an integer, got {value!r}")


def solver_options_from_config(
    config: dict[str, Any],
    *,
    overrides: dict[str, Any] | None = None,
) -> SolverOptions:
    """Build ``SolverOptions`` from the ``solver`` section of a config.

    Unknown keys are rejected. ``overrides`` (typically CLI flags) win over
    the config; ``None`` values in either are ignored.
    """
    section = config.get("solver")
    if section is None:
        section = {}
    if not isinstance(section, dict):
        raise ValueError("solver config must be an object")

    known = {item.name for item in fields(SolverOptions)}
    values: dict[str, Any] = {}
    for source in (section, overrides or {}):
        for raw_key, value in source.items():
            key = _SOLVER_ALIASES.get(raw_key, raw_key)
            if key not in known:
                raise ValueError(f"unknown solver option: {raw_key}")
            if value is None:
                continue
            values[key] = _coerce_int(key, value)
    return SolverOptions(**values)
