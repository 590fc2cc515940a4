"""Shared helpers for built-in pipeline context builders."""

from collections.abc import Mapping, Sequence
from typing import Any

from pipegate.core.types import ExecutionContext, StepResult


def step_data(
    results: Sequence[StepResult], step_id: str, key: str | None = None
) -> Any:
    """Return the output data of an earlier step, or one key of it.

    Args:
        results: Prior step results handed to the context builder.
        step_id: Id of the step whose output is wanted.
        key: Optional key within a mapping output.

    Returns:
        The data (or the value under key); None when the step did not run,
        produced nothing, or the key is absent.
    """
    result = next((r for r in results if r.step_id == step_id), None)
    if result is None or result.data is None:
        return None
    if key is None:
        return result.data
    if isinstance(result.data, Mapping):
        return result.data.get(key)
    return None


def preference(context: ExecutionContext, name: str, default: str) -> str:
    """Read a preference (language, framework, experience) with a fallback."""
    value = getattr(context.preferences, name, None) if context.preferences else None
    return value or default


def environment(context: ExecutionContext, name: str, default: str) -> str:
    """Read an environment field (os, shell, editor) with a fallback."""
    value = getattr(context.environment, name, None) if context.environment else None
    return value or default
