# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Derive proposed actions from step output."""

from collections.abc import Mapping
from typing import Any

from pipegate.core.constants import (
    CURRENT_FILE_TARGET,
    DEFAULT_FILE_EXTENSION,
    FILE_EXTENSIONS,
    ActionType,
    AgentName,
)
from pipegate.core.types import Action, ExecutionContext, PipelineStep


def file_extension(language: str | None) -> str:
    """Map a language name to a source file extension ("txt" if unknown)."""
    if not language:
        return DEFAULT_FILE_EXTENSION
    return FILE_EXTENSIONS.get(language.lower(), DEFAULT_FILE_EXTENSION)


def extract_actions(
    step: PipelineStep,
    data: Any,
    context: ExecutionContext,
) -> list[Action]:
    """Derive actions from a step's output using per-agent conventions.

    - code_generator with ``code``: CREATE_FILE
    - diff_improver with ``diff``: APPLY_DIFF
    - terminal_agent with ``code`` or ``command``: RUN_COMMAND
    - github_agent with ``github_commands``: one RUN_COMMAND per command

    Every action starts with ``requires_approval=True``; the policy gate
    may relax that afterwards.

    Args:
        step: Step that produced the data.
        data: Step output (after any result transform).
        context: Execution context of the run.

    Returns:
        Proposed actions, possibly empty.
    """
    if not isinstance(data, Mapping):
        return []

    actions: list[Action] = []

    if step.agent == AgentName.CODE_GENERATOR and data.get("code"):
        language = data.get("language") or (context.preferences and context.preferences.language)
        target = data.get("file_path") or f"generated-{step.id}.{file_extension(language)}"
        actions.append(
            Action(
                type=ActionType.CREATE_FILE,
                targets=[target],
                payload={"content": data["code"]},
                reasoning=data.get("reasoning") or "Generated by code generator",
                requires_approval=True,
                source_step=step.id,
            )
        )

    if step.agent == AgentName.DIFF_IMPROVER and data.get("diff"):
        target = (context.selection and context.selection.file) or CURRENT_FILE_TARGET
        actions.append(
            Action(
                type=ActionType.APPLY_DIFF,
                targets=[target],
                payload={"diff": data["diff"]},
                reasoning=data.get("explanation") or "Code improvement",
                requires_approval=True,
                source_step=step.id,
            )
        )

    if step.agent == AgentName.TERMINAL_AGENT:
        command = data.get("command") or data.get("code")
        if command:
            actions.append(
                Action(
                    type=ActionType.RUN_COMMAND,
                    payload={"command": command},
                    reasoning=data.get("reasoning") or "Terminal command",
                    requires_approval=True,
                    source_step=step.id,
                )
            )

    if step.agent == AgentName.GITHUB_AGENT:
        for entry in data.get("github_commands") or []:
            if not isinstance(entry, Mapping) or not entry.get("command"):
                continue
            actions.append(
                Action(
                    type=ActionType.RUN_COMMAND,
                    payload={"command": entry["command"]},
                    reasoning=entry.get("description") or "GitHub CLI command",
                    requires_approval=True,
                    source_step=step.id,
                )
            )

    return actions
