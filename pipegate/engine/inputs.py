# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Resolve a step's provider input and default provider context."""

import json
from collections.abc import Mapping, Sequence
from typing import Any

from pipegate.core.constants import PRINCIPAL_OUTPUT_FIELDS, AgentName, InputSource
from pipegate.core.types import ExecutionContext, PipelineStep, StepResult


def principal_output(data: Any) -> str:
    """Render a step's output as the next step's input text.

    Uses the first non-empty principal field (``code``, ``improved_code``,
    ...) when the output is a mapping, the text itself when it is a string,
    and the JSON serialization otherwise.

    Args:
        data: Output data of a step.

    Returns:
        Input text; empty when the step produced nothing.
    """
    if data is None:
        return ""
    if isinstance(data, str):
        return data
    if isinstance(data, Mapping):
        for field in PRINCIPAL_OUTPUT_FIELDS:
            value = data.get(field)
            if isinstance(value, str) and value:
                return value
    return json.dumps(data, default=str)


def resolve_step_input(
    step: PipelineStep,
    previous_results: Sequence[StepResult],
    context: ExecutionContext,
) -> str:
    """Resolve the input text for a step from its declared input source.

    A static ``query`` wins for every source except ``selection``, where
    the selected content comes first.

    Args:
        step: Step being executed.
        previous_results: Results of the steps executed before it.
        context: Execution context of the run.

    Returns:
        The provider input text (possibly empty).
    """
    query = step.query
    match step.input_from:
        case InputSource.USER:
            return query or context.user_prompt or ""
        case InputSource.PREVIOUS_STEP:
            if query:
                return query
            if not previous_results:
                return ""
            return principal_output(previous_results[-1].data)
        case InputSource.FILE:
            if query:
                return query
            return context.selection.content if context.selection else ""
        case InputSource.SELECTION:
            if context.selection and context.selection.content:
                return context.selection.content
            return query or ""
        case InputSource.TESTS:
            if query:
                return query
            if context.test_results is None:
                return ""
            return json.dumps(context.test_results, default=str)
        case _:
            return query or ""


def build_default_context(step: PipelineStep, context: ExecutionContext) -> dict[str, Any]:
    """Build the provider context for steps without a context builder.

    Args:
        step: Step being executed.
        context: Execution context of the run.

    Returns:
        Provider context following the per-agent conventions.
    """
    preferences = context.preferences
    environment = context.environment
    provider_context: dict[str, Any] = {}

    if step.agent == AgentName.CODE_GENERATOR:
        provider_context["language"] = (preferences and preferences.language) or "Python"

    if step.agent == AgentName.TERMINAL_AGENT:
        provider_context["os"] = (environment and environment.os) or "linux"
        provider_context["shell"] = (environment and environment.shell) or "bash"

    if step.agent == AgentName.PROJECT_PLANNER:
        provider_context["technology"] = (preferences and preferences.framework) or "Python"
        provider_context["experience"] = (preferences and preferences.experience) or "intermediate"

    return provider_context
