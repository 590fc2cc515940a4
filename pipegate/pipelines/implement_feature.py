# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Implement Feature pipeline.

Turns a feature description into reviewed code:
improve prompt -> plan tasks -> schema -> code -> polish -> review diff.
"""

from typing import Any

from pipegate.core.constants import AgentName, InputSource
from pipegate.core.types import ExecutionContext, PipelineDefinition, PipelineStep, StepResult
from pipegate.pipelines.utils import preference, step_data


def _plan_context(results: list[StepResult], context: ExecutionContext) -> dict[str, Any]:
    return {
        "technology": preference(context, "framework", "FastAPI"),
        "experience": preference(context, "experience", "intermediate"),
    }


def _schema_context(results: list[StepResult], context: ExecutionContext) -> dict[str, Any]:
    return {"project_plan": step_data(results, "plan-tasks")}


def _code_context(results: list[StepResult], context: ExecutionContext) -> dict[str, Any]:
    return {
        "language": preference(context, "language", "Python"),
        "schema": step_data(results, "generate-schema", "schema_as_string"),
        "project_plan": step_data(results, "plan-tasks"),
    }


def _improve_context(results: list[StepResult], context: ExecutionContext) -> dict[str, Any]:
    return {
        "code": step_data(results, "generate-code", "code"),
        "language": preference(context, "language", "Python"),
        "focus_areas": ["error-handling", "validation", "readability", "performance"],
    }


def _diff_context(results: list[StepResult], context: ExecutionContext) -> dict[str, Any]:
    return {
        "language": preference(context, "language", "Python"),
        "original_code": step_data(results, "generate-code", "code"),
        "improved_code": step_data(results, "improve-code", "improved_code"),
        "focus_areas": ["error-handling", "validation"],
    }


IMPLEMENT_FEATURE = PipelineDefinition(
    id="implement-feature",
    version="1.0.0",
    name="Implement Feature",
    description=(
        "Takes a feature description and generates a complete implementation "
        "with schema, code, and improvements"
    ),
    author="pipegate",
    tags=["code-generation", "feature", "full-stack"],
    steps=[
        PipelineStep(
            id="improve-prompt",
            name="Improve Feature Description",
            description="Clarify and enhance the user prompt",
            agent=AgentName.PROMPT_IMPROVER,
            operation="improve",
            input_from=InputSource.USER,
        ),
        PipelineStep(
            id="plan-tasks",
            name="Break Down Into Tasks",
            description="Create a project plan with time estimates",
            agent=AgentName.PROJECT_PLANNER,
            operation="plan",
            input_from=InputSource.PREVIOUS_STEP,
            context_builder=_plan_context,
        ),
        PipelineStep(
            id="generate-schema",
            name="Generate API Schema",
            description="Define data structures and interfaces",
            agent=AgentName.SCHEMA_GENERATOR,
            operation="generate",
            input_from=InputSource.CONTEXT,
            query="Based on the project plan, generate JSON schemas for the main data models",
            context_builder=_schema_context,
            continue_on_error=True,
        ),
        PipelineStep(
            id="generate-code",
            name="Generate Implementation",
            description="Create the feature code",
            agent=AgentName.CODE_GENERATOR,
            operation="generate",
            input_from=InputSource.PREVIOUS_STEP,
            context_builder=_code_context,
        ),
        PipelineStep(
            id="improve-code",
            name="Add Error Handling & Polish",
            description="Enhance generated code with production-ready patterns",
            agent=AgentName.CODE_IMPROVER,
            operation="improve",
            input_from=InputSource.PREVIOUS_STEP,
            query="Add comprehensive error handling, input validation, and improve code quality",
            context_builder=_improve_context,
            continue_on_error=True,
        ),
        PipelineStep(
            id="generate-diff",
            name="Create Review Diff",
            description="Generate a diff showing all improvements",
            agent=AgentName.DIFF_IMPROVER,
            operation="improve",
            input_from=InputSource.PREVIOUS_STEP,
            context_builder=_diff_context,
            continue_on_error=True,
        ),
    ],
    default_context={
        "preferences": {
            "language": "Python",
            "framework": "FastAPI",
            "experience": "intermediate",
        }
    },
)
