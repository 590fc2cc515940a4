# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Fix Tests pipeline.

Analyzes failing tests and proposes fixes:
test command -> analyze failures -> fixes -> diff -> retest command.

Callers pass the failing test output as ``testResults`` and may pass the
code under test as ``failingCode`` (kept in ``ExecutionContext.extra``).
"""

from typing import Any

from pipegate.core.constants import AgentName, InputSource
from pipegate.core.types import ExecutionContext, PipelineDefinition, PipelineStep, StepResult
from pipegate.pipelines.utils import environment, preference


def _shell_context(results: list[StepResult], context: ExecutionContext) -> dict[str, Any]:
    return {
        "os": environment(context, "os", "linux"),
        "shell": environment(context, "shell", "bash"),
    }


def _analysis_context(results: list[StepResult], context: ExecutionContext) -> dict[str, Any]:
    return {"test_results": context.test_results}


def _fixes_context(results: list[StepResult], context: ExecutionContext) -> dict[str, Any]:
    return {
        "code": context.extra.get("failingCode") or context.extra.get("failing_code") or "",
        "language": preference(context, "language", "Python"),
        "focus_areas": ["correctness", "test-compatibility"],
    }


def _diff_context(results: list[StepResult], context: ExecutionContext) -> dict[str, Any]:
    return {
        "language": preference(context, "language", "Python"),
        "focus_areas": ["correctness"],
    }


FIX_TESTS = PipelineDefinition(
    id="fix-tests",
    version="1.0.0",
    name="Fix Failing Tests",
    description="Analyzes test failures and generates code fixes to make tests pass",
    author="pipegate",
    tags=["testing", "debugging", "fixes"],
    steps=[
        PipelineStep(
            id="generate-test-command",
            name="Generate Test Command",
            description="Create the command to run tests",
            agent=AgentName.TERMINAL_AGENT,
            operation="generate",
            input_from=InputSource.CONTEXT,
            query="Generate command to run all tests",
            context_builder=_shell_context,
        ),
        PipelineStep(
            id="analyze-failures",
            name="Analyze Test Failures",
            description="Understand which tests fail and why",
            agent=AgentName.BASE,
            operation="query",
            input_from=InputSource.TESTS,
            query=(
                "Analyze these test failures and identify the root causes. "
                "Be specific about what needs to be fixed."
            ),
            context_builder=_analysis_context,
        ),
        PipelineStep(
            id="generate-fixes",
            name="Generate Code Fixes",
            description="Create code that fixes the failing tests",
            agent=AgentName.CODE_IMPROVER,
            operation="improve",
            input_from=InputSource.PREVIOUS_STEP,
            query="Fix the code to make the failing tests pass",
            context_builder=_fixes_context,
        ),
        PipelineStep(
            id="create-diff",
            name="Create Fix Diff",
            description="Generate a diff showing the fixes",
            agent=AgentName.DIFF_IMPROVER,
            operation="improve",
            input_from=InputSource.PREVIOUS_STEP,
            context_builder=_diff_context,
            continue_on_error=True,
        ),
        PipelineStep(
            id="retest-command",
            name="Generate Retest Command",
            description="Command to verify the fixes",
            agent=AgentName.TERMINAL_AGENT,
            operation="generate",
            input_from=InputSource.CONTEXT,
            query="Generate command to re-run the failing tests",
            context_builder=_shell_context,
            continue_on_error=True,
        ),
    ],
    default_context={
        "environment": {"os": "linux", "shell": "bash"},
        "preferences": {"language": "Python"},
    },
)
