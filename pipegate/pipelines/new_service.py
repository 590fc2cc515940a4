# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""New Service pipeline.

Scaffolds a service from scratch: architecture design -> plan -> schemas
-> service code -> tests -> setup commands -> CI workflow.
"""

from typing import Any

from pipegate.core.constants import AgentName, InputSource
from pipegate.core.types import ExecutionContext, PipelineDefinition, PipelineStep, StepResult
from pipegate.pipelines.utils import environment, preference, step_data


def _plan_context(results: list[StepResult], context: ExecutionContext) -> dict[str, Any]:
    return {
        "technology": preference(context, "framework", "FastAPI"),
        "experience": preference(context, "experience", "intermediate"),
        "service_design": step_data(results, "design-architecture"),
    }


def _schemas_context(results: list[StepResult], context: ExecutionContext) -> dict[str, Any]:
    return {
        "inputs": step_data(results, "design-architecture", "inputs"),
        "outputs": step_data(results, "design-architecture", "outputs"),
        "service_name": step_data(results, "design-architecture", "name"),
    }


def _service_code_context(results: list[StepResult], context: ExecutionContext) -> dict[str, Any]:
    return {
        "language": preference(context, "language", "Python"),
        "service_design": step_data(results, "design-architecture"),
        "schemas": step_data(results, "generate-schemas", "schema_as_string"),
        "project_plan": step_data(results, "create-plan"),
    }


def _tests_context(results: list[StepResult], context: ExecutionContext) -> dict[str, Any]:
    return {
        "language": preference(context, "language", "Python"),
        "code_to_test": step_data(results, "generate-service-code", "code"),
        "test_framework": "pytest",
    }


def _setup_context(results: list[StepResult], context: ExecutionContext) -> dict[str, Any]:
    return {
        "os": environment(context, "os", "linux"),
        "shell": environment(context, "shell", "bash"),
        "framework": preference(context, "framework", "FastAPI"),
    }


def _workflow_context(results: list[StepResult], context: ExecutionContext) -> dict[str, Any]:
    return {
        "project_name": step_data(results, "create-plan", "project_name"),
        "framework": preference(context, "framework", "FastAPI"),
    }


NEW_SERVICE = PipelineDefinition(
    id="new-service",
    version="1.0.0",
    name="New Service/Module",
    description="Scaffolds a complete service or module with architecture, code, and setup",
    author="pipegate",
    tags=["scaffolding", "microservice", "architecture"],
    steps=[
        PipelineStep(
            id="design-architecture",
            name="Design Service Architecture",
            description="Create a modular component design",
            agent=AgentName.BOX_DESIGNER,
            operation="design",
            input_from=InputSource.USER,
        ),
        PipelineStep(
            id="create-plan",
            name="Create Implementation Plan",
            description="Break the service down into implementation tasks",
            agent=AgentName.PROJECT_PLANNER,
            operation="plan",
            input_from=InputSource.PREVIOUS_STEP,
            context_builder=_plan_context,
        ),
        PipelineStep(
            id="generate-schemas",
            name="Generate API Schemas",
            description="Create schemas for all inputs and outputs",
            agent=AgentName.SCHEMA_GENERATOR,
            operation="generate",
            input_from=InputSource.CONTEXT,
            query="Generate JSON schemas for all API endpoints based on the service design",
            context_builder=_schemas_context,
        ),
        PipelineStep(
            id="generate-service-code",
            name="Generate Service Code",
            description="Create the main service implementation",
            agent=AgentName.CODE_GENERATOR,
            operation="generate",
            input_from=InputSource.CONTEXT,
            query="Generate complete service code with routes, controllers, and business logic",
            context_builder=_service_code_context,
        ),
        PipelineStep(
            id="generate-tests",
            name="Generate Test Suite",
            description="Create unit and integration tests",
            agent=AgentName.CODE_GENERATOR,
            operation="generate",
            input_from=InputSource.CONTEXT,
            query="Generate comprehensive unit and integration tests for this service",
            context_builder=_tests_context,
            continue_on_error=True,
        ),
        PipelineStep(
            id="setup-commands",
            name="Generate Setup Commands",
            description="Commands to initialize and run the service",
            agent=AgentName.TERMINAL_AGENT,
            operation="generate",
            input_from=InputSource.CONTEXT,
            query="Generate commands to initialize the project, install dependencies, and run the service",
            context_builder=_setup_context,
            continue_on_error=True,
        ),
        PipelineStep(
            id="github-workflow",
            name="Generate GitHub Workflow",
            description="CI setup with GitHub Actions",
            agent=AgentName.GITHUB_AGENT,
            operation="generate",
            input_from=InputSource.CONTEXT,
            query="Create a GitHub workflow for CI: install dependencies, run tests, and deploy",
            context_builder=_workflow_context,
            continue_on_error=True,
        ),
    ],
    default_context={
        "environment": {"os": "linux", "shell": "bash"},
        "preferences": {
            "language": "Python",
            "framework": "FastAPI",
            "experience": "intermediate",
        },
    },
)
