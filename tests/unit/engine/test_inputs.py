"""Unit tests for step input resolution and default provider context."""

from collections.abc import Callable
from typing import Any

import pytest

from pipegate.core.constants import AgentName, InputSource
from pipegate.core.types import ExecutionContext, PipelineStep, StepResult
from pipegate.engine.inputs import build_default_context, principal_output, resolve_step_input


def previous(data: Any) -> list[StepResult]:
    return [StepResult(step_id="prev", step_name="Prev", success=True, data=data)]


class TestResolveStepInput:
    @pytest.mark.parametrize(
        "source,query,context,results,expected",
        [
            pytest.param(InputSource.USER, None, {"userPrompt": "Add login"}, [], "Add login", id="user_prompt"),
            pytest.param(InputSource.USER, "static", {"userPrompt": "Add login"}, [], "static", id="user_query_wins"),
            pytest.param(InputSource.USER, None, {}, [], "", id="user_empty"),
            pytest.param(InputSource.CONTEXT, "Generate schemas", {}, [], "Generate schemas", id="context_query"),
            pytest.param(InputSource.CONTEXT, None, {"userPrompt": "x"}, [], "", id="context_empty"),
            pytest.param(
                InputSource.PREVIOUS_STEP, None, {}, previous({"code": "print(1)", "text": "t"}),
                "print(1)", id="previous_code",
            ),
            pytest.param(
                InputSource.PREVIOUS_STEP, None, {}, previous({"improved_prompt": "Better"}),
                "Better", id="previous_improved_prompt",
            ),
            pytest.param(
                InputSource.PREVIOUS_STEP, None, {}, previous({"tasks": [1, 2]}),
                '{"tasks": [1, 2]}', id="previous_json",
            ),
            pytest.param(InputSource.PREVIOUS_STEP, None, {}, previous(None), "", id="previous_nothing"),
            pytest.param(InputSource.PREVIOUS_STEP, "static", {}, previous({"code": "c"}), "static", id="previous_query"),
            pytest.param(
                InputSource.FILE, None, {"selection": {"file": "a.py", "content": "x = 1"}}, [],
                "x = 1", id="file_selection",
            ),
            pytest.param(
                InputSource.FILE, "q", {"selection": {"file": "a.py", "content": "x = 1"}}, [],
                "q", id="file_query_wins",
            ),
            pytest.param(
                InputSource.SELECTION, "q", {"selection": {"content": "selected"}}, [],
                "selected", id="selection_wins",
            ),
            pytest.param(InputSource.SELECTION, "q", {}, [], "q", id="selection_falls_back"),
            pytest.param(
                InputSource.TESTS, None, {"testResults": {"failed": ["test_login"]}}, [],
                '{"failed": ["test_login"]}', id="tests_json",
            ),
            pytest.param(InputSource.TESTS, "Analyze", {"testResults": {"failed": 1}}, [], "Analyze", id="tests_query"),
            pytest.param(InputSource.TESTS, None, {}, [], "", id="tests_empty"),
        ],
    )
    def test_sources(
        self,
        step_factory: Callable[..., PipelineStep],
        source: InputSource,
        query: str | None,
        context: dict[str, Any],
        results: list[StepResult],
        expected: str,
    ) -> None:
        step = step_factory(input_from=source, query=query)

        assert resolve_step_input(step, results, ExecutionContext.model_validate(context)) == expected

    def test_previous_step_uses_last_result(self, step_factory: Callable[..., PipelineStep]) -> None:
        results = [
            StepResult(step_id="a", step_name="A", success=True, data={"text": "first"}),
            StepResult(step_id="b", step_name="B", success=True, data={"text": "second"}),
        ]
        step = step_factory(input_from=InputSource.PREVIOUS_STEP)

        assert resolve_step_input(step, results, ExecutionContext()) == "second"


class TestPrincipalOutput:
    def test_field_priority(self) -> None:
        assert principal_output({"text": "t", "response": "r", "improved_code": "ic"}) == "ic"

    def test_empty_field_skipped(self) -> None:
        assert principal_output({"code": "", "response": "r"}) == "r"

    def test_string_data(self) -> None:
        assert principal_output("raw") == "raw"


class TestBuildDefaultContext:
    def test_code_generator_language(self, step_factory: Callable[..., PipelineStep]) -> None:
        step = step_factory(agent=AgentName.CODE_GENERATOR, operation="generate")

        assert build_default_context(step, ExecutionContext()) == {"language": "Python"}
        ctx = ExecutionContext.model_validate({"preferences": {"language": "Rust"}})
        assert build_default_context(step, ctx) == {"language": "Rust"}

    def test_terminal_agent_environment(self, step_factory: Callable[..., PipelineStep]) -> None:
        step = step_factory(agent=AgentName.TERMINAL_AGENT, operation="generate")
        ctx = ExecutionContext.model_validate({"environment": {"os": "darwin"}})

        assert build_default_context(step, ctx) == {"os": "darwin", "shell": "bash"}

    def test_project_planner_preferences(self, step_factory: Callable[..., PipelineStep]) -> None:
        step = step_factory(agent=AgentName.PROJECT_PLANNER, operation="plan")
        ctx = ExecutionContext.model_validate({"preferences": {"framework": "Django", "experience": "senior"}})

        assert build_default_context(step, ctx) == {"technology": "Django", "experience": "senior"}

    def test_other_agents_get_empty_context(self, step_factory: Callable[..., PipelineStep]) -> None:
        assert build_default_context(step_factory(), ExecutionContext()) == {}
