"""Tests for the built-in pipeline definitions."""

import pytest

from pipegate.core.constants import InputSource
from pipegate.core.types import ExecutionContext, PipelineDefinition, StepResult
from pipegate.pipelines import BUILTIN_PIPELINES, FIX_TESTS, IMPLEMENT_FEATURE, NEW_SERVICE, step_data


def result(step_id: str, data: object) -> StepResult:
    return StepResult(step_id=step_id, step_name=step_id, success=True, data=data)


class TestDefinitions:
    def test_all_registered_in_order(self) -> None:
        assert [p.id for p in BUILTIN_PIPELINES] == ["implement-feature", "fix-tests", "new-service"]

    @pytest.mark.parametrize("definition", BUILTIN_PIPELINES, ids=lambda p: p.id)
    def test_step_ids_unique(self, definition: PipelineDefinition) -> None:
        ids = [step.id for step in definition.steps]
        assert len(ids) == len(set(ids))

    @pytest.mark.parametrize("definition", BUILTIN_PIPELINES, ids=lambda p: p.id)
    def test_first_step_does_not_read_previous_output(self, definition: PipelineDefinition) -> None:
        assert definition.steps[0].input_from != InputSource.PREVIOUS_STEP

    def test_implement_feature_flow(self) -> None:
        assert [step.capability for step in IMPLEMENT_FEATURE.steps] == [
            "prompt_improver.improve",
            "project_planner.plan",
            "schema_generator.generate",
            "code_generator.generate",
            "code_improver.improve",
            "diff_improver.improve",
        ]

    def test_fix_tests_reads_test_results(self) -> None:
        analyze = next(step for step in FIX_TESTS.steps if step.id == "analyze-failures")
        assert analyze.input_from == InputSource.TESTS
        assert analyze.capability == "base.query"

    def test_new_service_optional_tail(self) -> None:
        optional = [step.id for step in NEW_SERVICE.steps if step.continue_on_error]
        assert optional == ["generate-tests", "setup-commands", "github-workflow"]


class TestContextBuilders:
    def test_generate_code_sees_schema_and_plan(self) -> None:
        step = next(s for s in IMPLEMENT_FEATURE.steps if s.id == "generate-code")
        assert step.context_builder is not None
        results = [
            result("plan-tasks", {"tasks": ["login form"]}),
            result("generate-schema", {"schema_as_string": "{...}"}),
        ]
        ctx = ExecutionContext.model_validate({"preferences": {"language": "TypeScript"}})

        built = step.context_builder(results, ctx)

        assert built == {
            "language": "TypeScript",
            "schema": "{...}",
            "project_plan": {"tasks": ["login form"]},
        }

    def test_missing_schema_is_tolerated(self) -> None:
        step = next(s for s in IMPLEMENT_FEATURE.steps if s.id == "generate-code")
        assert step.context_builder is not None

        built = step.context_builder([result("plan-tasks", None)], ExecutionContext())

        assert built["schema"] is None
        assert built["language"] == "Python"

    def test_fix_tests_passes_failing_code(self) -> None:
        step = next(s for s in FIX_TESTS.steps if s.id == "generate-fixes")
        assert step.context_builder is not None
        ctx = ExecutionContext.model_validate({"failingCode": "def add(a, b): return a - b"})

        built = step.context_builder([], ctx)

        assert built["code"] == "def add(a, b): return a - b"

    def test_github_workflow_uses_plan_project_name(self) -> None:
        step = next(s for s in NEW_SERVICE.steps if s.id == "github-workflow")
        assert step.context_builder is not None

        built = step.context_builder([result("create-plan", {"project_name": "billing"})], ExecutionContext())

        assert built == {"project_name": "billing", "framework": "FastAPI"}


class TestStepData:
    def test_whole_output_and_key(self) -> None:
        results = [result("a", {"code": "x"})]
        assert step_data(results, "a") == {"code": "x"}
        assert step_data(results, "a", "code") == "x"

    @pytest.mark.parametrize(
        "results,key",
        [
            pytest.param([], None, id="step_not_run"),
            pytest.param([result("a", None)], "code", id="no_output"),
            pytest.param([result("a", "text")], "code", id="non_mapping"),
            pytest.param([result("a", {"other": 1})], "code", id="missing_key"),
        ],
    )
    def test_absent(self, results: list[StepResult], key: str | None) -> None:
        assert step_data(results, "a", key) is None
