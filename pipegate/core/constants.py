# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# pipegate/core/constants.py
"""Constants used across the pipegate codebase."""

from enum import StrEnum


class InputSource(StrEnum):
    """Where a pipeline step takes its provider input from."""

    USER = "user"
    CONTEXT = "context"
    PREVIOUS_STEP = "previousStep"
    FILE = "file"
    SELECTION = "selection"
    TESTS = "tests"


class ActionType(StrEnum):
    """Side-effect proposals a step can emit."""

    APPLY_DIFF = "APPLY_DIFF"
    CREATE_FILE = "CREATE_FILE"
    MODIFY_FILE = "MODIFY_FILE"
    DELETE_FILE = "DELETE_FILE"
    RUN_COMMAND = "RUN_COMMAND"
    CREATE_BRANCH = "CREATE_BRANCH"
    COMMIT_CHANGES = "COMMIT_CHANGES"
    SHOW_MESSAGE = "SHOW_MESSAGE"
    REQUEST_APPROVAL = "REQUEST_APPROVAL"


class AgentName(StrEnum):
    """Well-known capability providers with built-in conventions.

    Any agent name may be registered; these are the ones the default
    context builder and action extractor know how to handle.
    """

    BASE = "base"
    CODE_GENERATOR = "code_generator"
    SCHEMA_GENERATOR = "schema_generator"
    TERMINAL_AGENT = "terminal_agent"
    CODE_IMPROVER = "code_improver"
    DIFF_IMPROVER = "diff_improver"
    BOX_DESIGNER = "box_designer"
    PROJECT_PLANNER = "project_planner"
    PROMPT_IMPROVER = "prompt_improver"
    TOOL_CHOICE = "tool_choice"
    GITHUB_AGENT = "github_agent"


class PolicyScope(StrEnum):
    """What kind of subject a policy rule applies to."""

    PIPELINE = "pipeline"
    STEP = "step"
    ACTION = "action"
    AGENT = "agent"


class PolicyEffect(StrEnum):
    ALLOW = "allow"
    DENY = "deny"


# Per-step deadline when neither the step nor the settings give one (seconds)
DEFAULT_STEP_TIMEOUT: float = 60.0

# Output fields tried, in order, when a step reads the previous step's output
PRINCIPAL_OUTPUT_FIELDS: tuple[str, ...] = (
    "code",
    "improved_code",
    "improved_prompt",
    "response",
    "text",
)

# Language name (lowercase) -> file extension for generated sources
FILE_EXTENSIONS: dict[str, str] = {
    "javascript": "js",
    "typescript": "ts",
    "python": "py",
    "java": "java",
    "c++": "cpp",
    "c#": "cs",
    "ruby": "rb",
    "go": "go",
    "rust": "rs",
}

DEFAULT_FILE_EXTENSION = "txt"

# Fallback target for diffs when the context carries no selected file
CURRENT_FILE_TARGET = "current-file"
