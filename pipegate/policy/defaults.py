# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# pipegate/policy/defaults.py
"""Default policy shipped with pipegate."""

from pipegate.core.constants import ActionType, PolicyEffect, PolicyScope
from pipegate.policy.models import PolicyConditions, PolicyConfig, PolicyRule


# Secret-looking files no action may touch
DEFAULT_DENIED_FILES: tuple[str, ...] = (
    "**/.env",
    "**/.env.*",
    "**/secrets/**",
    "**/credentials/**",
    "**/*.key",
    "**/*.pem",
    "**/id_rsa*",
)

# Destructive or exfiltrating shell commands (regex, searched)
DEFAULT_DENIED_COMMANDS: tuple[str, ...] = (
    # rm with any flags (joined or split) on an absolute or home path
    r"\brm\s+(?:-[\w-]*\s+)+(?:/|~)",
    r"\bdd\s+if=",
    r"\bmkfs\.",
    # Downloads piped to a shell, also through sudo, env or later pipes
    r"\b(?:curl|wget)\b.*\|.*\b(?:ba|z|da|k)?sh\b",
    # Fork bomb
    r":\(\)\s*\{\s*:\|:&\s*\};:",
    r"chmod\s+(-R\s+)?777\s+/",
    # Redirects into system directories
    r">\s*/(etc|usr|var|bin|sbin)/",
)

FILE_WRITE_ACTIONS: tuple[ActionType, ...] = (
    ActionType.CREATE_FILE,
    ActionType.MODIFY_FILE,
    ActionType.DELETE_FILE,
    ActionType.APPLY_DIFF,
)

DESTRUCTIVE_FILE_ACTIONS: tuple[ActionType, ...] = (
    ActionType.MODIFY_FILE,
    ActionType.DELETE_FILE,
    ActionType.APPLY_DIFF,
)


def default_policy() -> PolicyConfig:
    """Build the default policy.

    Denies secret files and dangerous commands, and requires approval for
    destructive file operations and every command execution. Everything
    else is allowed and, by default, still requires approval.

    Returns:
        A new PolicyConfig instance.
    """
    return PolicyConfig(
        version="1.0.0",
        default_effect=PolicyEffect.ALLOW,
        default_requires_approval=True,
        rules=[
            PolicyRule(
                id="deny-secrets",
                applies_to=PolicyScope.ACTION,
                target=[str(t) for t in FILE_WRITE_ACTIONS],
                effect=PolicyEffect.DENY,
                conditions=PolicyConditions(denied_files=list(DEFAULT_DENIED_FILES)),
            ),
            PolicyRule(
                id="deny-dangerous-commands",
                applies_to=PolicyScope.ACTION,
                target=str(ActionType.RUN_COMMAND),
                effect=PolicyEffect.DENY,
                conditions=PolicyConditions(denied_commands=list(DEFAULT_DENIED_COMMANDS)),
            ),
            PolicyRule(
                id="approve-destructive-file-ops",
                applies_to=PolicyScope.ACTION,
                target=[str(t) for t in DESTRUCTIVE_FILE_ACTIONS],
                effect=PolicyEffect.ALLOW,
                conditions=PolicyConditions(requires_approval=True),
            ),
            PolicyRule(
                id="approve-commands",
                applies_to=PolicyScope.ACTION,
                target=str(ActionType.RUN_COMMAND),
                effect=PolicyEffect.ALLOW,
                conditions=PolicyConditions(requires_approval=True),
            ),
        ],
    )
