# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Policy gate: decides whether pipelines, steps and actions may proceed.

Exports:
    PolicyGate: Rule evaluator.
    PolicyConfig, PolicyRule, PolicyConditions, TimeRestrictions: Policy models.
    PolicyDecision: Evaluation outcome.
    default_policy: Built-in policy factory.
    load_policy, save_policy: Policy file I/O.
    match_glob, match_command: Pattern helpers.
"""

from pipegate.policy.defaults import default_policy
from pipegate.policy.gate import PolicyGate
from pipegate.policy.io import load_policy, save_policy
from pipegate.policy.matching import match_command, match_glob
from pipegate.policy.models import (
    PolicyConditions,
    PolicyConfig,
    PolicyDecision,
    PolicyRule,
    TimeRestrictions,
)


__all__ = [
    "PolicyConditions",
    "PolicyConfig",
    "PolicyDecision",
    "PolicyGate",
    "PolicyRule",
    "TimeRestrictions",
    "default_policy",
    "load_policy",
    "match_command",
    "match_glob",
    "save_policy",
]
