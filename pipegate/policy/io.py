# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""Load and save policy documents (YAML or JSON)."""

import json
from pathlib import Path

import yaml
from loguru import logger

from pipegate.core.exceptions import ConfigurationError
from pipegate.policy.models import PolicyConfig


def load_policy(path: Path | str) -> PolicyConfig:
    """Load a policy document.

    Files ending in ``.json`` are parsed as JSON, anything else as YAML.

    Args:
        path: Policy file path.

    Returns:
        The validated PolicyConfig.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the document is not a mapping.
        pydantic.ValidationError: If the policy fails validation.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Policy file not found at {path}")

    text = path.read_text()
    data = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Policy file {path} must contain a mapping")

    policy = PolicyConfig.model_validate(data)
    logger.info("Policy loaded", path=str(path), rules=len(policy.rules))
    return policy


def save_policy(policy: PolicyConfig, path: Path | str) -> None:
    """Write a policy document with camelCase keys.

    Args:
        policy: Policy to save.
        path: Destination. ``.json`` writes JSON, anything else YAML.
    """
    path = Path(path)
    document = policy.model_dump(mode="json", by_alias=True, exclude_none=True)
    if path.suffix == ".json":
        path.write_text(json.dumps(document, indent=2) + "\n")
    else:
        path.write_text(yaml.safe_dump(document, sort_keys=False))
    logger.info("Policy saved", path=str(path), rules=len(policy.rules))
