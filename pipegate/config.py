# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

from pipegate.core.constants import DEFAULT_STEP_TIMEOUT
from pipegate.core.exceptions import ConfigurationError


SETTINGS_ENV_VAR = "PIPEGATE_SETTINGS"
DEFAULT_SETTINGS_FILE = "settings.pipegate.yaml"


class EngineSettings(BaseModel):
    """Engine-wide settings.

    Attributes:
        default_timeout: Step deadline in seconds for steps without their own.
        auto_approve: Approve every approval request without asking.
        log_level: Minimum level for ``configure_logging``.
        policy_path: Policy file to enforce instead of the default policy.
    """

    model_config = ConfigDict(extra="forbid")

    default_timeout: float = Field(default=DEFAULT_STEP_TIMEOUT, gt=0)
    auto_approve: bool = False
    log_level: str = "INFO"
    policy_path: Path | None = None


def load_settings(config_path: Path | None = None) -> EngineSettings:
    """Load settings from a YAML file.

    Resolution order:
    1. Explicit config_path parameter (if provided)
    2. PIPEGATE_SETTINGS environment variable (if set)
    3. Default: 'settings.pipegate.yaml' in the current directory

    A relative ``policy_path`` is resolved against the settings file's directory.

    Args:
        config_path: Optional explicit path to the configuration file.

    Returns:
        EngineSettings populated from the YAML configuration.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
        ConfigurationError: If the document is not a mapping.
        yaml.YAMLError: If the YAML file is malformed.
        pydantic.ValidationError: If the configuration fails validation.
    """
    if config_path is None:
        env_path = os.environ.get(SETTINGS_ENV_VAR)
        config_path = Path(env_path) if env_path else Path(DEFAULT_SETTINGS_FILE)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found at {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {config_path} must contain a mapping")

    settings = EngineSettings(**data)
    if settings.policy_path is not None and not settings.policy_path.is_absolute():
        settings.policy_path = config_path.parent / settings.policy_path
    return settings
