"""Tests for loading and saving policy documents."""

import json
from pathlib import Path

import pytest
import yaml

from pipegate.core.constants import PolicyEffect
from pipegate.core.exceptions import ConfigurationError
from pipegate.policy.defaults import default_policy
from pipegate.policy.io import load_policy, save_policy


POLICY_YAML = """
version: "2.0.0"
defaultEffect: deny
defaultRequiresApproval: false
rules:
  - id: allow-fix-tests
    appliesTo: pipeline
    target: fix-tests
    effect: allow
  - id: src-only
    appliesTo: action
    target: [CREATE_FILE, MODIFY_FILE]
    effect: allow
    conditions:
      allowedFiles: ["src/**"]
      timeRestrictions:
        startHour: 9
        endHour: 17
        daysOfWeek: [1, 2, 3, 4, 5]
"""


class TestLoadPolicy:
    def test_load_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "policy.yaml"
        path.write_text(POLICY_YAML)

        policy = load_policy(path)

        assert policy.version == "2.0.0"
        assert policy.default_effect == PolicyEffect.DENY
        assert policy.default_requires_approval is False
        assert [rule.id for rule in policy.rules] == ["allow-fix-tests", "src-only"]
        window = policy.rules[1].conditions.time_restrictions
        assert window is not None
        assert window.days_of_week == [1, 2, 3, 4, 5]

    def test_load_json(self, tmp_path: Path) -> None:
        path = tmp_path / "policy.json"
        path.write_text(json.dumps(yaml.safe_load(POLICY_YAML)))

        policy = load_policy(path)

        assert policy.rules[1].conditions.allowed_files == ["src/**"]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_policy(tmp_path / "missing.yaml")

    def test_non_mapping_document(self, tmp_path: Path) -> None:
        path = tmp_path / "policy.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            load_policy(path)


class TestSavePolicy:
    @pytest.mark.parametrize("suffix", [".yaml", ".json"])
    def test_default_policy_survives_a_file_trip(self, tmp_path: Path, suffix: str) -> None:
        path = tmp_path / f"policy{suffix}"

        save_policy(default_policy(), path)

        assert load_policy(path) == default_policy()

    def test_written_with_camel_case_keys(self, tmp_path: Path) -> None:
        path = tmp_path / "policy.yaml"

        save_policy(default_policy(), path)

        document = yaml.safe_load(path.read_text())
        assert document["defaultEffect"] == "allow"
        assert document["rules"][0]["appliesTo"] == "action"
        assert "deniedFiles" in document["rules"][0]["conditions"]
