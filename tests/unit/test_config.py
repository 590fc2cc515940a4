"""Tests for engine settings loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from pipegate.config import EngineSettings, load_settings
from pipegate.core.exceptions import ConfigurationError


class TestLoadSettings:
    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("default_timeout: 30\nauto_approve: true\nlog_level: DEBUG\n")

        settings = load_settings(path)

        assert settings.default_timeout == 30
        assert settings.auto_approve is True
        assert settings.log_level == "DEBUG"
        assert settings.policy_path is None

    def test_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "from-env.yaml"
        path.write_text("default_timeout: 12\n")
        monkeypatch.setenv("PIPEGATE_SETTINGS", str(path))

        assert load_settings().default_timeout == 12

    def test_default_file_in_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "settings.pipegate.yaml").write_text("auto_approve: false\n")
        monkeypatch.delenv("PIPEGATE_SETTINGS", raising=False)
        monkeypatch.chdir(tmp_path)

        assert load_settings().auto_approve is False

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="not found"):
            load_settings(tmp_path / "missing.yaml")

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("")

        settings = load_settings(path)

        assert settings == EngineSettings()
        assert settings.default_timeout == 60.0

    def test_non_mapping(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError):
            load_settings(path)

    def test_relative_policy_path(self, tmp_path: Path) -> None:
        path = tmp_path / "settings.yaml"
        path.write_text("policy_path: policies/team.yaml\n")

        settings = load_settings(path)

        assert settings.policy_path == tmp_path / "policies" / "team.yaml"


class TestEngineSettings:
    @pytest.mark.parametrize("timeout", [0, -1])
    def test_timeout_must_be_positive(self, timeout: float) -> None:
        with pytest.raises(ValidationError):
            EngineSettings(default_timeout=timeout)

    def test_unknown_keys_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EngineSettings(auto_aprove=True)  # type: ignore[call-arg]
