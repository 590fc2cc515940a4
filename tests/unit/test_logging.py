"""Tests for pipegate.logging module."""

import re
from collections.abc import Iterator
from io import StringIO
from types import SimpleNamespace
from typing import Any
from unittest import mock

import pytest
from loguru import logger

from pipegate.logging import _log_format, configure_logging


def _strip_ansi(text: str) -> str:
    """Remove ANSI escape codes from text."""
    return re.sub(r"\x1b\[[0-9;]*m", "", text)


def _record(level: str = "INFO", extra: dict[str, Any] | None = None, exception: Any = None) -> Any:
    return {"level": SimpleNamespace(name=level), "extra": extra or {}, "exception": exception}


@pytest.fixture
def restore_logging() -> Iterator[None]:
    yield
    configure_logging()


class TestLogFormat:
    def test_without_extras(self) -> None:
        fmt = _log_format(_record())
        assert "{message}" in fmt
        assert fmt.count("│") == 2
        assert fmt.endswith("\n")

    def test_extras_rendered_as_pairs(self) -> None:
        fmt = _log_format(_record(extra={"pipeline_id": "fix-tests", "steps": 5}))
        assert "pipeline_id='fix-tests' steps=5" in fmt

    def test_braces_escaped(self) -> None:
        fmt = _log_format(_record(extra={"data": {"a": 1}}))
        assert "data={{'a': 1}}" in fmt

    def test_exception_placeholder(self) -> None:
        assert "{exception}" in _log_format(_record(level="ERROR", exception=object()))


@pytest.mark.usefixtures("restore_logging")
class TestConfigureLogging:
    def test_writes_message_with_extras(self) -> None:
        with mock.patch("sys.stderr", new_callable=StringIO) as mock_stderr:
            configure_logging("info")
            logger.info("Pipeline finished", pipeline_id="implement-feature", success=True)
            output = _strip_ansi(mock_stderr.getvalue())

        assert "INFO" in output
        assert "Pipeline finished" in output
        assert "pipeline_id='implement-feature' success=True" in output

    def test_level_filters(self) -> None:
        with mock.patch("sys.stderr", new_callable=StringIO) as mock_stderr:
            configure_logging("WARNING")
            logger.info("hidden")
            logger.warning("shown")
            output = _strip_ansi(mock_stderr.getvalue())

        assert "hidden" not in output
        assert "shown" in output
