"""Tests for logging setup."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

import pytest

from workspace_chat.utils import logging as logging_utils


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(logging_utils, "_CONFIGURED", False)
    monkeypatch.setattr(logging_utils, "_LOG_PATH", None)
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if isinstance(handler, logging.handlers.RotatingFileHandler) or type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


class TestSetupLogging:
    def test_writes_to_log_dir(self, tmp_path: Path) -> None:
        path = logging_utils.setup_logging(logging.DEBUG, log_dir=tmp_path, console=False)

        logging.getLogger("workspace_chat.test").info("hello log")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert path == tmp_path / "workspace_chat.log"
        assert logging_utils.get_log_path() == path
        assert "hello log" in path.read_text(encoding="utf-8")

    def test_env_log_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WORKSPACE_CHAT_LOG_DIR", str(tmp_path / "env"))
        path = logging_utils.setup_logging(console=False, force=True)
        assert path.parent == tmp_path / "env"

    def test_second_call_is_noop(self, tmp_path: Path) -> None:
        first = logging_utils.setup_logging(log_dir=tmp_path / "a", console=False, force=True)
        second = logging_utils.setup_logging(log_dir=tmp_path / "b", console=False)
        assert second == first

    def test_quiets_noisy_loggers(self, tmp_path: Path) -> None:
        logging_utils.setup_logging(logging.DEBUG, log_dir=tmp_path, console=False, force=True)
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("openai").level == logging.WARNING

    def test_get_logger(self) -> None:
        assert logging_utils.get_logger("workspace_chat.x").name == "workspace_chat.x"


class TestResetLogging:
    def test_forgets_configuration(self, tmp_path: Path) -> None:
        logging_utils.setup_logging(log_dir=tmp_path, console=False, force=True)

        logging_utils.reset_logging()

        assert logging_utils.get_log_path() is None
        assert not any(
            isinstance(handler, logging.handlers.RotatingFileHandler)
            for handler in logging.getLogger().handlers
        )
