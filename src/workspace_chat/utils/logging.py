"""Logging setup for the conversation core.

``WorkspaceChatController.create`` calls :func:`setup_logging` at DEBUG level
when ``Settings.debug_logging`` is set. Hosts that own their logging can skip
the flag and configure the root logger themselves.
"""

from __future__ import annotations

import logging
import logging.handlers
import os
from pathlib import Path

__all__ = ["setup_logging", "get_logger", "get_log_path", "reset_logging"]

LOG_FILE_NAME = "workspace_chat.log"
_DEFAULT_LOG_DIR = Path.home() / ".workspace_chat" / "logs"
_NOISY_LOGGERS: tuple[str, ...] = ("asyncio", "httpx", "httpcore", "openai")
_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_CONFIGURED = False
_LOG_PATH: Path | None = None


def setup_logging(
    level: int = logging.INFO,
    *,
    log_dir: Path | str | None = None,
    console: bool = True,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
    force: bool = False,
) -> Path:
    """Route root logging to ``workspace_chat.log`` and, optionally, stderr.

    The log directory is ``log_dir``, else ``WORKSPACE_CHAT_LOG_DIR``, else
    ``~/.workspace_chat/logs``. Only the first call takes effect unless
    ``force`` is set.

    Returns:
        Path of the active log file.
    """

    global _CONFIGURED, _LOG_PATH
    if _CONFIGURED and not force and _LOG_PATH is not None:
        return _LOG_PATH

    target_dir = _resolve_log_dir(log_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    log_path = target_dir / LOG_FILE_NAME

    handlers: list[logging.Handler] = [
        logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())
    formatter = logging.Formatter(fmt=_LOG_FORMAT, datefmt=_DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    logging.captureWarnings(True)
    _tune_external_loggers(level)

    _CONFIGURED = True
    _LOG_PATH = log_path
    logging.getLogger(__name__).debug("Logging configured (level=%s, path=%s)", level, log_path)
    return log_path


def get_logger(name: str) -> logging.Logger:
    """Return a module-specific logger."""

    return logging.getLogger(name)


def get_log_path() -> Path | None:
    return _LOG_PATH


def reset_logging() -> None:
    """Close installed handlers and forget the configured state."""

    global _CONFIGURED, _LOG_PATH
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    _CONFIGURED = False
    _LOG_PATH = None


def _resolve_log_dir(log_dir: Path | str | None) -> Path:
    env_override = os.environ.get("WORKSPACE_CHAT_LOG_DIR")
    return Path(log_dir or env_override or _DEFAULT_LOG_DIR).expanduser()


def _tune_external_loggers(root_level: int) -> None:
    quiet_level = logging.WARNING if root_level < logging.WARNING else root_level
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(quiet_level)
