"""Unit tests for logging configuration."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from kubeshell.logging.config import (
    _HANDLER_ATTR,
    RETENTION_DAYS,
    _cleanup_old_logs,
    _setup_file_logging,
    configure_logging,
    get_logger,
)


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Any:
    """Restore the root logger's handlers after each test."""
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)


def _age(path: Path, days: int) -> None:
    old_time = (datetime.now() - timedelta(days=days)).timestamp()
    os.utime(path, (old_time, old_time))


def _installed_handlers() -> list[logging.Handler]:
    return [h for h in logging.getLogger().handlers if getattr(h, _HANDLER_ATTR, False)]


@pytest.mark.unit
class TestCleanupOldLogs:
    """Tests for _cleanup_old_logs."""

    def test_missing_log_dir(self, tmp_path: Path) -> None:
        with patch("kubeshell.logging.config.LOG_DIR", tmp_path / "nonexistent"):
            _cleanup_old_logs()

    def test_deletes_expired_logs_only(self, tmp_path: Path) -> None:
        old_log = tmp_path / "kubeshell.log.1"
        old_log.write_text("old")
        _age(old_log, RETENTION_DAYS + 5)
        recent_log = tmp_path / "kubeshell.log"
        recent_log.write_text("recent")
        unrelated = tmp_path / "notes.txt"
        unrelated.write_text("keep")
        _age(unrelated, RETENTION_DAYS + 5)

        with patch("kubeshell.logging.config.LOG_DIR", tmp_path):
            _cleanup_old_logs()

        assert not old_log.exists()
        assert recent_log.exists()
        assert unrelated.exists()

    def test_ignores_os_errors(self, tmp_path: Path) -> None:
        log_file = tmp_path / "kubeshell.log.1"
        log_file.write_text("data")
        _age(log_file, RETENTION_DAYS + 5)

        with (
            patch("kubeshell.logging.config.LOG_DIR", tmp_path),
            patch.object(Path, "unlink", side_effect=OSError("permission denied")),
        ):
            _cleanup_old_logs()

        assert log_file.exists()


@pytest.mark.unit
class TestSetupFileLogging:
    """Tests for _setup_file_logging."""

    def test_creates_log_directory_and_handler(self, tmp_path: Path) -> None:
        log_dir = tmp_path / "logs"

        with (
            patch("kubeshell.logging.config.LOG_DIR", log_dir),
            patch("kubeshell.logging.config.LOG_FILE", log_dir / "kubeshell.log"),
        ):
            handler = _setup_file_logging()

        assert handler is not None
        assert log_dir.exists()
        assert handler in logging.getLogger().handlers
        handler.close()

    def test_unwritable_directory(self, tmp_path: Path) -> None:
        with (
            patch("kubeshell.logging.config.LOG_DIR", tmp_path / "logs"),
            patch.object(Path, "mkdir", side_effect=OSError("read-only")),
        ):
            assert _setup_file_logging() is None


@pytest.mark.unit
class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.mark.parametrize(
        ("kwargs", "level"),
        [
            ({}, logging.WARNING),
            ({"verbose": True}, logging.INFO),
            ({"debug": True}, logging.DEBUG),
            ({"verbose": True, "debug": True}, logging.DEBUG),
        ],
    )
    def test_console_level(self, kwargs: dict[str, bool], level: int) -> None:
        with patch("kubeshell.logging.config._setup_file_logging"):
            configure_logging(**kwargs)

        handlers = _installed_handlers()
        assert len(handlers) == 1
        assert handlers[0].level == level

    def test_json_output(self) -> None:
        with patch("kubeshell.logging.config._setup_file_logging"):
            configure_logging(json_output=True)

        assert len(_installed_handlers()) == 1

    def test_reconfiguring_replaces_handlers(self) -> None:
        with patch("kubeshell.logging.config._setup_file_logging"):
            configure_logging()
            configure_logging(debug=True)

        handlers = _installed_handlers()
        assert len(handlers) == 1
        assert handlers[0].level == logging.DEBUG

    def test_keeps_foreign_handlers(self) -> None:
        foreign = logging.NullHandler()
        logging.getLogger().addHandler(foreign)

        with patch("kubeshell.logging.config._setup_file_logging"):
            configure_logging()

        assert foreign in logging.getLogger().handlers


@pytest.mark.unit
class TestGetLogger:
    """Tests for get_logger."""

    def test_returns_logger(self) -> None:
        assert get_logger("test") is not None

    def test_binds_initial_context(self) -> None:
        logger = get_logger("test", component="repl")

        assert logger is not None
