"""
Tests for logging configuration.
"""

import logging

import pytest

from hedlib.infrastructure import logging_config
from hedlib.infrastructure.logging_config import PACKAGE_LOGGER, get_logger, rotate_log_files, setup_logging


@pytest.fixture
def package_logger():
    """Restore the package logger after a test reconfigures it."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        if handler not in saved[0]:
            handler.close()
    for handler in saved[0]:
        logger.addHandler(handler)
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


class TestRotateLogFiles:
    """Tests for log rotation."""

    def test_rotation_replaces_old_log(self, tmp_path):
        log_file = tmp_path / "log.txt"
        old_log_file = tmp_path / "log.old.txt"
        log_file.write_text("current", encoding="utf-8")
        old_log_file.write_text("previous", encoding="utf-8")

        rotate_log_files(log_file, old_log_file)

        assert not log_file.exists()
        assert old_log_file.read_text(encoding="utf-8") == "current"

    def test_nothing_to_rotate(self, tmp_path):
        rotate_log_files(tmp_path / "log.txt", tmp_path / "log.old.txt")
        assert not (tmp_path / "log.old.txt").exists()


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_writes_log_file(self, tmp_path, package_logger):
        log_file = tmp_path / "logs" / "hedlib.log"
        setup_logging(level=logging.WARNING, log_file=log_file)

        get_logger("hedlib.core.registry").debug("bound dp")
        for handler in package_logger.handlers:
            handler.flush()

        assert "hedlib.core.registry - DEBUG - bound dp" in log_file.read_text(encoding="utf-8")

    def test_default_log_file_is_rotated(self, tmp_path, monkeypatch, package_logger):
        monkeypatch.setattr(logging_config, "get_log_file_path", lambda: tmp_path / "log.txt")
        monkeypatch.setattr(logging_config, "get_old_log_file_path", lambda: tmp_path / "log.old.txt")
        (tmp_path / "log.txt").write_text("previous session", encoding="utf-8")

        setup_logging()

        assert (tmp_path / "log.old.txt").read_text(encoding="utf-8") == "previous session"

    def test_repeated_setup_replaces_handlers(self, package_logger):
        setup_logging(log_to_file=False)
        setup_logging(log_to_file=False)
        assert len(package_logger.handlers) == 1
        assert not package_logger.propagate

    def test_console_only_level(self, package_logger):
        setup_logging(level=logging.ERROR, log_to_file=False)
        assert package_logger.level == logging.ERROR


class TestGetLogger:
    """Tests for get_logger."""

    def test_module_logger_is_under_package(self):
        assert get_logger("hedlib.core.validator").name == "hedlib.core.validator"

    def test_foreign_name_is_nested(self):
        assert get_logger("plugins.extra").name == "hedlib.plugins.extra"
