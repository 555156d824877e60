"""Tests for logging helpers."""
import logging

import pytest

from common.logging_utils import Timer, configure_logging, extra_context, is_debug_enabled
from constants import Constants


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_configure_logging_level_from_argument(restore_root_logger, monkeypatch):
    monkeypatch.delenv(Constants.ENV_LOG_LEVEL, raising=False)
    configure_logging("warning")
    assert restore_root_logger.level == logging.WARNING


def test_configure_logging_level_from_environment(restore_root_logger, monkeypatch):
    monkeypatch.setenv(Constants.ENV_LOG_LEVEL, "DEBUG")
    configure_logging()
    assert restore_root_logger.level == logging.DEBUG
    assert is_debug_enabled(logging.getLogger("crateclone.test"))


def test_configure_logging_replaces_own_handler(restore_root_logger):
    configure_logging("INFO")
    configure_logging("INFO")
    ours = [h for h in restore_root_logger.handlers if getattr(h, "_crateclone", False)]
    assert len(ours) == 1


def test_extra_context_drops_none():
    assert extra_context(event="x", target=None, count=0) == {"event": "x", "count": 0}


def test_timer_measures_non_negative_duration():
    with Timer() as t:
        pass
    assert t.duration_ms() >= 0
