from __future__ import annotations

import logging

from cgrain_sum.logging.init import (
    SUMMARY_LEVEL,
    get_logger,
    log_summary,
    set_debug,
    setup_logging,
)


def test_setup_logging_is_idempotent():
    first = setup_logging()
    second = setup_logging()
    assert first is second
    assert len(first.handlers) == 1
    assert first.propagate is False


def test_labels(capsys):
    logger = setup_logging()
    logger.info("hello")
    logger.warning("careful")
    logger.error("boom")
    log_summary("reports=1")
    out = capsys.readouterr().out.splitlines()
    assert out == ["INFO hello", "WARN careful", "ERROR boom", "SUMMARY reports=1"]


def test_child_module_loggers_reach_handler(capsys):
    setup_logging()
    logging.getLogger("cgrain_sum.services.reports").warning("CSV Stats: column omitted")
    assert "WARN CSV Stats: column omitted" in capsys.readouterr().out


def test_debug_hidden_until_enabled(capsys):
    logger = get_logger()
    logger.debug("quiet")
    set_debug(logger)
    logger.debug("loud")
    out = capsys.readouterr().out
    assert "quiet" not in out
    assert "DEBUG loud" in out


def test_summary_level_name():
    setup_logging()
    assert logging.getLevelName(SUMMARY_LEVEL) == "SUMMARY"
