from __future__ import annotations

import logging

import pytest

from cranfield.logging_utils import configure_logging, parse_level


@pytest.fixture
def scratch_logger():
    logger = logging.getLogger("cranfield.test_scratch")
    yield logger
    for h in list(logger.handlers):
        h.close()
        logger.removeHandler(h)


def test_parse_level():
    assert parse_level("debug") == logging.DEBUG
    assert parse_level("WARN") == logging.WARNING
    assert parse_level("15") == 15
    with pytest.raises(ValueError):
        parse_level("loud")
    with pytest.raises(ValueError):
        parse_level(" ")


def test_configure_is_idempotent(scratch_logger, tmp_path):
    log_file = tmp_path / "run.log"

    configure_logging("INFO", log_file=str(log_file), logger_name=scratch_logger.name)
    configure_logging("DEBUG", log_file=str(log_file), logger_name=scratch_logger.name)

    kinds = sorted(type(h).__name__ for h in scratch_logger.handlers)
    assert kinds == ["FileHandler", "StreamHandler"]
    assert scratch_logger.level == logging.DEBUG

    scratch_logger.debug("hello %s", "file")
    for h in scratch_logger.handlers:
        h.flush()
    assert "DEBUG cranfield.test_scratch: hello file" in log_file.read_text(encoding="utf-8")
