"""Tests for vinceml.log -- logging setup."""

from __future__ import annotations

import logging
import logging.handlers

import pytest

from vinceml.log import setup_logging


@pytest.fixture(autouse=True)
def _reset_logger():
    yield
    for name in ("vinceml", "vinceml_test"):
        logger = logging.getLogger(name)
        for h in list(logger.handlers):
            logger.removeHandler(h)
            h.close()
        logger.setLevel(logging.NOTSET)


class TestSetupLogging:
    def test_returns_named_logger(self):
        logger = setup_logging()
        assert logger.name == "vinceml"
        assert logger.level == logging.INFO

    def test_level_by_name(self):
        assert setup_logging("debug").level == logging.DEBUG

    def test_level_by_number(self):
        assert setup_logging(logging.WARNING).level == logging.WARNING

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            setup_logging("LOUD")

    def test_console_handler(self):
        logger = setup_logging()
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_no_console(self):
        assert setup_logging(console=False).handlers == []

    def test_repeated_calls_do_not_stack(self):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_foreign_handlers_kept(self):
        logger = logging.getLogger("vinceml")
        foreign = logging.NullHandler()
        logger.addHandler(foreign)
        setup_logging()
        assert foreign in logger.handlers

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "vinceml.log"
        logger = setup_logging("INFO", log_file=log_file, console=False)
        assert isinstance(logger.handlers[0], logging.handlers.WatchedFileHandler)

        logging.getLogger("vinceml.train").info("hello from training")
        for h in logger.handlers:
            h.flush()

        text = log_file.read_text()
        assert "hello from training" in text
        assert "vinceml.train" in text
        assert " INF " in text

    def test_custom_name(self):
        assert setup_logging(name="vinceml_test").name == "vinceml_test"
