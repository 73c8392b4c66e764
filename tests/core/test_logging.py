"""Tests for aura/core/logging.py"""

import logging

from aura.core.logging import setup_logging


def test_setup_logging_writes_daily_file(tmp_path):
    logger = setup_logging(log_dir=tmp_path, console_level=logging.CRITICAL)
    try:
        logging.getLogger("aura.scheduler.engine").info("1 agent task(s) ready to execute")
        for handler in logger.handlers:
            handler.flush()

        files = list(tmp_path.glob("aura_*.log"))
        assert len(files) == 1
        assert "ready to execute" in files[0].read_text(encoding="utf-8")
    finally:
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers = []


def test_setup_logging_does_not_stack_handlers(tmp_path):
    setup_logging(log_dir=tmp_path, console_level=logging.CRITICAL)
    logger = setup_logging(log_dir=tmp_path, console_level=logging.CRITICAL)
    try:
        assert len(logger.handlers) == 2
    finally:
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers = []
