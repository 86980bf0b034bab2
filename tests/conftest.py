from __future__ import annotations

import logging

import pytest


@pytest.fixture(autouse=True)
def _restore_devpayr_logger():
    # the CLI attaches its own handler and stops propagation
    logger = logging.getLogger("devpayr")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate
