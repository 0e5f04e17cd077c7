"""Shared fixtures for CLI integration tests."""

from __future__ import annotations

import logging

import pytest


@pytest.fixture(autouse=True)
def restore_cli_loggers():
    """Undo the handlers and levels the CLI's setup_logging installs."""
    names = ("qubic_rpc", "httpx", "httpcore")
    saved = {}
    for name in names:
        logger = logging.getLogger(name)
        saved[name] = (logger.handlers[:], logger.level, logger.propagate)
    yield
    for name, (handlers, level, propagate) in saved.items():
        logger = logging.getLogger(name)
        for handler in logger.handlers:
            if handler not in handlers:
                handler.close()
        logger.handlers[:] = handlers
        logger.setLevel(level)
        logger.propagate = propagate
