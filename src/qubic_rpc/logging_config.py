"""
Logging for the qubic-rpc command line.

Library modules log through ``logging.getLogger(__name__)`` and never
install handlers. The CLI calls ``setup_logging`` once per invocation with
the level and file from ``Settings`` (QUBIC_LOG_LEVEL, QUBIC_LOG_FILE),
which ``--log-level`` and ``--log-file`` override.

The console shows records at the chosen level. A log file, when set,
receives every record down to DEBUG so a failed call can be traced after
the fact. httpx and httpcore stay at WARNING unless the level is DEBUG.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from .config import Settings

PACKAGE_LOGGER = "qubic_rpc"
HTTP_LOGGERS = ("httpx", "httpcore")

CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s:%(lineno)d %(message)s"
FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

_HANDLER_TAG = "qubic-rpc"


def parse_level(level: Optional[str]) -> int:
    """Convert a level name to its numeric constant (WARNING if unknown)."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.WARNING


def _tagged(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.set_name(_HANDLER_TAG)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _drop_own_handlers(logger: logging.Logger) -> None:
    for handler in [h for h in logger.handlers if h.get_name() == _HANDLER_TAG]:
        logger.removeHandler(handler)
        handler.close()


def setup_logging(
    settings: Optional[Settings] = None,
    *,
    level: Optional[str] = None,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Attach console and file handlers to the package and HTTP loggers.

    Calling it again replaces the handlers it installed before.

    Args:
        settings: Source of the default level and log file
        level: Console level name, overriding ``settings.log_level``
        log_file: Log file path, overriding ``settings.log_file``

    Returns:
        The ``qubic_rpc`` package logger
    """
    settings = settings or Settings()
    console_level = parse_level(level or settings.log_level)
    log_file = log_file or settings.log_file

    handlers = [_tagged(logging.StreamHandler(sys.stderr), console_level, logging.Formatter(CONSOLE_FORMAT))]
    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        handlers.append(_tagged(file_handler, logging.DEBUG, logging.Formatter(FILE_FORMAT, FILE_DATEFMT)))

    package_level = logging.DEBUG if log_file else console_level
    http_level = logging.DEBUG if console_level <= logging.DEBUG else logging.WARNING

    for name, logger_level in [(PACKAGE_LOGGER, package_level)] + [(n, http_level) for n in HTTP_LOGGERS]:
        logger = logging.getLogger(name)
        _drop_own_handlers(logger)
        for handler in handlers:
            logger.addHandler(handler)
        logger.setLevel(logger_level)
        logger.propagate = False

    return logging.getLogger(PACKAGE_LOGGER)
