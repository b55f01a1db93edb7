# digitizer/core/logsetup.py
"""
Logging setup shared by the CLI and the orchestrators.

Modules log through ``logging.getLogger(__name__)``; this module only wires
handlers onto the ``digitizer`` logger and scrubs secrets from records.

Environment
-----------
DIGITIZER_LOG_LEVEL : default "INFO"
DIGITIZER_LOG_FILE  : optional path; enables a rotating file handler
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

ROOT_LOGGER_NAME = "digitizer"
_SECRET_ENV_VARS = ("OPENAI_API_KEY", "DIGITIZER_STORE_TOKEN")
_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_DATEFMT = "(%Y-%m-%d %H:%M:%S)"


def redact(text: str) -> str:
    """Replace the values of known secret env vars with [REDACTED]."""
    for k in _SECRET_ENV_VARS:
        val = os.getenv(k)
        if val:
            text = text.replace(val, "[REDACTED]")
    return text


class RedactingFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        msg = record.getMessage()
        clean = redact(msg)
        if clean != msg:
            record.msg = clean
            record.args = None
        return True


def configure_logging(level: str | int | None = None, log_file: str | None = None) -> logging.Logger:
    """
    Attach a stderr handler (and optionally a rotating file handler) to the
    package logger. Safe to call repeatedly; handlers are added only once.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    lvl = level if level is not None else os.getenv("DIGITIZER_LOG_LEVEL", "INFO")
    if isinstance(lvl, str):
        lvl = logging.getLevelName(lvl.strip().upper())
        if not isinstance(lvl, int):
            lvl = logging.INFO
    logger.setLevel(lvl)

    if getattr(logger, "_digitizer_configured", False):
        return logger

    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)
    redactor = RedactingFilter()

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(formatter)
    stream.addFilter(redactor)
    logger.addHandler(stream)

    path = log_file or os.getenv("DIGITIZER_LOG_FILE")
    if path:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handler = RotatingFileHandler(path, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        handler.setFormatter(formatter)
        handler.addFilter(redactor)
        logger.addHandler(handler)

    logger._digitizer_configured = True  # type: ignore[attr-defined]
    return logger
