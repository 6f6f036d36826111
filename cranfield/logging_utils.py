"""Logging utilities.

Entry points call `configure_logging()` once; library modules only do
`logging.getLogger("cranfield.<module>")`.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}


def parse_level(level: str) -> int:
    if not isinstance(level, str) or not level.strip():
        raise ValueError("log level must be a non-empty string (e.g., 'INFO', 'DEBUG')")
    name = level.strip().upper()
    if name in _LEVELS:
        return _LEVELS[name]
    # Also accept numeric levels like "20"
    try:
        return int(name)
    except ValueError as e:
        raise ValueError(f"Unknown log level: {level!r}") from e


def configure_logging(level: str = "INFO", log_file: Optional[str] = None, logger_name: Optional[str] = None) -> None:
    """Configure console (and optionally file) logging with a consistent format.

    Safe to call multiple times: existing handlers of the same kind are
    reconfigured instead of duplicated.
    """
    target = logging.getLogger(logger_name) if logger_name else logging.getLogger()
    target.setLevel(parse_level(level))
    formatter = logging.Formatter(fmt=FORMAT, datefmt=DATEFMT)

    console = next(
        (h for h in target.handlers if type(h) is logging.StreamHandler),
        None,
    )
    if console is None:
        console = logging.StreamHandler()
        target.addHandler(console)
    console.setFormatter(formatter)
    console.setLevel(target.level)

    if log_file:
        path = os.path.abspath(str(log_file))
        for h in target.handlers:
            if isinstance(h, logging.FileHandler) and h.baseFilename == path:
                h.setFormatter(formatter)
                h.setLevel(target.level)
                return
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setFormatter(formatter)
        fh.setLevel(target.level)
        target.addHandler(fh)
