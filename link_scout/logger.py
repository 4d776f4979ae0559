"""Logging setup for **LinkScout**.

Every module logs through one named logger::

    from link_scout.logger import logger
    logger.warning("Error validating page %s: %s", url, exc)

Console records go to *stderr*; stdout is reserved for the report itself, so
``link-scout check --format json > report.json`` stays valid JSON. The CLI
calls :func:`init_logging` again once its options are parsed.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, List, Optional, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
# DEBUG output is mostly per-link noise; the call site helps more than the logger name
DEBUG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(module)s:%(lineno)d | %(message)s"
LOGGER_NAME: Final[str] = "LinkScout"
LOG_FILE_MAX_BYTES: Final[int] = 5 * 1024 * 1024
LOG_FILE_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


def _build_handlers(log_file: Union[str, Path, None], fmt: str) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                filename=str(path),
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        )
    formatter = logging.Formatter(fmt)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: Union[str, Path, None] = None,
    log_format: Optional[str] = None,
    replace_handlers: bool = True,
) -> logging.Logger:
    """(Re)configure the ``LinkScout`` logger.

    Parameters
    ----------
    level
        Numeric or textual logging level (e.g. ``"DEBUG"``).
    log_file
        Rotating logfile (5 MiB x 3). *None* means stderr only.
    log_format
        Format string; *None* picks :data:`DEBUG_FORMAT` at DEBUG level and
        :data:`DEFAULT_FORMAT` otherwise.
    replace_handlers
        Close and drop the handlers installed by a previous call.
    """
    lg = logging.getLogger(LOGGER_NAME)
    lg.setLevel(level)
    if log_format is None:
        log_format = DEBUG_FORMAT if lg.level <= logging.DEBUG else DEFAULT_FORMAT

    if replace_handlers:
        for handler in list(lg.handlers):
            lg.removeHandler(handler)
            handler.close()

    for handler in _build_handlers(log_file, log_format):
        lg.addHandler(handler)

    lg.propagate = False
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: Union[str, Path, None] = None,
    log_format: Optional[str] = None,
) -> logging.Logger:
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


# quiet until the CLI (or an embedding application) says otherwise
logger: logging.Logger = init_logging(level="WARNING")

__all__ = ["logger", "configure", "init_logging", "DEFAULT_FORMAT", "DEBUG_FORMAT", "LOGGER_NAME"]
