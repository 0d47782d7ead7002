"""
vinceml.log -- logging setup for scripts and the CLI.

    from vinceml.log import setup_logging
    setup_logging("DEBUG", log_file="/tmp/vinceml.log")

Library modules only ever call ``logging.getLogger("vinceml...")``; nothing
is configured unless an application calls :func:`setup_logging`.
"""
from __future__ import annotations

import logging
import logging.handlers
import os

__all__ = ["setup_logging"]

_FORMAT = "%(asctime)s.%(msecs)03d %(name)s[%(process)d] %(levelname).3s %(filename)s:%(lineno)d %(message)s"
_DATEFMT = "%m/%d/%y %H:%M:%S"

# Marks handlers we own so repeated setup calls replace rather than stack them.
_OWNED = "_vinceml_handler"


def setup_logging(
    level: int | str = logging.INFO,
    log_file: str | os.PathLike[str] | None = None,
    console: bool = True,
    name: str = "vinceml",
) -> logging.Logger:
    """Configure the ``vinceml`` logger tree and return its root logger.

    Parameters
    ----------
    level:
        Level name (``"DEBUG"``) or number.
    log_file:
        Optional file path.  A :class:`~logging.handlers.WatchedFileHandler`
        is used so external log rotation works.
    console:
        Attach a stderr handler.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")

    logger = logging.getLogger(name)
    logger.setLevel(level)

    for h in list(logger.handlers):
        if getattr(h, _OWNED, False):
            logger.removeHandler(h)
            h.close()

    formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        fh = logging.handlers.WatchedFileHandler(log_file)
        fh.setFormatter(formatter)
        setattr(fh, _OWNED, True)
        logger.addHandler(fh)

    if console:
        ch = logging.StreamHandler()
        ch.setFormatter(formatter)
        setattr(ch, _OWNED, True)
        logger.addHandler(ch)

    return logger
