"""
Logging configuration for the API process.

``setup_logging`` installs the project's handlers on the root logger: a
console handler and, when ``LOG_FILE`` is set, a file handler.  Uvicorn
is started with ``log_config=None`` (see ``run.py``); its loggers lose
their own handlers and propagate to the root, so server, access and
application records share one format and one destination.
"""

import logging
from pathlib import Path
from typing import List, Optional


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

# Set on every handler created here so repeated calls can find them.
_HANDLER_FLAG = "_event_hub_handler"


def _build_handlers(logfile: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if logfile:
        log_path = Path(logfile).resolve()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_FLAG, True)
    return handlers


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure the root logger and route uvicorn's loggers through it.

    Parameters
    ----------
    level : str
        Logging level name (e.g. ``"DEBUG"``).  Case insensitive;
        unknown names fall back to ``INFO``.
    logfile : Optional[str]
        File to append records to in addition to the console.  Relative
        paths are resolved against the working directory.

    Calling it again only updates the level; handlers from an earlier
    call are kept and handlers installed by others (e.g. pytest's
    capture handler) are left alone.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in SERVER_LOGGERS:
        server_logger = logging.getLogger(name)
        server_logger.handlers.clear()
        server_logger.propagate = True

    if any(getattr(handler, _HANDLER_FLAG, False) for handler in root.handlers):
        return
    for handler in _build_handlers(logfile):
        root.addHandler(handler)
