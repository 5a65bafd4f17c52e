"""
Logging setup for the API process.

Services and endpoints log through module-level loggers
(``logging.getLogger(__name__)``); this module only decides where the
records go.  Output goes to stderr and, when ``LOG_FILE`` is set, to
that file as well.
"""

import logging
from pathlib import Path
from typing import List, Optional


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Attach the API's handlers to the root logger.

    Parameters
    ----------
    level : str
        Level name such as ``"DEBUG"``.  Unknown names mean ``INFO``.
    logfile : Optional[str]
        Extra file destination, resolved against the working directory.

    The root logger is left alone if it already has handlers, so
    importing the app under a test runner or a server that configured
    logging itself does not duplicate output.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if logfile:
        handlers.append(logging.FileHandler(Path(logfile).resolve(), encoding="utf-8"))

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
