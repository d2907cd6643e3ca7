from __future__ import annotations

import logging
import sys
from typing import Union

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_NAME = "taskmaster-console"


class _LibraryNoiseFilter(logging.Filter):
    """
    Keep taskmaster logs at the configured level; other libraries only WARNING+.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "taskmaster" or record.name.startswith("taskmaster."):
            return True
        return record.levelno >= logging.WARNING


# PUBLIC_INTERFACE
def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Install a single stderr handler on the root logger.

    Safe to call more than once (e.g. once per create_app in tests): a handler
    installed by a previous call is replaced, not duplicated.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    for h in list(root.handlers):
        if h.get_name() == _HANDLER_NAME:
            root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(_LibraryNoiseFilter())
    root.addHandler(handler)

    logging.getLogger("taskmaster").setLevel(level)
