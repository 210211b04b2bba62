"""
Console logging setup for the CLI and the web app.

Library modules only call ``logging.getLogger(__name__)``; handlers are
attached here, by the entry points, so an embedding application keeps
control of its own logging.
"""

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

_handler: Optional[logging.Handler] = None


def configure_logging(level: Optional[str] = None) -> logging.Handler:
    """
    Attach one console handler to the root logger.

    The level defaults to FLEET_LOG_LEVEL (INFO when unset). Calling again
    only updates the level.
    """
    global _handler
    level = (level or os.environ.get("FLEET_LOG_LEVEL", "INFO")).upper()

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    if _handler is None:
        _handler = logging.StreamHandler()
        _handler.setFormatter(
            logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        root.addHandler(_handler)
    return _handler
