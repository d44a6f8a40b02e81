"""
Logging hooks for cmdtree.

Every module logs through logging.getLogger(__name__); the package logger
carries a NullHandler so nothing is printed unless the host opts in. setup()
is the opt-in: it hangs a single rich handler on the package logger.
"""
import logging

from rich.console import Console
from rich.logging import RichHandler

from .utils import *

logger = logging.getLogger(__package__)


def setup(level=logging.WARNING, /, *, console=Unset):
    """
    Attach a RichHandler to the "cmdtree" logger and set its level.

    Calling it again replaces the handler installed by the previous call, so
    records are never duplicated. Returns the package logger.
    """
    for handler in list(logger.handlers):
        if getattr(handler, "_cmdtree", False):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=coalesce(console, Console(stderr=True)),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
        enable_link_path=False,
    )
    handler._cmdtree = True
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


__all__ = (
    "setup",
)
