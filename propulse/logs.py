"""
Logging setup for the propulse package.

Every module logs through `logging.getLogger(__name__)`, so all records land
under the package logger. configure() attaches a single rich handler to that
logger; calling it again only changes the level.
"""
import logging

from rich.logging import RichHandler

logger = logging.getLogger("propulse")

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def configure(level="INFO", /, *, console=None):
    """
    Attach (once) a RichHandler to the package logger and set its level.

    parameters
    - level: one of LEVELS (case-insensitive) or a numeric logging level.
    - console: optional rich Console the handler writes to.

    returns
    - the package logger.
    """
    if isinstance(level, str):
        if level.upper() not in LEVELS:
            raise ValueError("unknown log level %r (use one of %s)" % (level, ", ".join(LEVELS)))
        level = getattr(logging, level.upper())

    handler = next((handler for handler in logger.handlers if isinstance(handler, RichHandler)), None)
    if handler is None:
        handler = RichHandler(console=console, rich_tracebacks=True, show_time=False, show_path=False)
        logger.addHandler(handler)
        logger.propagate = False
    handler.setLevel(level)
    logger.setLevel(level)
    return logger


__all__ = (
    "LEVELS",
    "configure",
)
