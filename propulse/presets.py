"""
Built-in properties.

HELP, VERBOSE and LOG_LEVEL are registered on every service (and re-registered
by reset()). TEST_MODE, FORCE and DEBUG are resolved on demand by the mode
probes of the service (test_mode(), force_mode(), debug_mode()).
"""
import logging

from . import logs
from .properties import Property, choice

logger = logging.getLogger(__name__)


def _announce_verbose(instance):
    if instance.value:
        logger.info("verbose is enabled")


def _apply_log_level(instance):
    # the built-in default leaves the process-wide logger untouched
    if instance.identified or instance.overridden:
        logs.configure(instance.value)


HELP = Property(
    "-h", "--help",
    descr="Prints this help page and exits.",
    order="0-help",
)

VERBOSE = Property(
    "-v", "--verbose",
    action=_announce_verbose,
    descr="Prints more information during execution, including full error traces.",
)

LOG_LEVEL = Property(
    "--log-level",
    kind=choice(*logs.LEVELS, type=str.upper),
    default="INFO",
    action=_apply_log_level,
    descr="Sets the threshold of the application log output.",
)

TEST_MODE = Property(
    "--test-mode",
    descr="Raises faults to the caller instead of terminating the process.",
    hidden=True,
)

FORCE = Property(
    "-f", "--force",
    descr="Skips interactive confirmations by assuming yes.",
)

DEBUG = Property(
    "-d", "--debug",
    descr="Enables the debug mode of the application.",
)

BUILTINS = (HELP, VERBOSE, LOG_LEVEL)


__all__ = (
    "HELP",
    "VERBOSE",
    "LOG_LEVEL",
    "TEST_MODE",
    "FORCE",
    "DEBUG",
    "BUILTINS",
)
