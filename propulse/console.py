"""
Interactive confirmation prompt.

confirm() blocks the calling thread until the user answers; there is no
timeout and the only way to cancel is terminating the process. In force mode
(-f/--force) the question is answered with yes without prompting.
"""
import logging

from rich.prompt import Confirm

logger = logging.getLogger(__name__)


def confirm(service, question, /, *, default=False):
    """
    Ask a yes/no `question` on the service console.

    returns
    - True when force mode is active or the user agreed, False otherwise.
    """
    if service.force_mode():
        logger.info("%s (forced: yes)", question)
        return True
    return Confirm.ask(question, console=service.console, default=default)


__all__ = (
    "confirm",
)
