"""
Help page and error report rendering.

render_help() builds the property overview shown for --help and after a
failed parse:

    usage: <application> [-h | --help [BOOLEAN]] [-v | --verbose [BOOLEAN]] ...
    where:
      -h | --help [BOOLEAN] [default: False]
                     Prints this help page and exits.

Entries are sorted by each property's `order` key; descriptions are wrapped to
the console width with a hanging indent. Palette keys can be overridden with a
__styles__ mapping in __main__.

print_error() logs a fault and its cause chain, one level per line with a
growing "=" prefix, and prints the full traceback when verbose mode is on.
"""
import logging
from collections import defaultdict

from rich.console import Group
from rich.containers import Lines
from rich.text import Text
from rich.traceback import Traceback

from .faults import causes
from .presets import VERBOSE

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 73


def _styles():
    return defaultdict(str, {
        "usage-label": "bold #00E6FF",
        "program-name": "bold #FF4D94",
        "where-label": "bold #FFFFFF",
        "option-name": "bold #00E6FF",
        "flag-name": "bold #22C55E",
        "metavar": "bold #FFD600",
        "default": "italic #737373",
        "argument-description": "#9CA3AF",
    } | getattr(__import__("__main__"), "__styles__", {}))


def syntax(spec, /, *, styles=None):
    """
    Render "names metavars" for a spec, shaping metavars by arity.

    - "?"  → [META]
    - "*"  → [META ...]
    - "+"  → META [META ...]
    - n    → META repeated n times
    """
    styles = styles if styles is not None else _styles()
    style = styles["flag-name" if spec.kind.nargs == "?" and spec.kind.empty is True else "option-name"]

    names = Text(" | ").join(Text(name, style) for name in sorted(spec.names, key=lambda x: (x.startswith("--"), len(x))))
    metavar = Text(" ").join(Text(name, styles["metavar"]) for name in spec.metavars)

    match spec.kind.nargs:
        case "?":
            metavar = Text.assemble("[", metavar, "]")
        case "*":
            metavar = Text.assemble("[", metavar, " ...]")
        case "+":
            metavar = Text.assemble(metavar, " [", metavar.copy(), " ...]")
        case int() if len(spec.metavars) == 1:
            metavar = Text(" ").join(metavar.copy() for _ in range(spec.kind.nargs))

    if not names:
        return metavar
    return Text.assemble(names, " ", metavar)


def render_help(service, instances, loaded, /, *, console):
    """
    Build the help renderable.

    parameters
    - service: provides the application name.
    - instances: Iterable[Instance] listed in the usage line (all initialized ones).
    - loaded: Iterable[Instance] detailed under "where:" (those that loaded).
    - console: rich Console used to measure and wrap descriptions.

    hidden specs are skipped in both sections.
    """
    styles = _styles()
    width = console.width
    visible = sorted((instance for instance in instances if not instance.spec.hidden), key=lambda x: x.spec.order)
    detailed = sorted((instance for instance in loaded if not instance.spec.hidden), key=lambda x: x.spec.order)

    usage = Text()
    usage.append("usage", styles["usage-label"]).append(":").append(" ")
    usage.append(service.application_name or "<application>", styles["program-name"])

    # Hanging indent of usage entries under the first entry column.
    offset = len(usage) + 1
    lines = Lines([usage])
    for instance in visible:
        entry = Text.assemble("[", syntax(instance.spec, styles=styles), "]")
        if len(lines[-1]) + 1 + len(entry) > width:
            lines.append(Text(" " * offset) + entry)
        else:
            lines[-1].append(" ").append(entry)

    renders = [Text("\n").join(lines), Text("where:", styles["where-label"])]

    padding = 2
    indent = 15
    for instance in detailed:
        section = Text(" " * padding)
        section.append(syntax(instance.spec, styles=styles))
        section.append(" ").append("[default: %s]" % (instance.default,), styles["default"])
        if instance.spec.descr:
            section.append("\n").append(" " * indent)
            wrapped = Text(instance.spec.descr, styles["argument-description"]).wrap(console, width - indent)
            section.append(Text("\n" + " " * indent).join(wrapped))
        renders.append(section)

    return Group(*renders)


def print_error(service, fault, /):
    """
    Log `fault` and its causes, each level prefixed with one more "==".

    When verbose mode is active, the full rich traceback follows.
    """
    logger.error(SEPARATOR)
    prefix = "="
    for exception in causes(fault):
        logger.error("%s %s", prefix, exception)
        prefix += "=="
    if service.lookup(VERBOSE, False):
        service.error_console.print(Traceback.from_exception(type(fault), fault, fault.__traceback__))
    logger.error(SEPARATOR)


__all__ = (
    "syntax",
    "render_help",
    "print_error",
)
