r"""
Token parser: distributes a raw command line over property instances.

Token classes (checked in this order)
- "--"                    hard stop; everything after it is ignored.
- "-D<key>[=<value>]"     side-channel assignment into system properties.
- "-<id>" / "--<id>"      exact match against an instance's identifiers; the
                          instance becomes current and its buffer is reset
                          (last occurrence wins: "-p 5 -p 9" yields 9).
- "-xyz"                  short-flag bundle: each character is matched as "-x",
                          "-y", "-z"; matched instances are reset, none becomes
                          current (bundled flags take no values).
- anything else           value appended to the current instance's buffer.

Unknown flags and values without a flag raise ParsingError unless skip_unknown
is set; then the unknown flag and the values right after it are dropped.
"""
import difflib
import logging

from .faults import ParsingError
from .system import properties as _system

logger = logging.getLogger(__name__)


def _ordinal(number):
    """
    english ordinal for messages ("first", "second", ..., "21st").
    """
    words = ("first", "second", "third", "fourth", "fifth", "sixth", "seventh", "eighth", "ninth", "tenth")
    if 1 <= number <= len(words):
        return words[number - 1]
    if 10 <= number % 100 <= 20:
        return "%dth" % number
    return "%d%s" % (number, {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th"))


def _switches(instances):
    """
    map every command identifier to its instance (first declaration wins).
    """
    switches = {}
    for instance in instances:
        for name in instance.names:
            switches.setdefault(name, instance)
    return switches


def parse(tokens, instances, /, *, skip_unknown=False, system=_system):
    """
    Walk `tokens` and fill the argument buffers of `instances`.

    parameters
    - tokens: Iterable[str] raw command line (without the program name).
    - instances: Iterable[Instance] the initialized property instances.
    - skip_unknown: drop unknown flags (and their values) instead of failing.
    - system: the side-channel mapping receiving -D assignments.

    raises
    - ParsingError: malformed -D token, unknown flag or value without flag
      (the last two only when skip_unknown is False).
    """
    switches = _switches(instances)
    current = None
    ignoring = False

    for index, token in enumerate(tokens, start=1):
        token = token.strip()

        if token == "--":
            logger.debug("terminator at %s position, ignoring the remaining tokens", _ordinal(index))
            break

        if token.startswith("-D"):
            try:
                system.assign(token[2:])
            except (KeyError, TypeError) as exception:
                raise ParsingError(
                    "invalid system property syntax %r at %s position" % (token, _ordinal(index)),
                    token=token,
                    index=index,
                    hint="use -D<key>=<value> or -D<key>",
                ) from exception
            continue

        if token.startswith("-") and len(token) > 1:
            if (instance := switches.get(token)) is not None:
                current = instance
                ignoring = False
                current.reset()
                continue

            if not token.startswith("--") and len(token) > 2:
                current = None
                ignoring = False
                for character in token[1:]:
                    if (instance := switches.get("-" + character)) is not None:
                        instance.reset()
                        continue
                    if not skip_unknown:
                        raise ParsingError(
                            "unknown short flag %r in %r at %s position" % ("-" + character, token, _ordinal(index)),
                            token=token,
                            index=index,
                            hint="bundled flags must all be known single-character flags",
                        )
                    logger.debug("ignoring unknown short flag %r in %r", "-" + character, token)
                    ignoring = True
                continue

            if not skip_unknown:
                suggestions = difflib.get_close_matches(token, switches.keys(), 5)
                try:
                    hint = "did you mean %r?" % suggestions[0]
                except IndexError:
                    hint = "run with --help to see all available properties"
                raise ParsingError(
                    "unknown property %r at %s position" % (token, _ordinal(index)),
                    token=token,
                    index=index,
                    suggestions=suggestions,
                    hint=hint,
                )
            logger.debug("ignoring unknown property %r", token)
            current = None
            ignoring = True
            continue

        if current is not None:
            current.add(token)
        elif not ignoring:
            raise ParsingError(
                "value %r at %s position does not follow any property" % (token, _ordinal(index)),
                token=token,
                index=index,
                hint="put the value right after the flag it belongs to",
            )


__all__ = (
    "parse",
)
