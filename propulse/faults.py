"""
Propulse faults and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every fault the service
  raises. Codes are grouped by lifecycle phase to keep logs/searches predictable.
- ServiceError: umbrella exception; carries a message plus read-only options
  (property, token, hint, ...) and knows how to render itself with rich.
- ParsingError / BadArgumentError / ValidationError / InitializationError /
  CyclicDependencyError / NotAvailableError: the phase-specific faults.
- causes(): walk a fault's explicit cause chain (raise ... from ...).

Propagation (see PropertyService)
- resolver and registration faults always abort the enclosing call.
- parse/validate faults of a single property are swallowed in best-effort mode
  (help generation) and escalated otherwise.
- load action faults are always escalated.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.text import Text

from .utils import Unset, coalesce


class FaultCode(IntEnum):
    """
    canonical fault codes used across the service (stable identifiers).

    grouping (by lifecycle phase)
    - umbrella (21000)
      • SERVICE
    - resolving (2110x)
      • INITIALIZATION, CYCLIC_DEPENDENCY
    - tokens (2120x)
      • PARSING
    - loading (2130x)
      • BAD_ARGUMENT, VALIDATION, LOAD_ACTION
    - retrieval (2140x)
      • NOT_AVAILABLE
    """
    SERVICE = 21000

    INITIALIZATION = 21101
    CYCLIC_DEPENDENCY = 21102

    PARSING = 21201

    BAD_ARGUMENT = 21301
    VALIDATION = 21302
    LOAD_ACTION = 21303

    NOT_AVAILABLE = 21401

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ServiceError(Exception):
    """
    umbrella fault of the property service.

    every fault carries
    - message: one lowercase sentence describing what failed.
    - options: read-only mapping of context (property, token, hint, code, ...).

    the class attributes `code` and `title` give the default classification;
    an explicit code=... option wins over the class default.
    """
    code = FaultCode.SERVICE
    title = "service failure"

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = coalesce(message, self.title)
        self.options = MappingProxyType(options)
        super().__init__(self.message)

    def __str__(self):
        return self.message

    @property
    def hint(self):
        return self.options.get("hint")

    @property
    def identity(self):
        """the property spec this fault is about (None for token-level faults)."""
        return self.options.get("property")

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        } | getattr(main, "__styles__", {}))

        code = self.options.get("code", type(self).code)

        header = Text.assemble(
            "[ ",
            (code.normalize(), styles["code"]),
            " | ",
            (self.title.title(), styles["error-title"]),
            " ]",
        )
        renders = [header, Text(self.message, styles["error-message"])]
        if self.hint:
            renders.append(Text.assemble((" → ", styles["hint-arrow"]), (self.hint, styles["hint"])))
        return Group(*renders)


class InitializationError(ServiceError):
    code = FaultCode.INITIALIZATION
    title = "initialization failure"


class CyclicDependencyError(InitializationError):
    code = FaultCode.CYCLIC_DEPENDENCY
    title = "cyclic dependency"


class ParsingError(ServiceError):
    code = FaultCode.PARSING
    title = "parsing failure"


class BadArgumentError(ServiceError):
    code = FaultCode.BAD_ARGUMENT
    title = "bad argument"


class ValidationError(ServiceError):
    code = FaultCode.VALIDATION
    title = "validation failure"


class NotAvailableError(ServiceError):
    code = FaultCode.NOT_AVAILABLE
    title = "property not available"


def causes(fault, /):
    """
    yield the fault followed by every exception of its explicit cause chain.

    only __cause__ (raise ... from ...) is followed; an implicit __context__
    belongs to whatever was being handled and is not part of the chain.
    cycles are cut on the first repeated exception.
    """
    seen = set()
    while fault is not None and id(fault) not in seen:
        seen.add(id(fault))
        yield fault
        fault = fault.__cause__


__all__ = (
    "FaultCode",
    "ServiceError",
    "InitializationError",
    "CyclicDependencyError",
    "ParsingError",
    "BadArgumentError",
    "ValidationError",
    "NotAvailableError",
    "causes",
)
