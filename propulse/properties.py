r"""
Propulse property specs, value kinds and live instances.

Overview
- Kinds
  • Kind[_T]: a value-conversion strategy (converter + arity contract + metavar).
  • boolean, integer, decimal, string, strings, path, directory, mapping, choice(...):
    the closed set of kinds shipped with the package.

- Specs
  • Property[_T]: the identity of one property. Immutable once built, hashable
    by identity, and its own factory (instantiate). Declares command identifiers
    (names), the kind, a default, dependencies, a validator and a load action.

- Decorators
  • @loader(...): build a Property whose load action is the decorated function.

- Instances
  • Instance[_T]: the live state created by the resolver for one spec:
    raw-argument buffer, identified flag, parsed/default/effective values.

Metadata (sanitized on construction)
- names: Iterable[str] validated as shell-style identifiers; duplicates rejected.
- kind: Kind (defaults to boolean, like a presence-only flag).
- metavar: Unset | str | tuple[str, ...] (defaults to the kind's metavar).
- default: any value (defaults to the kind's default); default_factory: callable(service).
- depends: Iterable[Property] | callable(service) -> Iterable[Property].
- validator/action: callable(instance).
- descr: Unset | str (non-empty when provided).
- order: Unset | str (help ordering key; defaults to the spec name).
- hidden: bool (suppresses from help).

Quick example:
    >>> from propulse.properties import Property, integer
    >>> THREADS = Property("-t", "--threads", kind=integer, default=4, descr="worker threads")
    >>> THREADS.name
    'threads'
"""
import functools
import operator
import pathlib
import re
from collections.abc import Iterable
from types import MappingProxyType

from .faults import BadArgumentError
from .utils import *


class Kind[_T]:
    """
    Value-conversion strategy shared by many properties.

    A kind turns the raw tokens collected for a property into one typed value.

    Arity (nargs)
    - int n >= 1: exactly n tokens; n == 1 yields a scalar, otherwise a collection.
    - "?": zero or one token; zero yields `empty` (e.g. True for boolean flags).
    - "*": zero or more tokens, collected.
    - "+": one or more tokens, collected.

    Parameters
    - name: label used in messages.
    - type: converter applied to each token; raising marks the argument as bad.
    - metavar: default argument identifier(s) shown in help.
    - nargs: arity contract (see above).
    - empty: value used for "?" when no token was given.
    - collect: builds the collection for multi-token arities (list, dict, ...).
    - default: default value for properties not declaring one.
    """

    def __init__(self, name, type, /, *, metavar, nargs=1, empty=Unset, collect=tuple, default=None):
        if not callable(type):
            raise TypeError("kind 'type' must be callable")
        if isinstance(nargs, str) and nargs not in ("?", "*", "+"):
            raise ValueError("kind 'nargs' must be one of '?', '*', or '+'")
        if isinstance(nargs, int) and nargs < 1:
            raise ValueError("kind 'nargs' must be a positive integer")
        self.name = name
        self.type = type
        self.metavar = metavar
        self.nargs = nargs
        self.empty = empty
        self.collect = collect
        self.default = default

    def convert(self, arguments, /):
        """
        Convert a buffer of raw tokens, enforcing the arity contract.

        Raises
        - ValueError: wrong number of tokens, or a token the converter rejects.
        """
        arguments = tuple(arguments)
        match self.nargs:
            case "?":
                if len(arguments) > 1:
                    raise ValueError("expected at most one argument, got %d" % len(arguments))
                if not arguments:
                    return self.empty
                return self.type(arguments[0])
            case "*":
                return self.collect(map(self.type, arguments))
            case "+":
                if not arguments:
                    raise ValueError("expected at least one argument")
                return self.collect(map(self.type, arguments))
            case 1:
                if len(arguments) != 1:
                    raise ValueError("expected exactly one argument, got %d" % len(arguments))
                return self.type(arguments[0])
            case int():
                if len(arguments) != self.nargs:
                    raise ValueError("expected exactly %d arguments, got %d" % (self.nargs, len(arguments)))
                return self.collect(map(self.type, arguments))

    def __repr__(self):
        return f"kind({self.name!r})"


def _boolean(token, /):
    match token.strip().lower():
        case "true" | "yes" | "on" | "1":
            return True
        case "false" | "no" | "off" | "0":
            return False
    raise ValueError("%r is not a boolean (use true or false)" % token)


def _pair(token, /):
    key, separator, value = token.partition("=")
    if not separator or not key:
        raise ValueError("%r is not a KEY=VALUE pair" % token)
    return key, value


boolean = Kind("boolean", _boolean, metavar="BOOLEAN", nargs="?", empty=True, default=False)
integer = Kind("integer", int, metavar="INTEGER")
decimal = Kind("decimal", float, metavar="DECIMAL")
string = Kind("string", str, metavar="STRING")
strings = Kind("strings", str, metavar="STRING", nargs="+", default=())
path = Kind("path", pathlib.Path, metavar="FILE")
directory = Kind("directory", pathlib.Path, metavar="DIRECTORY")
mapping = Kind("mapping", _pair, metavar="KEY=VALUE", nargs="+", collect=dict, default=MappingProxyType({}))


def choice(*choices, type=str):
    """
    Build a kind accepting exactly one token out of `choices`.

    The token is converted with `type` before the membership check.
    """
    if not choices:
        raise TypeError("choice() must specify at least one choice")

    def convert(token):
        if (value := type(token)) not in choices:
            raise ValueError("%r is not one of %s" % (token, ", ".join(map(str, choices))))
        return value

    return Kind("choice", convert, metavar="{%s}" % ",".join(map(str, choices)), default=choices[0])


class PropertyType(type):
    """
    Metaclass that gives property specs a stable, introspectable shape.

    Responsibilities
    - Expose the fields listed in __introspectable__ as read-only properties via mirror().
    - Provide readable __repr__/__rich_repr__ for diagnostics and help output.
    - Derive __typename__ (kebab-case class name) for messages.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": kebabize(name),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in ("name", "names", "kind", "default"):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


class Property[_T](metaclass=PropertyType):
    """
    Identity and contract of one configuration property.

    A spec is created once (usually at module level) and used as the key for
    every service operation: register, override, get, value. It never holds
    parsed state; that lives in the Instance the resolver creates from it.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    """

    __introspectable__ = (
        "name",
        "names",
        "metavars",
        "kind",
        "default",
        "descr",
        "order",
        "hidden",
    )

    def __init__(
            self,
            *names,
            kind=boolean,
            metavar=Unset,
            default=Unset,
            default_factory=Unset,
            depends=(),
            validator=Unset,
            action=Unset,
            descr=Unset,
            order=Unset,
            name=Unset,
            hidden=False,
    ):
        """
        Construct a property spec.

        Parameters
        - names: one or more command identifiers ("-v", "--verbose").
          A property without names can still be registered and overridden,
          but is never matched on the command line.
        - kind: Kind converting the raw tokens (boolean by default).
        - metavar: argument identifier(s) for help; defaults to the kind's.
        - default: default value; defaults to the kind's default.
        - default_factory: callable(service) computing the default at load time
          (takes precedence over `default`, loses against overrides).
        - depends: specs this property needs, or callable(service) returning them.
          Evaluated once per instantiation.
        - validator: callable(instance) raising to reject the computed value.
        - action: callable(instance) run after a successful load (side effect).
        - descr: short description for help.
        - order: help ordering key; defaults to the name.
        - name: display name; defaults to the longest identifier without dashes.
        - hidden: suppress from help.
        """
        identifiers = []
        for identifier in names:
            if not isinstance(identifier, str):
                raise TypeError(f"{type(self).__typename__} names must be strings")
            elif not (identifier := identifier.strip()):
                raise ValueError(f"{type(self).__typename__} names cannot be empty-strings")
            elif not re.fullmatch(r"--?[^\W_](-?[^\W_]+)*", identifier):
                raise ValueError(f"{type(self).__typename__} names must be valid shell-style option names")
            elif identifier in identifiers:
                raise ValueError(f"{type(self).__typename__} names cannot contain duplicates")
            identifiers.append(identifier)

        if not isinstance(kind, Kind):
            raise TypeError(f"{type(self).__typename__} 'kind' must be a kind")

        if not isinstance(metavar, str | tuple | Unset):
            raise TypeError(f"{type(self).__typename__} 'metavar' must be a string or a tuple of strings")
        metavar = coalesce(metavar, kind.metavar)
        metavars = (metavar,) if isinstance(metavar, str) else tuple(metavar)

        if not isinstance(depends, Iterable) and not callable(depends):
            raise TypeError(f"{type(self).__typename__} 'depends' must be iterable or callable")

        for hook, label in ((default_factory, "default_factory"), (validator, "validator"), (action, "action")):
            if hook is not Unset and not callable(hook):
                raise TypeError(f"{type(self).__typename__} {label!r} must be callable")

        if not isinstance(descr, str | Unset):
            raise TypeError(f"{type(self).__typename__} 'descr' must be a string")
        elif isinstance(descr, str) and not (descr := descr.strip()):
            raise ValueError(f"{type(self).__typename__} 'descr' cannot be empty")

        if name is Unset:
            name = max(identifiers, key=len).lstrip("-") if identifiers else Unset
        if not isinstance(name, str) or not name:
            raise TypeError(f"unnamed {type(self).__typename__} must specify a 'name'")

        self._name = name
        self._names = tuple(identifiers)
        self._metavars = metavars
        self._kind = kind
        self._default = coalesce(default, kind.default)
        self._default_factory = default_factory
        self._depends = depends if callable(depends) else tuple(depends)
        self._validator = validator
        self._action = action
        self._descr = coalesce(descr)
        self._order = coalesce(order, name)
        self._hidden = bool(hidden)

    def instantiate(self, service, /):
        """
        Factory: create the live instance of this spec for `service`.

        Dependencies are evaluated here, once. A callable `depends` receives the
        service and may register further properties as a side effect.
        """
        depends = self._depends(service) if callable(self._depends) else self._depends
        dependencies = tuple(depends)
        for dependency in dependencies:
            if not isinstance(dependency, Property):
                raise TypeError(f"{type(self).__typename__} {self.name!r} depends on a non-property {dependency!r}")
        return Instance(self, dependencies)

class Instance[_T]:
    """
    Live state of a property inside one service.

    Pipeline (driven by PropertyService)
    - parse():    buffer → parsed value (BadArgumentError on failure)
    - override(): replace the default with a registered override
    - compute():  parsed value wins, otherwise the default
    - validate(): run the spec validator
    - act():      run the spec load action

    needs_parsing is True while the buffer changed since the last parse, or no
    value was ever computed.
    """

    def __init__(self, spec, dependencies, /):
        self.spec = spec
        self.dependencies = dependencies
        self.identified = False
        self.default = spec.default
        self.value = Unset
        self._arguments = []
        self._parsed = Unset
        self._overridden = False
        self._stale = False

    @property
    def arguments(self):
        return tuple(self._arguments)

    @property
    def names(self):
        return self.spec.names

    @property
    def overridden(self):
        return self._overridden

    @property
    def needs_parsing(self):
        return self._stale or self.value is Unset

    def match(self, token, /):
        return token in self.spec.names

    def reset(self):
        """
        Mark the property as given on the command line and drop earlier values.
        """
        self._arguments.clear()
        self.identified = True
        self._stale = True

    def add(self, argument, /):
        self._arguments.append(argument)
        self._stale = True

    def parse(self):
        self._stale = False
        if not self.identified:
            self._parsed = Unset
            return
        try:
            self._parsed = self.spec.kind.convert(self._arguments)
        except Exception as exception:
            raise BadArgumentError(
                "could not parse %s of property %r" % (
                    " ".join(map(repr, self._arguments)) or "missing argument", self.spec.name
                ),
                property=self.spec,
                hint="expected %s" % " ".join(self.spec.metavars),
            ) from exception

    def override(self, default, /):
        self.default = default
        self._overridden = True

    def compute(self, service, /):
        if not self._overridden and self.spec._default_factory is not Unset:
            self.default = self.spec._default_factory(service)
        self.value = self._parsed if self._parsed is not Unset else self.default

    def validate(self):
        if self.spec._validator is not Unset:
            self.spec._validator(self)

    def act(self):
        if self.spec._action is not Unset:
            self.spec._action(self)

    def __repr__(self):
        return f"instance(name={self.spec.name!r}, value={self.value!r}, identified={self.identified!r})"


def loader(*args, **kwargs):
    """
    Decorator/factory for defining a property with a load action.

    Usage
        @loader("--cache", kind=directory, default=Path("cache"))
        def CACHE(instance):
            instance.value.mkdir(parents=True, exist_ok=True)

    The decorated function becomes the action; the decorator returns the
    Property spec (so the module-level name is the identity).
    """
    if "action" in kwargs:
        raise TypeError("@loader() cannot receive an explicit 'action'")

    @rename("loader")
    def wrapper(callback, /):
        if not callable(callback):
            raise TypeError("@loader() must be applied to a callable")
        return Property(*args, action=callback, **kwargs)

    return wrapper


def ensure_directory(instance, /):
    """
    Load action: create the directory named by the property value.
    """
    pathlib.Path(instance.value).mkdir(parents=True, exist_ok=True)


def require_existence(instance, /):
    """
    Validator: the file or directory named by the property value must exist.
    """
    if not pathlib.Path(instance.value).exists():
        raise FileNotFoundError("%s does not exist" % instance.value)


__all__ = (
    "Kind",
    "boolean",
    "integer",
    "decimal",
    "string",
    "strings",
    "path",
    "directory",
    "mapping",
    "choice",
    "Property",
    "Instance",
    "loader",
    "ensure_directory",
    "require_existence",
)

# Remove the internal metaclass from the module namespace to avoid accidental
# exposure in docs, autocompletion, or star-imports. Not part of the public API.
del PropertyType
