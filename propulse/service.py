"""
Propulse service layer: register, resolve, parse, load and retrieve properties.

What this module provides
- PropertyService: one explicit registry context holding
  • registered  : specs the application (or a dependency) declared,
  • initialized : spec → live instance, filled by the resolver,
  • loaded      : spec → instance, memoization cache of finished pipelines,
  • overrides   : spec → default value replacing the declared default,
  • analyzed    : set once parse() ran (only used for late-change warnings).
- A default process-wide service and thin module-level wrappers
  (register, parse_or_exit, value, ...) delegating to it.

Lifecycle
    register(...) → parse(tokens) → resolve (fixpoint) → tokens fill buffers
    → every registered property is loaded → value(spec) anywhere.

Per-property pipeline (_load)
    parse buffer → apply override → compute value → validate → load action

Fault policy
- resolver faults abort the call (new instances of the failed call are dropped).
- parse/validate faults are escalated in strict mode and logged at debug level
  in best-effort mode (help generation).
- load action faults are always escalated.
- requesting a property whose pipeline is still running (a value cycle)
  raises CyclicDependencyError.

Concurrency
- all public methods hold one re-entrant lock; pre_evaluate() holds it for the
  whole snapshot → mutate → restore sequence.

Quick start
    from propulse import Property, integer, register, parse_or_exit, value

    PORT = Property("-p", "--port", kind=integer, default=8080, descr="listening port")

    register(PORT)
    parse_or_exit()          # sys.argv[1:]
    print(value(PORT))
"""
import logging
import shlex
import sys
import threading
from collections.abc import Iterable

from rich.console import Console

from . import console as _console
from . import helper
from . import resolver
from . import system as _system
from . import tokens as _tokens
from .faults import *
from .presets import BUILTINS, HELP, VERBOSE, TEST_MODE, FORCE, DEBUG
from .properties import Property
from .utils import Unset, kebabize

logger = logging.getLogger(__name__)


def _tokenize(prompt, /):
    """
    Normalize a prompt into a list of tokens.

    - Unset: sys.argv[1:]
    - str: shell-like string, split with shlex.split
    - Iterable[str]: used as-is
    """
    if prompt is Unset:
        return sys.argv[1:]
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if isinstance(prompt, Iterable):
        tokens = list(prompt)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("tokens must be a string or an iterable of strings")
        return tokens
    raise TypeError("tokens must be a string or an iterable of strings")


def _recoverable(exception, /):
    """
    True when a load failure only concerns values (parse/validate), possibly
    of another property read while computing a default. Load action faults
    are never recoverable.
    """
    chain = tuple(causes(exception))
    if any(isinstance(cause, ServiceError) and cause.options.get("code") == FaultCode.LOAD_ACTION for cause in chain):
        return False
    return any(isinstance(cause, BadArgumentError | ValidationError) for cause in chain)


class PropertyService:
    """
    Registry context of one application.

    Parameters
    - console: rich Console used for help and traces (stdout/stderr consoles
      are created on demand when omitted).
    - system: mapping receiving -D assignments (the process-wide
      propulse.system.properties by default).
    - application_name: name shown in the help usage line.
    """

    def __init__(self, *, console=None, system=None, application_name=""):
        self._lock = threading.RLock()
        self._console = console
        self.system = system if system is not None else _system.properties
        self.application_name = application_name
        self.registered = set()
        self.initialized = {}
        self.loaded = {}
        self.overrides = {}
        self.analyzed = False
        self._loading = set()
        self._seed()

    def __repr__(self):
        return f"property-service(application_name={self.application_name!r}, registered={len(self.registered)})"

    @property
    def console(self):
        return self._console if self._console is not None else Console()

    @property
    def error_console(self):
        return self._console if self._console is not None else Console(stderr=True)

    def _seed(self):
        self.registered.update(BUILTINS)

    @staticmethod
    def _check(spec, name, /):
        if not isinstance(spec, Property):
            raise TypeError(f"{name}() argument must be a property")

    def _warn_late(self):
        if self.analyzed:
            logger.warning(
                "property modification after argument analysis detected; "
                "values already computed do not reflect the new default"
            )

    # ---- registry ---------------------------------------------------------

    def set_application_name(self, name, /):
        """
        Set the name shown in help; classes and functions are kebab-cased.
        """
        if not isinstance(name, str):
            name = kebabize(getattr(name, "__name__", type(name).__name__))
        self.application_name = name

    def register(self, spec, default=Unset, /):
        """
        Register `spec`; with `default`, also override its default value.

        Registration is idempotent. Registering after parse() is allowed but
        logs a warning.
        """
        self._check(spec, "register")
        with self._lock:
            self._warn_late()
            self.registered.add(spec)
            if default is not Unset:
                self.overrides[spec] = default

    def override(self, spec, default, /):
        """
        Override the default value of `spec` without registering it.
        """
        self._check(spec, "override")
        with self._lock:
            self._warn_late()
            self.overrides[spec] = default

    def reset(self):
        """
        Drop every registration, instance, value and override, then re-register
        the built-in properties.
        """
        with self._lock:
            self.registered.clear()
            self.initialized.clear()
            self.loaded.clear()
            self.overrides.clear()
            self._loading.clear()
            self.analyzed = False
            self._seed()

    # ---- resolving --------------------------------------------------------

    def _discarding(self, function, /, *args):
        """
        Run a resolver function; on failure drop the instances it created.
        """
        before = set(self.initialized)
        try:
            return function(self, *args)
        except InitializationError:
            for spec in set(self.initialized) - before:
                del self.initialized[spec]
            raise

    def resolve(self):
        """
        Instantiate all registered properties and their dependencies.
        """
        with self._lock:
            return self._discarding(resolver.resolve)

    # ---- loading ----------------------------------------------------------

    def _load(self, instance, /):
        spec = instance.spec
        if spec in self.loaded and not instance.needs_parsing:
            return instance
        if spec in self._loading:
            raise CyclicDependencyError(
                "property %r requires its own value while it is being loaded" % spec.name,
                property=spec,
                hint="break the cycle between the defaults of the involved properties",
            )

        self._loading.add(spec)
        try:
            instance.parse()
            if spec in self.overrides:
                instance.override(self.overrides[spec])
            try:
                instance.compute(self)
            except Exception as exception:
                raise ServiceError("could not compute the value of property %r" % spec.name, property=spec) from exception
            try:
                instance.validate()
            except ValidationError:
                raise
            except Exception as exception:
                raise ValidationError("invalid value %r for property %r" % (instance.value, spec.name), property=spec) from exception
        finally:
            self._loading.discard(spec)

        self.loaded[spec] = instance
        try:
            instance.act()
        except Exception as exception:
            del self.loaded[spec]
            raise ServiceError(
                "could not run the load action of property %r" % spec.name,
                property=spec,
                code=FaultCode.LOAD_ACTION,
            ) from exception
        logger.debug("loaded property %r = %r", spec.name, instance.value)
        return instance

    def get(self, spec, /):
        """
        Return the loaded instance of `spec`, initializing and loading on demand.

        Raises
        - NotAvailableError: the property could not be initialized or loaded.
        """
        self._check(spec, "get")
        with self._lock:
            try:
                instance = self.loaded.get(spec)
                if instance is None or instance.needs_parsing:
                    if spec not in self.initialized:
                        self._discarding(resolver.initialize, spec)
                    instance = self._load(self.initialized[spec])
                return instance
            except ServiceError as exception:
                raise NotAvailableError("property %r is not available" % spec.name, property=spec) from exception

    def value(self, spec, /):
        """
        Return the current value of `spec` (see get()).
        """
        return self.get(spec).value

    def lookup(self, spec, default=None, /):
        """
        Return the current value of `spec`, or `default` when it is not available.
        """
        try:
            return self.value(spec)
        except NotAvailableError as exception:
            logger.debug("property %r is not available", spec.name, exc_info=exception)
            return default

    def _load_all(self, *, report):
        """
        Load every registered property, including those registered while loading.
        """
        instances = []
        done = set()
        while pending := [spec for spec in tuple(self.registered) if spec not in done]:
            for spec in pending:
                done.add(spec)
                try:
                    instances.append(self.get(spec))
                except NotAvailableError as exception:
                    if report or not _recoverable(exception):
                        raise ServiceError("could not load property %r" % spec.name, property=spec) from exception
                    logger.debug("could not load property %r", spec.name, exc_info=exception)
        return instances

    # ---- parsing ----------------------------------------------------------

    @staticmethod
    def _log_modification(tokens, /):
        text = ""
        for token in tokens:
            if token.startswith("--"):
                text += "\n\t"
            elif token.startswith("-"):
                text += "\n\t "
            else:
                text += " "
            text += token
        if text:
            logger.info("[command line value modification]%s\n", text)

    def _initialize_registered(self, tokens=None, /):
        self.loaded.clear()
        try:
            self._discarding(resolver.resolve)
            if tokens is not None:
                _tokens.parse(tokens, tuple(self.initialized.values()), system=self.system)
                # re-load everything against the new buffers
                self.loaded.clear()
            self._load_all(report=True)
        except ServiceError as exception:
            raise ServiceError("could not initialize the registered properties") from exception

    def _handle_help(self):
        try:
            requested = self.value(HELP)
        except NotAvailableError as exception:
            raise ServiceError("could not generate the help page") from exception
        if not requested:
            return
        try:
            self.print_help()
        except ServiceError as exception:
            logger.error("could not fully generate the help page", exc_info=exception)
        if not self.test_mode():
            sys.exit(0)

    def parse(self, tokens=(), /):
        """
        Analyze `tokens` and load all registered properties.

        A matched help flag prints the help page and exits with status 0
        (returns instead in test mode).

        Raises
        - ServiceError: wrapping the parsing/loading fault.
        """
        tokens = _tokenize(tokens)
        with self._lock:
            self.analyzed = True
            try:
                self._log_modification(tokens)
                self._initialize_registered(tokens)
            except ServiceError as exception:
                raise ServiceError("could not analyse arguments: %s" % exception) from exception
            self._handle_help()

    def parse_or_exit(self, tokens=Unset, /):
        """
        parse() and, on any fault, print help and the error chain, then exit
        with status 255. In test mode the fault is raised instead.
        """
        try:
            self.parse(tokens)
        except ServiceError as exception:
            try:
                self.print_help(console=self.error_console)
            except ServiceError as failure:
                logger.error("could not print the help text")
                self.print_error(failure)
            self.print_error(exception)
            logger.info("exit %s", self.application_name)
            if self.test_mode():
                raise
            sys.exit(255)

    def exit_on_error(self):
        """
        Load all registered properties without command line (exit 255 on fault).
        """
        self.parse_or_exit(())

    def setup_test_mode(self):
        """
        Enable verbose and test mode and load all registered properties
        without analyzing any command line.
        """
        with self._lock:
            self.register(VERBOSE, True)
            self.register(TEST_MODE, True)
            try:
                self._initialize_registered()
            except ServiceError as exception:
                raise ServiceError("could not setup the service for test mode") from exception

    # ---- sandbox ----------------------------------------------------------

    def pre_evaluate(self, spec, tokens=(), /):
        """
        Compute the value `spec` would get from `tokens`, without leaving state.

        Only valid before parse() ran. Unknown tokens are ignored. Afterwards
        the registrations and overrides from before the call are restored;
        every instance and value is discarded.

        Raises
        - RuntimeError: called after parse().
        - NotAvailableError / ServiceError: the value could not be computed.
        """
        self._check(spec, "pre_evaluate")
        tokens = _tokenize(tokens)
        with self._lock:
            if self.analyzed:
                raise RuntimeError("pre_evaluate() must be called before the arguments are analyzed")
            registered = set(self.registered)
            overrides = dict(self.overrides)
            try:
                self.registered.add(spec)
                self._discarding(resolver.resolve)
                _tokens.parse(tokens, tuple(self.initialized.values()), skip_unknown=True, system=self.system)
                self.loaded.clear()
                return self.value(spec)
            finally:
                self.reset()
                self.registered.update(registered)
                self.overrides.update(overrides)

    # ---- reporting --------------------------------------------------------

    def print_help(self, *, console=None):
        """
        Print the property overview (best-effort: values that fail to parse or
        validate are left out of the detail section).
        """
        with self._lock:
            loaded = self._load_all(report=False)
            console = console if console is not None else self.console
            console.print(helper.render_help(self, tuple(self.initialized.values()), loaded, console=console))

    def print_error(self, fault, /, message=Unset):
        """
        Print `fault` and its cause chain; with `message`, the fault becomes
        the cause of a new ServiceError(message).
        """
        if message is not Unset:
            wrapper = ServiceError(message)
            wrapper.__cause__ = fault
            fault = wrapper
        helper.print_error(self, fault)

    # ---- modes ------------------------------------------------------------

    def _mode(self, spec, label, /):
        try:
            return bool(self.value(spec))
        except ServiceError as exception:
            self.print_error(exception, "could not detect %s" % label)
        return False

    def test_mode(self):
        return self._mode(TEST_MODE, "test mode")

    def verbose_mode(self):
        return self._mode(VERBOSE, "verbose mode")

    def force_mode(self):
        return self._mode(FORCE, "force mode")

    def debug_mode(self):
        return self._mode(DEBUG, "debug mode")

    def confirm(self, question, /, *, default=False):
        return _console.confirm(self, question, default=default)


default_service = PropertyService()
"""
default process-wide service used by the module-level functions.
"""


def register(spec, default=Unset, /):
    return default_service.register(spec, default)


def override(spec, default, /):
    return default_service.override(spec, default)


def reset():
    return default_service.reset()


def set_application_name(name, /):
    return default_service.set_application_name(name)


def parse(tokens=(), /):
    return default_service.parse(tokens)


def parse_or_exit(tokens=Unset, /):
    return default_service.parse_or_exit(tokens)


def exit_on_error():
    return default_service.exit_on_error()


def setup_test_mode():
    return default_service.setup_test_mode()


def get(spec, /):
    return default_service.get(spec)


def value(spec, /):
    return default_service.value(spec)


def lookup(spec, default=None, /):
    return default_service.lookup(spec, default)


def pre_evaluate(spec, tokens=(), /):
    return default_service.pre_evaluate(spec, tokens)


def print_help():
    return default_service.print_help()


def test_mode():
    return default_service.test_mode()


def verbose_mode():
    return default_service.verbose_mode()


def force_mode():
    return default_service.force_mode()


def debug_mode():
    return default_service.debug_mode()


def confirm(question, /, *, default=False):
    return default_service.confirm(question, default=default)


__all__ = (
    "PropertyService",
    "default_service",
    "register",
    "override",
    "reset",
    "set_application_name",
    "parse",
    "parse_or_exit",
    "exit_on_error",
    "setup_test_mode",
    "get",
    "value",
    "lookup",
    "pre_evaluate",
    "print_help",
    "test_mode",
    "verbose_mode",
    "force_mode",
    "debug_mode",
    "confirm",
)
