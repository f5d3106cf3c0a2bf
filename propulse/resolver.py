"""
Fixpoint dependency resolver.

resolve() instantiates every registered property and, transitively, every
property those declare as dependencies, exactly once each.

Algorithm
- repeat full passes over a snapshot of the registered set;
- for each spec without an instance: instantiate it (the factory may register
  more specs), store the instance, then recurse into its dependencies;
- stop after a pass that instantiated nothing.

A spec is stored in `initialized` before its dependencies are visited, so a
dependency cycle (A → B → A) closes on the already stored spec and terminates.
"""
import logging

from .faults import InitializationError

logger = logging.getLogger(__name__)


def _initialize(service, spec, /):
    """
    instantiate `spec` and recursively its dependencies.
    """
    if spec in service.initialized:
        raise InitializationError("property %r is already initialized" % spec.name, property=spec)

    service.registered.add(spec)
    try:
        instance = spec.instantiate(service)
    except Exception as exception:
        raise InitializationError(
            "could not initialize property %r" % spec.name,
            property=spec,
        ) from exception

    service.initialized[spec] = instance
    logger.debug("initialized property %r", spec.name)

    for dependency in instance.dependencies:
        if dependency not in service.initialized:
            try:
                _initialize(service, dependency)
            except InitializationError as exception:
                raise InitializationError(
                    "could not initialize dependency %r of property %r" % (dependency.name, spec.name),
                    property=spec,
                ) from exception
    return instance


def initialize(service, spec, /):
    """
    Instantiate a single spec (and its dependencies) on demand.
    """
    return _initialize(service, spec)


def resolve(service, /):
    """
    Instantiate all reachable properties of `service`.

    Returns the service's `initialized` mapping.

    Raises
    - InitializationError: a factory failed; the caller must treat the whole
      resolve call as failed.
    """
    modification = True
    while modification:
        modification = False
        for spec in tuple(service.registered):
            if spec not in service.initialized:
                _initialize(service, spec)
                modification = True
    return service.initialized


__all__ = (
    "initialize",
    "resolve",
)
