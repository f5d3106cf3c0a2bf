"""
Process-wide key-value side channel fed by `-D<key>=<value>` tokens.

The store is independent of the property registry: it is not reset by
PropertyService.reset() and outlives every parse call. Any code in the process
can read it through the module-level `properties` instance.
"""
import logging
import threading
from collections.abc import MutableMapping

logger = logging.getLogger(__name__)


class SystemProperties(MutableMapping):
    """
    Thread-safe string → string mapping.

    Keys must be non-empty strings; values are strings (possibly empty).
    """

    def __init__(self, *args, **kwargs):
        self._lock = threading.Lock()
        self._data = {}
        self.update(*args, **kwargs)

    def __getitem__(self, key, /):
        with self._lock:
            return self._data[key]

    def __setitem__(self, key, value, /):
        if not isinstance(key, str) or not key:
            raise KeyError("system property keys must be non-empty strings")
        if not isinstance(value, str):
            raise TypeError("system property values must be strings")
        with self._lock:
            self._data[key] = value

    def __delitem__(self, key, /):
        with self._lock:
            del self._data[key]

    def __iter__(self):
        with self._lock:
            return iter(list(self._data))

    def __len__(self):
        with self._lock:
            return len(self._data)

    def __repr__(self):
        with self._lock:
            return f"system-properties({self._data!r})"

    def assign(self, assignment, /):
        """
        Apply one `key=value` (or bare `key`) assignment.

        The assignment is split on the first '='; a missing '=' stores an empty
        string. Returns the (key, value) pair stored.
        """
        key, _, value = assignment.partition("=")
        self[key] = value
        logger.debug("system property %r set to %r", key, value)
        return key, value


properties = SystemProperties()


__all__ = (
    "SystemProperties",
    "properties",
)
