__path__ = __import__("pkgutil").extend_path(__path__, __name__)  # NOQA: F-821
__title__ = 'propulse'
__author__ = 'Propulse Developers'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .faults import *
from .presets import *
from .properties import *
from .service import *
from .system import SystemProperties

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__path__",
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info",
    "SystemProperties",
)

# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the presets
__all__ += presets.__all__  # type: ignore[attr-defined]
# Load the exposed API of the properties
__all__ += properties.__all__  # type: ignore[attr-defined]
# Load the exposed API of the service
__all__ += service.__all__  # type: ignore[attr-defined]
