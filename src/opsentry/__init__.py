"""opsentry: in-process instrumentation and resilience for async clients."""

from opsentry.config import _PACKAGE_VERSION as __version__

__all__ = ["__version__"]
