"""Report definitions - import all to register with the global registry."""

from . import blur, duplicate, face

__all__ = ["blur", "duplicate", "face"]
