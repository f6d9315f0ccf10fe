"""
Access module - edit permissions for series and units.

Permission checks are resolved against the stored records on every call;
nothing is cached. KeyedLock is exposed so storage backends can share the
same per-URN locks with the resolver.
"""

from .locks import KeyedLock
from .permissions import EDITABLE_TYPES, PermissionResolver

__all__ = ["KeyedLock", "PermissionResolver", "EDITABLE_TYPES"]
