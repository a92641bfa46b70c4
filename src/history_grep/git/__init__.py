"""Git object database access."""

from .object_store import GitObjectStore

__all__ = ["GitObjectStore"]
