"""Session storage backends. Redis, SQL and MongoDB backends are imported from their own modules."""

from .backend import BackendError, SessionBackend
from .memory_backend import InMemoryBackend

__all__ = [
    "BackendError",
    "SessionBackend",
    "InMemoryBackend",
]
