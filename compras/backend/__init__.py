from .base import Backend, BackendError, Session, Subscription
from .feed import ChangeFeed
from .local import LocalBackend, get_backend, local_backend_factory

__all__ = [
    "Backend",
    "BackendError",
    "Session",
    "Subscription",
    "ChangeFeed",
    "LocalBackend",
    "get_backend",
    "local_backend_factory",
]
