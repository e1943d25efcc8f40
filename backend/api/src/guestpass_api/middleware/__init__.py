"""HTTP middleware for the guestpass API."""

from .cache_control import NoStoreMiddleware
from .correlation import CorrelationIdMiddleware

__all__ = ["CorrelationIdMiddleware", "NoStoreMiddleware"]
