"""Content-addressed artifact cache and resource lifecycle."""

from lambdapack.cache.reconciler import CacheReconciler
from lambdapack.cache.state import ResourceState, clear_state, read_state, write_state
from lambdapack.cache.store import CacheStore

__all__ = [
    "CacheReconciler",
    "CacheStore",
    "ResourceState",
    "clear_state",
    "read_state",
    "write_state",
]
