"""Short-lived cache for custom objects read from the Kubernetes API.

Bucket reconciles look up their Provider on every pass; the cache keeps those
reads off the API server. Provider changes invalidate their entry.
"""

from __future__ import annotations

import os
import time
from typing import Any, Optional

_cache: dict[str, tuple[Any, float]] = {}
_cache_ttl: float = float(os.getenv("K8S_CACHE_TTL_SECONDS", "30.0"))


def get_cached_object(key: str) -> Optional[Any]:
    """Return the cached object, or None when it is missing or expired."""
    entry = _cache.get(key)
    if entry is None:
        return None

    obj, stored_at = entry
    if time.time() - stored_at > _cache_ttl:
        _cache.pop(key, None)
        return None
    return obj


def set_cached_object(key: str, obj: Any) -> None:
    _cache[key] = (obj, time.time())


def invalidate_cache(pattern: Optional[str] = None) -> None:
    """Drop entries whose key contains ``pattern``, or every entry if it is None."""
    if pattern is None:
        _cache.clear()
        return
    for key in [key for key in _cache if pattern in key]:
        del _cache[key]


def make_cache_key(kind: str, namespace: str, name: str) -> str:
    """Build the ``kind:namespace:name`` key of a namespaced resource."""
    return f"{kind}:{namespace}:{name}"
