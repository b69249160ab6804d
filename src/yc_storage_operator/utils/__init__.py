"""Utility functions for the Yandex Object Storage Operator."""

from .cache import (
    get_cached_object,
    invalidate_cache,
    make_cache_key,
    set_cached_object,
)
from .conditions import (
    set_provider_not_ready_condition,
    set_ready_condition,
    update_condition,
)
from .errors import sanitize_exception
from .events import emit_event
from .rate_limit import handle_rate_limit_error, rate_limit_k8s, rate_limit_s3
from .secrets import get_secret_value

__all__ = [
    "update_condition",
    "set_ready_condition",
    "set_provider_not_ready_condition",
    "emit_event",
    "get_secret_value",
    "get_cached_object",
    "set_cached_object",
    "invalidate_cache",
    "make_cache_key",
    "rate_limit_k8s",
    "rate_limit_s3",
    "handle_rate_limit_error",
    "sanitize_exception",
]
