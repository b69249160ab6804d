"""Rate limiting utilities for API calls."""

from __future__ import annotations

import os
import time
from functools import wraps
from typing import Any, Callable, TypeVar

from kubernetes.client.exceptions import ApiException

from .. import metrics

_F = TypeVar("_F", bound=Callable[..., Any])

# Rate limit configuration
_K8S_RATE_LIMIT_PER_SECOND = float(os.getenv("K8S_RATE_LIMIT_PER_SECOND", "10.0"))
_S3_RATE_LIMIT_PER_SECOND = float(os.getenv("S3_RATE_LIMIT_PER_SECOND", "5.0"))

# Track last call times per API
_last_call_times: dict[str, float] = {"k8s": 0.0, "s3": 0.0}


def _throttle(api_type: str, rate_per_second: float) -> None:
    min_interval = 1.0 / rate_per_second
    time_since_last_call = time.time() - _last_call_times[api_type]
    if time_since_last_call < min_interval:
        metrics.rate_limit_hits_total.labels(api_type=api_type).inc()
        time.sleep(min_interval - time_since_last_call)
    _last_call_times[api_type] = time.time()


def rate_limit_k8s(func: _F) -> _F:
    """Decorator to rate limit Kubernetes API calls.

    Spaces calls at least 1/K8S_RATE_LIMIT_PER_SECOND seconds apart so the
    API server is not overwhelmed during resyncs.
    """
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        _throttle("k8s", _K8S_RATE_LIMIT_PER_SECOND)
        return func(*args, **kwargs)

    return wrapper  # type: ignore


def rate_limit_s3(func: _F) -> _F:
    """Decorator to rate limit Object Storage API calls."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        _throttle("s3", _S3_RATE_LIMIT_PER_SECOND)
        return func(*args, **kwargs)

    return wrapper  # type: ignore


def handle_rate_limit_error(e: Exception, attempt: int, max_retries: int = 3) -> bool:
    """Check if an API exception is a rate limit error and back off.

    Args:
        e: Exception raised by the Kubernetes client
        attempt: Number of retries the caller has already made
        max_retries: Maximum number of consecutive retries

    Returns:
        True if the caller should retry, False otherwise
    """
    status = e.status if isinstance(e, ApiException) else None
    # Kubernetes API rate limit errors typically return 429 or 503
    if not (status == 429 or (status == 503 and "rate limit" in str(e).lower())):
        return False
    if attempt >= max_retries:
        return False

    # Exponential backoff: 1s, 2s, 4s
    time.sleep(2 ** attempt)
    return True
