"""Main entry point for the Yandex Object Storage Operator."""

from __future__ import annotations

import os
from typing import Any

import kopf

from . import handlers  # noqa: F401
from . import health
from . import logging as structured_logging
from .tracing import initialize_tracing


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    structured_logging.setup_structured_logging()
    initialize_tracing()

    # Annotations keep kopf's bookkeeping out of the status we patch
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()
    settings.persistence.finalizer = "storage.yc.cloud37.dev/kopf-finalizer"

    settings.posting.level = 0
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = int(os.getenv("MAX_WORKERS", "4"))

    # Exponential backoff after unexpected errors: 1s, 2s, 4s ... 60s
    settings.batching.error_delays = [1, 2, 4, 8, 16, 32, 60]

    # Metrics and health endpoints on one port
    health.start_http_server(int(os.getenv("METRICS_PORT", "8080")))
