"""Kubernetes events posted on Bucket and Provider resources."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_BUCKET_CREATED,
    EVENT_REASON_BUCKET_DELETED,
    EVENT_REASON_BUCKET_UPDATED,
    EVENT_REASON_POLICY_APPLIED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
    EVENT_REASON_VALIDATE_FAILED,
    EVENT_REASON_VALIDATE_SUCCEEDED,
    EVENT_REASON_WEBSITE_APPLIED,
)

_BUCKET_MESSAGES = {
    EVENT_REASON_BUCKET_CREATED: "Bucket {bucket} created",
    EVENT_REASON_BUCKET_UPDATED: "Bucket {bucket} updated",
    EVENT_REASON_BUCKET_DELETED: "Bucket {bucket} deleted",
    EVENT_REASON_POLICY_APPLIED: "Policy applied to bucket {bucket}",
    EVENT_REASON_WEBSITE_APPLIED: "Website configuration applied to bucket {bucket}",
}


def emit_event(
    meta: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Post an event on the object described by ``meta``.

    ``type_`` is "Normal" or "Warning".
    """
    kopf.event(meta, reason=reason, message=message, type=type_)


def emit_warning(meta: dict[str, Any], reason: str, message: str) -> None:
    emit_event(meta, reason, message, type_="Warning")


def emit_bucket_event(meta: dict[str, Any], reason: str, bucket_name: str) -> None:
    """Post one of the bucket lifecycle events, naming the bucket."""
    emit_event(meta, reason, _BUCKET_MESSAGES[reason].format(bucket=bucket_name))


def emit_reconcile_started(meta: dict[str, Any]) -> None:
    emit_event(meta, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(meta: dict[str, Any], message: str) -> None:
    emit_warning(meta, EVENT_REASON_RECONCILE_FAILED, message)


def emit_validate_succeeded(meta: dict[str, Any]) -> None:
    emit_event(meta, EVENT_REASON_VALIDATE_SUCCEEDED, "Validation succeeded")


def emit_validate_failed(meta: dict[str, Any], message: str) -> None:
    emit_warning(meta, EVENT_REASON_VALIDATE_FAILED, message)


def emit_bucket_created(meta: dict[str, Any], bucket_name: str) -> None:
    emit_bucket_event(meta, EVENT_REASON_BUCKET_CREATED, bucket_name)


def emit_bucket_updated(meta: dict[str, Any], bucket_name: str) -> None:
    emit_bucket_event(meta, EVENT_REASON_BUCKET_UPDATED, bucket_name)


def emit_bucket_deleted(meta: dict[str, Any], bucket_name: str) -> None:
    emit_bucket_event(meta, EVENT_REASON_BUCKET_DELETED, bucket_name)


def emit_policy_applied(meta: dict[str, Any], bucket_name: str) -> None:
    emit_bucket_event(meta, EVENT_REASON_POLICY_APPLIED, bucket_name)


def emit_website_applied(meta: dict[str, Any], bucket_name: str) -> None:
    emit_bucket_event(meta, EVENT_REASON_WEBSITE_APPLIED, bucket_name)
