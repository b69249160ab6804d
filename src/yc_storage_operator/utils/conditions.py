"""Status conditions for Bucket and Provider resources.

Conditions follow the Kubernetes convention: one entry per ``type``, with a
``lastTransitionTime`` that only moves when ``status`` flips.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..constants import (
    COND_AUTH_VALID,
    COND_CREATION_FAILED,
    COND_ENDPOINT_REACHABLE,
    COND_PROVIDER_NOT_READY,
    COND_READY,
    COND_WEBSITE_INVALID,
)

Conditions = list[dict[str, Any]]

# Reasons reported for True and False on the two-state conditions
_REASONS = {
    COND_READY: ("Ready", "NotReady"),
    COND_AUTH_VALID: ("AuthValid", "AuthInvalid"),
    COND_ENDPOINT_REACHABLE: ("EndpointReachable", "EndpointUnreachable"),
}


def update_condition(
    conditions: Conditions,
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> Conditions:
    """Set ``condition_type`` in a copy of ``conditions``.

    Args:
        conditions: Current status conditions
        condition_type: Condition to set
        status: "True", "False" or "Unknown"
        reason: CamelCase reason
        message: Human-readable message
        observed_generation: Resource generation the condition describes

    Returns:
        The conditions with ``condition_type`` replaced or appended
    """
    previous = next((c for c in conditions if c.get("type") == condition_type), None)

    transition_time = None
    if previous is not None and previous.get("status") == status:
        transition_time = previous.get("lastTransitionTime")

    condition = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": transition_time or datetime.now(timezone.utc).isoformat(),
    }
    if observed_generation is not None:
        condition["observedGeneration"] = observed_generation

    if previous is None:
        return [*conditions, condition]
    return [condition if c is previous else c for c in conditions]


def _set_state(
    conditions: Conditions,
    condition_type: str,
    ok: bool,
    message: str,
    observed_generation: int | None,
) -> Conditions:
    true_reason, false_reason = _REASONS[condition_type]
    return update_condition(
        conditions,
        condition_type,
        str(ok),
        true_reason if ok else false_reason,
        message,
        observed_generation,
    )


def _set_failure(
    conditions: Conditions,
    condition_type: str,
    message: str,
    observed_generation: int | None,
) -> Conditions:
    # Failure conditions are only ever present as True; they are removed once resolved
    return update_condition(conditions, condition_type, "True", condition_type, message, observed_generation)


def set_ready_condition(
    conditions: Conditions, status: bool, message: str, observed_generation: int | None = None
) -> Conditions:
    return _set_state(conditions, COND_READY, status, message, observed_generation)


def set_auth_valid_condition(
    conditions: Conditions, status: bool, message: str, observed_generation: int | None = None
) -> Conditions:
    return _set_state(conditions, COND_AUTH_VALID, status, message, observed_generation)


def set_endpoint_reachable_condition(
    conditions: Conditions, status: bool, message: str, observed_generation: int | None = None
) -> Conditions:
    return _set_state(conditions, COND_ENDPOINT_REACHABLE, status, message, observed_generation)


def set_provider_not_ready_condition(
    conditions: Conditions, message: str, observed_generation: int | None = None
) -> Conditions:
    """Mark a Bucket whose Provider is missing or not Ready."""
    return _set_failure(conditions, COND_PROVIDER_NOT_READY, message, observed_generation)


def set_creation_failed_condition(
    conditions: Conditions, message: str, observed_generation: int | None = None
) -> Conditions:
    return _set_failure(conditions, COND_CREATION_FAILED, message, observed_generation)


def set_website_invalid_condition(
    conditions: Conditions, message: str, observed_generation: int | None = None
) -> Conditions:
    """Mark a website section that cannot become a hosting configuration.

    Unknown routing rule keys in strict mode, malformed rule values and
    rules without a redirect all end up here.
    """
    return _set_failure(conditions, COND_WEBSITE_INVALID, message, observed_generation)


def remove_condition(conditions: Conditions, condition_type: str) -> Conditions:
    """Drop a condition that no longer applies, such as a resolved failure."""
    return [c for c in conditions if c.get("type") != condition_type]
