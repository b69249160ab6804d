"""Utilities for reading Kubernetes secrets."""

from __future__ import annotations

import base64

from kubernetes import client


def get_secret_value(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
    key: str,
) -> str:
    """Get a value from a Kubernetes secret.

    Args:
        api: Kubernetes API client
        namespace: Namespace of the secret
        secret_name: Name of the secret
        key: Key in the secret

    Returns:
        Secret value

    Raises:
        ValueError: If secret or key not found
    """
    try:
        secret = api.read_namespaced_secret(name=secret_name, namespace=namespace)
        data = secret.data or {}
        if key not in data:
            raise ValueError(f"Key '{key}' not found in secret '{secret_name}'")

        value = data[key]
        # Secret data is base64 encoded unless the client already decoded it
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return base64.b64decode(value).decode("utf-8")
    except client.exceptions.ApiException as e:
        if e.status == 404:
            raise ValueError(f"Secret '{secret_name}' not found in namespace '{namespace}'") from e
        raise
