"""Builder for S3 provider instances."""

from __future__ import annotations

from typing import Any

from kubernetes import client, config

from ..constants import DEFAULT_ENDPOINT, DEFAULT_REGION
from ..services.aws.client import YandexStorageProvider
from ..utils.secrets import get_secret_value


def create_provider_from_spec(
    spec: dict[str, Any],
    meta: dict[str, Any],
) -> YandexStorageProvider:
    """Create an S3 provider instance from CRD spec.

    Args:
        spec: Provider CRD spec
        meta: Resource metadata

    Returns:
        Configured S3 provider instance

    Raises:
        ValueError: If configuration is invalid
    """
    # Get Kubernetes API client
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

    api = client.CoreV1Api()

    namespace = meta.get("namespace", "default")

    # Static access keys of a Yandex Cloud service account
    auth = spec.get("auth", {})
    access_key_ref = auth.get("accessKeySecretRef", {})
    secret_key_ref = auth.get("secretKeySecretRef", {})

    access_key_name = access_key_ref.get("name")
    access_key_key = access_key_ref.get("key", "access-key")
    secret_key_name = secret_key_ref.get("name")
    secret_key_key = secret_key_ref.get("key", "secret-key")

    if not access_key_name or not secret_key_name:
        raise ValueError("accessKeySecretRef and secretKeySecretRef are required")

    access_key = get_secret_value(api, namespace, access_key_name, access_key_key)
    secret_key = get_secret_value(api, namespace, secret_key_name, secret_key_key)

    tls_config = spec.get("tls", {})
    insecure_skip_verify = tls_config.get("insecureSkipVerify", False)

    endpoint = spec.get("endpoint", DEFAULT_ENDPOINT)
    region = spec.get("region", DEFAULT_REGION)
    path_style = spec.get("pathStyle", True)

    if not endpoint or not region:
        raise ValueError("endpoint and region are required")

    return YandexStorageProvider(
        endpoint=endpoint,
        region=region,
        access_key=access_key,
        secret_key=secret_key,
        path_style=path_style,
        insecure_skip_verify=insecure_skip_verify,
    )
