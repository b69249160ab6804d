"""Tests for provider builder."""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest
from kubernetes import config

from yc_storage_operator.builders.provider import create_provider_from_spec
from yc_storage_operator.constants import DEFAULT_ENDPOINT, DEFAULT_REGION

AUTH = {
    "accessKeySecretRef": {"name": "yc-creds", "key": "access-key"},
    "secretKeySecretRef": {"name": "yc-creds", "key": "secret-key"},
}


class TestCreateProviderFromSpec:
    """Test cases for create_provider_from_spec function."""

    @patch("yc_storage_operator.builders.provider.YandexStorageProvider")
    @patch("yc_storage_operator.builders.provider.client.CoreV1Api")
    @patch("yc_storage_operator.builders.provider.get_secret_value")
    @patch("yc_storage_operator.builders.provider.config.load_incluster_config")
    def test_create_provider_success(
        self, mock_load_config, mock_get_secret, mock_core_api, mock_provider_cls
    ):
        """Test successfully creating provider."""
        mock_api = Mock()
        mock_core_api.return_value = mock_api
        mock_provider_instance = Mock()
        mock_provider_cls.return_value = mock_provider_instance
        mock_get_secret.side_effect = ["YCAJEexampleaccesskeyid00", "YCexample-secret-key-value"]

        spec = {
            "endpoint": "https://storage.yandexcloud.net",
            "region": "ru-central1",
            "auth": AUTH,
        }
        meta = {"namespace": "storage"}

        result = create_provider_from_spec(spec, meta)

        assert result == mock_provider_instance
        mock_get_secret.assert_any_call(mock_api, "storage", "yc-creds", "access-key")
        mock_get_secret.assert_any_call(mock_api, "storage", "yc-creds", "secret-key")
        mock_provider_cls.assert_called_once_with(
            endpoint="https://storage.yandexcloud.net",
            region="ru-central1",
            access_key="YCAJEexampleaccesskeyid00",
            secret_key="YCexample-secret-key-value",
            path_style=True,
            insecure_skip_verify=False,
        )

    @patch("yc_storage_operator.builders.provider.YandexStorageProvider")
    @patch("yc_storage_operator.builders.provider.client.CoreV1Api")
    @patch("yc_storage_operator.builders.provider.get_secret_value")
    @patch("yc_storage_operator.builders.provider.config.load_incluster_config")
    def test_create_provider_defaults(
        self, mock_load_config, mock_get_secret, mock_core_api, mock_provider_cls
    ):
        """Test that endpoint and region default to Yandex Object Storage."""
        mock_get_secret.side_effect = ["access", "secret"]

        create_provider_from_spec({"auth": AUTH}, {"namespace": "default"})

        kwargs = mock_provider_cls.call_args[1]
        assert kwargs["endpoint"] == DEFAULT_ENDPOINT
        assert kwargs["region"] == DEFAULT_REGION

    @patch("yc_storage_operator.builders.provider.YandexStorageProvider")
    @patch("yc_storage_operator.builders.provider.client.CoreV1Api")
    @patch("yc_storage_operator.builders.provider.get_secret_value")
    @patch("yc_storage_operator.builders.provider.config.load_incluster_config")
    def test_create_provider_with_tls_and_path_style(
        self, mock_load_config, mock_get_secret, mock_core_api, mock_provider_cls
    ):
        """Test TLS and addressing options."""
        mock_get_secret.side_effect = ["access", "secret"]
        spec = {
            "auth": AUTH,
            "pathStyle": False,
            "tls": {"insecureSkipVerify": True},
        }

        create_provider_from_spec(spec, {"namespace": "default"})

        kwargs = mock_provider_cls.call_args[1]
        assert kwargs["path_style"] is False
        assert kwargs["insecure_skip_verify"] is True

    @patch("yc_storage_operator.builders.provider.YandexStorageProvider")
    @patch("yc_storage_operator.builders.provider.client.CoreV1Api")
    @patch("yc_storage_operator.builders.provider.get_secret_value")
    @patch("yc_storage_operator.builders.provider.config.load_incluster_config")
    def test_create_provider_default_keys(
        self, mock_load_config, mock_get_secret, mock_core_api, mock_provider_cls
    ):
        """Test that secret keys default to access-key and secret-key."""
        mock_api = Mock()
        mock_core_api.return_value = mock_api
        mock_get_secret.side_effect = ["access", "secret"]
        spec = {
            "auth": {
                "accessKeySecretRef": {"name": "creds"},
                "secretKeySecretRef": {"name": "creds"},
            },
        }

        create_provider_from_spec(spec, {})

        mock_get_secret.assert_any_call(mock_api, "default", "creds", "access-key")
        mock_get_secret.assert_any_call(mock_api, "default", "creds", "secret-key")

    @patch("yc_storage_operator.builders.provider.YandexStorageProvider")
    @patch("yc_storage_operator.builders.provider.client.CoreV1Api")
    @patch("yc_storage_operator.builders.provider.get_secret_value")
    @patch("yc_storage_operator.builders.provider.config.load_kube_config")
    @patch("yc_storage_operator.builders.provider.config.load_incluster_config")
    def test_create_provider_fallback_kubeconfig(
        self, mock_load_incluster, mock_load_kube, mock_get_secret, mock_core_api, mock_provider_cls
    ):
        """Test falling back to the local kubeconfig outside the cluster."""
        mock_load_incluster.side_effect = config.ConfigException("not in cluster")
        mock_get_secret.side_effect = ["access", "secret"]

        create_provider_from_spec({"auth": AUTH}, {"namespace": "default"})

        mock_load_kube.assert_called_once()
        mock_provider_cls.assert_called_once()

    @patch("yc_storage_operator.builders.provider.client.CoreV1Api")
    @patch("yc_storage_operator.builders.provider.config.load_incluster_config")
    def test_create_provider_missing_access_key_ref(self, mock_load_config, mock_core_api):
        """Test that a missing access key reference is rejected."""
        spec = {"auth": {"secretKeySecretRef": {"name": "creds"}}}

        with pytest.raises(ValueError, match="accessKeySecretRef"):
            create_provider_from_spec(spec, {"namespace": "default"})

    @patch("yc_storage_operator.builders.provider.client.CoreV1Api")
    @patch("yc_storage_operator.builders.provider.config.load_incluster_config")
    def test_create_provider_missing_secret_key_ref(self, mock_load_config, mock_core_api):
        """Test that a missing secret key reference is rejected."""
        spec = {"auth": {"accessKeySecretRef": {"name": "creds"}}}

        with pytest.raises(ValueError, match="secretKeySecretRef"):
            create_provider_from_spec(spec, {"namespace": "default"})

    @patch("yc_storage_operator.builders.provider.client.CoreV1Api")
    @patch("yc_storage_operator.builders.provider.get_secret_value")
    @patch("yc_storage_operator.builders.provider.config.load_incluster_config")
    def test_create_provider_empty_endpoint(self, mock_load_config, mock_get_secret, mock_core_api):
        """Test that an empty endpoint is rejected."""
        mock_get_secret.side_effect = ["access", "secret"]

        with pytest.raises(ValueError, match="endpoint and region are required"):
            create_provider_from_spec({"auth": AUTH, "endpoint": ""}, {"namespace": "default"})

    @patch("yc_storage_operator.builders.provider.client.CoreV1Api")
    @patch("yc_storage_operator.builders.provider.get_secret_value")
    @patch("yc_storage_operator.builders.provider.config.load_incluster_config")
    def test_create_provider_secret_error_propagates(self, mock_load_config, mock_get_secret, mock_core_api):
        """Test that secret lookup failures propagate."""
        mock_get_secret.side_effect = ValueError("Secret 'yc-creds' not found in namespace 'default'")

        with pytest.raises(ValueError, match="not found"):
            create_provider_from_spec({"auth": AUTH}, {"namespace": "default"})
