"""Tests for Kubernetes secrets utilities."""

from __future__ import annotations

import base64
from unittest.mock import Mock

import pytest
from kubernetes import client

from yc_storage_operator.utils.secrets import get_secret_value


def _api_with_data(data):
    api = Mock()
    secret = Mock()
    secret.data = data
    api.read_namespaced_secret.return_value = secret
    return api


class TestGetSecretValue:
    """Test cases for get_secret_value function."""

    def test_base64_value(self):
        """Test decoding a base64 encoded value."""
        encoded = base64.b64encode(b"YCAJEexampleKeyId12345678").decode("utf-8")
        api = _api_with_data({"access-key": encoded})

        result = get_secret_value(api, "default", "yc-creds", "access-key")

        assert result == "YCAJEexampleKeyId12345678"
        api.read_namespaced_secret.assert_called_once_with(name="yc-creds", namespace="default")

    def test_bytes_value(self):
        """Test a value the client already decoded."""
        api = _api_with_data({"secret-key": b"secret-value"})

        assert get_secret_value(api, "default", "yc-creds", "secret-key") == "secret-value"

    @pytest.mark.parametrize("data", [{"other-key": "dmFsdWU="}, None])
    def test_key_not_found(self, data):
        """Test error when the key is missing or the secret is empty."""
        api = _api_with_data(data)

        with pytest.raises(ValueError, match="Key 'access-key' not found in secret 'yc-creds'"):
            get_secret_value(api, "default", "yc-creds", "access-key")

    def test_secret_not_found(self):
        """Test error when the secret does not exist."""
        api = Mock()
        api.read_namespaced_secret.side_effect = client.exceptions.ApiException(status=404)

        with pytest.raises(ValueError, match="Secret 'yc-creds' not found in namespace 'default'"):
            get_secret_value(api, "default", "yc-creds", "access-key")

    def test_api_error(self):
        """Test that other API errors propagate."""
        api = Mock()
        api.read_namespaced_secret.side_effect = client.exceptions.ApiException(status=500)

        with pytest.raises(client.exceptions.ApiException):
            get_secret_value(api, "default", "yc-creds", "access-key")
