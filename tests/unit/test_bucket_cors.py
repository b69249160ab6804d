"""Unit tests for bucket CORS management."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from yc_storage_operator.services.aws.client import YandexStorageProvider


class TestBucketCORS:
    """Test bucket CORS management."""

    @pytest.fixture
    def provider(self) -> YandexStorageProvider:
        """Create a test provider."""
        provider = YandexStorageProvider(
            endpoint="https://storage.yandexcloud.net",
            region="ru-central1",
            access_key="test-access-key",
            secret_key="test-secret-key",
        )
        provider.client = MagicMock()
        return provider

    def test_get_bucket_cors_exists(self, provider: YandexStorageProvider) -> None:
        """Test getting CORS configuration when it exists."""
        rules = [{"AllowedOrigins": ["https://example.com"], "AllowedMethods": ["GET", "PUT"]}]
        provider.client.get_bucket_cors.return_value = {
            "CORSRules": rules,
            "ResponseMetadata": {"HTTPStatusCode": 200},
        }

        result = provider.get_bucket_cors("test-bucket")

        assert result == {"CORSRules": rules}
        provider.client.get_bucket_cors.assert_called_once_with(Bucket="test-bucket")

    def test_get_bucket_cors_not_exists(self, provider: YandexStorageProvider) -> None:
        """Test getting CORS configuration when it doesn't exist."""
        error_response = {"Error": {"Code": "NoSuchCORSConfiguration"}}
        provider.client.get_bucket_cors.side_effect = ClientError(error_response, "GetBucketCors")

        assert provider.get_bucket_cors("test-bucket") is None

    def test_get_bucket_cors_error(self, provider: YandexStorageProvider) -> None:
        """Test error handling when getting CORS fails."""
        error_response = {"Error": {"Code": "AccessDenied"}}
        provider.client.get_bucket_cors.side_effect = ClientError(error_response, "GetBucketCors")

        with pytest.raises(ClientError):
            provider.get_bucket_cors("test-bucket")

    def test_set_bucket_cors_full(self, provider: YandexStorageProvider) -> None:
        """Test setting CORS configuration with all fields."""
        rules = [
            {
                "id": "web",
                "allowedOrigins": ["https://example.com", "https://app.example.com"],
                "allowedMethods": ["GET", "HEAD"],
                "allowedHeaders": ["Content-Type"],
                "exposedHeaders": ["ETag"],
                "maxAgeSeconds": 86400,
            },
            {"allowedOrigins": ["*"], "allowedMethods": ["GET"]},
        ]

        provider.set_bucket_cors("test-bucket", rules)

        call_args = provider.client.put_bucket_cors.call_args
        assert call_args[1]["Bucket"] == "test-bucket"
        cors_rules = call_args[1]["CORSConfiguration"]["CORSRules"]
        assert cors_rules[0] == {
            "ID": "web",
            "AllowedOrigins": ["https://example.com", "https://app.example.com"],
            "AllowedMethods": ["GET", "HEAD"],
            "AllowedHeaders": ["Content-Type"],
            "ExposeHeaders": ["ETag"],
            "MaxAgeSeconds": 86400,
        }
        assert cors_rules[1] == {"AllowedOrigins": ["*"], "AllowedMethods": ["GET"]}

    def test_set_bucket_cors_error(self, provider: YandexStorageProvider) -> None:
        """Test error handling when setting CORS fails."""
        error_response = {"Error": {"Code": "InvalidRequest"}}
        provider.client.put_bucket_cors.side_effect = ClientError(error_response, "PutBucketCors")

        with pytest.raises(ClientError):
            provider.set_bucket_cors("test-bucket", [{"allowedOrigins": ["*"], "allowedMethods": ["GET"]}])

    def test_delete_bucket_cors_exists(self, provider: YandexStorageProvider) -> None:
        """Test deleting CORS configuration when it exists."""
        provider.delete_bucket_cors("test-bucket")
        provider.client.delete_bucket_cors.assert_called_once_with(Bucket="test-bucket")

    def test_delete_bucket_cors_not_exists(self, provider: YandexStorageProvider) -> None:
        """Test deleting CORS configuration when it doesn't exist."""
        error_response = {"Error": {"Code": "NoSuchCORSConfiguration"}}
        provider.client.delete_bucket_cors.side_effect = ClientError(error_response, "DeleteBucketCors")

        # Should not raise exception
        provider.delete_bucket_cors("test-bucket")

    def test_delete_bucket_cors_error(self, provider: YandexStorageProvider) -> None:
        """Test error handling when deleting CORS fails."""
        error_response = {"Error": {"Code": "AccessDenied"}}
        provider.client.delete_bucket_cors.side_effect = ClientError(error_response, "DeleteBucketCors")

        with pytest.raises(ClientError):
            provider.delete_bucket_cors("test-bucket")
