"""Yandex Object Storage client implementation over the S3-compatible API."""

from __future__ import annotations

import json
import logging
import time
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from ... import metrics
from ...constants import DEFAULT_REGION
from ...utils.rate_limit import rate_limit_s3
from . import converters

logger = logging.getLogger(__name__)

# Error codes meaning "this setting is not configured on the bucket"
NOT_CONFIGURED_CODES = {
    "NoSuchCORSConfiguration",
    "NoSuchLifecycleConfiguration",
    "NoSuchWebsiteConfiguration",
    "NoSuchBucketPolicy",
    "NoSuchTagSet",
    "ServerSideEncryptionConfigurationNotFoundError",
    "ObjectLockConfigurationNotFoundError",
}


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def _strip_metadata(response: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in response.items() if key != "ResponseMetadata"}


class YandexStorageProvider:
    """Yandex Object Storage provider implementation."""

    def __init__(
        self,
        endpoint: str,
        region: str,
        access_key: str,
        secret_key: str,
        path_style: bool = True,
        insecure_skip_verify: bool = False,
    ) -> None:
        """Initialize the storage provider.

        Args:
            endpoint: S3-compatible endpoint URL
            region: Yandex Cloud region
            access_key: Static access key ID of a service account
            secret_key: Static secret key
            path_style: Use path-style addressing
            insecure_skip_verify: Skip TLS verification
        """
        self.endpoint = endpoint
        self.region = region
        self.path_style = path_style

        config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path" if path_style else "auto"},
        )

        self.client = boto3.client(
            "s3",
            endpoint_url=endpoint,
            region_name=region,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            config=config,
            verify=not insecure_skip_verify,
        )

    def _call(self, operation: str, **params: Any) -> dict[str, Any]:
        """Invoke an S3 operation with rate limiting and API metrics."""
        start_time = time.time()
        try:
            response = rate_limit_s3(getattr(self.client, operation))(**params)
            metrics.api_call_total.labels(api_type="s3", operation=operation, result="success").inc()
            return response
        except ClientError:
            metrics.api_call_total.labels(api_type="s3", operation=operation, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="s3", operation=operation).observe(duration)

    def list_buckets(self) -> list[str]:
        """List all buckets."""
        try:
            response = self._call("list_buckets")
            return [bucket["Name"] for bucket in response.get("Buckets", [])]
        except ClientError as e:
            logger.error(f"Failed to list buckets: {e}")
            raise

    def create_bucket(self, name: str, config: dict[str, Any]) -> None:
        """Create a bucket with its core configuration.

        Object lock can only be requested at creation time together with the
        bucket; the remaining settings are applied by reconciliation.
        """
        try:
            create_params: dict[str, Any] = {"Bucket": name}
            region = config.get("region")
            if region and region != DEFAULT_REGION:
                create_params["CreateBucketConfiguration"] = {"LocationConstraint": region}
            if config.get("acl") and not config.get("grants"):
                create_params["ACL"] = config["acl"]
            if config.get("object_lock_enabled"):
                create_params["ObjectLockEnabledForBucket"] = True

            self._call("create_bucket", **create_params)

            # Object lock implies versioning
            if config.get("versioning_enabled") or config.get("object_lock_enabled"):
                self.set_bucket_versioning(name, True)

            if config.get("encryption_enabled"):
                algorithm = config.get("encryption_algorithm", "aws:kms")
                kms_key_id = config.get("kms_key_id")
                try:
                    self.set_bucket_encryption(name, algorithm, kms_key_id)
                except ClientError as enc_error:
                    # The KMS key may not be usable by the service account yet
                    logger.warning(f"Failed to set encryption for bucket {name}: {enc_error}. Bucket created without encryption.")

            tags = config.get("tags")
            if tags:
                self.set_bucket_tags(name, tags)

        except ClientError as e:
            logger.error(f"Failed to create bucket {name}: {e}")
            raise

    def is_bucket_empty(self, name: str) -> bool:
        """Check if a bucket is empty."""
        try:
            response = self._call("list_objects_v2", Bucket=name, MaxKeys=1)
            return not response.get("Contents", [])
        except ClientError as e:
            logger.error(f"Failed to check if bucket {name} is empty: {e}")
            raise

    def empty_bucket(self, name: str) -> None:
        """Empty a bucket by deleting all objects, versions and delete markers."""
        try:
            logger.info(f"Emptying bucket {name}")
            paginator = self.client.get_paginator("list_object_versions")

            for page in paginator.paginate(Bucket=name):
                entries = page.get("DeleteMarkers", []) + page.get("Versions", [])
                for entry in entries:
                    try:
                        params = {"Bucket": name, "Key": entry["Key"]}
                        if entry.get("VersionId") and entry["VersionId"] != "null":
                            params["VersionId"] = entry["VersionId"]
                        self._call("delete_object", **params)
                        logger.debug(f"Deleted object {entry['Key']} (VersionId: {entry.get('VersionId')})")
                    except ClientError as e:
                        logger.warning(f"Failed to delete object {entry['Key']}: {e}")

            logger.info(f"Successfully emptied bucket {name}")
        except ClientError as e:
            logger.error(f"Failed to empty bucket {name}: {e}")
            raise

    def delete_bucket(self, name: str, force: bool = False) -> None:
        """Delete a bucket.

        Args:
            name: Bucket name
            force: If True, empty the bucket before deletion if it's not empty

        Raises:
            ValueError: If the bucket is not empty and force is False
        """
        try:
            if not self.is_bucket_empty(name):
                if force:
                    logger.info(f"Bucket {name} is not empty, emptying it before deletion")
                    self.empty_bucket(name)
                else:
                    raise ValueError(f"Bucket {name} is not empty. Set forceDelete to empty it before deletion.")

            self._call("delete_bucket", Bucket=name)
            logger.info(f"Successfully deleted bucket {name}")
        except ClientError as e:
            logger.error(f"Failed to delete bucket {name}: {e}")
            raise

    def bucket_exists(self, name: str) -> bool:
        """Check if bucket exists."""
        try:
            self._call("head_bucket", Bucket=name)
            return True
        except ClientError as e:
            if _error_code(e) in ("404", "NoSuchBucket", "NotFound"):
                return False
            raise

    def get_bucket_versioning(self, name: str) -> dict[str, bool]:
        """Get bucket versioning configuration."""
        try:
            response = self._call("get_bucket_versioning", Bucket=name)
            return {"enabled": response.get("Status") == "Enabled"}
        except ClientError as e:
            logger.error(f"Failed to get versioning for bucket {name}: {e}")
            raise

    def set_bucket_versioning(self, name: str, enabled: bool) -> None:
        """Set bucket versioning configuration."""
        try:
            self._call(
                "put_bucket_versioning",
                Bucket=name,
                VersioningConfiguration={"Status": "Enabled" if enabled else "Suspended"},
            )
        except ClientError as e:
            logger.error(f"Failed to set versioning for bucket {name}: {e}")
            raise

    def get_bucket_encryption(self, name: str) -> dict[str, str | None]:
        """Get bucket encryption configuration."""
        try:
            response = self._call("get_bucket_encryption", Bucket=name)
            rules = response.get("ServerSideEncryptionConfiguration", {}).get("Rules", [])
            if rules:
                sse_config = rules[0].get("ApplyServerSideEncryptionByDefault", {})
                return {
                    "algorithm": sse_config.get("SSEAlgorithm"),
                    "kms_key_id": sse_config.get("KMSMasterKeyID"),
                }
            return {"algorithm": None, "kms_key_id": None}
        except ClientError as e:
            if _error_code(e) in NOT_CONFIGURED_CODES:
                return {"algorithm": None, "kms_key_id": None}
            logger.error(f"Failed to get encryption for bucket {name}: {e}")
            raise

    def set_bucket_encryption(self, name: str, algorithm: str, kms_key_id: str | None = None) -> None:
        """Set bucket encryption configuration."""
        try:
            default_encryption: dict[str, Any] = {"SSEAlgorithm": algorithm}
            if kms_key_id:
                default_encryption["KMSMasterKeyID"] = kms_key_id

            self._call(
                "put_bucket_encryption",
                Bucket=name,
                ServerSideEncryptionConfiguration={
                    "Rules": [{"ApplyServerSideEncryptionByDefault": default_encryption}]
                },
            )
        except ClientError as e:
            logger.error(f"Failed to set encryption for bucket {name}: {e}")
            raise

    def delete_bucket_encryption(self, name: str) -> None:
        """Delete bucket encryption configuration."""
        try:
            self._call("delete_bucket_encryption", Bucket=name)
        except ClientError as e:
            if _error_code(e) in NOT_CONFIGURED_CODES:
                return
            logger.error(f"Failed to delete encryption for bucket {name}: {e}")
            raise

    def get_bucket_acl(self, name: str) -> list[dict[str, Any]]:
        """Get the non-owner grants of a bucket in CRD format."""
        try:
            response = self._call("get_bucket_acl", Bucket=name)
            return converters.grants_from_aws(response)
        except ClientError as e:
            logger.error(f"Failed to get ACL for bucket {name}: {e}")
            raise

    def set_bucket_acl(self, name: str, acl: str | None, grants: list[dict[str, Any]]) -> None:
        """Set a canned ACL or explicit grants on a bucket.

        Explicit grants take precedence over the canned ACL.
        """
        try:
            if grants:
                self._call("put_bucket_acl", Bucket=name, **converters.grants_to_aws(grants))
            else:
                self._call("put_bucket_acl", Bucket=name, ACL=acl or "private")
        except ClientError as e:
            logger.error(f"Failed to set ACL for bucket {name}: {e}")
            raise

    def get_bucket_policy(self, name: str) -> dict[str, Any] | None:
        """Get bucket policy.

        Returns:
            Policy document dict if policy exists, None if no policy is set
        """
        try:
            response = self._call("get_bucket_policy", Bucket=name)
            return json.loads(response["Policy"])
        except ClientError as e:
            if _error_code(e) in NOT_CONFIGURED_CODES:
                return None
            logger.error(f"Failed to get policy for bucket {name}: {e}")
            raise

    def put_bucket_policy(self, name: str, policy: dict[str, Any]) -> None:
        """Put a bucket policy already in API format."""
        try:
            self._call("put_bucket_policy", Bucket=name, Policy=json.dumps(policy))
            logger.info(f"Successfully set bucket policy for {name}")
        except ClientError as e:
            logger.error(f"Failed to set policy for bucket {name}: {e}")
            raise

    def delete_bucket_policy(self, name: str) -> None:
        """Delete bucket policy."""
        try:
            self._call("delete_bucket_policy", Bucket=name)
        except ClientError as e:
            if _error_code(e) in NOT_CONFIGURED_CODES:
                return
            logger.error(f"Failed to delete policy for bucket {name}: {e}")
            raise

    def get_bucket_tags(self, name: str) -> dict[str, str]:
        """Get bucket tags."""
        try:
            response = self._call("get_bucket_tagging", Bucket=name)
            return {tag["Key"]: tag["Value"] for tag in response.get("TagSet", [])}
        except ClientError as e:
            if _error_code(e) in NOT_CONFIGURED_CODES:
                return {}
            logger.error(f"Failed to get tags for bucket {name}: {e}")
            raise

    def set_bucket_tags(self, name: str, tags: dict[str, str]) -> None:
        """Set bucket tags."""
        try:
            tag_set = [{"Key": k, "Value": v} for k, v in tags.items()]
            self._call("put_bucket_tagging", Bucket=name, Tagging={"TagSet": tag_set})
        except ClientError as e:
            logger.error(f"Failed to set tags for bucket {name}: {e}")
            raise

    def get_bucket_lifecycle(self, name: str) -> dict[str, Any] | None:
        """Get bucket lifecycle configuration."""
        try:
            response = self._call("get_bucket_lifecycle_configuration", Bucket=name)
            return _strip_metadata(response)
        except ClientError as e:
            if _error_code(e) in NOT_CONFIGURED_CODES:
                return None
            logger.error(f"Failed to get lifecycle for bucket {name}: {e}")
            raise

    def set_bucket_lifecycle(self, name: str, rules: list[dict[str, Any]]) -> None:
        """Set bucket lifecycle configuration from CRD rules."""
        try:
            self._call(
                "put_bucket_lifecycle_configuration",
                Bucket=name,
                LifecycleConfiguration={"Rules": converters.lifecycle_rules_to_aws(rules)},
            )
        except ClientError as e:
            logger.error(f"Failed to set lifecycle for bucket {name}: {e}")
            raise

    def delete_bucket_lifecycle(self, name: str) -> None:
        """Delete bucket lifecycle configuration."""
        try:
            self._call("delete_bucket_lifecycle", Bucket=name)
        except ClientError as e:
            if _error_code(e) in NOT_CONFIGURED_CODES:
                return
            logger.error(f"Failed to delete lifecycle for bucket {name}: {e}")
            raise

    def get_bucket_cors(self, name: str) -> dict[str, Any] | None:
        """Get bucket CORS configuration."""
        try:
            response = self._call("get_bucket_cors", Bucket=name)
            return _strip_metadata(response)
        except ClientError as e:
            if _error_code(e) in NOT_CONFIGURED_CODES:
                return None
            logger.error(f"Failed to get CORS for bucket {name}: {e}")
            raise

    def set_bucket_cors(self, name: str, rules: list[dict[str, Any]]) -> None:
        """Set bucket CORS configuration from CRD rules."""
        try:
            self._call(
                "put_bucket_cors",
                Bucket=name,
                CORSConfiguration={"CORSRules": converters.cors_rules_to_aws(rules)},
            )
        except ClientError as e:
            logger.error(f"Failed to set CORS for bucket {name}: {e}")
            raise

    def delete_bucket_cors(self, name: str) -> None:
        """Delete bucket CORS configuration."""
        try:
            self._call("delete_bucket_cors", Bucket=name)
        except ClientError as e:
            if _error_code(e) in NOT_CONFIGURED_CODES:
                return
            logger.error(f"Failed to delete CORS for bucket {name}: {e}")
            raise

    def get_bucket_website(self, name: str) -> dict[str, Any] | None:
        """Get bucket website configuration."""
        try:
            response = self._call("get_bucket_website", Bucket=name)
            return _strip_metadata(response)
        except ClientError as e:
            if _error_code(e) in NOT_CONFIGURED_CODES:
                return None
            logger.error(f"Failed to get website configuration for bucket {name}: {e}")
            raise

    def set_bucket_website(self, name: str, website: dict[str, Any]) -> None:
        """Set bucket website configuration.

        Args:
            name: Bucket name
            website: WebsiteConfiguration as built by the website builder
        """
        try:
            self._call("put_bucket_website", Bucket=name, WebsiteConfiguration=website)
        except ClientError as e:
            logger.error(f"Failed to set website configuration for bucket {name}: {e}")
            raise

    def delete_bucket_website(self, name: str) -> None:
        """Delete bucket website configuration."""
        try:
            self._call("delete_bucket_website", Bucket=name)
        except ClientError as e:
            if _error_code(e) in NOT_CONFIGURED_CODES:
                return
            logger.error(f"Failed to delete website configuration for bucket {name}: {e}")
            raise

    def get_bucket_logging(self, name: str) -> dict[str, Any]:
        """Get bucket access logging status; empty when logging is disabled."""
        try:
            response = self._call("get_bucket_logging", Bucket=name)
            return _strip_metadata(response)
        except ClientError as e:
            logger.error(f"Failed to get logging for bucket {name}: {e}")
            raise

    def set_bucket_logging(self, name: str, target_bucket: str | None, target_prefix: str = "") -> None:
        """Enable access logging into target_bucket, or disable it when target_bucket is None."""
        try:
            self._call(
                "put_bucket_logging",
                Bucket=name,
                BucketLoggingStatus=converters.logging_to_aws(target_bucket, target_prefix),
            )
        except ClientError as e:
            logger.error(f"Failed to set logging for bucket {name}: {e}")
            raise

    def get_object_lock(self, name: str) -> dict[str, Any] | None:
        """Get bucket object lock configuration."""
        try:
            response = self._call("get_object_lock_configuration", Bucket=name)
            return response.get("ObjectLockConfiguration")
        except ClientError as e:
            if _error_code(e) in NOT_CONFIGURED_CODES:
                return None
            logger.error(f"Failed to get object lock for bucket {name}: {e}")
            raise

    def set_object_lock(self, name: str, default_retention: dict[str, Any] | None) -> None:
        """Enable object lock with an optional default retention."""
        try:
            self._call(
                "put_object_lock_configuration",
                Bucket=name,
                ObjectLockConfiguration=converters.object_lock_to_aws(default_retention),
            )
        except ClientError as e:
            logger.error(f"Failed to set object lock for bucket {name}: {e}")
            raise

    def test_connectivity(self) -> bool:
        """Test connectivity to the provider."""
        try:
            self._call("list_buckets")
            return True
        except Exception as e:
            logger.error(f"Connectivity test failed: {e}")
            return False
