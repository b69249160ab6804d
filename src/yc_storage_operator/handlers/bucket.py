"""Handler for Bucket CRD."""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any, Callable

import kopf
from kubernetes import client

from .. import metrics
from ..builders.bucket import create_bucket_config_from_spec, unsupported_settings
from ..builders.provider import create_provider_from_spec
from ..builders.website import (
    UnknownRoutingRuleKey,
    find_unknown_routing_rule_keys,
    strict_routing_rules,
    website_endpoint,
)
from ..constants import (
    API_GROUP_VERSION,
    COND_CREATION_FAILED,
    COND_WEBSITE_INVALID,
    DEFAULT_REGION,
    KIND_BUCKET,
)
from ..services.aws import converters
from ..tracing import add_span_attribute, trace_span
from ..utils.conditions import (
    remove_condition,
    set_creation_failed_condition,
    set_ready_condition,
    set_website_invalid_condition,
)
from ..utils.errors import sanitize_exception
from ..utils.events import (
    emit_bucket_created,
    emit_bucket_deleted,
    emit_bucket_updated,
    emit_policy_applied,
    emit_validate_succeeded,
    emit_website_applied,
)
from .base import BaseHandler
from .shared import get_k8s_client, get_provider_with_cache, is_resource_ready


def _normalize(value: Any) -> str:
    """Order-insensitive JSON form used to compare desired and live settings."""
    return json.dumps(value, sort_keys=True, default=str)


class BucketHandler(BaseHandler):
    """Handler for Bucket resources."""

    def __init__(self):
        super().__init__(KIND_BUCKET)

    def validate(
        self,
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> dict[str, Any]:
        """Validate the Bucket spec and build the bucket configuration from it.

        Everything here is local: no Kubernetes or storage API is called, so
        invalid routing rules never reach the provider.

        Returns:
            Bucket configuration dict
        """
        bucket_name = spec.get("name")
        if not bucket_name:
            self.handle_validation_error(meta, "bucket name is required")

        if not spec.get("providerRef", {}).get("name"):
            self.handle_validation_error(meta, "providerRef.name is required")

        try:
            bucket_config = create_bucket_config_from_spec(spec, DEFAULT_REGION)
        except (UnknownRoutingRuleKey, ValueError) as e:
            error_msg = f"Invalid website configuration: {e}"
            if not isinstance(e, UnknownRoutingRuleKey):
                error_msg = f"Invalid bucket configuration: {e}"
            conditions = set_website_invalid_condition(status.get("conditions", []), error_msg)
            patch.status.update({
                "conditions": conditions,
                "observedGeneration": meta.get("generation", 0),
            })
            self.handle_validation_error(meta, error_msg, error=e)

        try:
            if bucket_config["object_lock_enabled"]:
                converters.object_lock_to_aws(bucket_config["default_retention"])
            converters.desired_grants(bucket_config["acl"], bucket_config["grants"])
            converters.grants_to_aws(bucket_config["grants"])
        except ValueError as e:
            self.handle_validation_error(meta, f"Invalid bucket configuration: {e}", error=e)

        website = spec.get("website") or {}
        if bucket_config["website"] is not None and not strict_routing_rules(website):
            dropped = find_unknown_routing_rule_keys(website.get("routingRules"))
            if dropped:
                self.log_warning(meta, f"Dropping unknown routing rule keys: {', '.join(dropped)}",
                                 reason="RoutingRuleKeysDropped", bucket_name=bucket_name, keys=dropped)
                metrics.routing_rule_keys_dropped_total.labels(kind=KIND_BUCKET).inc(len(dropped))

        for setting in unsupported_settings(spec):
            self.log_warning(meta, f"{setting} is not supported by the S3-compatible API and is not applied",
                             reason="UnsupportedSetting", bucket_name=bucket_name, setting=setting)

        emit_validate_succeeded(meta)
        return bucket_config

    def reconcile(
        self,
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        """Reconcile Bucket resource."""
        namespace = meta.get("namespace", "default")
        name = meta.get("name", "unknown")
        bucket_name = spec.get("name")
        provider_ref = spec.get("providerRef", {})

        with trace_span("reconcile_bucket", kind=KIND_BUCKET, attributes={"bucket.name": bucket_name or name}):
            bucket_config = self.validate(spec, meta, status, patch)

            provider_name = provider_ref["name"]
            provider_ns = provider_ref.get("namespace", namespace)
            api = get_k8s_client()

            try:
                provider_obj = get_provider_with_cache(api, provider_name, provider_ns)
            except client.exceptions.ApiException as e:
                if e.status == 404:
                    error_msg = f"Provider {provider_name} not found in namespace {provider_ns}"
                    self.handle_provider_not_found(meta, status, patch, error_msg)
                    return
                raise

            if not is_resource_ready(provider_obj):
                self.handle_provider_not_ready(meta, status, patch, provider_name,
                                               f"Provider {provider_name} is not ready")

            provider_spec = provider_obj.get("spec", {})
            provider_client = create_provider_from_spec(provider_spec, provider_obj.get("metadata", {}))
            # Region falls back to the provider's once the provider is known
            bucket_config["region"] = spec.get("region", provider_spec.get("region", DEFAULT_REGION))

            conditions = remove_condition(status.get("conditions", []), COND_WEBSITE_INVALID)

            if not provider_client.bucket_exists(bucket_name):
                with trace_span("create_bucket", kind=KIND_BUCKET):
                    try:
                        provider_client.create_bucket(bucket_name, bucket_config)
                        emit_bucket_created(meta, bucket_name)
                        self.log_info(meta, f"Created bucket {bucket_name}", reason="BucketCreated", bucket_name=bucket_name)
                        metrics.bucket_operations_total.labels(operation="create", result="success").inc()
                    except Exception as e:
                        error_msg = f"Failed to create bucket: {sanitize_exception(e)}"
                        self.log_error(meta, error_msg, error=e, reason="CreationFailed", bucket_name=bucket_name)
                        metrics.bucket_operations_total.labels(operation="create", result="failed").inc()
                        conditions = set_creation_failed_condition(conditions, error_msg)
                        conditions = set_ready_condition(conditions, False, error_msg)
                        self.update_resource_status(patch, meta, False, {
                            "bucketName": bucket_name,
                            "exists": False,
                            "conditions": conditions,
                        })
                        return
            else:
                self.log_info(meta, f"Bucket {bucket_name} already exists, checking for configuration drift",
                              reason="DriftCheck", bucket_name=bucket_name)

            with trace_span("reconcile_bucket_configuration", kind=KIND_BUCKET):
                drifted = self.reconcile_configuration(provider_client, bucket_name, bucket_config, meta)
                add_span_attribute("bucket.drifted", ",".join(drifted))

            conditions = remove_condition(conditions, COND_CREATION_FAILED)
            conditions = set_ready_condition(conditions, True, f"Bucket {bucket_name} is ready")

            status_data: dict[str, Any] = {
                "bucketName": bucket_name,
                "exists": True,
                "lastSyncTime": datetime.now(timezone.utc).isoformat(),
                "websiteEndpoint": website_endpoint(bucket_name) if bucket_config["website"] else None,
                "routingRules": bucket_config["routing_rules_json"],
                "conditions": conditions,
            }
            self.update_resource_status(patch, meta, True, status_data)

    def reconcile_configuration(
        self,
        provider_client: Any,
        bucket_name: str,
        bucket_config: dict[str, Any],
        meta: dict[str, Any],
    ) -> list[str]:
        """Detect and correct drift of every bucket setting.

        A failure on one setting is logged and counted but does not stop the
        others from being reconciled.

        Returns:
            Names of the settings that were changed
        """
        steps: list[tuple[str, Callable[[Any, str, dict[str, Any]], bool]]] = [
            ("versioning", self._reconcile_versioning),
            ("object_lock", self._reconcile_object_lock),
            ("encryption", self._reconcile_encryption),
            ("acl", self._reconcile_acl),
            ("policy", self._reconcile_policy),
            ("tags", self._reconcile_tags),
            ("lifecycle", self._reconcile_lifecycle),
            ("cors", self._reconcile_cors),
            ("website", self._reconcile_website),
            ("logging", self._reconcile_logging),
        ]

        drifted = []
        for resource_type, step in steps:
            try:
                if step(provider_client, bucket_name, bucket_config):
                    drifted.append(resource_type)
                    self.log_info(meta, f"Drift detected: {resource_type} configuration for bucket {bucket_name}",
                                  reason="DriftDetected", bucket_name=bucket_name, resource_type=resource_type)
                    metrics.drift_detected_total.labels(kind=KIND_BUCKET, resource_type=resource_type).inc()
                    metrics.bucket_operations_total.labels(operation=f"update_{resource_type}", result="success").inc()
            except Exception as e:
                self.log_warning(meta, f"Failed to reconcile {resource_type} configuration for bucket {bucket_name}",
                                 reason="ReconcileStepFailed", bucket_name=bucket_name,
                                 resource_type=resource_type, error=sanitize_exception(e))
                metrics.bucket_operations_total.labels(operation=f"update_{resource_type}", result="failed").inc()

        if "policy" in drifted:
            emit_policy_applied(meta, bucket_name)
        if "website" in drifted:
            emit_website_applied(meta, bucket_name)
        if drifted:
            emit_bucket_updated(meta, bucket_name)

        self.log_info(meta, f"Bucket {bucket_name} configuration reconciled",
                      reason="ConfigurationReconciled", bucket_name=bucket_name, drifted=drifted)
        metrics.bucket_operations_total.labels(operation="reconcile", result="success").inc()
        return drifted

    def _reconcile_versioning(self, provider_client: Any, bucket_name: str, config: dict[str, Any]) -> bool:
        # Object lock cannot work without versioning
        desired = config["versioning_enabled"] or config["object_lock_enabled"]
        current = provider_client.get_bucket_versioning(bucket_name)
        if current.get("enabled") == desired:
            return False
        provider_client.set_bucket_versioning(bucket_name, desired)
        return True

    def _reconcile_object_lock(self, provider_client: Any, bucket_name: str, config: dict[str, Any]) -> bool:
        # Object lock cannot be turned off once enabled
        if not config["object_lock_enabled"]:
            return False
        desired = converters.object_lock_to_aws(config["default_retention"])
        current = provider_client.get_object_lock(bucket_name)
        if current is not None and _normalize(current) == _normalize(desired):
            return False
        provider_client.set_object_lock(bucket_name, config["default_retention"])
        return True

    def _reconcile_encryption(self, provider_client: Any, bucket_name: str, config: dict[str, Any]) -> bool:
        current = provider_client.get_bucket_encryption(bucket_name)
        if config["encryption_enabled"]:
            if (current.get("algorithm") == config["encryption_algorithm"]
                    and current.get("kms_key_id") == config["kms_key_id"]):
                return False
            provider_client.set_bucket_encryption(bucket_name, config["encryption_algorithm"], config["kms_key_id"])
            return True
        if current.get("algorithm") is None:
            return False
        provider_client.delete_bucket_encryption(bucket_name)
        return True

    def _reconcile_acl(self, provider_client: Any, bucket_name: str, config: dict[str, Any]) -> bool:
        if config["acl"] is None and not config["grants"]:
            return False
        desired = converters.desired_grants(config["acl"], config["grants"])
        current = provider_client.get_bucket_acl(bucket_name)
        if converters.normalize_grants(current) == converters.normalize_grants(desired):
            return False
        provider_client.set_bucket_acl(bucket_name, config["acl"], config["grants"])
        return True

    def _reconcile_policy(self, provider_client: Any, bucket_name: str, config: dict[str, Any]) -> bool:
        desired = converters.build_bucket_policy(
            bucket_name,
            config["policy"],
            anonymous_read=config["anonymous_read"],
            anonymous_list=config["anonymous_list"],
        )
        current = provider_client.get_bucket_policy(bucket_name)
        if desired is None:
            if current is None:
                return False
            provider_client.delete_bucket_policy(bucket_name)
            return True
        if current is not None and _normalize(current) == _normalize(desired):
            return False
        provider_client.put_bucket_policy(bucket_name, desired)
        return True

    def _reconcile_tags(self, provider_client: Any, bucket_name: str, config: dict[str, Any]) -> bool:
        desired = config["tags"] or {}
        if not desired:
            return False
        if provider_client.get_bucket_tags(bucket_name) == desired:
            return False
        provider_client.set_bucket_tags(bucket_name, desired)
        return True

    def _reconcile_lifecycle(self, provider_client: Any, bucket_name: str, config: dict[str, Any]) -> bool:
        desired_rules = config["lifecycle_rules"]
        current = provider_client.get_bucket_lifecycle(bucket_name)
        if not desired_rules:
            if current is None:
                return False
            provider_client.delete_bucket_lifecycle(bucket_name)
            return True

        desired = sorted(converters.lifecycle_rules_to_aws(desired_rules), key=lambda r: r["ID"])
        if current is not None:
            current_rules = sorted(current.get("Rules", []), key=lambda r: r.get("ID", ""))
            if _normalize(current_rules) == _normalize(desired):
                return False
        provider_client.set_bucket_lifecycle(bucket_name, desired_rules)
        return True

    def _reconcile_cors(self, provider_client: Any, bucket_name: str, config: dict[str, Any]) -> bool:
        desired_rules = config["cors_rules"]
        current = provider_client.get_bucket_cors(bucket_name)
        if not desired_rules:
            if current is None:
                return False
            provider_client.delete_bucket_cors(bucket_name)
            return True

        desired = converters.cors_rules_to_aws(desired_rules)
        if current is not None and _normalize(current.get("CORSRules", [])) == _normalize(desired):
            return False
        provider_client.set_bucket_cors(bucket_name, desired_rules)
        return True

    def _reconcile_website(self, provider_client: Any, bucket_name: str, config: dict[str, Any]) -> bool:
        desired = config["website"]
        current = provider_client.get_bucket_website(bucket_name)
        if desired is None:
            if current is None:
                return False
            provider_client.delete_bucket_website(bucket_name)
            return True
        if current is not None and _normalize(current) == _normalize(desired):
            return False
        provider_client.set_bucket_website(bucket_name, desired)
        return True

    def _reconcile_logging(self, provider_client: Any, bucket_name: str, config: dict[str, Any]) -> bool:
        desired = converters.logging_to_aws(config["logging_target_bucket"], config["logging_target_prefix"])
        current = provider_client.get_bucket_logging(bucket_name)
        current_enabled = current.get("LoggingEnabled")
        desired_enabled = desired.get("LoggingEnabled")
        if current_enabled is None and desired_enabled is None:
            return False
        if current_enabled is not None and desired_enabled is not None:
            current_target = (current_enabled.get("TargetBucket"), current_enabled.get("TargetPrefix", ""))
            if current_target == (desired_enabled["TargetBucket"], desired_enabled["TargetPrefix"]):
                return False
        provider_client.set_bucket_logging(
            bucket_name, config["logging_target_bucket"], config["logging_target_prefix"]
        )
        return True

    def delete(
        self,
        spec: dict[str, Any],
        meta: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        """Handle Bucket resource deletion."""
        name = meta.get("name", "unknown")
        bucket_name = spec.get("name")

        self.log_info(meta, f"Bucket {name} is being deleted", event="deletion", reason="Deletion",
                      bucket_name=bucket_name or name)

        if not bucket_name:
            self.remove_finalizer(meta, patch)
            return

        try:
            deletion_policy = spec.get("deletionPolicy", "Retain")
            force_delete = spec.get("forceDelete", False)

            self.log_info(meta, f"Deletion policy for bucket {bucket_name}: {deletion_policy}, forceDelete: {force_delete}",
                          reason="DeletionPolicy", bucket_name=bucket_name,
                          deletion_policy=deletion_policy, force_delete=force_delete)

            provider_ref = spec.get("providerRef", {})
            provider_name = provider_ref.get("name")

            if deletion_policy != "Delete":
                self.log_info(meta, f"Retaining bucket {bucket_name} per deletionPolicy={deletion_policy}",
                              reason="BucketRetained", bucket_name=bucket_name)
            elif provider_name:
                api = get_k8s_client()
                provider_ns = provider_ref.get("namespace", meta.get("namespace", "default"))
                provider_obj = get_provider_with_cache(api, provider_name, provider_ns)
                provider_client = create_provider_from_spec(
                    provider_obj.get("spec", {}), provider_obj.get("metadata", {})
                )

                if provider_client.bucket_exists(bucket_name):
                    provider_client.delete_bucket(bucket_name, force=force_delete)
                    emit_bucket_deleted(meta, bucket_name)
                    self.log_info(meta, f"Deleted bucket {bucket_name}", reason="BucketDeleted", bucket_name=bucket_name)
                    metrics.bucket_operations_total.labels(operation="delete", result="success").inc()
                else:
                    self.log_info(meta, f"Bucket {bucket_name} does not exist, skipping deletion",
                                  reason="BucketNotExists", bucket_name=bucket_name)
        except Exception as e:
            self.log_error(meta, f"Failed to delete bucket {bucket_name}", error=e, reason="DeletionFailed",
                           bucket_name=bucket_name)
            metrics.bucket_operations_total.labels(operation="delete", result="failed").inc()
        finally:
            self.remove_finalizer(meta, patch)


# Global handler instance
_handler = BucketHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_BUCKET)
@kopf.on.update(API_GROUP_VERSION, KIND_BUCKET)
@kopf.on.resume(API_GROUP_VERSION, KIND_BUCKET)
@kopf.timer(API_GROUP_VERSION, KIND_BUCKET, interval=int(os.getenv("DRIFT_CHECK_INTERVAL_SECONDS", "300")))
def handle_bucket(
    spec: dict[str, Any],
    meta: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Handle Bucket resource reconciliation."""
    _handler.ensure_finalizer(meta, patch)
    _handler.reconcile_with_metrics(meta, lambda: _handler.reconcile(spec, meta, status, patch))


@kopf.on.delete(API_GROUP_VERSION, KIND_BUCKET)
def handle_bucket_delete(
    spec: dict[str, Any],
    meta: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Handle Bucket resource deletion."""
    _handler.delete(spec, meta, patch)
