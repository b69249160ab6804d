"""Builder for bucket configurations."""

from __future__ import annotations

from typing import Any

from .website import create_website_config_from_spec, encode_routing_rules, strict_routing_rules


def create_bucket_config_from_spec(spec: dict[str, Any], provider_region: str) -> dict[str, Any]:
    """Create a bucket configuration dict from CRD spec.

    Args:
        spec: Bucket CRD spec
        provider_region: Region from the provider

    Returns:
        Configuration dict for bucket operations

    Raises:
        UnknownRoutingRuleKey: If website routing rules contain an unknown key in strict mode
        ValueError: If the website section is inconsistent
    """
    # Get bucket region (override provider region if specified)
    region = spec.get("region", provider_region)

    # Get access control configuration
    acl = spec.get("acl")
    grants = spec.get("grants", [])

    # Get versioning configuration
    versioning = spec.get("versioning", {})
    versioning_enabled = versioning.get("enabled", False)

    # Get object lock configuration
    object_lock = spec.get("objectLock", {})
    object_lock_enabled = object_lock.get("enabled", False)
    default_retention = object_lock.get("defaultRetention")

    # Get encryption configuration
    encryption = spec.get("encryption", {})
    encryption_enabled = encryption.get("enabled", False)
    encryption_algorithm = encryption.get("algorithm", "aws:kms")
    kms_key_id = encryption.get("kmsKeyId")

    # Get logging configuration
    logging_spec = spec.get("logging", {})
    logging_target_bucket = logging_spec.get("targetBucket")
    logging_target_prefix = logging_spec.get("targetPrefix", "")

    # Get tags
    tagging = spec.get("tagging", {})
    tags = tagging.get("tags")

    # Get lifecycle configuration
    lifecycle = spec.get("lifecycle", {})
    lifecycle_rules = lifecycle.get("rules", [])

    # Get CORS configuration
    cors = spec.get("cors", {})
    cors_rules = cors.get("rules", [])

    # Get anonymous access flags
    anonymous_access = spec.get("anonymousAccess", {})

    # Get website configuration
    website = spec.get("website")
    website_config = create_website_config_from_spec(website)
    routing_rules_json = None
    if website_config is not None:
        routing_rules_json = encode_routing_rules(
            website.get("routingRules"),
            strict=strict_routing_rules(website),
        )

    # Convert to dict format for the S3 client
    config_dict = {
        "region": region,
        "acl": acl,
        "grants": grants,
        "versioning_enabled": versioning_enabled,
        "object_lock_enabled": object_lock_enabled,
        "default_retention": default_retention,
        "encryption_enabled": encryption_enabled,
        "encryption_algorithm": encryption_algorithm,
        "kms_key_id": kms_key_id,
        "logging_target_bucket": logging_target_bucket,
        "logging_target_prefix": logging_target_prefix,
        "tags": tags,
        "lifecycle_rules": lifecycle_rules,
        "cors_rules": cors_rules,
        "anonymous_read": anonymous_access.get("read", False),
        "anonymous_list": anonymous_access.get("list", False),
        "policy": spec.get("policy"),
        "website": website_config,
        "routing_rules_json": routing_rules_json,
    }

    return config_dict


def unsupported_settings(spec: dict[str, Any]) -> list[str]:
    """List spec settings that have no S3-compatible call and are not applied."""
    unsupported = []
    if spec.get("anonymousAccess", {}).get("configRead"):
        unsupported.append("anonymousAccess.configRead")
    if spec.get("https"):
        unsupported.append("https")
    return unsupported
