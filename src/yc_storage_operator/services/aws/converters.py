"""Conversions between Bucket CRD formats and S3 API request shapes.

The CRD uses camelCase keys (``allowedOrigins``, ``storageClass``...) while
the S3 API expects PascalCase structures. Every converter returns a fresh
structure and never mutates its input.
"""

from __future__ import annotations

from typing import Any

ALL_USERS_URI = "http://acs.amazonaws.com/groups/global/AllUsers"
AUTHENTICATED_USERS_URI = "http://acs.amazonaws.com/groups/global/AuthenticatedUsers"

ACL_PERMISSIONS = {
    "READ": "GrantRead",
    "WRITE": "GrantWrite",
    "READ_ACP": "GrantReadACP",
    "WRITE_ACP": "GrantWriteACP",
    "FULL_CONTROL": "GrantFullControl",
}

# Grants each canned ACL adds on top of the owner's FULL_CONTROL
CANNED_ACL_GRANTS = {
    "private": [],
    "public-read": [
        {"permission": "READ", "type": "Group", "uri": ALL_USERS_URI},
    ],
    "public-read-write": [
        {"permission": "READ", "type": "Group", "uri": ALL_USERS_URI},
        {"permission": "WRITE", "type": "Group", "uri": ALL_USERS_URI},
    ],
    "authenticated-read": [
        {"permission": "READ", "type": "Group", "uri": AUTHENTICATED_USERS_URI},
    ],
}

ANONYMOUS_READ_SID = "AnonymousRead"
ANONYMOUS_LIST_SID = "AnonymousList"

OBJECT_LOCK_MODES = ("GOVERNANCE", "COMPLIANCE")


def bucket_arn(bucket_name: str) -> str:
    return f"arn:aws:s3:::{bucket_name}"


def lifecycle_rules_to_aws(rules: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert CRD lifecycle rules to S3 lifecycle rules."""
    aws_rules = []
    for rule in rules:
        aws_rule: dict[str, Any] = {
            "ID": rule.get("id", ""),
            "Status": rule.get("status", "Enabled"),
        }

        # Yandex Object Storage requires a Filter, an empty prefix matches everything
        aws_filter: dict[str, Any] = {}
        rule_filter = rule.get("filter", {})
        prefix = rule.get("prefix", rule_filter.get("prefix"))
        if prefix is not None:
            aws_filter["Prefix"] = prefix
        if rule_filter.get("objectSizeGreaterThan") is not None:
            aws_filter["ObjectSizeGreaterThan"] = rule_filter["objectSizeGreaterThan"]
        if rule_filter.get("objectSizeLessThan") is not None:
            aws_filter["ObjectSizeLessThan"] = rule_filter["objectSizeLessThan"]
        if len(aws_filter) > 1:
            aws_filter = {"And": aws_filter}
        aws_rule["Filter"] = aws_filter or {"Prefix": ""}

        expiration = rule.get("expiration")
        if expiration:
            if "days" in expiration:
                aws_rule["Expiration"] = {"Days": expiration["days"]}
            elif "date" in expiration:
                aws_rule["Expiration"] = {"Date": expiration["date"]}
            elif "expiredObjectDeleteMarker" in expiration:
                aws_rule["Expiration"] = {
                    "ExpiredObjectDeleteMarker": expiration["expiredObjectDeleteMarker"]
                }

        transitions = rule.get("transitions")
        if transitions:
            aws_rule["Transitions"] = []
            for transition in transitions:
                aws_transition = {"StorageClass": transition["storageClass"]}
                if "days" in transition:
                    aws_transition["Days"] = transition["days"]
                elif "date" in transition:
                    aws_transition["Date"] = transition["date"]
                aws_rule["Transitions"].append(aws_transition)

        noncurrent_expiration = rule.get("noncurrentVersionExpiration")
        if noncurrent_expiration:
            aws_rule["NoncurrentVersionExpiration"] = {
                "NoncurrentDays": noncurrent_expiration["noncurrentDays"]
            }

        noncurrent_transitions = rule.get("noncurrentVersionTransitions")
        if noncurrent_transitions:
            aws_rule["NoncurrentVersionTransitions"] = [
                {"NoncurrentDays": t["noncurrentDays"], "StorageClass": t["storageClass"]}
                for t in noncurrent_transitions
            ]

        abort_upload = rule.get("abortIncompleteMultipartUpload")
        if abort_upload:
            aws_rule["AbortIncompleteMultipartUpload"] = {
                "DaysAfterInitiation": abort_upload["daysAfterInitiation"]
            }

        aws_rules.append(aws_rule)

    return aws_rules


def cors_rules_to_aws(rules: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert CRD CORS rules to S3 CORS rules."""
    aws_rules = []
    for rule in rules:
        aws_rule: dict[str, Any] = {
            "AllowedOrigins": rule.get("allowedOrigins", []),
            "AllowedMethods": rule.get("allowedMethods", []),
        }
        if "id" in rule:
            aws_rule["ID"] = rule["id"]
        if "allowedHeaders" in rule:
            aws_rule["AllowedHeaders"] = rule["allowedHeaders"]
        if "exposedHeaders" in rule:
            aws_rule["ExposeHeaders"] = rule["exposedHeaders"]
        if "maxAgeSeconds" in rule:
            aws_rule["MaxAgeSeconds"] = rule["maxAgeSeconds"]
        aws_rules.append(aws_rule)
    return aws_rules


def policy_to_aws(policy: dict[str, Any]) -> dict[str, Any]:
    """Convert CRD policy format to S3 bucket policy format.

    CRD uses lowercase keys (statement, effect, principal, action, resource)
    while the API expects PascalCase keys (Statement, Effect, Principal, ...).
    """
    aws_policy: dict[str, Any] = {}

    if "version" in policy:
        aws_policy["Version"] = policy["version"]

    if "statement" in policy:
        aws_statements = []
        for stmt in policy["statement"]:
            aws_stmt: dict[str, Any] = {}
            if "sid" in stmt:
                aws_stmt["Sid"] = stmt["sid"]
            if "effect" in stmt:
                aws_stmt["Effect"] = stmt["effect"]
            if "principal" in stmt:
                principal = stmt["principal"]
                # Yandex identifies subjects by canonical user (account or service account) id
                if isinstance(principal, str) and principal != "*":
                    aws_stmt["Principal"] = {"CanonicalUser": principal}
                else:
                    aws_stmt["Principal"] = principal
            if "action" in stmt:
                aws_stmt["Action"] = stmt["action"]
            if "resource" in stmt:
                aws_stmt["Resource"] = stmt["resource"]
            if "condition" in stmt:
                aws_stmt["Condition"] = stmt["condition"]
            aws_statements.append(aws_stmt)

        aws_policy["Statement"] = aws_statements

    return aws_policy


def anonymous_access_statements(
    bucket_name: str,
    read: bool = False,
    list_objects: bool = False,
) -> list[dict[str, Any]]:
    """Build policy statements that grant anonymous read and/or list access."""
    statements = []
    if read:
        statements.append({
            "Sid": ANONYMOUS_READ_SID,
            "Effect": "Allow",
            "Principal": "*",
            "Action": "s3:GetObject",
            "Resource": f"{bucket_arn(bucket_name)}/*",
        })
    if list_objects:
        statements.append({
            "Sid": ANONYMOUS_LIST_SID,
            "Effect": "Allow",
            "Principal": "*",
            "Action": "s3:ListBucket",
            "Resource": bucket_arn(bucket_name),
        })
    return statements


def build_bucket_policy(
    bucket_name: str,
    policy: dict[str, Any] | None,
    anonymous_read: bool = False,
    anonymous_list: bool = False,
) -> dict[str, Any] | None:
    """Merge anonymous access flags and the CRD policy into one policy document.

    Returns:
        The policy document in API format, or None if there is nothing to apply
    """
    statements = anonymous_access_statements(bucket_name, anonymous_read, anonymous_list)
    aws_policy = policy_to_aws(policy) if policy else {}
    statements.extend(aws_policy.get("Statement", []))
    if not statements:
        return None
    return {
        "Version": aws_policy.get("Version", "2012-10-17"),
        "Statement": statements,
    }


def logging_to_aws(target_bucket: str | None, target_prefix: str = "") -> dict[str, Any]:
    """Build a BucketLoggingStatus; an empty one disables access logging."""
    if not target_bucket:
        return {}
    return {
        "LoggingEnabled": {
            "TargetBucket": target_bucket,
            "TargetPrefix": target_prefix or "",
        }
    }


def object_lock_to_aws(default_retention: dict[str, Any] | None) -> dict[str, Any]:
    """Build an ObjectLockConfiguration with an optional default retention.

    Raises:
        ValueError: If the retention mode or period is invalid
    """
    config: dict[str, Any] = {"ObjectLockEnabled": "Enabled"}
    if not default_retention:
        return config

    mode = default_retention.get("mode", "GOVERNANCE").upper()
    if mode not in OBJECT_LOCK_MODES:
        raise ValueError(f"objectLock.defaultRetention.mode must be one of {', '.join(OBJECT_LOCK_MODES)}")

    days = default_retention.get("days")
    years = default_retention.get("years")
    if (days is None) == (years is None):
        raise ValueError("objectLock.defaultRetention requires exactly one of days or years")

    retention: dict[str, Any] = {"Mode": mode}
    if days is not None:
        retention["Days"] = days
    else:
        retention["Years"] = years
    config["Rule"] = {"DefaultRetention": retention}
    return config


def _grantee_ref(grant: dict[str, Any]) -> str:
    if grant.get("type", "CanonicalUser") == "Group":
        return f'uri="{grant["uri"]}"'
    return f'id="{grant["id"]}"'


def grants_to_aws(grants: list[dict[str, Any]]) -> dict[str, str]:
    """Convert CRD grants to PutBucketAcl grant header arguments.

    Raises:
        ValueError: If a grant names an unknown permission
    """
    by_header: dict[str, list[str]] = {}
    for grant in grants:
        permission = grant.get("permission", "")
        header = ACL_PERMISSIONS.get(permission)
        if header is None:
            raise ValueError(f"Unsupported grant permission: {permission}")
        by_header.setdefault(header, []).append(_grantee_ref(grant))
    return {header: ", ".join(refs) for header, refs in by_header.items()}


def grants_from_aws(acl: dict[str, Any]) -> list[dict[str, Any]]:
    """Convert a GetBucketAcl response to CRD grants, excluding the owner's own grant."""
    owner_id = acl.get("Owner", {}).get("ID")
    grants = []
    for aws_grant in acl.get("Grants", []):
        grantee = aws_grant.get("Grantee", {})
        if grantee.get("Type") == "Group":
            grants.append({"permission": aws_grant["Permission"], "type": "Group", "uri": grantee.get("URI")})
        elif grantee.get("ID") != owner_id:
            grants.append({"permission": aws_grant["Permission"], "type": "CanonicalUser", "id": grantee.get("ID")})
    return grants


def desired_grants(acl: str | None, grants: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Return the non-owner grants a bucket should carry.

    Raises:
        ValueError: If the canned ACL is unknown
    """
    if grants:
        return [
            {key: value for key, value in grant.items() if key in ("permission", "type", "id", "uri")}
            for grant in grants
        ]
    if acl is None:
        return []
    if acl not in CANNED_ACL_GRANTS:
        raise ValueError(f"Unsupported canned ACL: {acl}")
    return [dict(grant) for grant in CANNED_ACL_GRANTS[acl]]


def normalize_grants(grants: list[dict[str, Any]]) -> list[tuple[str, str, str]]:
    """Order-insensitive form of CRD grants used for drift comparison."""
    return sorted(
        (grant.get("permission", ""), grant.get("type", "CanonicalUser"), grant.get("uri") or grant.get("id") or "")
        for grant in grants
    )
