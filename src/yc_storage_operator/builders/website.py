"""Builder for bucket website hosting configurations.

Routing rules are written in the Bucket resource with snake_case keys
(``key_prefix_equals``, ``replace_key_with``...) and must reach the storage
API in the PascalCase shape of the hosting-configuration upload format.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

DEFAULT_INDEX_DOCUMENT = "index.html"


class RoutingRuleKey(str, Enum):
    """Every key a routing rule may carry, valued by its API spelling."""

    CONDITION = "Condition"
    REDIRECT = "Redirect"
    KEY_PREFIX_EQUALS = "KeyPrefixEquals"
    HTTP_ERROR_CODE_RETURNED_EQUALS = "HttpErrorCodeReturnedEquals"
    PROTOCOL = "Protocol"
    HOST_NAME = "HostName"
    REPLACE_KEY_PREFIX_WITH = "ReplaceKeyPrefixWith"
    REPLACE_KEY_WITH = "ReplaceKeyWith"
    HTTP_REDIRECT_CODE = "HttpRedirectCode"

    @property
    def snake_name(self) -> str:
        return self.name.lower()

    @classmethod
    def from_snake(cls, key: str) -> RoutingRuleKey | None:
        return _BY_SNAKE_NAME.get(key)

    @classmethod
    def from_pascal(cls, key: str) -> RoutingRuleKey | None:
        try:
            return cls(key)
        except ValueError:
            return None


_BY_SNAKE_NAME = {member.snake_name: member for member in RoutingRuleKey}


class UnknownRoutingRuleKey(ValueError):
    """Raised when a routing rule carries a key the storage API does not know."""

    def __init__(self, key: str, path: str | None = None):
        self.key = key
        self.path = path or key
        super().__init__(key)

    def __str__(self) -> str:
        return f"unknown routing rule key '{self.key}' at {self.path}"


def _lookup(key: str, path: str, strict: bool) -> str | None:
    member = RoutingRuleKey.from_snake(key)
    if member is None:
        if strict:
            raise UnknownRoutingRuleKey(key, path)
        return None
    return member.value


def _as_string(value: Any, path: str) -> str:
    # The hosting configuration only takes strings, YAML gives ints for codes
    if isinstance(value, (dict, list)):
        raise ValueError(f"{path} must be a string")
    return str(value)


def strict_routing_rules(website: dict[str, Any]) -> bool:
    """Whether a website section wants unknown routing rule keys rejected."""
    return website.get("strictRoutingRules") is not False


def map_routing_rules(
    rules: list[dict[str, Any]] | None,
    strict: bool = True,
) -> list[dict[str, Any]] | None:
    """Rename routing rule keys from snake_case to the API's PascalCase.

    Null values are omitted, and so is any nested mapping left empty by the
    omission. In strict mode an unknown key raises ``UnknownRoutingRuleKey``;
    otherwise it is dropped.

    Args:
        rules: Routing rules as written in the Bucket spec, or None
        strict: Reject unknown keys instead of dropping them

    Returns:
        The renamed rules, or None if no rules were given
    """
    if rules is None:
        return None

    mapped_rules = []
    for index, rule in enumerate(rules):
        mapped_rule: dict[str, Any] = {}
        for key, value in (rule or {}).items():
            path = f"routingRules[{index}].{key}"
            mapped_key = _lookup(key, path, strict)
            if mapped_key is None or value is None:
                continue

            if not isinstance(value, dict):
                raise ValueError(f"{path} must be a mapping")

            nested: dict[str, Any] = {}
            for nested_key, nested_value in value.items():
                nested_path = f"{path}.{nested_key}"
                mapped_nested_key = _lookup(nested_key, nested_path, strict)
                if mapped_nested_key is None or nested_value is None:
                    continue
                nested[mapped_nested_key] = _as_string(nested_value, nested_path)
            if not nested:
                continue
            mapped_rule[mapped_key] = nested

        mapped_rules.append(mapped_rule)

    return mapped_rules


def find_unknown_routing_rule_keys(rules: list[dict[str, Any]] | None) -> list[str]:
    """Return the paths of all keys that tolerant mapping would drop."""
    unknown = []
    for index, rule in enumerate(rules or []):
        for key, value in (rule or {}).items():
            path = f"routingRules[{index}].{key}"
            if RoutingRuleKey.from_snake(key) is None:
                unknown.append(path)
                continue
            if isinstance(value, dict):
                unknown.extend(
                    f"{path}.{nested_key}"
                    for nested_key in value
                    if RoutingRuleKey.from_snake(nested_key) is None
                )
    return unknown


def encode_routing_rules(
    rules: list[dict[str, Any]] | None,
    strict: bool = True,
) -> str | None:
    """Map routing rules and serialize them as compact JSON."""
    mapped = map_routing_rules(rules, strict=strict)
    if mapped is None:
        return None
    return json.dumps(mapped, separators=(",", ":"))


def unmap_routing_rules(rules: list[dict[str, Any]] | str | None) -> list[dict[str, Any]] | None:
    """Rename routing rule keys from the API's PascalCase back to snake_case.

    Accepts the mapped list or its JSON encoding. Unknown keys are kept as
    they are, since they can only come from the live bucket.
    """
    if rules is None:
        return None
    if isinstance(rules, str):
        rules = json.loads(rules)

    def rename(key: str) -> str:
        member = RoutingRuleKey.from_pascal(key)
        return member.snake_name if member is not None else key

    unmapped = []
    for rule in rules:
        unmapped_rule: dict[str, Any] = {}
        for key, value in rule.items():
            if isinstance(value, dict):
                value = {rename(k): v for k, v in value.items()}
            unmapped_rule[rename(key)] = value
        unmapped.append(unmapped_rule)
    return unmapped


def create_website_config_from_spec(website: dict[str, Any] | None) -> dict[str, Any] | None:
    """Create a website configuration from the Bucket spec ``website`` block.

    Args:
        website: Website section of the Bucket spec

    Returns:
        WebsiteConfiguration dict for the S3 API, or None when website hosting
        is not enabled

    Raises:
        UnknownRoutingRuleKey: If strict routing rules contain an unknown key
        ValueError: If redirectAllRequestsTo is combined with other settings,
            or a routing rule is malformed or has no redirect
    """
    if not website or not website.get("enabled", True):
        return None

    redirect_all = website.get("redirectAllRequestsTo")
    if redirect_all:
        if website.get("routingRules") or website.get("errorDocument"):
            raise ValueError(
                "website.redirectAllRequestsTo cannot be combined with routingRules or errorDocument"
            )
        host_name = redirect_all.get("hostName")
        if not host_name:
            raise ValueError("website.redirectAllRequestsTo.hostName is required")
        redirect: dict[str, Any] = {"HostName": host_name}
        if redirect_all.get("protocol"):
            redirect["Protocol"] = redirect_all["protocol"]
        return {"RedirectAllRequestsTo": redirect}

    config: dict[str, Any] = {
        "IndexDocument": {"Suffix": website.get("indexDocument") or DEFAULT_INDEX_DOCUMENT},
    }
    if website.get("errorDocument"):
        config["ErrorDocument"] = {"Key": website["errorDocument"]}

    routing_rules = map_routing_rules(website.get("routingRules"), strict=strict_routing_rules(website))
    for index, rule in enumerate(routing_rules or []):
        if RoutingRuleKey.REDIRECT.value not in rule:
            raise ValueError(f"website.routingRules[{index}] has no redirect")
    if routing_rules:
        config["RoutingRules"] = routing_rules

    return config


def website_endpoint(bucket_name: str) -> str:
    """Return the public website endpoint of a bucket."""
    return f"{bucket_name}.website.yandexcloud.net"
