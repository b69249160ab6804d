"""Builders for bucket configurations and S3 providers."""

from .bucket import create_bucket_config_from_spec
from .provider import create_provider_from_spec
from .website import (
    RoutingRuleKey,
    UnknownRoutingRuleKey,
    create_website_config_from_spec,
    encode_routing_rules,
    find_unknown_routing_rule_keys,
    map_routing_rules,
    unmap_routing_rules,
)

__all__ = [
    "create_bucket_config_from_spec",
    "create_provider_from_spec",
    "create_website_config_from_spec",
    "RoutingRuleKey",
    "UnknownRoutingRuleKey",
    "map_routing_rules",
    "encode_routing_rules",
    "find_unknown_routing_rule_keys",
    "unmap_routing_rules",
]
