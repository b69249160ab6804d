"""Prometheus metrics for the Yandex Object Storage Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "yc_storage_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "yc_storage_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

error_total = Counter(
    "yc_storage_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

resource_status_total = Counter(
    "yc_storage_operator_resource_status_total",
    "Resource status updates",
    ["kind", "status"],
)

# S3 operation metrics
bucket_operations_total = Counter(
    "yc_storage_operator_bucket_operations_total",
    "Total number of S3 bucket operations",
    ["operation", "result"],
)

# Provider connectivity metrics
provider_connectivity_total = Counter(
    "yc_storage_operator_provider_connectivity_total",
    "Provider connectivity status changes",
    ["provider", "status"],
)

# Configuration drift detection metrics
drift_detected_total = Counter(
    "yc_storage_operator_drift_detected_total",
    "Total number of configuration drift detections",
    ["kind", "resource_type"],
)

# Routing rule validation metrics
routing_rule_keys_dropped_total = Counter(
    "yc_storage_operator_routing_rule_keys_dropped_total",
    "Unknown routing rule keys dropped in tolerant mode",
    ["kind"],
)

# API call metrics
api_call_total = Counter(
    "yc_storage_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "yc_storage_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "yc_storage_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)
