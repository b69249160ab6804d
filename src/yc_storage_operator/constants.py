"""Constants for the Yandex Object Storage Operator."""

# API Group
API_GROUP = "storage.yc.cloud37.dev"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_PROVIDER = "Provider"
KIND_BUCKET = "Bucket"

# Resource plurals
PLURAL_PROVIDERS = "providers"
PLURAL_BUCKETS = "buckets"

# Yandex Object Storage defaults
DEFAULT_ENDPOINT = "https://storage.yandexcloud.net"
DEFAULT_REGION = "ru-central1"

# Finalizers
FINALIZER = f"{API_GROUP}/finalizer"

# Controller name used in structured logs
CONTROLLER_NAME = "yc-storage-operator"

# Condition Types
COND_READY = "Ready"
COND_PROVIDER_NOT_READY = "ProviderNotReady"
COND_AUTH_VALID = "AuthValid"
COND_ENDPOINT_REACHABLE = "EndpointReachable"
COND_CREATION_FAILED = "CreationFailed"
COND_WEBSITE_INVALID = "WebsiteInvalid"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_VALIDATE_SUCCEEDED = "ValidateSucceeded"
EVENT_REASON_VALIDATE_FAILED = "ValidateFailed"
EVENT_REASON_BUCKET_CREATED = "BucketCreated"
EVENT_REASON_BUCKET_UPDATED = "BucketUpdated"
EVENT_REASON_BUCKET_DELETED = "BucketDeleted"
EVENT_REASON_POLICY_APPLIED = "PolicyApplied"
EVENT_REASON_WEBSITE_APPLIED = "WebsiteApplied"
