"""Kubernetes operator for Yandex Object Storage buckets."""

__version__ = "0.1.0"
