"""S3-compatible client for Yandex Object Storage."""

from .client import YandexStorageProvider

__all__ = ["YandexStorageProvider"]
