"""Tests for the Provider handler."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import kopf
import pytest

from yc_storage_operator.constants import FINALIZER
from yc_storage_operator.handlers.provider import ProviderHandler
from yc_storage_operator.utils.cache import get_cached_object, make_cache_key, set_cached_object

META = {"name": "yc", "namespace": "default", "generation": 1}

SPEC = {
    "endpoint": "https://storage.yandexcloud.net",
    "region": "ru-central1",
    "auth": {
        "accessKeySecretRef": {"name": "yc-creds", "key": "access-key"},
        "secretKeySecretRef": {"name": "yc-creds", "key": "secret-key"},
    },
}


@pytest.fixture(autouse=True)
def mock_event():
    """Capture Kubernetes events instead of posting them."""
    with patch("yc_storage_operator.utils.events.kopf.event") as mock:
        yield mock


def _conditions(patch_obj: kopf.Patch) -> dict[str, str]:
    return {c["type"]: c["status"] for c in patch_obj.status["conditions"]}


class TestProviderReconcile:
    """Test reconciliation of Provider resources."""

    @patch("yc_storage_operator.handlers.provider.create_provider_from_spec")
    def test_ready_provider(self, mock_create):
        """Test that valid credentials and a reachable endpoint make the provider ready."""
        mock_create.return_value.test_connectivity.return_value = True
        patch_obj = kopf.Patch()

        ProviderHandler().reconcile(SPEC, META, {}, patch_obj)

        assert _conditions(patch_obj) == {"AuthValid": "True", "EndpointReachable": "True", "Ready": "True"}
        assert patch_obj.status["connected"] is True
        assert patch_obj.status["lastConnectTime"] is not None
        assert patch_obj.status["observedGeneration"] == 1

    @patch("yc_storage_operator.handlers.provider.create_provider_from_spec")
    def test_unreachable_endpoint(self, mock_create):
        """Test that an unreachable endpoint keeps the provider not ready."""
        mock_create.return_value.test_connectivity.return_value = False
        patch_obj = kopf.Patch()

        ProviderHandler().reconcile(SPEC, META, {}, patch_obj)

        assert _conditions(patch_obj) == {"AuthValid": "True", "EndpointReachable": "False", "Ready": "False"}
        assert patch_obj.status["lastConnectTime"] is None

    @patch("yc_storage_operator.handlers.provider.create_provider_from_spec")
    def test_auth_failure(self, mock_create):
        """Test that failing to load credentials is reported without leaking them."""
        mock_create.side_effect = ValueError("invalid secret=hunter2")
        patch_obj = kopf.Patch()

        ProviderHandler().reconcile(SPEC, META, {}, patch_obj)

        conditions = {c["type"]: c for c in patch_obj.status["conditions"]}
        assert conditions["AuthValid"]["status"] == "False"
        assert "hunter2" not in conditions["AuthValid"]["message"]
        assert conditions["EndpointReachable"]["message"] == "Cannot test connectivity due to auth failure"
        assert conditions["Ready"]["status"] == "False"

    @pytest.mark.parametrize(
        "auth",
        [
            {},
            {"accessKeySecretRef": {"name": "yc-creds"}},
            {"secretKeySecretRef": {"name": "yc-creds"}},
        ],
    )
    @patch("yc_storage_operator.handlers.provider.create_provider_from_spec")
    def test_missing_secret_refs(self, mock_create, auth):
        """Test that both secret references are required."""
        with pytest.raises(ValueError, match="secretKeySecretRef are required"):
            ProviderHandler().reconcile({"auth": auth}, META, {}, kopf.Patch())

        mock_create.assert_not_called()

    @patch("yc_storage_operator.handlers.provider.create_provider_from_spec")
    def test_cached_provider_is_invalidated(self, mock_create):
        """Test that buckets see the updated provider on their next lookup."""
        mock_create.return_value.test_connectivity.return_value = True
        cache_key = make_cache_key("Provider", "default", "yc")
        set_cached_object(cache_key, {"spec": {"region": "old"}})

        ProviderHandler().reconcile(SPEC, META, {}, kopf.Patch())

        assert get_cached_object(cache_key) is None


class TestProviderDeletion:
    """Test deletion of Provider resources."""

    def test_delete_removes_finalizer_and_cache(self):
        """Test that deletion drops the cache entry and the finalizer."""
        cache_key = make_cache_key("Provider", "default", "yc")
        set_cached_object(cache_key, {"spec": {}})
        patch_obj = kopf.Patch()

        ProviderHandler().delete(SPEC, dict(META, finalizers=[FINALIZER]), patch_obj)

        assert get_cached_object(cache_key) is None
        assert patch_obj.metadata["finalizers"] is None


class TestProviderKopfHandler:
    """Test the registered kopf handler."""

    @patch("yc_storage_operator.handlers.provider.create_provider_from_spec")
    def test_handle_provider(self, mock_create):
        """Test the create/update/resume handler end to end."""
        from yc_storage_operator.handlers.provider import handle_provider

        provider = MagicMock()
        provider.test_connectivity.return_value = True
        mock_create.return_value = provider
        patch_obj = kopf.Patch()

        handle_provider(spec=SPEC, meta=META, status={}, patch=patch_obj)

        assert FINALIZER in patch_obj.metadata["finalizers"]
        assert patch_obj.status["connected"] is True
