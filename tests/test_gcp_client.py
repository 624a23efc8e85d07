"""Tests for the Secret Manager client wrapper."""
from unittest import mock

import pytest
from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import secretmanager
from google.protobuf import timestamp_pb2

from gcp_secret_cleaner.cleaner.domains import gcp_client
from gcp_secret_cleaner.cleaner.domains.gcp_client import (
    GCPSecretVersionStore,
    ListingError,
    MutationError,
    StoreError,
    secret_version_path,
)
from gcp_secret_cleaner.cleaner.domains.models import VersionState

SECRET = "projects/test-project/secrets/api-key"


def api_version(version_id, seconds, nanos, state):
    return secretmanager.SecretVersion(
        name=f"{SECRET}/versions/{version_id}",
        create_time=timestamp_pb2.Timestamp(seconds=seconds, nanos=nanos),
        state=state,
    )


@pytest.fixture
def api_client():
    return mock.MagicMock()


@pytest.fixture
def store(api_client):
    return GCPSecretVersionStore(client=api_client)


class TestListing:
    """Test suite for list operations."""

    def test_list_secrets_returns_names(self, store, api_client):
        api_client.list_secrets.return_value = iter([
            secretmanager.Secret(name="projects/test-project/secrets/a"),
            secretmanager.Secret(name="projects/test-project/secrets/b"),
        ])

        result = store.list_secrets("test-project")

        assert result == ["projects/test-project/secrets/a", "projects/test-project/secrets/b"]
        api_client.list_secrets.assert_called_once_with(request={"parent": "projects/test-project"})

    def test_list_versions_uses_state_filter(self, store, api_client):
        api_client.list_secret_versions.return_value = iter([])

        store.list_versions(SECRET, VersionState.DISABLED)

        api_client.list_secret_versions.assert_called_once_with(
            request={"parent": SECRET, "filter": "state:DISABLED"}
        )

    def test_list_versions_converts_timestamps_and_state(self, store, api_client):
        api_client.list_secret_versions.return_value = iter([
            api_version("2", 100, 5, secretmanager.SecretVersion.State.ENABLED),
            api_version("1", 90, 0, secretmanager.SecretVersion.State.ENABLED),
        ])

        records = store.list_versions(SECRET, VersionState.ENABLED)

        assert [r.name for r in records] == [f"{SECRET}/versions/2", f"{SECRET}/versions/1"]
        assert records[0].sort_key == (100, 5)
        assert records[1].sort_key == (90, 0)
        assert all(r.state is VersionState.ENABLED for r in records)

    def test_list_versions_drains_all_pages(self, store, api_client):
        """Test every item of the pager is consumed before returning."""
        pages = [api_version(str(i), i, 0, secretmanager.SecretVersion.State.DISABLED) for i in range(1, 26)]
        api_client.list_secret_versions.return_value = iter(pages)

        records = store.list_versions(SECRET, VersionState.DISABLED)

        assert len(records) == 25

    def test_listing_error_wrapped(self, store, api_client):
        api_client.list_secrets.side_effect = gcp_exceptions.PermissionDenied("denied")

        with pytest.raises(ListingError) as exc_info:
            store.list_secrets("test-project")

        assert exc_info.value.target == "projects/test-project"
        assert isinstance(exc_info.value.cause, gcp_exceptions.PermissionDenied)

    def test_version_listing_error_wrapped(self, store, api_client):
        api_client.list_secret_versions.side_effect = gcp_exceptions.ServiceUnavailable("down")

        with pytest.raises(StoreError):
            store.list_versions(SECRET, VersionState.ENABLED)


class TestMutations:
    """Test suite for disable and destroy."""

    def test_disable_version(self, store, api_client):
        name = f"{SECRET}/versions/3"
        store.disable_version(name)
        api_client.disable_secret_version.assert_called_once_with(request={"name": name})

    def test_destroy_version(self, store, api_client):
        name = f"{SECRET}/versions/3"
        store.destroy_version(name)
        api_client.destroy_secret_version.assert_called_once_with(request={"name": name})

    def test_disable_failure_raises_mutation_error(self, store, api_client):
        api_client.disable_secret_version.side_effect = gcp_exceptions.FailedPrecondition("nope")

        with pytest.raises(MutationError) as exc_info:
            store.disable_version(f"{SECRET}/versions/3")

        assert exc_info.value.operation == "disable"

    def test_destroy_failure_raises_mutation_error(self, store, api_client):
        api_client.destroy_secret_version.side_effect = gcp_exceptions.NotFound("gone")

        with pytest.raises(MutationError) as exc_info:
            store.destroy_version(f"{SECRET}/versions/3")

        assert "destroy" in str(exc_info.value)


class TestAccessAndClient:
    """Test suite for payload access and client construction."""

    def test_access_version_payload(self, store, api_client):
        api_client.access_secret_version.return_value.payload.data = b"token"
        name = secret_version_path("test-project", "log-token")

        assert store.access_version_payload(name) == b"token"
        api_client.access_secret_version.assert_called_once_with(
            request={"name": "projects/test-project/secrets/log-token/versions/latest"}
        )

    def test_access_failure_raises_listing_error(self, store, api_client):
        api_client.access_secret_version.side_effect = gcp_exceptions.NotFound("missing")

        with pytest.raises(ListingError):
            store.access_version_payload(secret_version_path("test-project", "log-token"))

    def test_missing_credentials_raise_listing_error(self):
        """Test credential failures from lazy client creation are wrapped like API errors."""
        with mock.patch.object(gcp_client.secretmanager, "SecretManagerServiceClient") as client_cls:
            client_cls.side_effect = auth_exceptions.DefaultCredentialsError("no credentials")
            store = GCPSecretVersionStore()

            with pytest.raises(ListingError) as exc_info:
                store.list_secrets("test-project")

        assert isinstance(exc_info.value.cause, auth_exceptions.DefaultCredentialsError)

    def test_token_refresh_failure_on_mutation(self, store, api_client):
        api_client.destroy_secret_version.side_effect = auth_exceptions.RefreshError("expired")

        with pytest.raises(MutationError):
            store.destroy_version(f"{SECRET}/versions/3")

    def test_client_from_service_account_file(self):
        with mock.patch.object(gcp_client.secretmanager, "SecretManagerServiceClient") as client_cls:
            store = GCPSecretVersionStore(service_account_path="/tmp/sa.json")
            client = store.client

        client_cls.from_service_account_file.assert_called_once_with("/tmp/sa.json")
        assert client is client_cls.from_service_account_file.return_value

    def test_client_is_lazy_and_cached(self):
        with mock.patch.object(gcp_client.secretmanager, "SecretManagerServiceClient") as client_cls:
            store = GCPSecretVersionStore()
            client_cls.assert_not_called()
            first = store.client
            second = store.client

        client_cls.assert_called_once_with()
        assert first is second
