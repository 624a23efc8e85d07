"""GCP Secret Manager client wrapper for version lifecycle operations."""
import logging
from typing import List, Optional

from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import secretmanager

from .models import VersionRecord, VersionState

logger = logging.getLogger(__name__)

# Credential failures surface lazily, on the first call that needs a token
_CALL_ERRORS = (gcp_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError)

_STATE_FROM_API = {
    secretmanager.SecretVersion.State.ENABLED: VersionState.ENABLED,
    secretmanager.SecretVersion.State.DISABLED: VersionState.DISABLED,
    secretmanager.SecretVersion.State.DESTROYED: VersionState.DESTROYED,
}


class StoreError(Exception):
    """A Secret Manager call failed."""

    def __init__(self, operation: str, target: str, cause: Exception):
        self.operation = operation
        self.target = target
        self.cause = cause
        super().__init__(f"Failed to {operation} {target}: {cause}")


class ListingError(StoreError):
    """Listing secrets or versions (or reading a payload) failed."""
    pass


class MutationError(StoreError):
    """Disabling or destroying a version failed."""
    pass


def secret_version_path(project_id: str, secret_name: str, version: str = "latest") -> str:
    """Build a fully-qualified secret version resource name."""
    return f"projects/{project_id}/secrets/{secret_name}/versions/{version}"


def _to_record(version: secretmanager.SecretVersion, listed_state: VersionState) -> VersionRecord:
    """Convert an API SecretVersion into a VersionRecord."""
    create_time = version.create_time
    if create_time is None:
        seconds, nanos = 0, 0
    else:
        timestamp = create_time.timestamp_pb()
        seconds, nanos = timestamp.seconds, timestamp.nanos
    return VersionRecord(
        name=version.name,
        create_time_seconds=seconds,
        create_time_nanos=nanos,
        state=_STATE_FROM_API.get(version.state, listed_state),
    )


class GCPSecretVersionStore:
    """Wrapper around the GCP Secret Manager client for version cleanup.

    Every listing drains all pages before returning. API failures are raised
    as ListingError or MutationError; nothing is retried here.
    """

    def __init__(self, client: Optional[secretmanager.SecretManagerServiceClient] = None,
                 service_account_path: Optional[str] = None):
        self._client = client
        self._service_account_path = service_account_path

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        """Lazy-initialize client."""
        if self._client is None:
            if self._service_account_path:
                logger.debug(f"Creating Secret Manager client from {self._service_account_path}")
                self._client = secretmanager.SecretManagerServiceClient.from_service_account_file(
                    self._service_account_path
                )
            else:
                self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def list_secrets(self, project_id: str) -> List[str]:
        """
        List all secret names in a project.

        Args:
            project_id: GCP project ID

        Returns:
            Fully-qualified secret names in the order returned by the API
        """
        parent = f"projects/{project_id}"
        try:
            names = [secret.name for secret in self.client.list_secrets(request={"parent": parent})]
        except _CALL_ERRORS as e:
            raise ListingError("list secrets in", parent, e) from e
        logger.debug(f"Found {len(names)} secrets in {parent}")
        return names

    def list_versions(self, secret: str, state: VersionState) -> List[VersionRecord]:
        """
        List versions of a secret filtered by state.

        Args:
            secret: Fully-qualified secret name
            state: Only versions in this state are returned

        Returns:
            Version records in the order returned by the API
        """
        request = {"parent": secret, "filter": f"state:{state.value}"}
        try:
            versions = [_to_record(v, state) for v in self.client.list_secret_versions(request=request)]
        except _CALL_ERRORS as e:
            raise ListingError(f"list {state.value} versions of", secret, e) from e
        logger.debug(f"Versions found for {secret} ({state.value}): {[v.name for v in versions]}")
        return versions

    def disable_version(self, name: str) -> None:
        """Disable a secret version."""
        try:
            response = self.client.disable_secret_version(request={"name": name})
        except _CALL_ERRORS as e:
            raise MutationError("disable", name, e) from e
        logger.debug(f"Disable response for {name}: state={getattr(response, 'state', None)}")

    def destroy_version(self, name: str) -> None:
        """Destroy a secret version. This cannot be undone."""
        try:
            response = self.client.destroy_secret_version(request={"name": name})
        except _CALL_ERRORS as e:
            raise MutationError("destroy", name, e) from e
        logger.debug(f"Destroy response for {name}: state={getattr(response, 'state', None)}")

    def access_version_payload(self, name: str) -> bytes:
        """
        Read the payload of a secret version.

        Only used to fetch credentials for log shipping, never for versions
        being cleaned up.
        """
        try:
            response = self.client.access_secret_version(request={"name": name})
        except _CALL_ERRORS as e:
            raise ListingError("access", name, e) from e
        return response.payload.data
