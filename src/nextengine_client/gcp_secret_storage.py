"""Google Secret Manager backed token persistence."""

from __future__ import annotations

import json
import logging

from google.api_core import exceptions as gcp_exceptions
from google.cloud import secretmanager

from .exceptions import ConfigurationError, TokenStoreError
from .models import Token
from .token_store import TokenStore

logger = logging.getLogger("nextengine-token-store")


class GCPSecretTokenStore(TokenStore):
    """Keeps the Next Engine token as JSON in a Secret Manager secret.

    Every save adds a secret version holding the merged token, so ``latest``
    is always the token in use; older enabled versions are disabled to keep
    rotated-out tokens from being served. ``save`` reads, merges and writes
    without locking, so concurrent writers must be serialized externally.
    """

    def __init__(self, project_id: str, secret_name: str) -> None:
        if not project_id:
            raise ConfigurationError("project_id is required to talk to Secret Manager")
        if not secret_name:
            raise ConfigurationError("secret_name is required for GCPSecretTokenStore")
        self._project_id = project_id
        self._secret_name = secret_name
        self._client = secretmanager.SecretManagerServiceClient()
        self._secret_path = self._client.secret_path(project_id, secret_name)

    @property
    def secret_path(self) -> str:
        return self._secret_path

    def fetch(self) -> Token:
        try:
            response = self._client.access_secret_version(
                name=f"{self._secret_path}/versions/latest"
            )
        except gcp_exceptions.NotFound:
            logger.debug("No token stored in %s yet", self._secret_path)
            return Token()
        except gcp_exceptions.GoogleAPICallError as exc:
            raise TokenStoreError(f"Could not read token from {self._secret_path}") from exc

        try:
            return Token.from_dict(json.loads(response.payload.data.decode("utf-8")))
        except (ValueError, AttributeError) as exc:
            raise TokenStoreError(
                f"Secret '{self._secret_name}' does not hold a token JSON object"
            ) from exc

    def save(self, token: Token) -> None:
        merged = self.fetch().merged_with(token)
        payload = json.dumps(merged.to_dict(), indent=2).encode("utf-8")
        try:
            self._ensure_secret()
            version = self._client.add_secret_version(
                parent=self._secret_path,
                payload=secretmanager.SecretPayload(data=payload),
            )
        except gcp_exceptions.GoogleAPICallError as exc:
            raise TokenStoreError(f"Could not write token to {self._secret_path}") from exc

        self._disable_stale_tokens(keep_version=version.name)
        logger.info(
            "Token stored in %s (access token valid until %s)",
            version.name,
            merged.access_token_end_date or "unknown",
        )

    def _ensure_secret(self) -> None:
        try:
            self._client.get_secret(name=self._secret_path)
        except gcp_exceptions.NotFound:
            self._client.create_secret(
                parent=f"projects/{self._project_id}",
                secret_id=self._secret_name,
                secret=secretmanager.Secret(
                    replication=secretmanager.Replication(
                        automatic=secretmanager.Replication.Automatic()
                    )
                ),
            )

    def _disable_stale_tokens(self, keep_version: str) -> None:
        # The new version is already ``latest``; failures here only leave
        # old tokens readable by version number.
        try:
            versions = self._client.list_secret_versions(
                request={"parent": self._secret_path}
            )
            for version in versions:
                if version.name == keep_version:
                    continue
                if version.state == secretmanager.SecretVersion.State.ENABLED:
                    self._client.disable_secret_version(name=version.name)
        except gcp_exceptions.GoogleAPICallError as exc:
            logger.warning("Could not disable stale tokens in %s: %s", self._secret_path, exc)
