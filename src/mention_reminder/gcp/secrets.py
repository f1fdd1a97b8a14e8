"""Secret Manager REST client for per-workspace bot tokens."""

import base64
import logging

import httpx

from mention_reminder.errors import CredentialError
from mention_reminder.gcp.auth import MetadataTokenProvider, send_authorized

logger = logging.getLogger(__name__)

SECRET_MANAGER_API = "https://secretmanager.googleapis.com/v1"


class SecretManagerStore:
    """SecretStore reading and writing the latest version of named secrets."""

    def __init__(
        self, http: httpx.AsyncClient, tokens: MetadataTokenProvider, project: str
    ) -> None:
        self._http = http
        self._tokens = tokens
        self._project = project

    def _secret_path(self, name: str) -> str:
        return f"{SECRET_MANAGER_API}/projects/{self._project}/secrets/{name}"

    async def get(self, name: str) -> str:
        """Return the latest version of a secret as text."""
        try:
            response = await send_authorized(
                self._tokens,
                lambda headers: self._http.get(
                    f"{self._secret_path(name)}/versions/latest:access", headers=headers
                ),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise CredentialError(
                f"Secret {name} not readable (status={exc.response.status_code})"
            ) from exc
        except httpx.HTTPError as exc:
            raise CredentialError(f"Secret {name} not readable: {exc}") from exc

        data = response.json().get("payload", {}).get("data", "")
        value = base64.b64decode(data).decode("utf-8") if data else ""
        if not value:
            raise CredentialError(f"Secret {name} is empty")
        return value

    async def put(self, name: str, value: str) -> None:
        """Create the secret if needed and add value as its newest version."""
        try:
            created = await send_authorized(
                self._tokens,
                lambda headers: self._http.post(
                    f"{SECRET_MANAGER_API}/projects/{self._project}/secrets",
                    params={"secretId": name},
                    json={"replication": {"automatic": {}}},
                    headers=headers,
                ),
            )
            # 409: the secret already exists, only a new version is needed
            if created.status_code != 409:
                created.raise_for_status()

            added = await send_authorized(
                self._tokens,
                lambda headers: self._http.post(
                    f"{self._secret_path(name)}:addVersion",
                    json={"payload": {"data": base64.b64encode(value.encode("utf-8")).decode("ascii")}},
                    headers=headers,
                ),
            )
            added.raise_for_status()
        except httpx.HTTPError as exc:
            raise CredentialError(f"Secret {name} not writable: {exc}") from exc

        logger.info("Stored new version of secret %s", name)
