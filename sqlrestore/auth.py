# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Service account authorization for the Cloud SQL Admin API.

Loads a service account JSON key, wraps it in google-auth credentials and
binds them to an httpx.AsyncClient through an httpx.Auth flow that fetches
and refreshes the bearer token on demand. No network traffic happens until
the first API request.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Sequence

import httpx
import structlog
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from sqlrestore.config import DEFAULT_TOKEN_URI, RestoreConfig
from sqlrestore.errors import (
    explain_credentials_not_found,
    explain_credentials_not_json,
    explain_missing_credential_fields,
)
from sqlrestore.exceptions import ConfigurationError

logger = structlog.get_logger()

REQUIRED_CREDENTIAL_FIELDS = ("client_email", "private_key")


def load_service_account_info(path: Path) -> Dict[str, Any]:
    """
    Read and check a service account key file.

    Args:
        path: Path to the JSON key

    Returns:
        The parsed key as a dict

    Raises:
        ConfigurationError: If the file is missing, not JSON, or incomplete
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigurationError(explain_credentials_not_found(path)) from e
    except OSError as e:
        raise ConfigurationError(
            explain_credentials_not_found(path), details={"error": str(e)}
        ) from e

    try:
        info = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            explain_credentials_not_json(path), details={"error": str(e)}
        ) from e

    if not isinstance(info, dict):
        raise ConfigurationError(explain_credentials_not_json(path))

    missing = [name for name in REQUIRED_CREDENTIAL_FIELDS if not info.get(name)]
    if missing:
        raise ConfigurationError(explain_missing_credential_fields(path, missing))

    return info


def build_credentials(
    info: Dict[str, Any],
    scopes: Sequence[str],
) -> service_account.Credentials:
    """
    Create scoped service account credentials from parsed key info.

    Raises:
        ConfigurationError: If google-auth rejects the key
    """
    info = {"token_uri": DEFAULT_TOKEN_URI, **info}
    try:
        return service_account.Credentials.from_service_account_info(
            info, scopes=list(scopes)
        )
    except ValueError as e:
        raise ConfigurationError(
            "Service account key could not be loaded",
            details={"client_email": info.get("client_email"), "error": str(e)},
        ) from e


class GoogleCredentialsAuth(httpx.Auth):
    """
    httpx auth flow that attaches a google-auth bearer token.

    The token is refreshed in a worker thread whenever the credentials are
    not valid (first use or expiry). Refreshes are serialized.
    """

    def __init__(self, credentials: Any):
        self._credentials = credentials
        self._refresh_lock = asyncio.Lock()
        self._token_request = GoogleAuthRequest()

    async def _ensure_token(self) -> str:
        async with self._refresh_lock:
            if not self._credentials.valid:
                await asyncio.to_thread(self._credentials.refresh, self._token_request)
                logger.debug("access_token_refreshed")
        return self._credentials.token

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        token = await self._ensure_token()
        request.headers["Authorization"] = f"Bearer {token}"
        yield request

    def close(self) -> None:
        """Close the requests session used for token refreshes."""
        self._token_request.session.close()


class AuthorizedClient:
    """
    Authenticated JSON client for the Cloud SQL Admin API.

    Safe to share between concurrent calls; the only mutable state is the
    cached token inside the credentials.
    """

    def __init__(
        self,
        credentials: Any,
        config: RestoreConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.credentials = credentials
        self.config = config
        self._auth = GoogleCredentialsAuth(credentials)
        self._http = httpx.AsyncClient(
            auth=self._auth,
            timeout=config.timeout_seconds,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_service_account_file(
        cls,
        path: Path,
        config: RestoreConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "AuthorizedClient":
        info = load_service_account_info(path)
        credentials = build_credentials(info, config.scopes)
        logger.info(
            "authorized",
            client_email=info["client_email"],
            scopes=list(config.scopes),
        )
        return cls(credentials, config, transport)

    @property
    def service_account_email(self) -> str | None:
        return getattr(self.credentials, "service_account_email", None)

    def url(self, path: str) -> str:
        """Join a resource path onto the configured API root."""
        return f"{self.config.api_base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Dict[str, Any] | None = None,
        json_body: Dict[str, Any] | None = None,
    ) -> Any:
        """
        Send an authenticated request and return the decoded JSON body.

        Raises:
            httpx.HTTPError: On transport failures or non-2xx responses,
                logged and re-raised unchanged
        """
        try:
            response = await self._http.request(
                method, url, params=params, json=json_body
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            status_code = None
            if isinstance(e, httpx.HTTPStatusError):
                status_code = e.response.status_code
            logger.error(
                "http_request_failed",
                method=method,
                url=url,
                status_code=status_code,
                error=str(e),
            )
            raise

        if not response.content:
            return {}
        return response.json()

    async def aclose(self) -> None:
        await self._http.aclose()
        self._auth.close()
