# ABOUTME: Lazily-created Google credentials for the Cloud Text-to-Speech API
# ABOUTME: Built once at startup and injected; first use is guarded by an asyncio lock
from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging

import google.auth
from google.auth import exceptions as google_exceptions
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from errors import AuthenticationError

logger = logging.getLogger("clipvox.credentials")

SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]


class CredentialProvider:
    """Source of auth headers for the speech provider.

    Credentials come from inline service-account JSON, base64-encoded JSON,
    or Application Default Credentials, in that order of precedence. They
    are created on first use and reused for the lifetime of the process.
    """

    def __init__(
        self,
        credentials_json: str | None = None,
        credentials_base64: str | None = None,
    ):
        self._credentials_json = credentials_json
        self._credentials_base64 = credentials_base64
        self._credentials = None
        self._lock = asyncio.Lock()

    @property
    def source(self) -> str:
        if self._credentials_json:
            return "inline-json"
        if self._credentials_base64:
            return "base64-json"
        return "application-default"

    def _service_account_info(self) -> dict | None:
        raw = self._credentials_json
        if not raw and self._credentials_base64:
            try:
                raw = base64.b64decode(self._credentials_base64, validate=True).decode("utf-8")
            except (binascii.Error, UnicodeDecodeError) as e:
                raise AuthenticationError(f"Google credentials are not valid base64: {e}") from e
        if not raw:
            return None
        try:
            info = json.loads(raw)
        except json.JSONDecodeError as e:
            raise AuthenticationError(f"Google credentials are not valid JSON: {e}") from e
        if not isinstance(info, dict):
            raise AuthenticationError("Google credentials JSON must be an object")
        return info

    def _create_credentials(self):
        info = self._service_account_info()
        try:
            if info is not None:
                return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
            credentials, _project = google.auth.default(scopes=SCOPES)
            return credentials
        except (ValueError, google_exceptions.GoogleAuthError) as e:
            raise AuthenticationError(f"Unable to load Google credentials: {e}") from e

    async def _get_credentials(self):
        async with self._lock:
            if self._credentials is None:
                # google.auth.default() may probe the metadata server
                self._credentials = await asyncio.to_thread(self._create_credentials)
                logger.info("Loaded speech credentials (%s)", self.source)
            credentials = self._credentials
            if not credentials.valid:
                try:
                    await asyncio.to_thread(credentials.refresh, GoogleAuthRequest())
                except google_exceptions.GoogleAuthError as e:
                    raise AuthenticationError(f"Google credential refresh failed: {e}") from e
            return credentials

    async def auth_headers(self) -> dict[str, str]:
        """Return request headers carrying a fresh bearer token."""
        credentials = await self._get_credentials()
        headers = {"Authorization": f"Bearer {credentials.token}"}
        quota_project = getattr(credentials, "quota_project_id", None)
        if quota_project:
            headers["x-goog-user-project"] = quota_project
        return headers
