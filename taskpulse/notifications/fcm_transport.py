"""Firebase Cloud Messaging (HTTP v1) implementation of the PushTransport protocol."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from taskpulse.config import settings
from taskpulse.notifications.channels import DeliveryResult
from taskpulse.notifications.errors import DispatchError

logger = logging.getLogger(__name__)

FCM_SCOPES = ["https://www.googleapis.com/auth/firebase.messaging"]
FCM_SEND_URL = "https://fcm.googleapis.com/v1/projects/{project_id}/messages:send"


class FCMTransport:
    """Sends notifications through the FCM HTTP v1 API.

    FCM v1 has no multicast endpoint, so each token gets its own request;
    the requests run concurrently on one client.

    Args:
        project_id: Firebase project (default from settings).
        credentials: Pre-built google-auth credentials. When omitted they are
            loaded from ``settings.fcm_credentials_path`` on first use.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        project_id: str | None = None,
        credentials: Any | None = None,
        timeout: float | None = None,
    ) -> None:
        self._project_id = project_id or settings.fcm_project_id
        self._credentials = credentials
        self._timeout = timeout or settings.fcm_timeout_seconds
        self._auth_lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return "fcm"

    @property
    def send_url(self) -> str:
        return FCM_SEND_URL.format(project_id=self._project_id)

    async def _access_token(self) -> str:
        """Return a valid OAuth access token, refreshing it when needed.

        Concurrent callers wait on one lock, so an expired token is refreshed once.
        """
        async with self._auth_lock:
            return await self._load_token()

    async def _load_token(self) -> str:
        if self._credentials is None:
            try:
                self._credentials = service_account.Credentials.from_service_account_file(
                    settings.fcm_credentials_path, scopes=FCM_SCOPES
                )
            except (OSError, ValueError) as exc:
                msg = f"Cannot load FCM credentials from {settings.fcm_credentials_path}"
                raise DispatchError(msg) from exc

        if not self._credentials.valid:
            try:
                await asyncio.to_thread(self._credentials.refresh, Request())
            except Exception as exc:
                msg = "FCM credential refresh failed"
                raise DispatchError(msg) from exc
        return self._credentials.token

    async def send_multicast(
        self, tokens: list[str], title: str, body: str
    ) -> list[DeliveryResult]:
        if not self._project_id:
            msg = "FCM not configured — missing FCM_PROJECT_ID"
            raise DispatchError(msg)

        access_token = await self._access_token()
        headers = {"Authorization": f"Bearer {access_token}"}

        async with httpx.AsyncClient(timeout=self._timeout, headers=headers) as client:
            results = await asyncio.gather(
                *(self._send_one(client, token, title, body) for token in tokens)
            )
        return list(results)

    async def _send_one(
        self, client: httpx.AsyncClient, token: str, title: str, body: str
    ) -> DeliveryResult:
        payload = {
            "message": {
                "token": token,
                "notification": {"title": title, "body": body},
            }
        }
        try:
            resp = await client.post(self.send_url, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("FCM send failed for token %s…: %s", token[:12], exc)
            return DeliveryResult(token=token, success=False, error=str(exc))

        if resp.is_success:
            return DeliveryResult(token=token, success=True)

        error = _error_status(resp)
        logger.warning(
            "FCM rejected token %s…: status=%d error=%s", token[:12], resp.status_code, error
        )
        return DeliveryResult(token=token, success=False, error=error)


def _error_status(resp: httpx.Response) -> str:
    """Pull the FCM error status (e.g. ``UNREGISTERED``) out of a failed response."""
    try:
        data = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}"
    error = data.get("error", {}) if isinstance(data, dict) else {}
    return str(error.get("status") or error.get("message") or f"HTTP {resp.status_code}")
