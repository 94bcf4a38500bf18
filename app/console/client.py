from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

import requests

from app.console.config import ConsoleConfig
from app.console.errors import ConsoleApiError

CORRELATION_HEADER = "x-correlation-id"

logger = logging.getLogger(__name__)


def _log_failure(error: ConsoleApiError, method: str, path: str) -> ConsoleApiError:
    logger.error(
        json.dumps(
            {
                "event": "console_api_error",
                "correlation_id": error.correlation_id,
                "code": error.code,
                "message": error.message,
                "status_code": error.status_code,
                "method": method.upper(),
                "path": path,
            },
            sort_keys=True,
            default=str,
        )
    )
    return error


@dataclass
class ConsoleClient:
    """Thin client for the admin console screens.

    Every call sends a fresh correlation id unless one is given and unwraps
    the ``{ok, data | error, correlationId}`` envelope.
    """

    config: ConsoleConfig
    access_token: str | None = None
    session: requests.Session | None = None

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = requests.Session()

    def _build_url(self, path: str) -> str:
        return urljoin(self.config.api_base_url.rstrip("/") + "/", path.lstrip("/"))

    def _headers(self, correlation_id: str) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            CORRELATION_HEADER: correlation_id,
        }
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        if self.config.api_key:
            headers["apikey"] = self.config.api_key
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        correlation_id: str | None = None,
    ) -> Any:
        correlation_id = correlation_id or str(uuid.uuid4())
        try:
            response = self.session.request(
                method=method.upper(),
                url=self._build_url(path),
                headers=self._headers(correlation_id),
                json=json_body,
                params=params,
                timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
            )
        except requests.RequestException as exc:
            error = ConsoleApiError(
                code="TRANSPORT_ERROR",
                message=str(exc),
                details={"type": type(exc).__name__},
                correlation_id=correlation_id,
                status_code=0,
            )
            raise _log_failure(error, method, path) from exc

        try:
            payload = response.json()
        except (json.JSONDecodeError, ValueError):
            payload = {"message": response.text}
        if not isinstance(payload, dict):
            payload = {"message": str(payload)}

        correlation_id = (
            payload.get("correlationId") or response.headers.get(CORRELATION_HEADER) or correlation_id
        )
        if response.ok and payload.get("ok") is True:
            return payload.get("data")

        error = payload.get("error") if isinstance(payload.get("error"), dict) else {}
        failure = ConsoleApiError(
            code=str(error.get("code") or "HTTP_ERROR"),
            message=str(error.get("message") or payload.get("message") or f"HTTP {response.status_code}"),
            details=error.get("details"),
            correlation_id=correlation_id,
            status_code=response.status_code,
        )
        raise _log_failure(failure, method, path)

    def create_user(
        self,
        *,
        email: str,
        full_name: str,
        role: str | None = None,
        home_store_id: str | None = None,
        invite: bool = False,
        temp_password: str | None = None,
        redirect_to: str | None = None,
        **extra: Any,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"email": email, "full_name": full_name, "invite": invite, **extra}
        if role:
            body["role"] = role
        if home_store_id:
            body["home_store_id"] = home_store_id
        if temp_password:
            body["tempPassword"] = temp_password
        if redirect_to:
            body["redirectTo"] = redirect_to
        return self.request("POST", "/functions/v1/admin_create_user", json_body=body)

    def send_password_reset(self, email: str, redirect_to: str | None = None) -> dict[str, Any]:
        body: dict[str, Any] = {"mode": "reset", "email": email}
        if redirect_to:
            body["redirectTo"] = redirect_to
        return self.request("POST", "/functions/v1/admin_create_user", json_body=body)

    def list_stores(self, status: str = "active") -> list[dict[str, Any]]:
        return self.request("GET", "/admin/stores", params={"status": status})

    def sync_user_stores(self, user_id: str, store_ids: list[str]) -> dict[str, Any]:
        return self.request("PUT", f"/admin/profiles/{user_id}/stores", json_body={"store_ids": list(store_ids)})
