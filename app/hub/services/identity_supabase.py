import logging
from dataclasses import dataclass, field
from urllib.parse import urljoin

import requests

from app.hub.services.identity import (
    AccountExistsError,
    IdentityAccountRef,
    IdentityProvider,
    IdentityServiceError,
    IdentitySubject,
    InvalidTokenError,
    InviteResult,
)

logger = logging.getLogger(__name__)

_EXISTS_CODES = {"email_exists", "user_already_exists"}


def _error_message(payload: object, fallback: str) -> str:
    if isinstance(payload, dict):
        for key in ("msg", "message", "error_description", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback


def _error_code(payload: object) -> str | None:
    if isinstance(payload, dict):
        value = payload.get("error_code") or payload.get("code")
        if value is not None:
            return str(value)
    return None


def _looks_like_existing_account(status_code: int, payload: object) -> bool:
    if status_code not in {400, 409, 422}:
        return False
    if _error_code(payload) in _EXISTS_CODES:
        return True
    return "already" in _error_message(payload, "").lower()


@dataclass
class SupabaseIdentityProvider(IdentityProvider):
    """Hosted auth admin API, called with the service-role key."""

    base_url: str
    service_role_key: str
    timeout_seconds: float = 15.0
    max_scan_pages: int = 5
    scan_page_size: int = 200
    session: requests.Session = field(default_factory=requests.Session)

    @classmethod
    def from_settings(cls, settings) -> "SupabaseIdentityProvider":
        if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
            raise RuntimeError(
                "IDENTITY_BACKEND=supabase requires SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY"
            )
        return cls(
            base_url=settings.SUPABASE_URL,
            service_role_key=settings.SUPABASE_SERVICE_ROLE_KEY,
            timeout_seconds=settings.IDENTITY_TIMEOUT_SECONDS,
            max_scan_pages=settings.ACCOUNT_SCAN_MAX_PAGES,
            scan_page_size=settings.ACCOUNT_SCAN_PAGE_SIZE,
        )

    def _url(self, path: str) -> str:
        return urljoin(self.base_url.rstrip("/") + "/auth/v1/", path.lstrip("/"))

    def _request(
        self,
        method: str,
        path: str,
        *,
        bearer: str | None = None,
        json_body: dict | None = None,
        params: dict | None = None,
    ) -> requests.Response:
        headers = {
            "apikey": self.service_role_key,
            "Authorization": f"Bearer {bearer or self.service_role_key}",
            "Accept": "application/json",
        }
        try:
            return self.session.request(
                method,
                self._url(path),
                headers=headers,
                json=json_body,
                params=params,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            raise IdentityServiceError(
                f"Identity service unreachable: {exc}",
                details={"type": type(exc).__name__},
            ) from exc

    @staticmethod
    def _payload(response: requests.Response) -> object:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return {"message": response.text}

    def _raise_for_status(self, response: requests.Response, operation: str) -> object:
        payload = self._payload(response)
        if response.ok:
            return payload
        message = _error_message(payload, f"{operation} failed with status {response.status_code}")
        details = {"operation": operation, "status": response.status_code, "code": _error_code(payload)}
        if _looks_like_existing_account(response.status_code, payload):
            raise AccountExistsError(message, status_code=response.status_code, details=details)
        raise IdentityServiceError(message, status_code=response.status_code, details=details)

    def get_subject(self, token: str) -> IdentitySubject:
        response = self._request("GET", "user", bearer=token)
        if response.status_code in {401, 403}:
            payload = self._payload(response)
            raise InvalidTokenError(
                _error_message(payload, "Invalid or expired token"),
                status_code=response.status_code,
            )
        payload = self._raise_for_status(response, "get_user")
        subject_id = payload.get("id") if isinstance(payload, dict) else None
        if not subject_id:
            raise InvalidTokenError("Token did not resolve to a user", status_code=response.status_code)
        return IdentitySubject(id=str(subject_id), email=payload.get("email"))

    def create_account(self, email: str, password: str) -> str:
        response = self._request(
            "POST",
            "admin/users",
            json_body={"email": email, "password": password, "email_confirm": False},
        )
        payload = self._raise_for_status(response, "create_user")
        # Depending on the API version the user is returned bare or wrapped.
        user = payload.get("user", payload) if isinstance(payload, dict) else None
        subject_id = user.get("id") if isinstance(user, dict) else None
        if not subject_id:
            raise IdentityServiceError("create_user returned no user id", status_code=response.status_code)
        return str(subject_id)

    def list_accounts(self, *, page: int, per_page: int) -> list[IdentityAccountRef]:
        response = self._request("GET", "admin/users", params={"page": page, "per_page": per_page})
        payload = self._raise_for_status(response, "list_users")
        users = payload.get("users", []) if isinstance(payload, dict) else []
        return [
            IdentityAccountRef(id=str(user["id"]), email=user.get("email"))
            for user in users
            if isinstance(user, dict) and user.get("id")
        ]

    def send_invite(self, email: str, redirect_to: str | None = None) -> InviteResult:
        params = {"redirect_to": redirect_to} if redirect_to else None
        response = self._request("POST", "invite", json_body={"email": email}, params=params)
        try:
            payload = self._raise_for_status(response, "invite")
        except AccountExistsError:
            # Accounts created a moment ago cannot be invited; send a recovery link instead.
            logger.info("Invite refused for existing account, sending recovery link")
            self.send_password_reset(email, redirect_to)
            return InviteResult()
        action_link = payload.get("action_link") if isinstance(payload, dict) else None
        return InviteResult(action_link=action_link)

    def send_password_reset(self, email: str, redirect_to: str | None = None) -> None:
        params = {"redirect_to": redirect_to} if redirect_to else None
        response = self._request("POST", "recover", json_body={"email": email}, params=params)
        self._raise_for_status(response, "recover")
