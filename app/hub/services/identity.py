"""Identity service interface.

The provisioning flow only ever talks to an ``IdentityProvider``. Concrete
providers wrap the hosted auth admin API or the local account tables; tests
substitute in-memory fakes.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentitySubject:
    id: str
    email: str | None = None


@dataclass(frozen=True)
class IdentityAccountRef:
    id: str
    email: str | None


@dataclass(frozen=True)
class InviteResult:
    action_link: str | None = None


class IdentityServiceError(Exception):
    def __init__(self, message: str, *, status_code: int = 0, details: object | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class AccountExistsError(IdentityServiceError):
    pass


class InvalidTokenError(IdentityServiceError):
    pass


class IdentityProvider(ABC):
    max_scan_pages: int = 5
    scan_page_size: int = 200

    @abstractmethod
    def get_subject(self, token: str) -> IdentitySubject:
        raise NotImplementedError

    @abstractmethod
    def create_account(self, email: str, password: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def list_accounts(self, *, page: int, per_page: int) -> list[IdentityAccountRef]:
        raise NotImplementedError

    @abstractmethod
    def send_invite(self, email: str, redirect_to: str | None = None) -> InviteResult:
        raise NotImplementedError

    @abstractmethod
    def send_password_reset(self, email: str, redirect_to: str | None = None) -> None:
        raise NotImplementedError

    def find_account_by_email(self, email: str) -> str | None:
        wanted = email.strip().lower()
        for page in range(1, self.max_scan_pages + 1):
            accounts = self.list_accounts(page=page, per_page=self.scan_page_size)
            for account in accounts:
                if (account.email or "").lower() == wanted:
                    return account.id
            if len(accounts) < self.scan_page_size:
                break
        return None

    def find_or_create_account(self, email: str, password: str) -> tuple[str, bool]:
        """Return ``(subject_id, was_created)``.

        Providers without an upsert-by-email primitive create first and fall
        back to a paginated scan when the account already exists.
        """
        try:
            return self.create_account(email, password), True
        except AccountExistsError as exc:
            subject_id = self.find_account_by_email(email)
            if subject_id is None:
                raise IdentityServiceError(
                    "Account already exists but could not be located by email",
                    status_code=exc.status_code,
                    details={"scanned_pages": self.max_scan_pages},
                ) from exc
            logger.info("Reusing existing identity account for provisioning request")
            return subject_id, False


def build_identity_provider(settings, session_factory) -> IdentityProvider:
    backend = (settings.IDENTITY_BACKEND or "").strip().lower()
    if backend == "local":
        from app.hub.services.identity_local import LocalIdentityProvider

        return LocalIdentityProvider.from_settings(settings, session_factory)
    if backend == "supabase":
        from app.hub.services.identity_supabase import SupabaseIdentityProvider

        return SupabaseIdentityProvider.from_settings(settings)
    raise ValueError(f"Unsupported IDENTITY_BACKEND: {settings.IDENTITY_BACKEND!r}")
