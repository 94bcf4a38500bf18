import logging
import secrets
import uuid
from datetime import timedelta
from urllib.parse import urlencode

from jose import JWTError
from sqlalchemy.exc import IntegrityError

from app.hub.core.security import create_access_token, decode_token, get_password_hash, verify_password
from app.hub.db.models import IdentityAccount, IdentityOutboxMessage, OutboxKind
from app.hub.repos.identity import IdentityAccountRepository
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


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class LocalIdentityProvider(IdentityProvider):
    """Accounts kept in our own database.

    Tokens are HS256 JWTs signed with ``SECRET_KEY``; invite and recovery
    emails are written to the ``identity_outbox`` table instead of being sent.
    """

    def __init__(
        self,
        session_factory,
        *,
        secret_key: str,
        algorithm: str = "HS256",
        token_ttl: timedelta = timedelta(minutes=60),
        default_redirect_url: str = "",
        max_scan_pages: int = 5,
        scan_page_size: int = 200,
    ):
        self.session_factory = session_factory
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.token_ttl = token_ttl
        self.default_redirect_url = default_redirect_url
        self.max_scan_pages = max_scan_pages
        self.scan_page_size = scan_page_size

    @classmethod
    def from_settings(cls, settings, session_factory) -> "LocalIdentityProvider":
        return cls(
            session_factory,
            secret_key=settings.SECRET_KEY,
            algorithm=settings.ALGORITHM,
            token_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            default_redirect_url=settings.DEFAULT_REDIRECT_URL,
            max_scan_pages=settings.ACCOUNT_SCAN_MAX_PAGES,
            scan_page_size=settings.ACCOUNT_SCAN_PAGE_SIZE,
        )

    def issue_token(self, account_id: str, email: str) -> str:
        return create_access_token(
            {"sub": str(account_id), "email": email},
            secret_key=self.secret_key,
            algorithm=self.algorithm,
            expires_delta=self.token_ttl,
        )

    def authenticate(self, email: str, password: str) -> str:
        with self.session_factory() as db:
            account = IdentityAccountRepository(db).get_by_email(email)
            if account is None or not verify_password(password, account.hashed_password):
                raise InvalidTokenError("Invalid login credentials", status_code=400)
            return self.issue_token(str(account.id), account.email)

    def get_subject(self, token: str) -> IdentitySubject:
        try:
            payload = decode_token(token, secret_key=self.secret_key, algorithm=self.algorithm)
        except JWTError as exc:
            raise InvalidTokenError("Invalid or expired token", status_code=401) from exc
        subject_id = payload.get("sub")
        if not subject_id:
            raise InvalidTokenError("Token has no subject", status_code=401)
        try:
            subject_uuid = uuid.UUID(str(subject_id))
        except ValueError as exc:
            raise InvalidTokenError("Token subject is malformed", status_code=401) from exc
        with self.session_factory() as db:
            account = IdentityAccountRepository(db).get_by_id(subject_uuid)
            if account is None:
                raise InvalidTokenError("Token subject does not exist", status_code=401)
            return IdentitySubject(id=str(account.id), email=account.email)

    def create_account(self, email: str, password: str) -> str:
        normalized = _normalize_email(email)
        with self.session_factory() as db:
            repo = IdentityAccountRepository(db)
            if repo.get_by_email(normalized) is not None:
                raise AccountExistsError("User already registered", status_code=422)
            try:
                account = repo.create(
                    IdentityAccount(email=normalized, hashed_password=get_password_hash(password))
                )
            except IntegrityError as exc:
                db.rollback()
                raise AccountExistsError("User already registered", status_code=422) from exc
            return str(account.id)

    def find_or_create_account(self, email: str, password: str) -> tuple[str, bool]:
        with self.session_factory() as db:
            existing = IdentityAccountRepository(db).get_by_email(email)
            if existing is not None:
                return str(existing.id), False
        return self.create_account(email, password), True

    def list_accounts(self, *, page: int, per_page: int) -> list[IdentityAccountRef]:
        with self.session_factory() as db:
            accounts = IdentityAccountRepository(db).list_page(page=page, per_page=per_page)
            return [IdentityAccountRef(id=str(account.id), email=account.email) for account in accounts]

    def _action_link(self, redirect_to: str | None, kind: OutboxKind) -> str | None:
        target = redirect_to or self.default_redirect_url
        if not target:
            return None
        query = urlencode({"type": kind.value, "token": secrets.token_urlsafe(32)})
        separator = "&" if "?" in target else "?"
        return f"{target}{separator}{query}"

    def _record(self, email: str, kind: OutboxKind, redirect_to: str | None) -> IdentityOutboxMessage:
        with self.session_factory() as db:
            message = IdentityAccountRepository(db).add_outbox_message(
                IdentityOutboxMessage(
                    email=email,
                    kind=kind.value,
                    redirect_to=redirect_to,
                    action_link=self._action_link(redirect_to, kind),
                )
            )
            db.expunge(message)
            return message

    def send_invite(self, email: str, redirect_to: str | None = None) -> InviteResult:
        normalized = _normalize_email(email)
        with self.session_factory() as db:
            if IdentityAccountRepository(db).get_by_email(normalized) is None:
                raise IdentityServiceError("No account to invite", status_code=404)
        message = self._record(normalized, OutboxKind.INVITE, redirect_to)
        logger.info("Invite queued in identity outbox")
        return InviteResult(action_link=message.action_link)

    def send_password_reset(self, email: str, redirect_to: str | None = None) -> None:
        normalized = _normalize_email(email)
        with self.session_factory() as db:
            account = IdentityAccountRepository(db).get_by_email(normalized)
        if account is None:
            # Unknown addresses are accepted silently so callers cannot discover which accounts exist.
            return
        self._record(normalized, OutboxKind.RECOVERY, redirect_to)
        logger.info("Recovery email queued in identity outbox")
