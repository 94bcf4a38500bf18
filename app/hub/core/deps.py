import logging
import uuid

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from app.hub.core.error_catalog import AppError, ErrorCatalog
from app.hub.db.models import UserProfile, UserRole, UserStatus
from app.hub.db.session import get_db
from app.hub.repos.profiles import ProfileRepository
from app.hub.services.identity import IdentityProvider, IdentityServiceError, IdentitySubject, InvalidTokenError

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity


def authenticate_bearer(token: str | None, identity: IdentityProvider) -> IdentitySubject:
    if not token or not token.strip():
        raise AppError(ErrorCatalog.UNAUTHENTICATED, message="Missing bearer token")
    try:
        return identity.get_subject(token.strip())
    except InvalidTokenError as exc:
        raise AppError(ErrorCatalog.UNAUTHENTICATED, message="Invalid or expired token") from exc
    except IdentityServiceError as exc:
        raise AppError(
            ErrorCatalog.UPSTREAM_FAILURE,
            message=f"Token verification failed: {exc.message}",
            details=exc.details,
        ) from exc


def load_subject_profile(subject: IdentitySubject, db) -> UserProfile | None:
    try:
        subject_uuid = uuid.UUID(subject.id)
    except ValueError:
        return None
    return ProfileRepository(db).get_by_id(subject_uuid)


def authorize_admin(subject: IdentitySubject, db) -> UserProfile:
    profile = load_subject_profile(subject, db)
    if profile is None or profile.role != UserRole.ADMIN.value or profile.status != UserStatus.ACTIVE.value:
        logger.warning("Admin check failed for subject %s", subject.id)
        raise AppError(ErrorCatalog.FORBIDDEN)
    return profile


def get_current_subject(
    token: str | None = Depends(oauth2_scheme),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> IdentitySubject:
    return authenticate_bearer(token, identity)


def require_profile(subject: IdentitySubject = Depends(get_current_subject), db=Depends(get_db)) -> UserProfile:
    profile = load_subject_profile(subject, db)
    if profile is None:
        raise AppError(ErrorCatalog.FORBIDDEN, message="No profile for this account")
    return profile


def require_admin(subject: IdentitySubject = Depends(get_current_subject), db=Depends(get_db)) -> UserProfile:
    return authorize_admin(subject, db)


__all__ = [
    "authenticate_bearer",
    "authorize_admin",
    "get_current_subject",
    "get_identity_provider",
    "require_admin",
    "require_profile",
]
