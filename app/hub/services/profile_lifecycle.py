from app.hub.core.error_catalog import AppError, ErrorCatalog
from app.hub.db.models import UserProfile, UserRole, UserStatus

ACTIONS = {
    "deactivate": UserStatus.INACTIVE,
    "reactivate": UserStatus.ACTIVE,
    "delete": UserStatus.DELETED,
}

ALLOWED_TRANSITIONS = {
    (UserStatus.ACTIVE, UserStatus.INACTIVE),
    (UserStatus.INACTIVE, UserStatus.ACTIVE),
    (UserStatus.DELETED, UserStatus.ACTIVE),
    (UserStatus.ACTIVE, UserStatus.DELETED),
    (UserStatus.INACTIVE, UserStatus.DELETED),
}


def ensure_home_store_invariant(role: str, home_store_id) -> None:
    if role != UserRole.ADMIN.value and home_store_id is None:
        raise AppError(
            ErrorCatalog.INVALID_REQUEST,
            message="Non-admin users must have a home store",
            details={"field": "home_store_id", "role": role},
        )


def apply_transition(profile: UserProfile, action: str) -> UserStatus:
    target = ACTIONS.get(action)
    if target is None:
        raise AppError(
            ErrorCatalog.INVALID_REQUEST,
            message="Unsupported action",
            details={"action": action, "allowed": sorted(ACTIONS)},
        )
    current = UserStatus(profile.status)
    if (current, target) not in ALLOWED_TRANSITIONS:
        raise AppError(
            ErrorCatalog.INVALID_STATUS_TRANSITION,
            details={"from": current.value, "to": target.value, "action": action},
        )
    profile.status = target.value
    return target
