import logging
import uuid

from fastapi import APIRouter, Depends, Query, Request

from app.hub.core.context import get_correlation_id
from app.hub.core.deps import require_admin
from app.hub.core.error_catalog import AppError, ErrorCatalog
from app.hub.core.errors import ok_response
from app.hub.core.logging import log_json
from app.hub.db.models import UserProfile
from app.hub.db.session import get_db
from app.hub.repos.access_grants import AccessGrantRepository
from app.hub.repos.profiles import ProfileRepository
from app.hub.repos.stores import StoreRepository
from app.hub.schemas.admin import (
    AccessSyncRequest,
    AccessSyncResult,
    ProfileCreateRequest,
    ProfileDetail,
    ProfileItem,
    ProfileStatusFilter,
    ProfileUpdateRequest,
)
from app.hub.services.access_sync import AccessSyncService
from app.hub.services.profile_lifecycle import apply_transition, ensure_home_store_invariant

router = APIRouter()
logger = logging.getLogger(__name__)


def profile_item(profile: UserProfile) -> dict:
    return ProfileItem(
        id=str(profile.id),
        full_name=profile.full_name,
        email=profile.email,
        role=profile.role,
        status=profile.status,
        home_store_id=str(profile.home_store_id) if profile.home_store_id else None,
        must_reset_password=profile.must_reset_password,
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    ).model_dump(mode="json")


def _profile_detail(profile: UserProfile, store_ids) -> dict:
    item = profile_item(profile)
    return ProfileDetail(**item, store_ids=sorted(str(store_id) for store_id in store_ids)).model_dump(mode="json")


def _get_profile_or_404(repo: ProfileRepository, user_id: uuid.UUID) -> UserProfile:
    profile = repo.get_by_id(user_id)
    if profile is None:
        raise AppError(ErrorCatalog.NOT_FOUND, message="User profile not found")
    return profile


def _ensure_store_exists(db, store_id) -> None:
    if store_id is not None and StoreRepository(db).get_by_id(store_id) is None:
        raise AppError(
            ErrorCatalog.INVALID_REQUEST,
            message="Home store not found",
            details={"field": "home_store_id", "value": str(store_id)},
        )


@router.get("/profiles")
async def list_profiles(
    request: Request,
    status: ProfileStatusFilter = Query(default="all"),
    search: str | None = Query(default=None, max_length=255),
    _admin=Depends(require_admin),
    db=Depends(get_db),
):
    profiles = ProfileRepository(db).list_profiles(
        status=None if status == "all" else status,
        search=search,
    )
    return ok_response([profile_item(profile) for profile in profiles], get_correlation_id(request))


@router.get("/profiles/{user_id}")
async def get_profile(
    request: Request,
    user_id: uuid.UUID,
    _admin=Depends(require_admin),
    db=Depends(get_db),
):
    profile = _get_profile_or_404(ProfileRepository(db), user_id)
    store_ids = AccessGrantRepository(db).list_store_ids(profile.id)
    return ok_response(_profile_detail(profile, store_ids), get_correlation_id(request))


@router.post("/profiles", status_code=201)
async def create_profile(
    request: Request,
    payload: ProfileCreateRequest,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    correlation_id = get_correlation_id(request)
    ensure_home_store_invariant(payload.role.value, payload.home_store_id)
    _ensure_store_exists(db, payload.home_store_id)

    repo = ProfileRepository(db)
    user_id = payload.id or uuid.uuid4()
    if repo.get_by_id(user_id) is not None:
        raise AppError(ErrorCatalog.CONFLICT, message="User profile already exists", details={"id": str(user_id)})

    profile = repo.save(
        UserProfile(
            id=user_id,
            full_name=payload.full_name,
            email=payload.email.lower(),
            role=payload.role.value,
            status=payload.status,
            home_store_id=payload.home_store_id,
            must_reset_password=payload.must_reset_password,
        )
    )
    log_json(
        logger,
        {
            "event": "admin.profile.create",
            "correlation_id": correlation_id,
            "admin_id": str(admin.id),
            "user_id": str(profile.id),
        },
    )
    return ok_response(profile_item(profile), correlation_id, status_code=201)


@router.patch("/profiles/{user_id}")
async def update_profile(
    request: Request,
    user_id: uuid.UUID,
    payload: ProfileUpdateRequest,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    correlation_id = get_correlation_id(request)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise AppError(ErrorCatalog.INVALID_REQUEST, message="At least one field must be provided")
    cleared = [name for name in ("full_name", "email", "role", "must_reset_password") if name in changes and changes[name] is None]
    if cleared:
        raise AppError(ErrorCatalog.INVALID_REQUEST, message="Required fields cannot be empty", details={"fields": cleared})

    repo = ProfileRepository(db)
    profile = _get_profile_or_404(repo, user_id)
    if "role" in changes:
        changes["role"] = changes["role"].value
    if "email" in changes:
        changes["email"] = changes["email"].lower()
    if "home_store_id" in changes:
        _ensure_store_exists(db, changes["home_store_id"])
    ensure_home_store_invariant(
        changes.get("role", profile.role),
        changes.get("home_store_id", profile.home_store_id),
    )

    for key, value in changes.items():
        setattr(profile, key, value)
    profile = repo.save(profile)
    log_json(
        logger,
        {
            "event": "admin.profile.update",
            "correlation_id": correlation_id,
            "admin_id": str(admin.id),
            "user_id": str(profile.id),
            "fields": sorted(changes),
        },
    )
    return ok_response(profile_item(profile), correlation_id)


@router.post("/profiles/{user_id}/{action}")
async def change_profile_status(
    request: Request,
    user_id: uuid.UUID,
    action: str,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    correlation_id = get_correlation_id(request)
    repo = ProfileRepository(db)
    profile = _get_profile_or_404(repo, user_id)
    previous = profile.status
    target = apply_transition(profile, action)
    profile = repo.save(profile)
    log_json(
        logger,
        {
            "event": "admin.profile.status",
            "correlation_id": correlation_id,
            "admin_id": str(admin.id),
            "user_id": str(profile.id),
            "from": previous,
            "to": target.value,
        },
    )
    return ok_response(profile_item(profile), correlation_id)


@router.get("/profiles/{user_id}/stores")
async def get_profile_stores(
    request: Request,
    user_id: uuid.UUID,
    _admin=Depends(require_admin),
    db=Depends(get_db),
):
    profile = _get_profile_or_404(ProfileRepository(db), user_id)
    store_ids = AccessSyncService(db).current_store_ids(profile.id)
    return ok_response(
        {"user_id": str(profile.id), "store_ids": sorted(str(store_id) for store_id in store_ids)},
        get_correlation_id(request),
    )


@router.put("/profiles/{user_id}/stores")
async def sync_profile_stores(
    request: Request,
    user_id: uuid.UUID,
    payload: AccessSyncRequest,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    correlation_id = get_correlation_id(request)
    service = AccessSyncService(db)
    diff = service.sync(user_id, payload.store_ids, assigned_by=admin.id, correlation_id=correlation_id)
    result = AccessSyncResult(
        user_id=str(user_id),
        added=sorted(str(store_id) for store_id in diff.additions),
        removed=sorted(str(store_id) for store_id in diff.removals),
        store_ids=sorted(str(store_id) for store_id in service.current_store_ids(user_id)),
    )
    return ok_response(result.model_dump(), correlation_id)
