import logging
import uuid

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.exc import IntegrityError

from app.hub.core.context import get_correlation_id
from app.hub.core.deps import require_admin
from app.hub.core.error_catalog import AppError, ErrorCatalog
from app.hub.core.errors import ok_response
from app.hub.core.logging import log_json
from app.hub.db.models import Store, StoreStatus
from app.hub.db.session import get_db
from app.hub.repos.stores import StoreRepository
from app.hub.schemas.admin import StoreCreateRequest, StoreItem, StoreStatusFilter, StoreUpdateRequest

router = APIRouter()
logger = logging.getLogger(__name__)

_REQUIRED_STORE_FIELDS = ("ace_store_number", "pos_store_number", "store_name")


def _store_item(store: Store) -> dict:
    return StoreItem(
        id=str(store.id),
        ace_store_number=store.ace_store_number,
        pos_store_number=store.pos_store_number,
        store_name=store.store_name,
        email=store.email,
        address_line1=store.address_line1,
        address_line2=store.address_line2,
        city=store.city,
        state=store.state,
        postal_code=store.postal_code,
        country=store.country,
        date_opened=store.date_opened,
        timezone=store.timezone,
        sort_order=store.sort_order,
        status=store.status,
        created_at=store.created_at,
        updated_at=store.updated_at,
    ).model_dump(mode="json")


def _get_store_or_404(repo: StoreRepository, store_id: uuid.UUID) -> Store:
    store = repo.get_by_id(store_id)
    if store is None:
        raise AppError(ErrorCatalog.NOT_FOUND, message="Store not found")
    return store


def _ensure_ace_number_free(repo: StoreRepository, ace_store_number: str, store_id=None) -> None:
    existing = repo.get_by_ace_number(ace_store_number)
    if existing is not None and existing.id != store_id:
        raise AppError(
            ErrorCatalog.CONFLICT,
            message="ACE store number already in use",
            details={"field": "ace_store_number"},
        )


def _save(repo: StoreRepository, store: Store, *, create: bool) -> Store:
    try:
        return repo.create(store) if create else repo.update(store)
    except IntegrityError as exc:
        repo.db.rollback()
        raise AppError(ErrorCatalog.CONFLICT, message="Store conflicts with an existing record") from exc


@router.get("/stores")
async def list_stores(
    request: Request,
    status: StoreStatusFilter = Query(default="all"),
    _admin=Depends(require_admin),
    db=Depends(get_db),
):
    stores = StoreRepository(db).list_stores(status=None if status == "all" else status)
    return ok_response([_store_item(store) for store in stores], get_correlation_id(request))


@router.get("/stores/{store_id}")
async def get_store(
    request: Request,
    store_id: uuid.UUID,
    _admin=Depends(require_admin),
    db=Depends(get_db),
):
    store = _get_store_or_404(StoreRepository(db), store_id)
    return ok_response(_store_item(store), get_correlation_id(request))


@router.post("/stores", status_code=201)
async def create_store(
    request: Request,
    payload: StoreCreateRequest,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    correlation_id = get_correlation_id(request)
    repo = StoreRepository(db)
    _ensure_ace_number_free(repo, payload.ace_store_number)
    fields = payload.model_dump()
    fields["status"] = payload.status.value
    store = _save(repo, Store(**fields), create=True)
    log_json(
        logger,
        {
            "event": "admin.store.create",
            "correlation_id": correlation_id,
            "admin_id": str(admin.id),
            "store_id": str(store.id),
        },
    )
    return ok_response(_store_item(store), correlation_id, status_code=201)


@router.patch("/stores/{store_id}")
async def update_store(
    request: Request,
    store_id: uuid.UUID,
    payload: StoreUpdateRequest,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    correlation_id = get_correlation_id(request)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise AppError(ErrorCatalog.INVALID_REQUEST, message="At least one field must be provided")
    cleared = [name for name in _REQUIRED_STORE_FIELDS if name in changes and changes[name] is None]
    if cleared:
        raise AppError(ErrorCatalog.INVALID_REQUEST, message="Required fields cannot be empty", details={"fields": cleared})

    repo = StoreRepository(db)
    store = _get_store_or_404(repo, store_id)
    if "ace_store_number" in changes:
        _ensure_ace_number_free(repo, changes["ace_store_number"], store.id)
    if changes.get("sort_order", 0) is None:
        changes["sort_order"] = 0
    for key, value in changes.items():
        setattr(store, key, value)
    store = _save(repo, store, create=False)
    log_json(
        logger,
        {
            "event": "admin.store.update",
            "correlation_id": correlation_id,
            "admin_id": str(admin.id),
            "store_id": str(store.id),
            "fields": sorted(changes),
        },
    )
    return ok_response(_store_item(store), correlation_id)


def _set_store_status(request: Request, store_id: uuid.UUID, status: StoreStatus, admin, db):
    correlation_id = get_correlation_id(request)
    repo = StoreRepository(db)
    store = _get_store_or_404(repo, store_id)
    if store.status != status.value:
        store.status = status.value
        store = _save(repo, store, create=False)
        log_json(
            logger,
            {
                "event": f"admin.store.{status.value}",
                "correlation_id": correlation_id,
                "admin_id": str(admin.id),
                "store_id": str(store.id),
            },
        )
    return ok_response(_store_item(store), correlation_id)


@router.post("/stores/{store_id}/deactivate")
async def deactivate_store(
    request: Request,
    store_id: uuid.UUID,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    return _set_store_status(request, store_id, StoreStatus.INACTIVE, admin, db)


@router.post("/stores/{store_id}/reactivate")
async def reactivate_store(
    request: Request,
    store_id: uuid.UUID,
    admin=Depends(require_admin),
    db=Depends(get_db),
):
    return _set_store_status(request, store_id, StoreStatus.ACTIVE, admin, db)
