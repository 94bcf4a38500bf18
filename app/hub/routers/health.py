from fastapi import APIRouter, Depends, Request
from sqlalchemy import text

from app.hub.core.context import get_correlation_id
from app.hub.core.error_catalog import ErrorCatalog
from app.hub.core.errors import error_response, ok_response
from app.hub.db.session import get_db

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    return ok_response({"status": "ok"}, get_correlation_id(request))


@router.get("/ready")
async def ready(request: Request, db=Depends(get_db)):
    correlation_id = get_correlation_id(request)
    try:
        db.execute(text("SELECT 1"))
    except Exception as exc:
        return error_response(
            code=ErrorCatalog.UPSTREAM_FAILURE.code,
            message="Database unavailable",
            details={"type": exc.__class__.__name__},
            correlation_id=correlation_id,
            status_code=503,
        )
    return ok_response({"status": "ready"}, correlation_id)
