import logging

from fastapi import APIRouter, Depends, Request

from app.hub.core.context import get_correlation_id
from app.hub.core.deps import get_identity_provider
from app.hub.core.error_catalog import AppError, ErrorCatalog
from app.hub.core.errors import ok_response
from app.hub.core.logging import log_json
from app.hub.schemas.admin import LoginRequest, TokenResponse
from app.hub.services.identity import IdentityProvider, InvalidTokenError
from app.hub.services.identity_local import LocalIdentityProvider

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login")
async def login(
    request: Request,
    payload: LoginRequest,
    identity: IdentityProvider = Depends(get_identity_provider),
):
    correlation_id = get_correlation_id(request)
    if not isinstance(identity, LocalIdentityProvider):
        raise AppError(ErrorCatalog.NOT_FOUND, message="Password login is handled by the hosted identity service")
    try:
        token = identity.authenticate(payload.email, payload.password)
    except InvalidTokenError as exc:
        log_json(
            logger,
            {"event": "auth.login_failed", "correlation_id": correlation_id, "email": payload.email.lower()},
            level=logging.WARNING,
        )
        raise AppError(ErrorCatalog.UNAUTHENTICATED, message="Invalid credentials") from exc
    return ok_response(TokenResponse(access_token=token).model_dump(), correlation_id)
