from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool

from app.hub.core.context import get_correlation_id
from app.hub.core.deps import get_identity_provider, oauth2_scheme
from app.hub.core.errors import ok_response
from app.hub.db.session import get_db
from app.hub.schemas.errors import ApiErrorResponse
from app.hub.services.identity import IdentityProvider
from app.hub.services.provisioning import ProvisioningService

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ApiErrorResponse, "description": "Invalid request body"},
    401: {"model": ApiErrorResponse, "description": "Missing or invalid bearer token"},
    403: {"model": ApiErrorResponse, "description": "Caller is not an administrator"},
    405: {"model": ApiErrorResponse, "description": "Wrong method"},
    500: {"model": ApiErrorResponse, "description": "Identity service, database or internal failure"},
}


@router.options("/admin_create_user", include_in_schema=False)
async def admin_create_user_preflight():
    return Response(status_code=204)


@router.post(
    "/admin_create_user",
    summary="Create or invite a user, or send a password reset",
    description=(
        "Body `{email, full_name, role?, status?, home_store_id?, must_reset_password?, invite?, "
        "tempPassword?, redirectTo?}` creates (or re-finds) the account and upserts its profile and answers "
        "`{id, inviteSent, tempPassword?, resetLink?, existingAccount?}`. When `existingAccount` is true the "
        "account was already registered and its password was left unchanged, so `tempPassword` does not work "
        "for it; send a reset instead. "
        "Body `{mode: \"reset\", email, redirectTo?}` sends a password reset email and answers "
        "`{inviteSent: false, resetLink: null}`. "
        "The caller must be an active Admin. The body is only read after authorization succeeds."
    ),
    responses=_ERROR_RESPONSES,
)
async def admin_create_user(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    identity: IdentityProvider = Depends(get_identity_provider),
    db=Depends(get_db),
):
    correlation_id = get_correlation_id(request)
    body = await request.body()
    service = ProvisioningService(db, identity, request.app.state.settings)
    # handle() blocks on identity HTTP calls and bcrypt.
    data = await run_in_threadpool(service.handle, bearer=token, body=body, correlation_id=correlation_id)
    return ok_response(data, correlation_id)
