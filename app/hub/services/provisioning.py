"""Admin provisioning flow.

One request runs ``Received -> Authenticating -> Authorizing -> Validating
-> Executing -> Responding``; any state may drop into ``Failed``. Create
mode walks ``CreateOrFindAccount -> UpsertProfile -> SendInvite`` inside
``Executing``. Every transition is logged with the request's correlation id.
"""

import json
import logging
import uuid
from enum import Enum

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from app.hub.core.deps import authenticate_bearer, authorize_admin
from app.hub.core.error_catalog import AppError, ErrorCatalog, ErrorKind
from app.hub.core.logging import log_json
from app.hub.core.security import generate_temporary_password, password_policy_violations
from app.hub.repos.profiles import ProfileRepository
from app.hub.repos.stores import StoreRepository
from app.hub.schemas.provisioning import (
    CreateUserRequest,
    CreateUserResult,
    ProvisioningRequest,
    ResetPasswordRequest,
    ResetPasswordResult,
)
from app.hub.services.identity import IdentityProvider, IdentityServiceError

logger = logging.getLogger(__name__)


class ProvisioningState(str, Enum):
    RECEIVED = "Received"
    AUTHENTICATING = "Authenticating"
    AUTHORIZING = "Authorizing"
    VALIDATING = "Validating"
    EXECUTING = "Executing"
    CREATE_OR_FIND_ACCOUNT = "CreateOrFindAccount"
    UPSERT_PROFILE = "UpsertProfile"
    SEND_INVITE = "SendInvite"
    RESPONDING = "Responding"
    FAILED = "Failed"


_TRANSITIONS = {
    ProvisioningState.RECEIVED: {ProvisioningState.AUTHENTICATING},
    ProvisioningState.AUTHENTICATING: {ProvisioningState.AUTHORIZING},
    ProvisioningState.AUTHORIZING: {ProvisioningState.VALIDATING},
    ProvisioningState.VALIDATING: {ProvisioningState.EXECUTING},
    ProvisioningState.EXECUTING: {ProvisioningState.CREATE_OR_FIND_ACCOUNT, ProvisioningState.RESPONDING},
    ProvisioningState.CREATE_OR_FIND_ACCOUNT: {ProvisioningState.UPSERT_PROFILE},
    ProvisioningState.UPSERT_PROFILE: {ProvisioningState.SEND_INVITE, ProvisioningState.RESPONDING},
    ProvisioningState.SEND_INVITE: {ProvisioningState.RESPONDING},
    ProvisioningState.RESPONDING: set(),
    ProvisioningState.FAILED: set(),
}

_TERMINAL_STATES = {ProvisioningState.RESPONDING, ProvisioningState.FAILED}

_REQUEST_MODELS = {
    "create": CreateUserRequest,
    "reset": ResetPasswordRequest,
}


class ProvisioningStateMachine:
    def __init__(self, correlation_id: str):
        self.correlation_id = correlation_id
        self.state = ProvisioningState.RECEIVED
        self.history = [ProvisioningState.RECEIVED]
        self.failure_kind: ErrorKind | None = None

    def advance(self, new_state: ProvisioningState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal provisioning transition {self.state.value} -> {new_state.value}")
        self._enter(new_state)

    def fail(self, kind: ErrorKind) -> None:
        if self.state in _TERMINAL_STATES:
            return
        self.failure_kind = kind
        self._enter(ProvisioningState.FAILED)

    def _enter(self, new_state: ProvisioningState) -> None:
        payload = {
            "event": "provisioning_state",
            "correlation_id": self.correlation_id,
            "from": self.state.value,
            "to": new_state.value,
        }
        if self.failure_kind is not None:
            payload["kind"] = self.failure_kind.value
        self.state = new_state
        self.history.append(new_state)
        log_json(logger, payload)


def _validation_errors(exc: ValidationError) -> dict:
    errors = []
    for error in exc.errors():
        loc = [str(item) for item in error.get("loc", [])]
        errors.append(
            {
                "field": ".".join(loc) or None,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "validation_error"),
            }
        )
    return {"errors": errors}


def parse_provisioning_request(body: bytes) -> ProvisioningRequest:
    try:
        payload = json.loads(body)
    except (ValueError, UnicodeDecodeError) as exc:
        raise AppError(ErrorCatalog.INVALID_JSON) from exc
    if not isinstance(payload, dict):
        raise AppError(ErrorCatalog.INVALID_REQUEST, message="Request body must be a JSON object")

    mode = payload.get("mode") or "create"
    model = _REQUEST_MODELS.get(mode) if isinstance(mode, str) else None
    if model is None:
        raise AppError(
            ErrorCatalog.INVALID_REQUEST,
            message="Unsupported mode",
            details={"field": "mode", "allowed": sorted(_REQUEST_MODELS)},
        )
    if mode == "create":
        payload = {**payload, "mode": "create"}
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise AppError(
            ErrorCatalog.INVALID_REQUEST,
            message="Missing or invalid fields",
            details=_validation_errors(exc),
        ) from exc


class ProvisioningService:
    def __init__(self, db, identity: IdentityProvider, settings):
        self.db = db
        self.identity = identity
        self.settings = settings

    def handle(self, *, bearer: str | None, body: bytes, correlation_id: str) -> dict:
        machine = ProvisioningStateMachine(correlation_id)
        try:
            machine.advance(ProvisioningState.AUTHENTICATING)
            subject = authenticate_bearer(bearer, self.identity)

            machine.advance(ProvisioningState.AUTHORIZING)
            admin = authorize_admin(subject, self.db)

            machine.advance(ProvisioningState.VALIDATING)
            request = parse_provisioning_request(body)
            if isinstance(request, CreateUserRequest):
                self._validate_create(request)

            machine.advance(ProvisioningState.EXECUTING)
            if isinstance(request, ResetPasswordRequest):
                result = self._reset_password(request)
            else:
                result = self._create_user(request, machine)

            machine.advance(ProvisioningState.RESPONDING)
            log_json(
                logger,
                {
                    "event": "provisioning_completed",
                    "correlation_id": correlation_id,
                    "mode": request.mode,
                    "admin_id": str(admin.id),
                },
            )
            return result.to_payload()
        except AppError as exc:
            machine.fail(exc.kind)
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            machine.fail(ErrorKind.UPSTREAM_FAILURE)
            logger.exception("Profile store rejected provisioning write")
            raise AppError(
                ErrorCatalog.UPSTREAM_FAILURE,
                message="Database rejected the operation",
                details={"type": exc.__class__.__name__},
            ) from exc
        except Exception as exc:
            machine.fail(ErrorKind.INTERNAL)
            logger.exception("Unexpected provisioning failure")
            raise AppError(ErrorCatalog.INTERNAL_ERROR, details={"type": exc.__class__.__name__}) from exc

    def _validate_create(self, request: CreateUserRequest) -> None:
        if request.temp_password is not None:
            violations = password_policy_violations(
                request.temp_password,
                min_length=self.settings.PASSWORD_MIN_LENGTH,
            )
            if violations:
                raise AppError(ErrorCatalog.PASSWORD_POLICY, details={"field": "tempPassword", "rules": violations})
        if request.home_store_id is not None:
            if StoreRepository(self.db).get_by_id(request.home_store_id) is None:
                raise AppError(
                    ErrorCatalog.INVALID_REQUEST,
                    message="home_store_id does not reference a store",
                    details={"field": "home_store_id"},
                )

    def _redirect(self, redirect_to: str | None) -> str | None:
        return redirect_to or self.settings.DEFAULT_REDIRECT_URL or None

    def _reset_password(self, request: ResetPasswordRequest) -> ResetPasswordResult:
        try:
            self.identity.send_password_reset(request.email, self._redirect(request.redirect_to))
        except IdentityServiceError as exc:
            raise AppError(
                ErrorCatalog.UPSTREAM_FAILURE,
                message=f"Password reset failed: {exc.message}",
                details=exc.details,
            ) from exc
        return ResetPasswordResult()

    def _create_user(self, request: CreateUserRequest, machine: ProvisioningStateMachine) -> CreateUserResult:
        temp_password = request.temp_password or generate_temporary_password(self.settings.TEMP_PASSWORD_LENGTH)

        machine.advance(ProvisioningState.CREATE_OR_FIND_ACCOUNT)
        try:
            subject_id, was_created = self.identity.find_or_create_account(request.email, temp_password)
        except IdentityServiceError as exc:
            raise AppError(
                ErrorCatalog.UPSTREAM_FAILURE,
                message=f"Account creation failed: {exc.message}",
                details=exc.details,
            ) from exc
        if not was_created:
            logger.warning("Account for provisioning request already existed; its password was not changed")

        machine.advance(ProvisioningState.UPSERT_PROFILE)
        profiles = ProfileRepository(self.db)
        profile = profiles.upsert(
            uuid.UUID(subject_id),
            full_name=request.full_name,
            email=request.email.lower(),
            role=request.role.value,
            status=request.status.value,
            home_store_id=request.home_store_id,
            must_reset_password=True,
        )
        self.db.commit()

        invite_sent = False
        reset_link = None
        if request.invite:
            machine.advance(ProvisioningState.SEND_INVITE)
            try:
                invite = self.identity.send_invite(request.email, self._redirect(request.redirect_to))
            except IdentityServiceError as exc:
                logger.warning("Invite email failed, returning temporary password instead: %s", exc.message)
            else:
                invite_sent = True
                reset_link = invite.action_link
                profile.must_reset_password = bool(request.must_reset_password)
                self.db.commit()

        return CreateUserResult(
            id=subject_id,
            invite_sent=invite_sent,
            temp_password=None if invite_sent else temp_password,
            reset_link=reset_link,
            existing_account=None if was_created else True,
        )
