import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException

from app.hub.core.context import CORRELATION_HEADER, get_correlation_id
from app.hub.core.error_catalog import AppError, ErrorCatalog, ErrorDefinition

logger = logging.getLogger(__name__)


_HTTP_STATUS_ERRORS = {
    400: ErrorCatalog.INVALID_REQUEST,
    401: ErrorCatalog.UNAUTHENTICATED,
    403: ErrorCatalog.FORBIDDEN,
    404: ErrorCatalog.NOT_FOUND,
    405: ErrorCatalog.METHOD_NOT_ALLOWED,
    409: ErrorCatalog.CONFLICT,
}


def _set_error_context(request: Request, code: str, exc: Exception | None = None) -> None:
    request.state.error_code = code
    if exc is not None:
        request.state.error_class = exc.__class__.__name__


def ok_response(data: object, correlation_id: str, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"ok": True, "data": jsonable_encoder(data), "correlationId": correlation_id},
        headers={CORRELATION_HEADER: correlation_id},
    )


def error_response(
    code: str,
    message: str,
    details: object,
    correlation_id: str,
    status_code: int,
) -> JSONResponse:
    error = {"message": message, "code": code}
    if details is not None:
        error["details"] = jsonable_encoder(details)
    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "error": error, "correlationId": correlation_id},
        headers={CORRELATION_HEADER: correlation_id},
    )


def definition_response(
    request: Request,
    definition: ErrorDefinition,
    *,
    message: str | None = None,
    details: object | None = None,
    exc: Exception | None = None,
) -> JSONResponse:
    _set_error_context(request, definition.code, exc)
    return error_response(
        code=definition.code,
        message=message or definition.message,
        details=details,
        correlation_id=get_correlation_id(request),
        status_code=definition.status_code,
    )


def _validation_error_details(exc: RequestValidationError) -> dict:
    errors = []
    for error in exc.errors():
        loc = list(error.get("loc", []))
        field = ".".join(str(item) for item in loc if item not in {"body", "query", "path", "header"}) or None
        errors.append(
            {
                "field": field,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "validation_error"),
            }
        )
    return {"errors": errors}


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return definition_response(request, exc.error, message=exc.message, details=exc.details, exc=exc)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        definition = _HTTP_STATUS_ERRORS.get(exc.status_code)
        if definition is None:
            definition = ErrorDefinition(
                "HTTP_ERROR",
                "HTTP error",
                exc.status_code,
                ErrorCatalog.INTERNAL_ERROR.kind,
            )
        message = exc.detail if isinstance(exc.detail, str) else None
        return definition_response(request, definition, message=message, exc=exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return definition_response(
            request,
            ErrorCatalog.INVALID_REQUEST,
            details=_validation_error_details(exc),
            exc=exc,
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("Database operation failed")
        return definition_response(
            request,
            ErrorCatalog.UPSTREAM_FAILURE,
            message="Database rejected the operation",
            details={"type": exc.__class__.__name__},
            exc=exc,
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error")
        return definition_response(
            request,
            ErrorCatalog.INTERNAL_ERROR,
            details={"type": exc.__class__.__name__},
            exc=exc,
        )
