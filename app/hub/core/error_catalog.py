from dataclasses import dataclass
from enum import Enum

from fastapi import status


class ErrorKind(str, Enum):
    UNAUTHENTICATED = "Unauthenticated"
    FORBIDDEN = "Forbidden"
    INVALID_REQUEST = "InvalidRequest"
    UPSTREAM_FAILURE = "UpstreamFailure"
    INTERNAL = "Internal"


@dataclass(frozen=True)
class ErrorDefinition:
    code: str
    message: str
    status_code: int
    kind: ErrorKind


class ErrorCatalog:
    UNAUTHENTICATED = ErrorDefinition(
        "UNAUTHENTICATED",
        "Missing or invalid bearer token",
        status.HTTP_401_UNAUTHORIZED,
        ErrorKind.UNAUTHENTICATED,
    )
    FORBIDDEN = ErrorDefinition(
        "FORBIDDEN",
        "Forbidden: Admin role required",
        status.HTTP_403_FORBIDDEN,
        ErrorKind.FORBIDDEN,
    )
    INVALID_REQUEST = ErrorDefinition(
        "INVALID_REQUEST",
        "Invalid request",
        status.HTTP_400_BAD_REQUEST,
        ErrorKind.INVALID_REQUEST,
    )
    INVALID_JSON = ErrorDefinition(
        "INVALID_REQUEST",
        "Request body is not valid JSON",
        status.HTTP_400_BAD_REQUEST,
        ErrorKind.INVALID_REQUEST,
    )
    PASSWORD_POLICY = ErrorDefinition(
        "INVALID_REQUEST",
        "Temporary password does not meet the password policy",
        status.HTTP_400_BAD_REQUEST,
        ErrorKind.INVALID_REQUEST,
    )
    NOT_FOUND = ErrorDefinition(
        "NOT_FOUND",
        "Resource not found",
        status.HTTP_404_NOT_FOUND,
        ErrorKind.INVALID_REQUEST,
    )
    METHOD_NOT_ALLOWED = ErrorDefinition(
        "METHOD_NOT_ALLOWED",
        "Method not allowed",
        status.HTTP_405_METHOD_NOT_ALLOWED,
        ErrorKind.INVALID_REQUEST,
    )
    CONFLICT = ErrorDefinition(
        "CONFLICT",
        "Conflicting record",
        status.HTTP_409_CONFLICT,
        ErrorKind.INVALID_REQUEST,
    )
    INVALID_STATUS_TRANSITION = ErrorDefinition(
        "INVALID_STATUS_TRANSITION",
        "Status transition not allowed",
        status.HTTP_409_CONFLICT,
        ErrorKind.INVALID_REQUEST,
    )
    UPSTREAM_FAILURE = ErrorDefinition(
        "UPSTREAM_FAILURE",
        "Upstream service rejected the operation",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorKind.UPSTREAM_FAILURE,
    )
    INTERNAL_ERROR = ErrorDefinition(
        "INTERNAL_ERROR",
        "Internal server error",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorKind.INTERNAL,
    )


class AppError(Exception):
    def __init__(self, error: ErrorDefinition, details: object | None = None, message: str | None = None):
        self.error = error
        self.details = details
        self.message = message or error.message
        super().__init__(self.message)

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind
