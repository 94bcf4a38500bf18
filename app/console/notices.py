from __future__ import annotations

import json

from app.console.errors import ConsoleApiError

SHORT_ID_LENGTH = 8


def format_notice(message: str, correlation_id: str | None = None) -> str:
    if not correlation_id:
        return message
    return f"{message} (ID: {correlation_id[:SHORT_ID_LENGTH]})"


def format_error(error: object) -> str:
    """Render whatever a failed call produced as one line for an operator."""
    if isinstance(error, ConsoleApiError):
        return format_notice(error.message or error.code, error.correlation_id)
    if isinstance(error, BaseException):
        return str(error) or error.__class__.__name__
    if isinstance(error, str):
        return error
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message:
            return message
    if error is None:
        return "Unknown error"
    try:
        return json.dumps(error, default=str)
    except (TypeError, ValueError):
        return repr(error)
