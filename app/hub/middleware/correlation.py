from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.hub.core.context import CORRELATION_HEADER, get_correlation_id


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        correlation_id = get_correlation_id(request)
        response: Response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
