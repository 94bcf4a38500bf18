from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.hub.api import api_router
from app.hub.core.config import Settings, settings as default_settings
from app.hub.core.context import CORRELATION_HEADER
from app.hub.core.errors import setup_exception_handlers
from app.hub.core.logging import configure_logging
from app.hub.db.session import SessionLocal
from app.hub.middleware.correlation import CorrelationIdMiddleware
from app.hub.middleware.observability import ObservabilityMiddleware
from app.hub.routers.auth import router as auth_router
from app.hub.services.identity import IdentityProvider, build_identity_provider
from app.hub.services.identity_local import LocalIdentityProvider


def create_app(settings: Settings | None = None, identity: IdentityProvider | None = None) -> FastAPI:
    configure_logging()
    settings = settings or default_settings
    app = FastAPI(title=settings.APP_NAME)
    app.state.settings = settings
    app.state.identity = identity or build_identity_provider(settings, SessionLocal)
    app.add_middleware(ObservabilityMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"],
        allow_headers=["authorization", "apikey", "content-type", CORRELATION_HEADER],
        expose_headers=[CORRELATION_HEADER],
    )
    setup_exception_handlers(app)
    app.include_router(api_router)
    # Password login only exists for locally stored accounts.
    if isinstance(app.state.identity, LocalIdentityProvider):
        app.include_router(auth_router, prefix="/auth", tags=["auth"])
    return app


app = create_app()
