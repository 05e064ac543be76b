"""FastAPI application entry point.

Wiring only: lifespan, exception handlers, middleware, routers.
See orgflow.core.lifespan and orgflow.core.exception_handlers.

Settings are loaded inside create_app() so that tests can set env (and optionally
clear get_settings cache) before importing or calling create_app().
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from orgflow.api.v1 import api_router
from orgflow.core.config import get_settings
from orgflow.core.exception_handlers import register_exception_handlers
from orgflow.core.lifespan import create_lifespan
from orgflow.core.limiter import limiter
from orgflow.middleware import RequestContextMiddleware
from orgflow.shared.telemetry import setup_logging


def create_app() -> FastAPI:
    """Build and return the FastAPI application. Settings are resolved here (deferred from import)."""
    settings = get_settings()
    setup_logging()
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=create_lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_exception_handlers(app)

    # First added = innermost; the request context wraps CORS so every response carries the id.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.allowed_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RequestContextMiddleware,
        header_name=settings.request_id_header,
        organization_header_name=settings.organization_header_name,
    )

    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()
