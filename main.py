from contextlib import asynccontextmanager
from datetime import timedelta

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from shared.config.database import AsyncSessionLocal, engine, init_models, ping
from shared.config.settings import Settings, settings as default_settings
from shared.errors import store_failure_handler, validation_failure_handler
from shared.http.middleware import setup_middleware
from shared.observability import configure_logging, setup_observability
from shared.security import PasswordHasher, TokenService, limiter

# IMPORTANT: import models so they register with Base
from services.auth_service import models as auth_models  # noqa: F401
from services.product_service import models as product_models  # noqa: F401
from services.order_service import models as order_models  # noqa: F401

from services.auth_service.router import router as auth_router
from services.product_service.router import router as product_router
from services.product_service.seed import seed_catalog
from services.order_service.router import router as order_router

logger = structlog.get_logger(__name__)


def create_app(settings: Settings = default_settings) -> FastAPI:
    """Builds the API. Raises ConfigurationError if the JWT secret is unusable."""
    configure_logging(settings.log_level)

    # Fail before serving anything if the secret is missing or too short.
    token_service = TokenService(
        settings.jwt_secret_key,
        lifetime=timedelta(days=settings.jwt_expire_days),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_models()
        if settings.seed_catalog:
            async with AsyncSessionLocal() as db:
                await seed_catalog(db)
        logger.info("storefront_started")
        yield
        await engine.dispose()
        logger.info("storefront_stopped")

    app = FastAPI(
        title="Storefront API",
        version="1.0.0",
        description="Registration, login, product catalog and order placement.",
        lifespan=lifespan,
    )
    app.state.token_service = token_service
    app.state.password_hasher = PasswordHasher()

    # --- OBSERVABILITY BOOTSTRAP ---
    setup_observability(app, "storefront", settings)

    # --- SECURITY SETUP ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(SQLAlchemyError, store_failure_handler)
    app.add_exception_handler(RequestValidationError, validation_failure_handler)
    setup_middleware(app, settings.cors_allowed_origins)

    app.include_router(auth_router)
    app.include_router(product_router)
    app.include_router(order_router)

    @app.get("/health", include_in_schema=False)
    async def health_check():
        if await ping():
            return {"service": "storefront", "status": "running", "database": "ok"}
        return JSONResponse(
            status_code=503,
            content={"service": "storefront", "status": "degraded", "database": "unreachable"},
        )

    return app


app = create_app()
