from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from storefront.api.v1.routes_admin_brands import router as admin_brands_router
from storefront.api.v1.routes_admin_categories import router as admin_categories_router
from storefront.api.v1.routes_admin_products import router as admin_products_router
from storefront.api.v1.routes_auth import router as auth_router
from storefront.api.v1.routes_catalog import router as catalog_router
from storefront.api.v1.routes_checkout import router as checkout_router
from storefront.auth.provider import GoTrueClient
from storefront.core.config import Settings, settings as default_settings
from storefront.core.errors import AppError, handle_api_error
from storefront.core.logger import AppLogger, utc_timestamp
from storefront.core.pipeline import error_response, request_pipeline, success_response
from storefront.core.rate_limit import RateLimiter
from storefront.core.security import security_headers


def create_app(
    settings: Optional[Settings] = None,
    logger: Optional[AppLogger] = None,
    identity_provider=None,
    rate_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.logger.drain()
        close = getattr(app.state.identity_provider, "aclose", None)
        if close is not None:
            await close()

    app = FastAPI(title="Storefront API", version=settings.APP_VERSION, lifespan=lifespan)

    app.state.settings = settings
    app.state.logger = logger or AppLogger(settings)
    app.state.identity_provider = identity_provider or GoTrueClient(
        settings.SUPABASE_URL,
        settings.SUPABASE_ANON_KEY,
        timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
    )
    app.state.rate_limiter = rate_limiter or RateLimiter()

    # added innermost first
    app.add_middleware(BaseHTTPMiddleware, dispatch=request_pipeline)
    app.add_middleware(BaseHTTPMiddleware, dispatch=security_headers)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return handle_api_error(exc, request)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        response = error_response(str(exc.detail), exc.status_code)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    app.include_router(admin_brands_router)
    app.include_router(admin_categories_router)
    app.include_router(admin_products_router)
    app.include_router(catalog_router)
    app.include_router(auth_router)
    app.include_router(checkout_router)

    @app.get("/api/health")
    async def health():
        return success_response({
            "status": "healthy",
            "timestamp": utc_timestamp(),
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
        })

    return app


app = create_app()
