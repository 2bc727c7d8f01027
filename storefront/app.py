import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from storefront.core.config import get_settings, require_app_secret
from storefront.core.errors import ServiceError
from storefront.routers import admin as admin_router
from storefront.routers import auth as auth_router
from storefront.routers import cart as cart_router
from storefront.routers import items as items_router
from storefront.routers import orders as orders_router

logger = logging.getLogger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers on every API response."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("Cache-Control", "no-store")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.code)
    content = {"error": exc.code, "message": exc.message}
    reference = getattr(exc, "reference", None)
    if reference is not None:
        content["reference"] = reference
    return JSONResponse(status_code=exc.status_code, content=content)


def create_app() -> FastAPI:
    """Factory compatible with ``uvicorn --factory storefront.app:create_app``."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Every session token of a deployment is signed with this one secret.
    require_app_secret()

    app = FastAPI(title="Storefront API")

    allowed_cors = {settings.frontend_url}
    if settings.app_env != "prod":
        allowed_cors.update({"http://localhost:7777", "http://127.0.0.1:7777"})
    allowed_cors = {origin for origin in allowed_cors if origin}
    if allowed_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=sorted(allowed_cors),
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")
    app.add_exception_handler(ServiceError, service_error_handler)

    app.include_router(auth_router.router)
    app.include_router(items_router.router)
    app.include_router(cart_router.router)
    app.include_router(orders_router.router)
    app.include_router(admin_router.router)
    return app
