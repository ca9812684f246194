# app/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.customers import router as customers_router
from app.api.health import router as health_router
from app.api.invoices import router as invoices_router
from app.core.config import Settings, get_settings
from app.core.errors import AppError, NotFoundError
from app.core.logging import configure_logging
from app.db.engine import engine_for, init_db

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "GET,POST,PUT,DELETE,OPTIONS",
    "access-control-allow-headers": "content-type,authorization",
}


def is_api_path(path: str) -> bool:
    return path == "/api" or path.startswith("/api/")


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"ok": False, "error": message, **extra},
    )


class StripTrailingSlashMiddleware:
    """Route /api/invoices/ exactly like /api/invoices."""

    def __init__(self, app) -> None:
        self.app = app

    async def __call__(self, scope, receive, send) -> None:
        if scope["type"] == "http":
            path = scope["path"]
            if is_api_path(path) and len(path) > 1 and path.endswith("/"):
                scope = dict(scope)
                scope["path"] = path.rstrip("/") or "/"
        await self.app(scope, receive, send)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting %s v%s", settings.app_name, settings.app_version)
        if settings.database_url:
            try:
                init_db(engine_for(settings.database_url))
            except SQLAlchemyError:
                # /api/health reports the store as unreachable
                logger.exception("Could not create database schema")
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
        redirect_slashes=False,
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return error_response(exc.status_code, exc.message, **exc.extra)

    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(request: Request, exc: StarletteHTTPException) -> Response:
        if not is_api_path(request.url.path):
            return await http_exception_handler(request, exc)
        if exc.status_code in (404, 405):
            return error_response(404, "Not found")
        return error_response(exc.status_code, str(exc.detail))

    @app.middleware("http")
    async def api_cors(request: Request, call_next) -> Response:
        if not is_api_path(request.url.path):
            return await call_next(request)
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=CORS_HEADERS)
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            response = error_response(500, "Internal error")
        response.headers.update(CORS_HEADERS)
        return response

    app.add_middleware(StripTrailingSlashMiddleware)

    app.include_router(health_router)
    app.include_router(customers_router)
    app.include_router(invoices_router)

    # unmatched /api/ paths never reach the static site
    @app.api_route(
        "/api",
        methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"],
        include_in_schema=False,
    )
    @app.api_route(
        "/api/{rest:path}",
        methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"],
        include_in_schema=False,
    )
    def api_not_found(rest: str = "") -> None:
        raise NotFoundError()

    # everything outside /api/ is the static site
    if settings.assets_dir:
        app.mount("/", StaticFiles(directory=settings.assets_dir, html=True), name="assets")

    return app


app = create_app()
