# backend/rentmarket/main.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from .config import Settings
from .db import Database
from .errors import ServiceError, StoreUnavailable, ValidationFailed
from .logging_config import configure_logging
from .middleware.structured_logging import StructuredLoggingMiddleware

from .routers.health import router as health_router
from .routers.auth import router as auth_router
from .routers.properties import router as properties_router
from .routers.inquiries import router as inquiries_router
from .routers.bookmarks import router as bookmarks_router
from .routers.requirements import router as requirements_router
from .routers.users import router as users_router
from .routers.admin import router as admin_router
from .routers.dashboard import router as dashboard_router

API_PREFIX = "/api"

log = logging.getLogger("rentmarket.app")


def _cors_origins(settings: Settings) -> list[str]:
    val = getattr(settings, "cors_allow_origins", ["*"])
    if isinstance(val, str):
        v = val.strip()
        return ["*"] if v == "*" else [x.strip() for x in v.split(",") if x.strip()]
    if isinstance(val, list) and val:
        return val
    return ["*"]


def _error_body(kind: str, detail) -> dict:
    return {"error": kind, "detail": detail}


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def service_error(request: Request, exc: ServiceError):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.kind, exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(x) for x in e.get("loc", ()) if x != "body"),
                "message": str(e.get("msg", "")),
            }
            for e in exc.errors()
        ]
        body = _error_body(ValidationFailed.kind, errors[0]["message"] if errors else ValidationFailed.default_detail)
        body["errors"] = errors
        return JSONResponse(status_code=ValidationFailed.http_status, content=body)

    @app.exception_handler(OperationalError)
    async def store_error(request: Request, exc: OperationalError):
        log.exception("database unavailable")
        return JSONResponse(
            status_code=StoreUnavailable.http_status,
            content=_error_body(StoreUnavailable.kind, StoreUnavailable.default_detail),
        )


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the API.

    The Database (engine + session factory) is created exactly once here and
    shared by every request through app.state; tests pass their own.
    """
    settings = settings or Settings()
    database = database or Database(settings.database_url)

    configure_logging()
    if settings.create_tables_on_startup:
        database.create_all()

    app = FastAPI(title="RentMarket API", version="0.1.0")
    app.state.settings = settings
    app.state.database = database

    app.add_middleware(StructuredLoggingMiddleware, dev_header=settings.dev_header_user_email)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(settings),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _install_error_handlers(app)

    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(properties_router, prefix=API_PREFIX)
    app.include_router(inquiries_router, prefix=API_PREFIX)
    app.include_router(bookmarks_router, prefix=API_PREFIX)
    app.include_router(requirements_router, prefix=API_PREFIX)
    app.include_router(users_router, prefix=API_PREFIX)
    app.include_router(admin_router, prefix=API_PREFIX)
    app.include_router(dashboard_router, prefix=API_PREFIX)

    return app
