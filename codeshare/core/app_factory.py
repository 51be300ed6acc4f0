from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .container import ApplicationContainer
from .logging import configure_logging
from ..application.services.auth_service import AuthService
from ..application.services.maintenance_service import MaintenanceService
from ..application.services.query_service import SnippetQueryService
from ..application.services.rate_limiter import LoginRateLimiter
from ..application.services.snippet_service import SnippetService
from ..domain.clock import Clock, utc_now
from ..domain.errors import STORAGE_FAILURE_MESSAGE, CodeShareError, StorageError
from ..domain.ports.persistence import KeyValueStore
from ..infrastructure.persistence.database import DatabaseManager
from ..infrastructure.persistence.event_log import EventLog
from ..infrastructure.persistence.memory import InMemoryKeyValueStore
from ..infrastructure.persistence.migrations import MigrationRunner, default_migrations
from ..infrastructure.persistence.sqlite import SQLiteKeyValueStore
from ..presentation.api.routers import admin as admin_router
from ..presentation.api.routers import auth as auth_router
from ..presentation.api.routers import explore as explore_router
from ..presentation.api.routers import snippets as snippets_router
from ..services.email_service import EmailService
from ..services.password_hasher import PasswordHasher

logger = logging.getLogger(__name__)


def create_application(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    clock: Clock = utc_now,
) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="CodeShare", lifespan=_create_lifespan(settings, store, clock))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router.router)
    app.include_router(snippets_router.router)
    app.include_router(explore_router.router)
    app.include_router(admin_router.router)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        fields = sorted(
            {".".join(str(part) for part in error["loc"][1:]) for error in exc.errors() if len(error["loc"]) > 1}
        )
        message = f"Invalid request: {', '.join(fields)}" if fields else "Invalid request"
        return JSONResponse(status_code=400, content={"success": False, "error": message})

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content={"success": False, "error": STORAGE_FAILURE_MESSAGE})

    @app.get("/health")
    def health() -> Dict[str, Any]:
        container: ApplicationContainer = app.state.container  # type: ignore[attr-defined]
        return {
            "ok": True,
            "version": container.database.get_schema_version(),
            "stats": container.database.stats().to_dict(),
        }

    return app


def build_container(
    settings: Settings,
    store: Optional[KeyValueStore] = None,
    clock: Clock = utc_now,
) -> ApplicationContainer:
    """Wire every service around a single DatabaseManager and run migrations."""
    if store is None:
        if settings.storage_backend == "memory":
            store = InMemoryKeyValueStore()
        else:
            store = SQLiteKeyValueStore(settings.database_path)
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    try:
        database = DatabaseManager(store, clock=clock)
        migrations = MigrationRunner(
            database,
            default_migrations(hasher, seed_sample_data=settings.seed_sample_data),
        )
        migrations.initialize()
    except CodeShareError:
        logger.error("Storage setup failed, closing %s store", settings.storage_backend)
        store.close()
        raise
    events = EventLog(database, max_entries=settings.event_log_max_entries)

    rate_limiter = LoginRateLimiter(
        max_attempts=settings.rate_limit_max_attempts,
        window=timedelta(minutes=settings.rate_limit_window_minutes),
        clock=clock,
    )
    email_service = EmailService(
        base_url=settings.frontend_base_url,
        smtp_host=settings.smtp_host,
        smtp_port=settings.smtp_port,
        smtp_username=settings.smtp_username,
        smtp_password=settings.smtp_password,
        from_email=settings.smtp_from_email,
    )
    auth_service = AuthService(
        database,
        hasher,
        events,
        rate_limiter,
        email_service=email_service,
        session_ttl=timedelta(hours=settings.session_ttl_hours),
        reset_token_ttl=timedelta(hours=settings.reset_token_ttl_hours),
    )
    return ApplicationContainer(
        settings=settings,
        store=store,
        database=database,
        events=events,
        migrations=migrations,
        auth_service=auth_service,
        snippet_service=SnippetService(database, events),
        query_service=SnippetQueryService(database),
        maintenance_service=MaintenanceService(database, migrations, auth_service, events),
    )


def _create_lifespan(settings: Settings, store: Optional[KeyValueStore], clock: Clock):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging(settings.log_level)
        container = build_container(settings, store, clock)
        app.state.container = container  # type: ignore[attr-defined]
        logger.info("CodeShare started with %s storage", settings.storage_backend)
        try:
            yield
        finally:
            container.store.close()

    return lifespan
