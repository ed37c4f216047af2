# src/saasbasic/main.py
from __future__ import annotations

import logging
import logging.config
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from starlette.responses import JSONResponse

from saasbasic.core.config import settings
from saasbasic.db.base import Base
from saasbasic.db.session import build_engine, build_sessionmaker
from saasbasic.api.routers.health import router as health_router
from saasbasic.api.routers.search import admin_router as search_admin_router
from saasbasic.api.routers.search import router as search_router
from saasbasic.search.errors import (
    EntityValidationError,
    InvalidFilterError,
    SearchError,
    SearchExecutionError,
)
from saasbasic.search.service import FuzzySearchService


LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
            "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s %(process)d %(thread)d %(module)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "stream": "ext://sys.stdout",
        },
    },
    "loggers": {
        "":               {"handlers": ["console"], "level": "INFO"},
        "saasbasic":      {"handlers": ["console"], "level": "INFO", "propagate": False},
        "uvicorn":        {"handlers": ["console"], "level": "INFO", "propagate": False},
        "uvicorn.error":  {"handlers": ["console"], "level": "INFO", "propagate": False},
        "uvicorn.access": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "startup":        {"handlers": ["console"], "level": "DEBUG", "propagate": False},
    },
}

logging.config.dictConfig(LOGGING)
log = logging.getLogger("main")

ERROR_STATUS: dict[type[SearchError], int] = {
    EntityValidationError: 400,
    InvalidFilterError: 400,
    SearchExecutionError: 503,
}


def generate_unique_id(route: APIRoute) -> str:
    # stable operationIds; /search and /search/advanced share one endpoint
    method = sorted(route.methods or ["get"])[0].lower()
    path = route.path_format.strip("/").replace("/", "_").replace("{", "").replace("}", "")
    return f"{route.name}_{method}_{path or 'root'}"


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup: app-scoped engine/sessionmaker and the search service.
        Shutdown: dispose the engine on the same loop.
        """
        # ---------------- STARTUP ----------------
        app.state.db_engine = build_engine(settings.DATABASE_URL)
        app.state.async_sessionmaker = build_sessionmaker(app.state.db_engine)

        if settings.TESTING:
            # register every model on Base.metadata before create_all
            import saasbasic.db.models  # noqa: F401

            async with app.state.db_engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logging.getLogger("startup").info("[db] schema created (TESTING)")

        app.state.search_service = FuzzySearchService(
            app.state.async_sessionmaker,
            config=settings.search_config(),
            register_defaults=settings.SEARCH_REGISTER_DEFAULTS,
            max_concurrency=settings.SEARCH_MAX_CONCURRENCY,
            timeout=settings.SEARCH_TIMEOUT_SECONDS,
            url_prefix=settings.API_PREFIX,
        )
        logging.getLogger("startup").info(
            "[search] ready with %d entity types", len(app.state.search_service.registry)
        )

        yield

        # ---------------- SHUTDOWN ----------------
        try:
            await app.state.db_engine.dispose()
        except Exception as e:
            logging.getLogger("startup").warning("[db] engine dispose failed: %s", e)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        generate_unique_id_function=generate_unique_id,
        lifespan=lifespan,
    )

    if settings.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(SearchError)
    async def search_error_handler(request: Request, exc: SearchError):
        """Map engine errors to 4xx/5xx JSON instead of a bare 500."""
        status_code = ERROR_STATUS.get(type(exc), 500)
        if status_code >= 500:
            log.error("%s on %s %s: %s", exc.error, request.method, request.url.path, exc.reason)
        else:
            log.info("%s on %s %s: %s", exc.error, request.method, request.url.path, exc.reason)
        return JSONResponse(
            status_code=status_code,
            content={"detail": {"error": exc.error, "reason": exc.reason}},
        )

    app.include_router(health_router)
    app.include_router(search_router, prefix=settings.API_PREFIX)
    app.include_router(search_admin_router, prefix=settings.API_PREFIX)

    return app


app = create_app()
