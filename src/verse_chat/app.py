from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from verse_chat.api.middleware.correlation_id import CorrelationIdMiddleware
from verse_chat.api.v1.routers import health, messages, ws
from verse_chat.application.exceptions import (
    NotFoundError,
    ValidationError,
)
from verse_chat.config import Settings, settings as default_settings
from verse_chat.domain.entities.user import User
from verse_chat.domain.value_objects.enums import StoreBackend
from verse_chat.infrastructure.db.session import build_engine, build_sessionmaker
from verse_chat.infrastructure.db.uow import sqlalchemy_uow_factory
from verse_chat.infrastructure.memory.store import InMemoryUserDirectory
from verse_chat.infrastructure.memory.uow import InMemoryBackend
from verse_chat.infrastructure.ws.delivery import DeliveryRouter
from verse_chat.infrastructure.ws.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    cfg: Settings = app.state.settings
    if cfg.STORE_BACKEND == StoreBackend.POSTGRES:
        app.state.engine = build_engine(cfg)
        app.state.uow_factory = sqlalchemy_uow_factory(build_sessionmaker(app.state.engine))
        logger.info("Postgres engine created (%s:%d/%s)", cfg.DB_HOST, cfg.DB_PORT, cfg.POSTGRES_DB)

    yield

    engine = getattr(app.state, "engine", None)
    if engine is not None:
        await engine.dispose()
        logger.info("Postgres engine disposed")
    logger.info("Shutting down with %d live connection(s)", len(app.state.registry))


def create_app(settings: Settings | None = None) -> FastAPI:
    cfg = settings or default_settings
    app = FastAPI(
        title="Verse Chat Service",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = cfg
    app.state.registry = ConnectionRegistry()
    app.state.delivery = DeliveryRouter(app.state.registry)

    if cfg.STORE_BACKEND == StoreBackend.MEMORY:
        backend = InMemoryBackend(
            users=InMemoryUserDirectory(auto_register=cfg.MEMORY_AUTO_REGISTER_USERS),
        )
        for user_id in cfg.MEMORY_SEED_USERS:
            backend.users.add(User(id=user_id, username=f"user{user_id}"))
        app.state.memory_backend = backend
        app.state.uow_factory = backend.uow

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(messages.router)
    app.add_api_websocket_route(cfg.WS_PATH, ws.ws_chat, name="ws_chat")

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})
