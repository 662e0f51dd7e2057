from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskboard_realtime.api.v1.routers import health, messages, ws
from taskboard_realtime.application.exceptions import (
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from taskboard_realtime.application.repositories.read_state import ReadAckStore
from taskboard_realtime.config import settings
from taskboard_realtime.domain.value_objects.channels import is_valid_channel
from taskboard_realtime.infrastructure.bus.redis_pubsub import (
    OnEventCallback,
    RedisPubSubSubscriber,
)
from taskboard_realtime.infrastructure.db.read_ack_store import DatabaseReadAckStore
from taskboard_realtime.infrastructure.db.uow import open_uow
from taskboard_realtime.infrastructure.memory.read_acks import InMemoryReadAckStore
from taskboard_realtime.infrastructure.ws.manager import ConnectionManager
from taskboard_realtime.services.realtime_hub import RealtimeHub
from taskboard_realtime.services.unread_service import UnreadCountEngine

logger = logging.getLogger(__name__)


def make_relay_handler(manager: ConnectionManager) -> OnEventCallback:
    """Build the callback that forwards relayed backend events into socket channels."""

    async def _on_relay_event(event_type: str, data: dict[str, Any]) -> None:
        channel = data.get("channel")
        if not isinstance(channel, str) or not is_valid_channel(channel):
            logger.warning("Dropping relay event %s with bad channel %r", event_type, channel)
            return
        payload = {k: v for k, v in data.items() if k != "channel"}
        await manager.publish(channel, event_type, payload)

    return _on_relay_event


def build_hub() -> RealtimeHub:
    manager = ConnectionManager()
    read_acks: ReadAckStore
    if settings.READ_ACK_BACKEND == "database":
        read_acks = DatabaseReadAckStore(open_uow)
    else:
        read_acks = InMemoryReadAckStore()
    unread = UnreadCountEngine(manager, read_acks, open_uow)
    logger.info("Realtime hub created (read acks: %s)", settings.READ_ACK_BACKEND)
    return RealtimeHub(manager, unread, open_uow)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app.state.redis = aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    logger.info("Redis connection pool created")

    subscriber = RedisPubSubSubscriber(
        app.state.redis,
        settings.REDIS_RELAY_CHANNEL,
        make_relay_handler(app.state.hub.manager),
    )
    await subscriber.start()
    app.state.relay_subscriber = subscriber

    yield

    await subscriber.stop()
    await app.state.redis.aclose()
    logger.info("Redis connection pool closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Taskboard Realtime Service",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.hub = build_hub()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(messages.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    @app.exception_handler(UnauthenticatedError)
    async def _unauthenticated(_req: Request, exc: UnauthenticatedError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})
