from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
import socketio
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from eventify_chat.api.deps import get_verifier
from eventify_chat.api.middleware.correlation_id import CorrelationIdMiddleware
from eventify_chat.api.v1.chat_socket import ChatSocketGateway, create_sio
from eventify_chat.api.v1.handlers.chat import ChatProtocolHandler
from eventify_chat.api.v1.routers import chats, health
from eventify_chat.application.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from eventify_chat.config import settings
from eventify_chat.infrastructure.db.session import new_uow
from eventify_chat.infrastructure.ws.hub import SocketIOHub
from eventify_chat.infrastructure.ws.rooms import RoomRouter

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app.state.redis = aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    logger.info("Redis connection pool created")

    yield

    await app.state.redis.aclose()
    logger.info("Redis connection pool closed")


def create_api() -> FastAPI:
    app = FastAPI(
        title="Eventify Chat Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(chats.router)

    return app


def create_app() -> socketio.ASGIApp:
    """FastAPI app with the chat Socket.IO server mounted at ``SOCKETIO_PATH``."""
    sio = create_sio()
    hub = SocketIOHub(sio)
    rooms = RoomRouter(hub)
    handler = ChatProtocolHandler(
        hub,
        rooms,
        new_uow,
        default_initial_message=settings.CHAT_DEFAULT_INITIAL_MESSAGE,
    )
    ChatSocketGateway(sio, handler, rooms, get_verifier).register()

    return socketio.ASGIApp(
        sio,
        other_asgi_app=create_api(),
        socketio_path=settings.SOCKETIO_PATH,
    )


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    @app.exception_handler(ConflictError)
    async def _conflict(_req: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})
