from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError

from taskboard_realtime.api.deps import get_verifier
from taskboard_realtime.application.dto.principal import Principal
from taskboard_realtime.application.exceptions import AppError
from taskboard_realtime.config import settings
from taskboard_realtime.domain.value_objects.attachment import FileDescriptor
from taskboard_realtime.domain.value_objects.channels import board_channel, task_channel
from taskboard_realtime.infrastructure.ws.connection import WsConnection
from taskboard_realtime.infrastructure.ws.protocol import (
    INBOUND_PAYLOADS,
    AuthenticatePayload,
    BoardRoomPayload,
    MarkReadPayload,
    SendMessagePayload,
    TaskRoomPayload,
    TypingPayload,
    WsInbound,
)
from taskboard_realtime.services.realtime_hub import RealtimeHub

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

AUTH_FAILED_CLOSE_CODE = 4001


def _extract_token(websocket: WebSocket) -> str | None:
    token = websocket.query_params.get("token")
    if token:
        return token
    scheme, _, credentials = websocket.headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return None


async def _authenticate(token: str | None) -> Principal | None:
    if not token:
        logger.debug("WS handshake without token")
        return None
    try:
        verifier = get_verifier()
        return await verifier.verify(token)
    except Exception:
        logger.debug("WS auth failed", exc_info=True)
        return None


@router.websocket("/ws")
async def ws_realtime(websocket: WebSocket) -> None:
    principal = await _authenticate(_extract_token(websocket))
    if principal is None:
        await websocket.close(code=AUTH_FAILED_CLOSE_CODE, reason="Authentication failed")
        return

    hub: RealtimeHub = websocket.app.state.hub
    conn = WsConnection(websocket, principal)
    await hub.connect(conn)
    logger.info("New client connected: %s (token subject %s)", conn.id, principal.user_id)

    heartbeat_task = asyncio.create_task(
        _heartbeat(conn), name=f"ws-heartbeat-{conn.id}",
    )
    try:
        await _read_loop(websocket, conn, hub)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", conn.id)
    finally:
        heartbeat_task.cancel()
        await hub.disconnect(conn.id)


async def _heartbeat(conn: WsConnection) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    try:
        while True:
            await asyncio.sleep(interval)
            await conn.send("pong", {})
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.debug("Heartbeat stopped for %s", conn.id, exc_info=True)


async def _read_loop(ws: WebSocket, conn: WsConnection, hub: RealtimeHub) -> None:
    while True:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except PydanticValidationError:
            await hub.manager.send(conn.id, "error", {"message": "Invalid message format"})
            continue

        try:
            await dispatch(hub, conn.id, msg)
        except AppError as exc:
            await hub.manager.send(conn.id, "error", {"message": exc.detail})
        except Exception:
            logger.exception("Error handling %s from %s", msg.type, conn.id)
            await hub.manager.send(conn.id, "error", {"message": "Internal server error"})


async def dispatch(hub: RealtimeHub, connection_id: str, msg: WsInbound) -> None:
    """Validate an inbound event against its payload model and route it to the hub."""
    payload_model = INBOUND_PAYLOADS.get(msg.type)
    if payload_model is None:
        await hub.manager.send(connection_id, "error", {"message": f"Unknown event: {msg.type}"})
        return
    try:
        data = payload_model.model_validate(msg.data)
    except PydanticValidationError:
        await hub.manager.send(connection_id, "error", {"message": f"Invalid payload for {msg.type}"})
        return

    if isinstance(data, AuthenticatePayload):
        await hub.authenticate(connection_id, data.userId, data.username)

    elif isinstance(data, BoardRoomPayload):
        if msg.type == "board:join":
            hub.join(connection_id, board_channel(data.boardId))
        else:
            hub.leave(connection_id, board_channel(data.boardId))

    elif isinstance(data, TaskRoomPayload):
        if msg.type == "task:join":
            hub.join(connection_id, task_channel(data.taskId))
        else:
            hub.leave(connection_id, task_channel(data.taskId))

    elif isinstance(data, TypingPayload):
        await hub.typing(connection_id, data.taskId, data.isTyping)

    elif isinstance(data, SendMessagePayload):
        file = FileDescriptor(**data.file.model_dump()) if data.file else None
        await hub.send_message(connection_id, data.text, file, data.tempId)

    elif isinstance(data, MarkReadPayload):
        await hub.mark_read(connection_id, data.messageIds)

    elif msg.type == "unread:request":
        await hub.request_unread(connection_id)

    elif msg.type == "ping":
        await hub.manager.send(connection_id, "pong", {})
