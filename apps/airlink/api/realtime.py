from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from airlink.core.dependencies import AirlinkServices, get_services
from airlink.schemas.events import welcome
from airlink.services.connection import Connection

router = APIRouter(tags=["realtime"])
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def relay_ws(
    websocket: WebSocket,
    services: AirlinkServices = Depends(get_services),
) -> None:
    await websocket.accept()
    connection = Connection(websocket, max_pending=services.settings.outbox_max_messages)
    connection.start()
    connection.send(welcome(connection.identity))
    logger.info("Client connected: %s", connection.identity)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is None:
                continue
            await services.relay.handle_frame(connection, raw)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("Relay handler for %s failed", connection.identity)
        if websocket.application_state == WebSocketState.CONNECTED:
            await websocket.close(code=1011)
    finally:
        await services.membership.leave(connection)
        await connection.close()
        logger.info("Client disconnected: %s", connection.identity)
