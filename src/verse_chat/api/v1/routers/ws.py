from __future__ import annotations

import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect

from verse_chat.api.middleware.correlation_id import correlation_id_ctx, new_correlation_id
from verse_chat.infrastructure.ws.handler import ProtocolHandler
from verse_chat.infrastructure.ws.protocol import PongFrame

logger = logging.getLogger(__name__)


# mounted by create_app under the configured WS_PATH
async def ws_chat(websocket: WebSocket) -> None:
    state = websocket.app.state
    cfg = state.settings
    token = correlation_id_ctx.set(new_correlation_id("ws-"))

    await websocket.accept()
    handler = ProtocolHandler(
        websocket,
        state.registry,
        state.delivery,
        state.uow_factory,
        max_message_length=cfg.MESSAGE_MAX_LENGTH,
    )

    heartbeat_task: asyncio.Task[None] | None = None
    if cfg.WS_HEARTBEAT_SECONDS > 0:
        heartbeat_task = asyncio.create_task(
            _heartbeat(websocket, cfg.WS_HEARTBEAT_SECONDS), name="ws-heartbeat",
        )
    try:
        await _read_loop(websocket, handler)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", handler.user_id)
    finally:
        if heartbeat_task is not None:
            heartbeat_task.cancel()
        await handler.close()
        correlation_id_ctx.reset(token)


async def _heartbeat(ws: WebSocket, interval: int) -> None:
    try:
        while True:
            await asyncio.sleep(interval)
            await ws.send_text(PongFrame().encode())
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.debug("Heartbeat stopped", exc_info=True)


async def _read_loop(ws: WebSocket, handler: ProtocolHandler) -> None:
    while True:
        message = await ws.receive()
        if message["type"] == "websocket.disconnect":
            return
        raw = message.get("text")
        if raw is None:
            raw = message.get("bytes") or b""
        await handler.handle_text(raw)
