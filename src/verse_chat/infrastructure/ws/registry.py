"""In-process registry of live websocket bindings."""
from __future__ import annotations

import logging

from fastapi import WebSocket
from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)


def is_open(ws: WebSocket) -> bool:
    return (
        ws.client_state == WebSocketState.CONNECTED
        and ws.application_state == WebSocketState.CONNECTED
    )


class ConnectionRegistry:
    """Maps each authenticated user to at most one live socket.

    One instance per server process. Not thread-safe; every caller runs on
    the same event loop.
    """

    def __init__(self) -> None:
        self._connections: dict[int, WebSocket] = {}

    def bind(self, user_id: int, ws: WebSocket) -> None:
        """Register ``ws`` for ``user_id``, replacing any earlier socket without closing it."""
        previous = self._connections.get(user_id)
        self._connections[user_id] = ws
        if previous is not None and previous is not ws:
            logger.info("User %d re-bound to a new socket", user_id)
        logger.debug("WS bound: %d (total=%d)", user_id, len(self._connections))

    def unbind(self, user_id: int, ws: WebSocket | None = None) -> None:
        """Drop the binding for ``user_id``; a no-op if it is absent.

        When ``ws`` is given, the binding is only dropped if it still points at
        that socket.
        """
        current = self._connections.get(user_id)
        if current is None:
            return
        if ws is not None and current is not ws:
            return
        del self._connections[user_id]
        logger.debug("WS unbound: %d (total=%d)", user_id, len(self._connections))

    def lookup(self, user_id: int) -> WebSocket | None:
        ws = self._connections.get(user_id)
        if ws is None or not is_open(ws):
            return None
        return ws

    def online_user_ids(self) -> list[int]:
        return [uid for uid, ws in self._connections.items() if is_open(ws)]

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)
