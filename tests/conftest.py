"""Shared test fixtures."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import pytest
from starlette.websockets import WebSocketState

from verse_chat.domain.entities.message import Message
from verse_chat.domain.entities.user import User
from verse_chat.infrastructure.memory.store import (
    InMemoryMessageStore,
    InMemoryUserDirectory,
)
from verse_chat.infrastructure.memory.uow import InMemoryBackend
from verse_chat.infrastructure.ws.delivery import DeliveryRouter
from verse_chat.infrastructure.ws.handler import ProtocolHandler
from verse_chat.infrastructure.ws.registry import ConnectionRegistry


@dataclass(eq=False)
class FakeWebSocket:
    """Records outbound frames; can be told to fail on write."""

    sent: list[str] = field(default_factory=list)
    fail_on_send: bool = False
    client_state: WebSocketState = WebSocketState.CONNECTED
    application_state: WebSocketState = WebSocketState.CONNECTED

    async def send_text(self, data: str) -> None:
        if self.fail_on_send:
            raise RuntimeError("socket write failed")
        self.sent.append(data)

    def drop(self) -> None:
        self.client_state = WebSocketState.DISCONNECTED
        self.application_state = WebSocketState.DISCONNECTED

    @property
    def frames(self) -> list[dict[str, Any]]:
        return [json.loads(s) for s in self.sent]

    def of_type(self, frame_type: str) -> list[dict[str, Any]]:
        return [f for f in self.frames if f["type"] == frame_type]


class FailingMessageStore(InMemoryMessageStore):
    """Store whose writes always blow up."""

    def __init__(self) -> None:
        super().__init__()
        self.create_calls = 0

    async def create_message(self, *args: Any, **kwargs: Any) -> Message:
        self.create_calls += 1
        raise ConnectionError("database unavailable")

    async def mark_messages_as_read(self, receiver_id: int, sender_id: int) -> int:
        raise ConnectionError("database unavailable")


def make_message(
    *,
    message_id: int = 1,
    sender_id: int = 1,
    receiver_id: int = 2,
    content: str = "hello",
    image_data: str | None = None,
    is_read: bool = False,
) -> Message:
    return Message(
        id=message_id,
        sender_id=sender_id,
        receiver_id=receiver_id,
        content=content,
        image_data=image_data,
        created_at=datetime.now(timezone.utc),
        is_read=is_read,
    )


def make_users(*ids: int) -> InMemoryUserDirectory:
    return InMemoryUserDirectory([User(id=i, username=f"poet{i}") for i in ids])


def send(**frame: Any) -> str:
    return json.dumps(frame)


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend(users=make_users(1, 2, 3))


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def delivery(registry: ConnectionRegistry) -> DeliveryRouter:
    return DeliveryRouter(registry)


@pytest.fixture
def connect(backend, registry, delivery):
    """Open a fake socket with its own handler: ``ws, handler = connect()``."""

    def _connect(uow_factory=None) -> tuple[FakeWebSocket, ProtocolHandler]:
        ws = FakeWebSocket()
        handler = ProtocolHandler(
            ws,  # type: ignore[arg-type]
            registry,
            delivery,
            uow_factory or backend.uow,
            max_message_length=20,
        )
        return ws, handler

    return _connect
