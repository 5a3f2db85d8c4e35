"""Per-connection protocol state machine.

A connection starts ``Unauthenticated``, becomes ``Authenticated(user_id)``
after a successful ``auth`` frame and ends ``Closed`` when the socket goes
away. Which action runs for a frame is decided by the (state, frame type)
table built in ``ProtocolHandler.__init__``; pairs missing from the table are
protocol errors.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from fastapi import WebSocket

from verse_chat.application.dto.message import SendMessageDTO
from verse_chat.application.exceptions import (
    AppError,
    NotAuthenticatedError,
    ProtocolError,
)
from verse_chat.application.uow import UowFactory
from verse_chat.domain.value_objects.enums import ConnectionStateKind, InboundFrameType
from verse_chat.infrastructure.ws.delivery import DeliveryRouter
from verse_chat.infrastructure.ws.protocol import (
    AuthFrame,
    AuthOkFrame,
    ErrorFrame,
    MarkReadFrame,
    MessageFrame,
    MessagesReadFrame,
    OutboundFrame,
    PongFrame,
    SendMessageFrame,
    parse_inbound,
)
from verse_chat.infrastructure.ws.registry import ConnectionRegistry
from verse_chat.services import auth_service, message_service, read_state_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Unauthenticated:
    kind = ConnectionStateKind.UNAUTHENTICATED


@dataclass(frozen=True, slots=True)
class Authenticated:
    user_id: int
    kind = ConnectionStateKind.AUTHENTICATED


@dataclass(frozen=True, slots=True)
class Closed:
    kind = ConnectionStateKind.CLOSED


ConnectionState = Unauthenticated | Authenticated | Closed

Action = Callable[..., Awaitable[None]]


class ProtocolHandler:
    def __init__(
        self,
        ws: WebSocket,
        registry: ConnectionRegistry,
        delivery: DeliveryRouter,
        uow_factory: UowFactory,
        *,
        max_message_length: int = 1000,
    ) -> None:
        self._ws = ws
        self._registry = registry
        self._delivery = delivery
        self._uow_factory = uow_factory
        self._max_message_length = max_message_length
        self.state: ConnectionState = Unauthenticated()

        unauth = ConnectionStateKind.UNAUTHENTICATED
        auth = ConnectionStateKind.AUTHENTICATED
        self._transitions: dict[tuple[str, str], Action] = {
            (unauth, InboundFrameType.AUTH): self._authenticate,
            (unauth, InboundFrameType.MESSAGE): self._reject_unauthenticated,
            (unauth, InboundFrameType.MARK_READ): self._reject_unauthenticated,
            (unauth, InboundFrameType.PING): self._pong,
            (auth, InboundFrameType.AUTH): self._reauthenticate,
            (auth, InboundFrameType.MESSAGE): self._send_message,
            (auth, InboundFrameType.MARK_READ): self._mark_read,
            (auth, InboundFrameType.PING): self._pong,
        }

    @property
    def user_id(self) -> int | None:
        return self.state.user_id if isinstance(self.state, Authenticated) else None

    async def handle_text(self, raw: str | bytes) -> None:
        """Process one inbound frame.

        Any failure is reported to this socket as an ``error`` frame; the
        connection and its state are left as they were.
        """
        if isinstance(self.state, Closed):
            return

        frame_type = "frame"
        try:
            frame = parse_inbound(raw)
            frame_type = frame.type
            action = self._transitions.get((self.state.kind, frame.type))
            if action is None:
                raise ProtocolError(f"Frame {frame.type!r} not allowed while {self.state.kind}")
            await action(frame)
        except AppError as exc:
            logger.info("Rejected %s from %s: %s", frame_type, self._who(), exc.detail)
            await self._reply(ErrorFrame(message=exc.detail))
        except Exception:
            logger.exception("Handling %s from %s failed", frame_type, self._who())
            await self._reply(ErrorFrame(message=f"Failed to process {frame_type}"))

    async def close(self) -> None:
        if isinstance(self.state, Authenticated):
            self._registry.unbind(self.state.user_id, self._ws)
            logger.info("User %d disconnected", self.state.user_id)
        self.state = Closed()

    # Transitions

    async def _authenticate(self, frame: AuthFrame) -> None:
        async with self._uow_factory() as uow:
            user = await auth_service.resolve_user(frame.user_id, uow)
        self._registry.bind(user.id, self._ws)
        self.state = Authenticated(user.id)
        logger.info("User %d connected", user.id)
        await self._reply(AuthOkFrame(user_id=user.id))

    async def _reauthenticate(self, frame: AuthFrame) -> None:
        user_id = self._require_user_id()
        if frame.user_id != user_id:
            raise ProtocolError("Already authenticated as another user")
        self._registry.bind(user_id, self._ws)
        await self._reply(AuthOkFrame(user_id=user_id))

    async def _reject_unauthenticated(self, frame: SendMessageFrame | MarkReadFrame) -> None:
        raise NotAuthenticatedError("Not authenticated")

    async def _pong(self, frame: object) -> None:
        await self._reply(PongFrame())

    async def _send_message(self, frame: SendMessageFrame) -> None:
        sender_id = self._require_user_id()
        dto = SendMessageDTO(
            receiver_id=frame.receiver_id,
            content=frame.content,
            image_data=frame.image_data,
        )
        async with self._uow_factory() as uow:
            msg = await message_service.send_message(
                sender_id, dto, uow, max_length=self._max_message_length,
            )

        await self._delivery.route(msg.receiver_id, MessageFrame.incoming(msg))
        await self._reply(MessageFrame.sent(msg))

    async def _mark_read(self, frame: MarkReadFrame) -> None:
        reader_id = self._require_user_id()
        async with self._uow_factory() as uow:
            event = await read_state_service.mark_read(reader_id, frame.sender_id, uow)
        logger.debug(
            "User %d read %d message(s) from %d", event.reader_id, event.flipped, event.sender_id,
        )
        await self._delivery.route(event.sender_id, MessagesReadFrame(by=event.reader_id))

    # Helpers

    def _require_user_id(self) -> int:
        if not isinstance(self.state, Authenticated):
            raise NotAuthenticatedError("Not authenticated")
        return self.state.user_id

    async def _reply(self, frame: OutboundFrame) -> None:
        await self._ws.send_text(frame.encode())

    def _who(self) -> str:
        return f"user {self.user_id}" if self.user_id is not None else "unauthenticated socket"
