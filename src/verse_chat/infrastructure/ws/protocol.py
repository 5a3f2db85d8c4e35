"""WebSocket frame models.

Frames are flat JSON objects discriminated by ``type``; field names are
camelCase on the wire.
"""
from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    TypeAdapter,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from verse_chat.api.v1.schemas.message import MessageResponse
from verse_chat.application.exceptions import ProtocolError
from verse_chat.domain.entities.message import Message
from verse_chat.domain.value_objects.enums import OutboundFrameType


class _Frame(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Client → Server


class AuthFrame(_Frame):
    type: Literal["auth"]
    user_id: PositiveInt


class SendMessageFrame(_Frame):
    type: Literal["message"]
    receiver_id: PositiveInt
    content: str = ""
    image_data: str | None = None


class MarkReadFrame(_Frame):
    type: Literal["mark_read"]
    sender_id: PositiveInt


class PingFrame(_Frame):
    type: Literal["ping"]


InboundFrame = Annotated[
    Union[AuthFrame, SendMessageFrame, MarkReadFrame, PingFrame],
    Field(discriminator="type"),
]

_inbound = TypeAdapter(InboundFrame)


def _describe(exc: PydanticValidationError) -> str:
    err = exc.errors()[0]
    kind = err["type"]
    if kind == "json_invalid":
        return "Invalid JSON"
    if kind == "union_tag_invalid":
        return f"Unknown frame type {err.get('ctx', {}).get('tag')!r}"
    if kind == "union_tag_not_found":
        return "Frame is missing 'type'"
    if kind == "model_attributes_type":
        return "Frame must be a JSON object"
    field = err["loc"][-1] if err["loc"] else "frame"
    return f"Invalid field {field!r}: {err['msg']}"


def parse_inbound(raw: str | bytes) -> AuthFrame | SendMessageFrame | MarkReadFrame | PingFrame:
    try:
        return _inbound.validate_json(raw)
    except PydanticValidationError as exc:
        raise ProtocolError(_describe(exc)) from exc


# Server → Client


class OutboundFrame(_Frame):
    type: OutboundFrameType

    def encode(self) -> str:
        return self.model_dump_json(by_alias=True)


class AuthOkFrame(OutboundFrame):
    type: OutboundFrameType = OutboundFrameType.AUTH_OK
    user_id: int


class MessageFrame(OutboundFrame):
    """Carries a stored message: ``message`` to the receiver, ``message_sent`` to the sender."""

    message: MessageResponse

    @classmethod
    def incoming(cls, msg: Message) -> MessageFrame:
        return cls(type=OutboundFrameType.MESSAGE, message=MessageResponse.model_validate(msg))

    @classmethod
    def sent(cls, msg: Message) -> MessageFrame:
        return cls(type=OutboundFrameType.MESSAGE_SENT, message=MessageResponse.model_validate(msg))


class MessagesReadFrame(OutboundFrame):
    type: OutboundFrameType = OutboundFrameType.MESSAGES_READ
    by: int


class PongFrame(OutboundFrame):
    type: OutboundFrameType = OutboundFrameType.PONG


class ErrorFrame(OutboundFrame):
    type: OutboundFrameType = OutboundFrameType.ERROR
    message: str
