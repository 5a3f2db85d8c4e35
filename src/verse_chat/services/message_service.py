from __future__ import annotations

import logging

from verse_chat.application.dto.message import SendMessageDTO
from verse_chat.application.exceptions import ValidationError
from verse_chat.application.uow import UnitOfWork
from verse_chat.domain.entities.message import Message

logger = logging.getLogger(__name__)


def validate_message(dto: SendMessageDTO, max_length: int) -> None:
    if dto.receiver_id <= 0:
        raise ValidationError("receiverId must be a positive integer")
    if not dto.content and not dto.image_data:
        raise ValidationError("Message cannot be empty")
    if len(dto.content) > max_length:
        raise ValidationError(f"Message must be at most {max_length} characters")


async def send_message(
    sender_id: int,
    dto: SendMessageDTO,
    uow: UnitOfWork,
    *,
    max_length: int = 1000,
) -> Message:
    """Validate and durably store a direct message.

    The returned message carries the store-assigned id and timestamp. Nothing
    is delivered here; callers route the stored message afterwards.
    """
    validate_message(dto, max_length)

    msg = await uow.messages_w.create_message(
        sender_id,
        dto.receiver_id,
        dto.content,
        dto.image_data or None,
    )
    await uow.commit()
    logger.debug("Stored message %d (%d -> %d)", msg.id, msg.sender_id, msg.receiver_id)
    return msg


async def list_conversation(
    user_id: int,
    other_user_id: int,
    uow: UnitOfWork,
) -> list[Message]:
    return await uow.messages.get_messages_between_users(user_id, other_user_id)
