from __future__ import annotations

from verse_chat.domain.entities.message import Message
from verse_chat.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        sender_id=model.sender_id,
        receiver_id=model.receiver_id,
        content=model.content,
        image_data=model.image_data,
        created_at=model.created_at,
        is_read=bool(model.is_read),
    )
