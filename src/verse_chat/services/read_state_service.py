from __future__ import annotations

from verse_chat.application.exceptions import ValidationError
from verse_chat.application.uow import UnitOfWork
from verse_chat.domain.events.messages_read import MessagesRead


async def mark_read(
    reader_id: int,
    sender_id: int,
    uow: UnitOfWork,
) -> MessagesRead:
    if sender_id <= 0:
        raise ValidationError("senderId must be a positive integer")
    flipped = await uow.messages_w.mark_messages_as_read(reader_id, sender_id)
    await uow.commit()
    return MessagesRead(reader_id=reader_id, sender_id=sender_id, flipped=flipped)
