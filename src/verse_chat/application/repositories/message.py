from __future__ import annotations

from typing import Protocol

from verse_chat.domain.entities.message import Message


class MessageReader(Protocol):
    async def get_messages_between_users(
        self, user_a: int, user_b: int
    ) -> list[Message]:
        """Both directions of the pair, oldest first (ties broken by id)."""
        ...


class MessageWriter(Protocol):
    async def create_message(
        self,
        sender_id: int,
        receiver_id: int,
        content: str,
        image_data: str | None = None,
    ) -> Message:
        """Insert a message. The store assigns id, created_at and is_read=False."""
        ...

    async def mark_messages_as_read(self, receiver_id: int, sender_id: int) -> int:
        """Flip every unread sender->receiver message. Returns the number flipped."""
        ...
