"""In-process message store and user directory.

State lives for the lifetime of the process; a restart starts from empty.
Every operation completes without awaiting anything, so each call is atomic
with respect to other coroutines on the same event loop.
"""
from __future__ import annotations

import dataclasses
import itertools

from verse_chat.application.ports.clock import Clock, MonotonicClock
from verse_chat.domain.entities.message import Message
from verse_chat.domain.entities.user import User


class InMemoryMessageStore:
    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or MonotonicClock()
        self._ids = itertools.count(1)
        self._messages: dict[int, Message] = {}

    async def create_message(
        self,
        sender_id: int,
        receiver_id: int,
        content: str,
        image_data: str | None = None,
    ) -> Message:
        message = Message(
            id=next(self._ids),
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            image_data=image_data,
            created_at=self._clock.now(),
            is_read=False,
        )
        self._messages[message.id] = message
        return message

    async def get_messages_between_users(
        self, user_a: int, user_b: int
    ) -> list[Message]:
        pair = {(user_a, user_b), (user_b, user_a)}
        found = [m for m in self._messages.values() if (m.sender_id, m.receiver_id) in pair]
        return sorted(found, key=lambda m: (m.created_at, m.id))

    async def mark_messages_as_read(self, receiver_id: int, sender_id: int) -> int:
        flipped = 0
        for key, message in self._messages.items():
            if (
                message.receiver_id == receiver_id
                and message.sender_id == sender_id
                and not message.is_read
            ):
                self._messages[key] = dataclasses.replace(message, is_read=True)
                flipped += 1
        return flipped

    def __len__(self) -> int:
        return len(self._messages)


class InMemoryUserDirectory:
    """User lookup for the in-memory backend.

    With ``auto_register`` any positive id is accepted and remembered on first
    lookup, the way the original in-process storage trusted whatever id a
    client authenticated with.
    """

    def __init__(self, users: list[User] | None = None, *, auto_register: bool = False) -> None:
        self._users: dict[int, User] = {u.id: u for u in users or []}
        self._auto_register = auto_register

    def add(self, user: User) -> None:
        self._users[user.id] = user

    async def get_by_id(self, user_id: int) -> User | None:
        user = self._users.get(user_id)
        if user is None and self._auto_register and user_id > 0:
            user = User(id=user_id, username=f"user{user_id}")
            self._users[user_id] = user
        return user
