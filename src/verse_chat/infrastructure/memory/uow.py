from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from verse_chat.infrastructure.memory.store import (
    InMemoryMessageStore,
    InMemoryUserDirectory,
)


class InMemoryUoW:
    """Unit-of-Work over the process-wide in-memory store.

    Writes are applied immediately, so commit and rollback only record that
    they were called.
    """

    def __init__(
        self,
        store: InMemoryMessageStore,
        users: InMemoryUserDirectory,
    ) -> None:
        self.users = users
        self.messages = store
        self.messages_w = store
        self.committed = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.committed = False


class InMemoryBackend:
    """Owns the store and directory shared by every unit of work."""

    def __init__(
        self,
        store: InMemoryMessageStore | None = None,
        users: InMemoryUserDirectory | None = None,
    ) -> None:
        self.store = store or InMemoryMessageStore()
        self.users = users or InMemoryUserDirectory()

    @asynccontextmanager
    async def uow(self) -> AsyncIterator[InMemoryUoW]:
        yield InMemoryUoW(self.store, self.users)
