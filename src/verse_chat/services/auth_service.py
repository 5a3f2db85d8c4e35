from __future__ import annotations

from verse_chat.application.exceptions import NotFoundError
from verse_chat.application.uow import UnitOfWork
from verse_chat.domain.entities.user import User


async def resolve_user(user_id: int, uow: UnitOfWork) -> User:
    """Look up the identity a socket is trying to bind to."""
    user = await uow.users.get_by_id(user_id)
    if user is None:
        raise NotFoundError(f"Unknown user {user_id}")
    return user
