from __future__ import annotations

from verse_chat.domain.entities.user import User
from verse_chat.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> User:
    return User(id=model.id, username=model.username, display_name=model.display_name)
