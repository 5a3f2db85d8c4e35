from __future__ import annotations

from sqlalchemy import and_, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from verse_chat.domain.entities.message import Message
from verse_chat.infrastructure.db.mappers import message as mapper
from verse_chat.infrastructure.db.models.message import MessageModel


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_messages_between_users(
        self, user_a: int, user_b: int
    ) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(
                or_(
                    and_(MessageModel.sender_id == user_a, MessageModel.receiver_id == user_b),
                    and_(MessageModel.sender_id == user_b, MessageModel.receiver_id == user_a),
                )
            )
            .order_by(MessageModel.created_at.asc(), MessageModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create_message(
        self,
        sender_id: int,
        receiver_id: int,
        content: str,
        image_data: str | None = None,
    ) -> Message:
        stmt = (
            insert(MessageModel)
            .values(
                sender_id=sender_id,
                receiver_id=receiver_id,
                content=content,
                image_data=image_data,
                is_read=False,
            )
            .returning(MessageModel)
        )
        result = await self._session.execute(stmt)
        return mapper.model_to_entity(result.scalar_one())

    async def mark_messages_as_read(self, receiver_id: int, sender_id: int) -> int:
        stmt = (
            update(MessageModel)
            .where(
                MessageModel.receiver_id == receiver_id,
                MessageModel.sender_id == sender_id,
                MessageModel.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0
