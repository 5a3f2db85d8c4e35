"""Create the tables and seed development users and messages."""
from __future__ import annotations

import asyncio
import logging

from sqlalchemy.dialects.postgresql import insert as pg_insert

from verse_chat.config import settings
from verse_chat.infrastructure.db import models
from verse_chat.infrastructure.db.base import Base
from verse_chat.infrastructure.db.session import build_engine, build_sessionmaker
from verse_chat.infrastructure.db.uow import SqlAlchemyUoW

logger = logging.getLogger(__name__)

USERS = [
    (1, "wren", "Wren Alder"),
    (2, "basho_fan", "Matsu Ito"),
]

MESSAGES = [
    (1, 2, "Read your new haiku about the heron. Lovely."),
    (2, 1, "Thank you! Still unsure about the last line."),
    (1, 2, "Maybe end on the still water instead?"),
]


async def seed() -> None:
    engine = build_engine(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Ensured tables: %s", ", ".join(sorted(Base.metadata.tables)))

    sessionmaker = build_sessionmaker(engine)
    async with sessionmaker() as session:
        await session.execute(
            pg_insert(models.UserModel)
            .values([{"id": i, "username": u, "display_name": d} for i, u, d in USERS])
            .on_conflict_do_nothing(index_elements=["id"])
        )
        uow = SqlAlchemyUoW(session)
        for sender_id, receiver_id, content in MESSAGES:
            await uow.messages_w.create_message(sender_id, receiver_id, content)
        await uow.commit()
    logger.info("Seeded %d users and %d messages", len(USERS), len(MESSAGES))

    await engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
