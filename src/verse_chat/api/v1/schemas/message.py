from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class MessageResponse(BaseModel):
    """Wire shape of a stored message, shared by REST and websocket frames."""

    id: int
    sender_id: int
    receiver_id: int
    content: str
    image_data: str | None
    created_at: datetime
    is_read: bool

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )
