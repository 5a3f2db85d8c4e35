from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Message:
    id: int
    sender_id: int
    receiver_id: int
    content: str
    image_data: str | None
    created_at: datetime
    is_read: bool = False
