from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SendMessageDTO:
    receiver_id: int
    content: str = ""
    image_data: str | None = None
