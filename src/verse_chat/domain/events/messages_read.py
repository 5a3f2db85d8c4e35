from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class MessagesRead:
    """A reader marked every unread message from ``sender_id`` as read."""

    reader_id: int
    sender_id: int
    flipped: int
