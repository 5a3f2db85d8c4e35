from __future__ import annotations

from enum import StrEnum


class InboundFrameType(StrEnum):
    AUTH = "auth"
    MESSAGE = "message"
    MARK_READ = "mark_read"
    PING = "ping"


class OutboundFrameType(StrEnum):
    AUTH_OK = "auth_ok"
    MESSAGE = "message"
    MESSAGE_SENT = "message_sent"
    MESSAGES_READ = "messages_read"
    PONG = "pong"
    ERROR = "error"


class ConnectionStateKind(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


class StoreBackend(StrEnum):
    MEMORY = "memory"
    POSTGRES = "postgres"
