from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    pass


class ValidationError(AppError):
    pass


class ProtocolError(AppError):
    """Inbound websocket frame could not be parsed or is not allowed."""


class NotAuthenticatedError(ProtocolError):
    pass
