from __future__ import annotations

import jwt

from verse_chat.application.dto.principal import Principal


class HS256Verifier:
    """Verify session JWTs signed with a shared HMAC secret."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    async def verify(self, token: str) -> Principal:
        payload = jwt.decode(
            token,
            self._secret,
            algorithms=[self._algorithm],
            options={"require": ["sub"]},
        )
        return Principal(
            user_id=int(payload["sub"]),
            roles=payload.get("roles", []),
        )
