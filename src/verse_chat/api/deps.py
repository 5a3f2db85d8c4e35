"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from verse_chat.application.dto.principal import Principal
from verse_chat.application.ports.auth import TokenVerifier
from verse_chat.application.uow import UnitOfWork
from verse_chat.infrastructure.auth.hs256_verifier import HS256Verifier
from verse_chat.infrastructure.ws.delivery import DeliveryRouter

_bearer_scheme = HTTPBearer()


async def get_uow(request: Request) -> AsyncIterator[UnitOfWork]:
    async with request.app.state.uow_factory() as uow:
        yield uow


UoWDep = Annotated[UnitOfWork, Depends(get_uow)]


def get_delivery(request: Request) -> DeliveryRouter:
    return request.app.state.delivery


DeliveryDep = Annotated[DeliveryRouter, Depends(get_delivery)]


def get_verifier(request: Request) -> TokenVerifier:
    verifier = getattr(request.app.state, "verifier", None)
    if verifier is None:
        cfg = request.app.state.settings
        verifier = HS256Verifier(cfg.JWT_SECRET, cfg.JWT_ALGORITHM)
        request.app.state.verifier = verifier
    return verifier


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(_bearer_scheme)],
    verifier: Annotated[TokenVerifier, Depends(get_verifier)],
) -> Principal:
    try:
        return await verifier.verify(credentials.credentials)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
