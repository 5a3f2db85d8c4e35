from __future__ import annotations

from fastapi import APIRouter, Path

from verse_chat.api.deps import CurrentPrincipal, DeliveryDep, UoWDep
from verse_chat.api.v1.schemas.message import MessageResponse
from verse_chat.infrastructure.ws.protocol import MessagesReadFrame
from verse_chat.services import message_service, read_state_service

router = APIRouter(prefix="/api/v1/messages", tags=["messages"])


@router.get("/{other_user_id}", response_model=list[MessageResponse])
async def get_conversation(
    principal: CurrentPrincipal,
    uow: UoWDep,
    delivery: DeliveryDep,
    other_user_id: int = Path(ge=1),
) -> list[MessageResponse]:
    """Return the conversation with another user and mark their messages read.

    The history reflects read flags as they were before this call.
    """
    messages = await message_service.list_conversation(
        principal.user_id, other_user_id, uow,
    )
    event = await read_state_service.mark_read(principal.user_id, other_user_id, uow)
    if event.flipped:
        await delivery.route(other_user_id, MessagesReadFrame(by=principal.user_id))
    return [MessageResponse.model_validate(m) for m in messages]
