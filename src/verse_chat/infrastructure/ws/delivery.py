"""Best-effort live push to whoever is currently bound in the registry."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from verse_chat.infrastructure.ws.protocol import OutboundFrame
from verse_chat.infrastructure.ws.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DeliveryStats:
    delivered: int = 0
    offline: int = 0
    failed: int = 0


class DeliveryRouter:
    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry
        self.stats = DeliveryStats()

    async def route(self, user_id: int, frame: OutboundFrame) -> bool:
        """Push ``frame`` to ``user_id`` if online. Never raises.

        Returns True when the frame was written to a live socket. Nothing is
        queued or retried; the message store is the durable copy.
        """
        ws = self._registry.lookup(user_id)
        if ws is None:
            self.stats.offline += 1
            logger.debug("User %d offline, %s not pushed", user_id, frame.type)
            return False

        try:
            await ws.send_text(frame.encode())
        except Exception:
            self.stats.failed += 1
            logger.warning(
                "Live delivery to user %d failed",
                user_id,
                exc_info=True,
                extra={
                    "event": "ws.delivery_failed",
                    "user_id": user_id,
                    "frame_type": str(frame.type),
                    "failed_total": self.stats.failed,
                },
            )
            self._registry.unbind(user_id, ws)
            return False

        self.stats.delivered += 1
        return True
