from __future__ import annotations

import json
import logging

import pytest

from verse_chat.infrastructure.ws.protocol import MessagesReadFrame
from tests.conftest import FakeWebSocket


@pytest.mark.asyncio
async def test_route_to_online_user(registry, delivery):
    ws = FakeWebSocket()
    registry.bind(2, ws)

    delivered = await delivery.route(2, MessagesReadFrame(by=1))

    assert delivered is True
    assert [json.loads(s) for s in ws.sent] == [{"type": "messages_read", "by": 1}]
    assert delivery.stats.delivered == 1


@pytest.mark.asyncio
async def test_route_to_offline_user_is_noop(delivery):
    delivered = await delivery.route(2, MessagesReadFrame(by=1))

    assert delivered is False
    assert delivery.stats.offline == 1
    assert delivery.stats.delivered == 0


@pytest.mark.asyncio
async def test_route_skips_socket_that_already_closed(registry, delivery):
    ws = FakeWebSocket()
    registry.bind(2, ws)
    ws.drop()

    assert await delivery.route(2, MessagesReadFrame(by=1)) is False
    assert ws.sent == []


@pytest.mark.asyncio
async def test_write_failure_is_swallowed_and_logged(registry, delivery, caplog):
    ws = FakeWebSocket(fail_on_send=True)
    registry.bind(2, ws)

    with caplog.at_level(logging.WARNING, logger="verse_chat.infrastructure.ws.delivery"):
        delivered = await delivery.route(2, MessagesReadFrame(by=1))

    assert delivered is False
    assert delivery.stats.failed == 1
    assert registry.lookup(2) is None
    [record] = caplog.records
    assert record.event == "ws.delivery_failed"
    assert record.user_id == 2
    assert record.frame_type == "messages_read"
