from __future__ import annotations

import pytest

from taskboard_realtime.domain.value_objects.channels import (
    GLOBAL_CHANNEL,
    is_valid_channel,
    typing_channel,
)
from taskboard_realtime.infrastructure.ws.manager import ConnectionManager
from taskboard_realtime.infrastructure.ws.registry import OnlineUser
from tests.conftest import FakeConnection


async def _manager_with(*ids: str) -> tuple[ConnectionManager, dict[str, FakeConnection]]:
    manager = ConnectionManager()
    conns = {cid: FakeConnection(id=cid) for cid in ids}
    for conn in conns.values():
        await manager.connect(conn)
    return manager, conns


@pytest.mark.asyncio
async def test_connect_accepts_and_tracks():
    manager, conns = await _manager_with("a", "b")

    assert conns["a"].accepted
    assert manager.connection_count == 2
    assert manager.is_connected("a")


@pytest.mark.asyncio
async def test_publish_reaches_subscribers_only_and_honours_exclude():
    manager, conns = await _manager_with("a", "b", "c")
    manager.join("a", "task:1")
    manager.join("b", "task:1")

    await manager.publish("task:1", "comment:typing", {"n": 1}, exclude="a")

    assert conns["a"].sent == []
    assert conns["b"].sent == [("comment:typing", {"n": 1})]
    assert conns["c"].sent == []


@pytest.mark.asyncio
async def test_publish_preserves_order_within_channel():
    manager, conns = await _manager_with("a")
    manager.join("a", "board:7")

    for i in range(5):
        await manager.publish("board:7", "task:updated", {"seq": i})

    assert [d["seq"] for d in conns["a"].events("task:updated")] == [0, 1, 2, 3, 4]


@pytest.mark.asyncio
async def test_leave_stops_delivery():
    manager, conns = await _manager_with("a")
    manager.join("a", "board:7")
    manager.leave("a", "board:7")

    await manager.publish("board:7", "task:updated", {})

    assert conns["a"].sent == []
    assert manager.members("board:7") == []


@pytest.mark.asyncio
async def test_broken_connection_does_not_stop_fanout():
    manager, conns = await _manager_with("a", "b", "c")
    conns["b"].broken = True

    await manager.broadcast("user:online", {"userId": "u9"})

    assert conns["a"].events("user:online") == [{"userId": "u9"}]
    assert conns["c"].events("user:online") == [{"userId": "u9"}]


@pytest.mark.asyncio
async def test_disconnect_cleans_channels_and_registry():
    manager, conns = await _manager_with("a")
    manager.registry.attach("a", OnlineUser("u1", "Alice"))
    manager.join("a", "task:1")

    user, went_offline = manager.disconnect("a")

    assert user == OnlineUser("u1", "Alice")
    assert went_offline is True
    assert manager.members("task:1") == []
    assert not manager.is_connected("a")
    assert manager.channels_of("a") == frozenset()


@pytest.mark.asyncio
async def test_send_to_gone_connection_is_noop():
    manager, conns = await _manager_with("a")
    manager.disconnect("a")

    await manager.send("a", "newMessage", {})

    assert conns["a"].sent == []


@pytest.mark.asyncio
async def test_join_unknown_connection_is_ignored():
    manager, _ = await _manager_with()

    manager.join("ghost", "task:1")

    assert manager.members("task:1") == []


def test_typing_channel_maps_global_sentinel():
    assert typing_channel("global") == GLOBAL_CHANNEL
    assert typing_channel("42") == "task:42"


@pytest.mark.parametrize(
    "name, valid",
    [
        ("global", True),
        ("board:1", True),
        ("task:abc", True),
        ("user:u1", True),
        ("board:", False),
        ("team:1", False),
        ("", False),
    ],
)
def test_is_valid_channel(name, valid):
    assert is_valid_channel(name) is valid


@pytest.mark.asyncio
async def test_send_to_user_reaches_every_connection_of_that_user():
    manager, conns = await _manager_with("a1", "a2", "b")
    manager.join("a1", "user:u1")
    manager.join("a2", "user:u1")
    manager.join("b", "user:u2")

    await manager.send_to_user("u1", "unread:counts", {"u1": 3})

    assert conns["a1"].events("unread:counts") == [{"u1": 3}]
    assert conns["a2"].events("unread:counts") == [{"u1": 3}]
    assert conns["b"].sent == []
