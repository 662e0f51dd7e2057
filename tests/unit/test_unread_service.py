from __future__ import annotations

import uuid

import pytest

from taskboard_realtime.application.exceptions import NotFoundError, ValidationError
from taskboard_realtime.infrastructure.ws.registry import OnlineUser
from taskboard_realtime.services.unread_service import compute_unread_counts
from tests.conftest import FakeConnection, build_hub, make_message


def _expected(history, read_sets, viewer, sender):
    return sum(
        1
        for m in history
        if m.sender_id == sender and sender != viewer and str(m.id) not in read_sets.get(viewer, set())
    )


def test_counts_match_definition_for_every_pair():
    history = [
        make_message(sender_id=s, minute=i)
        for i, s in enumerate(["u1", "u2", "u1", "u3", "u1", "u2"])
    ]
    read_sets = {
        "u2": {str(history[0].id), str(history[3].id)},
        "u3": {str(history[1].id)},
    }
    online = ["u1", "u2", "u3"]

    counts = compute_unread_counts(history, online, read_sets)

    for viewer in online:
        assert set(counts[viewer]) == {u for u in online if u != viewer}
        for sender in counts[viewer]:
            assert counts[viewer][sender] == _expected(history, read_sets, viewer, sender)
    assert counts["u2"] == {"u1": 2, "u3": 0}


def test_messages_from_offline_senders_are_ignored():
    history = [make_message(sender_id="u9"), make_message(sender_id="u1")]

    counts = compute_unread_counts(history, ["u1", "u2"], {})

    assert counts == {"u1": {"u2": 0}, "u2": {"u1": 1}}


def test_no_online_users_gives_empty_matrix():
    assert compute_unread_counts([make_message()], [], {}) == {}


def test_duplicate_online_ids_are_collapsed():
    counts = compute_unread_counts([make_message(sender_id="u1")], ["u1", "u2", "u1"], {})

    assert counts == {"u1": {"u2": 0}, "u2": {"u1": 1}}


@pytest.mark.asyncio
async def test_recompute_is_idempotent(uow):
    hub = build_hub(uow)
    uow.add_message(make_message(sender_id="u1"))
    a, b = FakeConnection(id="a"), FakeConnection(id="b")
    for conn, user in ((a, OnlineUser("u1", "Alice")), (b, OnlineUser("u2", "Bob"))):
        await hub.manager.connect(conn)
        hub.registry.attach(conn.id, user)
        hub.manager.join(conn.id, f"user:{user.user_id}")

    await hub.unread.recompute_and_push()
    await hub.unread.recompute_and_push()

    assert b.events("unread:counts") == [{"u1": 1}, {"u1": 1}]
    assert a.events("unread:counts") == [{"u2": 0}, {"u2": 0}]


@pytest.mark.asyncio
async def test_recompute_without_online_users_reads_nothing(uow):
    hub = build_hub(uow)

    async def _boom():
        raise AssertionError("store must not be read")

    uow.messages.list_all = _boom

    await hub.unread.recompute_and_push()


@pytest.mark.asyncio
async def test_recompute_swallows_store_failure(uow):
    hub = build_hub(uow)
    conn = FakeConnection(id="a")
    await hub.manager.connect(conn)
    hub.registry.attach("a", OnlineUser("u1", "Alice"))

    async def _boom():
        raise ConnectionError("db down")

    uow.messages.list_all = _boom

    await hub.unread.recompute_and_push()

    assert conn.events("unread:counts") == []


@pytest.mark.asyncio
async def test_mark_read_reduces_by_acknowledged_unread_only(uow):
    hub = build_hub(uow)
    m1 = uow.add_message(make_message(sender_id="u1", minute=1))
    uow.add_message(make_message(sender_id="u1", minute=2))
    m3 = uow.add_message(make_message(sender_id="u3", minute=3))
    for uid in ("u1", "u2", "u3"):
        hub.registry.attach(f"c-{uid}", OnlineUser(uid, uid))

    before = await hub.unread.counts_for("u2")
    await hub.unread.mark_read("u2", [str(m1.id), str(m3.id), str(m1.id)])
    after = await hub.unread.counts_for("u2")

    assert before == {"u1": 2, "u3": 1}
    assert after == {"u1": 1, "u3": 0}

    await hub.unread.mark_read("u2", [str(m1.id)])
    assert await hub.unread.counts_for("u2") == after
    assert (await hub.unread.counts_for("u1"))["u3"] == 1


@pytest.mark.asyncio
async def test_mark_read_rejects_unknown_message_without_recording(uow):
    hub = build_hub(uow)
    known = uow.add_message(make_message(sender_id="u1"))
    hub.registry.attach("c-u1", OnlineUser("u1", "Alice"))
    hub.registry.attach("c-u2", OnlineUser("u2", "Bob"))

    with pytest.raises(NotFoundError):
        await hub.unread.mark_read("u2", [str(known.id), str(uuid.uuid4())])

    assert await hub.unread.counts_for("u2") == {"u1": 1}


@pytest.mark.asyncio
async def test_mark_read_rejects_malformed_id(uow):
    hub = build_hub(uow)

    with pytest.raises(ValidationError):
        await hub.unread.mark_read("u2", ["not-a-uuid"])


@pytest.mark.asyncio
async def test_counts_for_offline_viewer_includes_online_senders(uow):
    hub = build_hub(uow)
    uow.add_message(make_message(sender_id="u1"))
    hub.registry.attach("c-u1", OnlineUser("u1", "Alice"))

    assert await hub.unread.counts_for("u2") == {"u1": 1}
