"""Unit tests for BroadcastRouter using stand-in sockets."""

import asyncio
import json

import pytest

from parlor.config import settings
from parlor.core import events
from parlor.schemas.session import Identity
from parlor.websocket.manager import BroadcastRouter


class FakeSocket:
    def __init__(self, fail: bool = False):
        self.sent: list[dict] = []
        self.fail = fail

    async def send_text(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(text))


def _identity(name: str) -> Identity:
    return Identity(user_id=f"u_{name}", username=name)


@pytest.fixture()
def router():
    return BroadcastRouter()


def _connect(router, cid, fail=False):
    ws = FakeSocket(fail=fail)
    router.connect(ws, cid, _identity(cid))
    return ws


class TestSubscriptions:
    def test_connect_joins_global_topic(self, router):
        _connect(router, "a")
        assert router.subscribers(events.GLOBAL_TOPIC) == ["a"]
        assert router._bindings["a"].channels == set()

    def test_subscribe_adds_channel_topic(self, router):
        _connect(router, "a")
        assert router.subscribe("a", 7) is True
        assert router._bindings["a"].channels == {7}
        assert router.subscribers(events.channel_topic(7)) == ["a"]

    def test_subscribe_twice_is_harmless(self, router):
        _connect(router, "a")
        router.subscribe("a", 7)
        router.subscribe("a", 7)
        assert router.subscribers("channel:7") == ["a"]

    def test_subscribe_unknown_connection(self, router):
        assert router.subscribe("ghost", 7) is False
        assert router.subscribers("channel:7") == []

    def test_disconnect_clears_every_topic(self, router):
        _connect(router, "a")
        router.subscribe("a", 1)
        router.subscribe("a", 2)
        router.disconnect("a")
        assert router.connection_ids() == []
        for topic in (events.GLOBAL_TOPIC, "channel:1", "channel:2"):
            assert router.subscribers(topic) == []
        assert "a" not in router._bindings

    def test_disconnect_unknown_is_noop(self, router):
        router.disconnect("ghost")


class TestPublish:
    def test_publish_reaches_only_subscribers(self, router):
        a = _connect(router, "a")
        b = _connect(router, "b")
        router.subscribe("a", 1)

        delivered = asyncio.run(router.publish_to_channel(1, {"type": "new_message"}))
        assert delivered == 1
        assert a.sent == [{"type": "new_message"}]
        assert b.sent == []

    def test_broadcast_reaches_everyone(self, router):
        sockets = [_connect(router, cid) for cid in ("a", "b", "c")]
        assert asyncio.run(router.broadcast({"type": "channel_created"})) == 3
        assert all(ws.sent == [{"type": "channel_created"}] for ws in sockets)

    def test_dead_connection_is_dropped(self, router):
        good = _connect(router, "good")
        _connect(router, "dead", fail=True)
        router.subscribe("good", 1)
        router.subscribe("dead", 1)

        assert asyncio.run(router.publish_to_channel(1, {"n": 1})) == 1
        assert "dead" not in router._bindings
        assert router.subscribers("channel:1") == ["good"]
        assert router.subscribers(events.GLOBAL_TOPIC) == ["good"]
        assert good.sent == [{"n": 1}]

    def test_payload_order_is_kept_per_connection(self, router):
        a = _connect(router, "a")
        router.subscribe("a", 1)

        async def run():
            for n in range(5):
                await router.publish_to_channel(1, {"n": n})

        asyncio.run(run())
        assert [p["n"] for p in a.sent] == [0, 1, 2, 3, 4]

    def test_send_personal(self, router):
        a = _connect(router, "a")
        _connect(router, "b")
        assert asyncio.run(router.send_personal("a", {"type": "error"})) is True
        assert a.sent == [{"type": "error"}]
        assert asyncio.run(router.send_personal("ghost", {"type": "error"})) is False

    def test_send_personal_to_dead_socket(self, router):
        _connect(router, "dead", fail=True)
        assert asyncio.run(router.send_personal("dead", {})) is False
        assert router.connection_ids() == []

    def test_mutation_follows_channel(self, router):
        a = _connect(router, "a")
        b = _connect(router, "b")
        router.subscribe("a", 1)
        asyncio.run(router.publish_mutation(1, {"type": "message_edited"}))
        assert len(a.sent) == 1
        assert b.sent == []

    def test_mutation_goes_global_in_legacy_mode(self, router, monkeypatch):
        monkeypatch.setattr(settings, "GLOBAL_MUTATION_EVENTS", True)
        a = _connect(router, "a")
        b = _connect(router, "b")
        router.subscribe("a", 1)
        asyncio.run(router.publish_mutation(1, {"type": "message_edited"}))
        assert len(a.sent) == 1
        assert len(b.sent) == 1
