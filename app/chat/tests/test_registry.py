"""
Tests for ConnectionRegistry.

This module tests:
- register/unregister/lookup bookkeeping
- Replacement of an earlier connection for the same user
- Compare-and-delete on unregister
- broadcast targeting and per-target failure isolation
- send_to single-target relay

The registry is exercised with a fresh instance and a recording sender, so
no channel layer is involved.
"""

import pytest

from chat.registry import ConnectionRegistry


class FakeSender:
    def __init__(self, failing=()):
        self.sent = []
        self.failing = set(failing)

    async def __call__(self, handle, payload):
        if handle in self.failing:
            raise ConnectionError(f"{handle} is gone")
        self.sent.append((handle, payload))


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def registry(sender):
    return ConnectionRegistry(sender=sender)


# =============================================================================
# TestRegistration
# =============================================================================


class TestRegistration:
    """
    Tests for register, unregister and lookup.
    """

    def test_register_then_lookup(self, registry):
        """
        A registered user resolves to its handle.
        """
        assert registry.register(1, "conn-a") is None
        assert registry.lookup(1) == "conn-a"

    def test_lookup_miss_returns_none(self, registry):
        assert registry.lookup(42) is None

    def test_register_replaces_previous_handle(self, registry):
        """
        A second registration wins and returns the handle it replaced.

        Why it matters: At most one live connection per user is addressable.
        """
        registry.register(1, "conn-a")
        previous = registry.register(1, "conn-b")

        assert previous == "conn-a"
        assert registry.lookup(1) == "conn-b"

    def test_unregister_removes_mapping(self, registry):
        registry.register(1, "conn-a")

        assert registry.unregister(1) is True
        assert registry.lookup(1) is None

    def test_unregister_unknown_user_returns_false(self, registry):
        assert registry.unregister(99) is False

    def test_superseded_handle_does_not_evict_replacement(self, registry):
        """
        Unregistering with a stale handle leaves the newer mapping alone.

        Why it matters: The old socket closing after a reconnect must not
        take the user offline.
        """
        registry.register(1, "conn-a")
        registry.register(1, "conn-b")

        assert registry.unregister(1, "conn-a") is False
        assert registry.lookup(1) == "conn-b"

    def test_unregister_with_current_handle_removes(self, registry):
        registry.register(1, "conn-a")

        assert registry.unregister(1, "conn-a") is True
        assert registry.registered_users() == frozenset()

    def test_registered_users_is_snapshot(self, registry):
        """
        registered_users returns an immutable copy.
        """
        registry.register(1, "conn-a")
        snapshot = registry.registered_users()
        registry.register(2, "conn-b")

        assert snapshot == frozenset({1})
        assert registry.registered_users() == frozenset({1, 2})

    def test_clear_removes_everything(self, registry):
        registry.register(1, "conn-a")
        registry.register(2, "conn-b")

        registry.clear()

        assert registry.registered_users() == frozenset()


# =============================================================================
# TestBroadcast
# =============================================================================


class TestBroadcast:
    """
    Tests for broadcast and send_to.
    """

    @pytest.mark.asyncio
    async def test_broadcast_reaches_only_matching_users(self, registry, sender):
        """
        Only users accepted by the predicate receive the payload.

        Why it matters: Fan-out goes to conversation members, never to
        every connection.
        """
        registry.register(1, "conn-1")
        registry.register(2, "conn-2")
        registry.register(3, "conn-3")

        delivered = await registry.broadcast(lambda user_id: user_id in {1, 3}, {"type": "x"})

        assert delivered == 2
        assert sorted(handle for handle, _ in sender.sent) == ["conn-1", "conn-3"]

    @pytest.mark.asyncio
    async def test_broadcast_skips_failed_targets(self):
        """
        A failing target is skipped and does not stop the others.
        """
        sender = FakeSender(failing={"conn-1"})
        registry = ConnectionRegistry(sender=sender)
        registry.register(1, "conn-1")
        registry.register(2, "conn-2")

        delivered = await registry.broadcast(lambda user_id: True, {"type": "x"})

        assert delivered == 1
        assert sender.sent == [("conn-2", {"type": "x"})]

    @pytest.mark.asyncio
    async def test_replaced_handle_receives_nothing(self, registry, sender):
        """
        After a re-register only the newest handle receives events.
        """
        registry.register(1, "conn-old")
        registry.register(1, "conn-new")

        await registry.broadcast(lambda user_id: True, {"type": "x"})

        assert [handle for handle, _ in sender.sent] == ["conn-new"]

    @pytest.mark.asyncio
    async def test_send_to_registered_user(self, registry, sender):
        registry.register(5, "conn-5")

        assert await registry.send_to(5, {"type": "call_offer"}) is True
        assert sender.sent == [("conn-5", {"type": "call_offer"})]

    @pytest.mark.asyncio
    async def test_send_to_unregistered_user_is_dropped(self, registry, sender):
        """
        A miss returns False without raising.
        """
        assert await registry.send_to(5, {"type": "call_offer"}) is False
        assert sender.sent == []

    @pytest.mark.asyncio
    async def test_send_to_failure_returns_false(self):
        registry = ConnectionRegistry(sender=FakeSender(failing={"conn-5"}))
        registry.register(5, "conn-5")

        assert await registry.send_to(5, {"type": "call_offer"}) is False
