"""
Tests for the in-process session registry.

Tests verify:
- Registering several sessions per user
- Unregistering is idempotent and drops the user with the last session
- Readers get snapshots unaffected by later changes
- Concurrent register/unregister keeps the map consistent
"""

from concurrent.futures import ThreadPoolExecutor

from chat.registry import SessionHandle, SessionRegistry


class TestRegisterSession:
    """Tests for SessionRegistry.register_session()."""

    def test_returns_handle_for_user(self, registry):
        handle = registry.register_session(7, "specific.abc")

        assert isinstance(handle, SessionHandle)
        assert handle.user_id == 7
        assert handle.channel_name == "specific.abc"
        assert registry.live_sessions_of(7) == frozenset({handle})

    def test_multiple_sessions_per_user(self, registry):
        phone = registry.register_session(7, "specific.phone")
        laptop = registry.register_session(7, "specific.laptop")

        assert registry.live_sessions_of(7) == frozenset({phone, laptop})
        assert registry.session_count(7) == 2
        assert len(registry) == 2

    def test_handles_are_unique_for_same_channel(self, registry):
        first = registry.register_session(7, "specific.abc")
        second = registry.register_session(7, "specific.abc")

        assert first != second
        assert registry.session_count(7) == 2

    def test_users_are_isolated(self, registry):
        registry.register_session(7, "specific.a")

        assert registry.live_sessions_of(8) == frozenset()
        assert registry.connected_user_ids() == frozenset({7})


class TestUnregisterSession:
    """Tests for SessionRegistry.unregister_session()."""

    def test_removes_only_that_handle(self, registry):
        phone = registry.register_session(7, "specific.phone")
        laptop = registry.register_session(7, "specific.laptop")

        assert registry.unregister_session(phone) is True

        assert registry.live_sessions_of(7) == frozenset({laptop})

    def test_last_handle_drops_user(self, registry):
        handle = registry.register_session(7, "specific.a")

        registry.unregister_session(handle)

        assert registry.connected_user_ids() == frozenset()
        assert len(registry) == 0

    def test_second_unregister_is_noop(self, registry):
        handle = registry.register_session(7, "specific.a")
        registry.unregister_session(handle)

        assert registry.unregister_session(handle) is False

    def test_unknown_handle_is_noop(self, registry):
        registry.register_session(7, "specific.a")

        assert registry.unregister_session(SessionHandle(7, "specific.other")) is False
        assert registry.session_count(7) == 1


class TestSnapshots:
    """Readers never observe a partially applied change."""

    def test_snapshot_is_not_mutated_by_later_changes(self, registry):
        handle = registry.register_session(7, "specific.a")
        snapshot = registry.live_sessions_of(7)

        registry.unregister_session(handle)
        registry.register_session(7, "specific.b")

        assert snapshot == frozenset({handle})

    def test_concurrent_register_and_unregister(self, registry):
        def connect_and_leave(n):
            handle = registry.register_session(n % 5, f"specific.{n}")
            if n % 2:
                registry.unregister_session(handle)
            return handle

        with ThreadPoolExecutor(max_workers=8) as pool:
            handles = list(pool.map(connect_and_leave, range(200)))

        remaining = {handle for n, handle in enumerate(handles) if n % 2 == 0}
        live = set()
        for user_id in registry.connected_user_ids():
            live |= registry.live_sessions_of(user_id)

        assert live == remaining
        assert len(registry) == 100
