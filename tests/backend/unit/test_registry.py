"""
Unit tests for core.registry module.
Tests session install/replace, heartbeat refresh, removal and expiry snapshots.
"""
from concurrent.futures import ThreadPoolExecutor

from presence_gateway.core.registry import SessionRegistry

TIMEOUT = 30.0


class TestUpsert:
    """Tests for installing and replacing sessions."""

    def test_upsert_registers_connection(self, registry, make_ws):
        ws = make_ws()
        registry.upsert("alice", ws)
        assert registry.lookup_connection("alice") is ws
        assert registry.is_online("alice")
        assert len(registry) == 1

    def test_last_writer_wins(self, registry, make_ws):
        c1, c2 = make_ws(), make_ws()
        registry.upsert("alice", c1)
        registry.upsert("alice", c2)
        assert registry.lookup_connection("alice") is c2
        assert len(registry) == 1

    def test_upsert_stamps_heartbeat(self, registry, clock, make_ws):
        registry.upsert("alice", make_ws())
        assert registry.last_heartbeat("alice") == clock.now

    def test_superseded_connection_no_longer_owns_session(self, registry, make_ws):
        c1, c2 = make_ws(), make_ws()
        registry.upsert("alice", c1)
        registry.upsert("alice", c2)
        assert registry.touch(c1) is False
        assert registry.touch(c2) is True

    def test_connection_reidentifying_as_other_user(self, registry, clock, make_ws):
        """Heartbeats follow the latest identity; the earlier one is left to expire."""
        ws = make_ws()
        registry.upsert("alice", ws)
        clock.advance(5)
        registry.upsert("bob", ws)
        clock.advance(5)
        registry.touch(ws)
        assert registry.last_heartbeat("bob") == clock.now
        assert registry.last_heartbeat("alice") == clock.now - 10
        # Removing the stale identity must not detach bob from the connection
        registry.remove("alice")
        assert registry.touch(ws) is True
        assert registry.lookup_connection("bob") is ws


class TestTouch:
    """Tests for heartbeat refresh."""

    def test_touch_unknown_connection_returns_false(self, registry, make_ws):
        assert registry.touch(make_ws()) is False
        assert len(registry) == 0

    def test_touch_refreshes_heartbeat(self, registry, clock, make_ws):
        ws = make_ws()
        registry.upsert("alice", ws)
        clock.advance(12.5)
        assert registry.touch(ws) is True
        assert registry.last_heartbeat("alice") == clock.now

    def test_heartbeat_never_moves_backwards(self, registry, clock, make_ws):
        ws = make_ws()
        registry.upsert("alice", ws)
        stamped = clock.now
        clock.advance(-3)
        registry.touch(ws)
        assert registry.last_heartbeat("alice") == stamped


class TestRemove:
    """Tests for removal by user and by connection."""

    def test_remove_returns_connection(self, registry, make_ws):
        ws = make_ws()
        registry.upsert("alice", ws)
        assert registry.remove("alice") is ws
        assert registry.lookup_connection("alice") is None

    def test_remove_twice_is_idempotent(self, registry, make_ws):
        registry.upsert("alice", make_ws())
        assert registry.remove("alice") is not None
        assert registry.remove("alice") is None

    def test_remove_unknown_user(self, registry):
        assert registry.remove("nobody") is None

    def test_remove_clears_reverse_index(self, registry, make_ws):
        ws = make_ws()
        registry.upsert("alice", ws)
        registry.remove("alice")
        assert registry.touch(ws) is False
        assert registry.remove_by_connection(ws) is None

    def test_remove_by_connection_returns_user(self, registry, make_ws):
        ws = make_ws()
        registry.upsert("alice", ws)
        assert registry.remove_by_connection(ws) == "alice"
        assert not registry.is_online("alice")

    def test_remove_by_superseded_connection_keeps_new_session(self, registry, make_ws):
        c1, c2 = make_ws(), make_ws()
        registry.upsert("alice", c1)
        registry.upsert("alice", c2)
        assert registry.remove_by_connection(c1) is None
        assert registry.lookup_connection("alice") is c2

    def test_remove_by_unidentified_connection(self, registry, make_ws):
        assert registry.remove_by_connection(make_ws()) is None

    def test_remove_if_expired_removes_stale_session(self, registry, clock, make_ws):
        ws = make_ws()
        registry.upsert("alice", ws)
        clock.advance(TIMEOUT + 1)
        assert registry.remove_if_expired("alice", clock.now, TIMEOUT) is True
        assert not registry.is_online("alice")
        assert registry.touch(ws) is False

    def test_remove_if_expired_keeps_replaced_session(self, registry, clock, make_ws):
        registry.upsert("alice", make_ws())
        clock.advance(TIMEOUT + 1)
        snapshot_time = clock.now
        fresh = make_ws()
        registry.upsert("alice", fresh)
        assert registry.remove_if_expired("alice", snapshot_time, TIMEOUT) is False
        assert registry.lookup_connection("alice") is fresh

    def test_remove_if_expired_keeps_refreshed_session(self, registry, clock, make_ws):
        ws = make_ws()
        registry.upsert("alice", ws)
        clock.advance(TIMEOUT + 1)
        snapshot_time = clock.now
        registry.touch(ws)
        assert registry.remove_if_expired("alice", snapshot_time, TIMEOUT) is False
        assert registry.is_online("alice")

    def test_remove_if_expired_unknown_user(self, registry, clock):
        assert registry.remove_if_expired("ghost", clock.now, TIMEOUT) is False


class TestSnapshotExpired:
    """Tests for the expiry snapshot used by the heartbeat sweep."""

    def test_boundary_around_timeout(self, registry, clock, make_ws):
        ws = make_ws()
        registry.upsert("alice", ws)
        clock.advance(7)
        registry.touch(ws)
        t = clock.now
        eps = 0.001
        assert registry.snapshot_expired(t + TIMEOUT - eps, TIMEOUT) == []
        assert registry.snapshot_expired(t + TIMEOUT + eps, TIMEOUT) == ["alice"]

    def test_snapshot_does_not_mutate(self, registry, clock, make_ws):
        registry.upsert("alice", make_ws())
        registry.snapshot_expired(clock.now + 1000, TIMEOUT)
        assert registry.is_online("alice")

    def test_only_stale_users_are_listed(self, registry, clock, make_ws):
        registry.upsert("old", make_ws())
        clock.advance(20)
        registry.upsert("fresh", make_ws())
        clock.advance(15)
        assert registry.snapshot_expired(clock.now, TIMEOUT) == ["old"]

    def test_empty_registry(self, registry, clock):
        assert registry.snapshot_expired(clock.now, TIMEOUT) == []


class TestConcurrency:
    """Concurrent mutations from many threads keep the registry consistent."""

    def test_concurrent_upserts(self, make_ws):
        registry = SessionRegistry()
        sockets = {f"user-{i}": make_ws() for i in range(1000)}

        with ThreadPoolExecutor(max_workers=32) as pool:
            list(pool.map(lambda item: registry.upsert(*item), sockets.items()))

        assert len(registry) == 1000
        for user_id, ws in sockets.items():
            assert registry.lookup_connection(user_id) is ws

    def test_concurrent_touch_and_remove(self, make_ws):
        registry = SessionRegistry()
        sockets = [make_ws() for _ in range(500)]
        for i, ws in enumerate(sockets):
            registry.upsert(f"user-{i}", ws)

        def work(i):
            registry.touch(sockets[i])
            return registry.remove_by_connection(sockets[i])

        with ThreadPoolExecutor(max_workers=32) as pool:
            removed = list(pool.map(work, range(500)))

        assert sorted(removed) == sorted(f"user-{i}" for i in range(500))
        assert len(registry) == 0

    def test_isolated_registries(self, make_ws):
        first, second = SessionRegistry(), SessionRegistry()
        first.upsert("alice", make_ws())
        assert second.lookup_connection("alice") is None
