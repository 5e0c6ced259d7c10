"""Tests for session state, the session store and per-session locks."""

import asyncio
import time

import pytest

from ai.conversation.state_manager import (
    ConversationSession,
    ConversationTurn,
    InMemorySessionStore,
    SessionLockRegistry,
    SessionStateError,
)


class TestConversationSession:
    """Test session turn history and profile updates."""

    def test_session_creation(self, session):
        assert session.session_id == "test_session"
        assert session.turns == []
        assert session.profile.message_count == 0
        assert session.profile.average_confidence == 0.0

    def test_record_turn_updates_profile(self, session):
        session.record_turn("hello", "greeting", 0.6, reply="Hi!", timestamp_ms=1000)

        assert len(session.turns) == 1
        assert session.turns[0].reply == "Hi!"
        assert session.profile.message_count == 1
        assert session.profile.intent_counts == {"greeting": 1}
        assert session.profile.first_seen_ms == 1000
        assert session.profile.last_seen_ms == 1000

    def test_running_average_recurrence(self, session):
        session.record_turn("first", "greeting", 1.0)
        assert session.profile.average_confidence == pytest.approx(0.5)

        session.record_turn("second", "greeting", 0.5)
        assert session.profile.average_confidence == pytest.approx(0.5)

        session.record_turn("third", "greeting", 0.0)
        assert session.profile.average_confidence == pytest.approx(0.25)

    def test_history_capped_at_limit(self, session):
        for i in range(12):
            session.record_turn(f"message {i}", "greeting", 0.5)

        assert len(session.turns) == 10
        assert [turn.message for turn in session.turns] == [f"message {i}" for i in range(2, 12)]
        assert session.profile.message_count == 12

    def test_confidence_out_of_range_rejected(self, session):
        with pytest.raises(SessionStateError):
            session.record_turn("bad", "greeting", 1.5)
        assert session.turns == []

    def test_returning_user(self, session):
        session.record_turn("one", "greeting", 0.5)
        assert not session.is_returning_user
        session.record_turn("two", "greeting", 0.5)
        assert session.is_returning_user

    def test_serialization(self, session):
        session.record_turn("hello", "greeting", 0.6, reply="Hi!")
        restored = ConversationSession.from_dict(session.to_dict())

        assert restored.session_id == session.session_id
        assert restored.turns == session.turns
        assert restored.profile == session.profile


class TestInMemorySessionStore:
    """Test snapshot semantics and eviction."""

    def test_get_unknown(self):
        store = InMemorySessionStore()
        assert store.get("missing") is None

    def test_get_or_create_uses_store_limit(self):
        store = InMemorySessionStore(history_limit=5)
        session = store.get_or_create("new")
        assert session.history_limit == 5
        assert store.count() == 0

    def test_get_returns_snapshot(self):
        store = InMemorySessionStore()
        session = store.get_or_create("s1")
        session.record_turn("hello", "greeting", 0.6)
        store.upsert(session)

        snapshot = store.get("s1")
        snapshot.record_turn("another", "greeting", 0.6)

        assert len(store.get("s1").turns) == 1

    def test_upsert_rejects_oversized_history(self):
        store = InMemorySessionStore()
        session = ConversationSession(session_id="s1", history_limit=2)
        session.turns = [
            ConversationTurn(message=f"m{i}", intent="greeting", confidence=0.5, timestamp_ms=i)
            for i in range(3)
        ]

        with pytest.raises(SessionStateError):
            store.upsert(session)

    def test_evict(self):
        store = InMemorySessionStore()
        store.upsert(ConversationSession(session_id="s1"))
        assert store.evict("s1")
        assert not store.evict("s1")

    def test_evict_idle(self):
        store = InMemorySessionStore()
        now = time.time()
        stale = ConversationSession(session_id="stale", updated_at=now - 100)
        fresh = ConversationSession(session_id="fresh", updated_at=now)
        store.upsert(stale)
        store.upsert(fresh)

        evicted = store.evict_idle(50, now=now)

        assert evicted == ["stale"]
        assert store.session_ids() == ["fresh"]

    def test_invalid_history_limit(self):
        with pytest.raises(ValueError):
            InMemorySessionStore(history_limit=0)


class TestSessionLockRegistry:
    """Test per-session serialization."""

    @pytest.mark.asyncio
    async def test_same_session_serialized(self):
        locks = SessionLockRegistry()
        events = []

        async def worker(name):
            async with locks.acquire("s1"):
                events.append(f"{name}-start")
                await asyncio.sleep(0.01)
                events.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))

        assert events == ["a-start", "a-end", "b-start", "b-end"]

    @pytest.mark.asyncio
    async def test_different_sessions_do_not_contend(self):
        locks = SessionLockRegistry()

        async with locks.acquire("s1"):
            assert locks.is_locked("s1")
            assert not locks.is_locked("s2")
            async with locks.acquire("s2"):
                assert locks.is_locked("s2")

    @pytest.mark.asyncio
    async def test_discard_keeps_held_locks(self):
        locks = SessionLockRegistry()

        async with locks.acquire("s1"):
            assert not locks.discard("s1")
            assert len(locks) == 1

    @pytest.mark.asyncio
    async def test_released_locks_are_dropped(self):
        locks = SessionLockRegistry()

        for i in range(50):
            async with locks.acquire(f"s{i}"):
                pass

        assert len(locks) == 0
        assert not locks.discard("s0")

    @pytest.mark.asyncio
    async def test_lock_kept_while_waiters_remain(self):
        locks = SessionLockRegistry()
        order = []

        async def worker(name):
            async with locks.acquire("s1"):
                order.append(name)
                await asyncio.sleep(0.01)
                assert len(locks) == 1

        await asyncio.gather(*[worker(i) for i in range(3)])

        assert order == [0, 1, 2]
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_cancelled_waiter_releases_entry(self):
        locks = SessionLockRegistry()

        async def hold():
            async with locks.acquire("s1"):
                await asyncio.sleep(0.05)

        async def wait_for_lock():
            async with locks.acquire("s1"):
                pass

        holder = asyncio.ensure_future(hold())
        await asyncio.sleep(0)
        waiter = asyncio.ensure_future(wait_for_lock())
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        await holder

        assert len(locks) == 0
