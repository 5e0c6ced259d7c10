"""
Conversation state management for chat sessions.
Holds per-session turn history and derived user profiles behind a store
interface, plus per-session locks that serialize updates.
"""

import asyncio
import copy
import logging
import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 10


class SessionStateError(Exception):
    """Raised when stored session state is inconsistent."""
    pass


def current_time_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class ConversationTurn:
    """Single processed message within a session."""
    message: str
    intent: str
    confidence: float
    timestamp_ms: int
    reply: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class UserProfile:
    """Profile derived from every message a session has processed."""
    message_count: int = 0
    intent_counts: Dict[str, int] = field(default_factory=dict)
    average_confidence: float = 0.0
    first_seen_ms: Optional[int] = None
    last_seen_ms: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ConversationSession:
    """Rolling conversation window and profile for one session id."""
    session_id: str
    history_limit: int = DEFAULT_HISTORY_LIMIT
    turns: List[ConversationTurn] = field(default_factory=list)
    profile: UserProfile = field(default_factory=UserProfile)
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)

    @property
    def is_returning_user(self) -> bool:
        """True once more than one earlier message has been processed."""
        return self.profile.message_count > 1

    def recent_turns(self, limit: int) -> List[ConversationTurn]:
        if limit <= 0:
            return []
        return self.turns[-limit:]

    def record_turn(
        self,
        message: str,
        intent: str,
        confidence: float,
        reply: str = "",
        timestamp_ms: Optional[int] = None
    ) -> ConversationTurn:
        """
        Append a turn and update the profile.

        The running average uses ``(old + new) / 2`` seeded at 0, which weights
        recent turns more heavily than a true mean.
        """
        if not 0.0 <= confidence <= 1.0:
            raise SessionStateError(
                f"Turn confidence {confidence} outside [0, 1] for session {self.session_id}"
            )

        now_ms = timestamp_ms if timestamp_ms is not None else current_time_ms()
        turn = ConversationTurn(
            message=message,
            intent=intent,
            confidence=confidence,
            timestamp_ms=now_ms,
            reply=reply
        )

        self.turns.append(turn)
        while len(self.turns) > self.history_limit:
            self.turns.pop(0)

        profile = self.profile
        if profile.first_seen_ms is None:
            profile.first_seen_ms = now_ms
        profile.message_count += 1
        profile.intent_counts[intent] = profile.intent_counts.get(intent, 0) + 1
        profile.average_confidence = (profile.average_confidence + confidence) / 2
        profile.last_seen_ms = now_ms

        self.updated_at = time.time()
        return turn

    def to_dict(self) -> Dict[str, Any]:
        return {
            'session_id': self.session_id,
            'history_limit': self.history_limit,
            'turns': [turn.to_dict() for turn in self.turns],
            'profile': self.profile.to_dict(),
            'created_at': self.created_at,
            'updated_at': self.updated_at
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConversationSession':
        session_data = data.copy()
        session_data['turns'] = [ConversationTurn(**turn) for turn in data.get('turns', [])]
        session_data['profile'] = UserProfile(**data.get('profile', {}))
        return cls(**session_data)


class SessionStore(ABC):
    """Storage interface for conversation sessions."""

    history_limit: int = DEFAULT_HISTORY_LIMIT

    def get_or_create(self, session_id: str) -> ConversationSession:
        """Stored snapshot, or a new unsaved session using this store's history limit."""
        session = self.get(session_id)
        if session is None:
            session = ConversationSession(session_id=session_id, history_limit=self.history_limit)
        return session

    @abstractmethod
    def get(self, session_id: str) -> Optional[ConversationSession]:
        """Return a snapshot of the session, or None if unknown."""

    @abstractmethod
    def upsert(self, session: ConversationSession) -> None:
        """Insert or replace a session."""

    @abstractmethod
    def evict(self, session_id: str) -> bool:
        """Remove a session. Returns True if it existed."""

    @abstractmethod
    def evict_idle(self, max_idle_seconds: float, now: Optional[float] = None) -> List[str]:
        """Remove sessions not updated within max_idle_seconds."""

    @abstractmethod
    def session_ids(self) -> List[str]:
        """Return all stored session ids."""

    def count(self) -> int:
        return len(self.session_ids())


class InMemorySessionStore(SessionStore):
    """Process-local session store.

    ``get`` hands out deep copies, so callers mutate a snapshot and only an
    explicit ``upsert`` changes stored state.
    """

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT):
        if history_limit <= 0:
            raise ValueError("history_limit must be positive")
        self.history_limit = history_limit
        self._sessions: Dict[str, ConversationSession] = {}

    def get(self, session_id: str) -> Optional[ConversationSession]:
        session = self._sessions.get(session_id)
        return copy.deepcopy(session) if session else None

    def upsert(self, session: ConversationSession) -> None:
        if len(session.turns) > session.history_limit:
            raise SessionStateError(
                f"Session {session.session_id} holds {len(session.turns)} turns, "
                f"limit is {session.history_limit}"
            )
        self._sessions[session.session_id] = copy.deepcopy(session)

    def evict(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def evict_idle(self, max_idle_seconds: float, now: Optional[float] = None) -> List[str]:
        now = now if now is not None else time.time()
        expired = [
            session_id for session_id, session in self._sessions.items()
            if now - session.updated_at > max_idle_seconds
        ]
        for session_id in expired:
            del self._sessions[session_id]

        if expired:
            logger.info(f"Evicted {len(expired)} idle sessions")
        return expired

    def session_ids(self) -> List[str]:
        return list(self._sessions.keys())


class SessionLockRegistry:
    """One asyncio lock per session id.

    Messages for the same session run one at a time; different sessions
    never share a lock. An entry is dropped once nobody holds or waits on it.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def acquire(self, session_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._users[session_id] = self._users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[session_id] -= 1
            if self._users[session_id] == 0:
                del self._users[session_id]
                if self._locks.get(session_id) is lock and not lock.locked():
                    del self._locks[session_id]

    def is_locked(self, session_id: str) -> bool:
        lock = self._locks.get(session_id)
        return bool(lock and lock.locked())

    def discard(self, session_id: str) -> bool:
        """Drop an idle lock. Held or awaited locks are kept."""
        lock = self._locks.get(session_id)
        if lock is None or lock.locked() or self._users.get(session_id):
            return False
        del self._locks[session_id]
        return True

    def __len__(self) -> int:
        return len(self._locks)
