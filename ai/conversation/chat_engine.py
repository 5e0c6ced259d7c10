"""
Chat engine for the customer service agent.
Runs the per-message pipeline (normalize, extract, resolve, compose, record)
under a per-session lock and converts internal failures into an apologetic reply.
"""

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..decision_engine.entity_extractor import EntityExtractor
from ..decision_engine.intent_classifier import IntentClassifier
from ..decision_engine.sentiment import SentimentAnalyzer
from ..decision_engine.text_processing import normalize
from ..utils.performance import PerformanceMonitor, async_timer, performance_monitor
from .analytics import ConversationAnalytics
from .order_catalog import InMemoryOrderCatalog
from .response_composer import ResponseComposer, TemplateResponseStrategy
from .state_manager import InMemorySessionStore, SessionLockRegistry, SessionStore

logger = logging.getLogger(__name__)

ERROR_INTENT = "error"
PROCESSING_ERROR = "PROCESSING_ERROR"
ERROR_REPLY = (
    "I apologize, but I'm experiencing technical difficulties. "
    "Please try again in a moment."
)


@dataclass
class ChatResult:
    """Reply and metadata for one processed message."""
    reply: str
    intent: str
    confidence: float
    metadata: Dict[str, Any] = field(default_factory=dict)
    suggestions: List[str] = field(default_factory=list)
    success: bool = True
    error_code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ChatEngine:
    """Processes chat messages against per-session context."""

    def __init__(
        self,
        classifier: Optional[IntentClassifier] = None,
        composer: Optional[ResponseComposer] = None,
        store: Optional[SessionStore] = None,
        entity_extractor: Optional[EntityExtractor] = None,
        sentiment_analyzer: Optional[SentimentAnalyzer] = None,
        analytics: Optional[ConversationAnalytics] = None,
        locks: Optional[SessionLockRegistry] = None,
        monitor: Optional[PerformanceMonitor] = None
    ):
        self.classifier = classifier or IntentClassifier()
        self.composer = composer or ResponseComposer(
            strategy=TemplateResponseStrategy(),
            order_catalog=InMemoryOrderCatalog()
        )
        self.store = store or InMemorySessionStore()
        self.entity_extractor = entity_extractor or EntityExtractor()
        self.sentiment_analyzer = sentiment_analyzer or SentimentAnalyzer()
        self.analytics = analytics or ConversationAnalytics()
        self.locks = locks if locks is not None else SessionLockRegistry()
        self.monitor = monitor or performance_monitor

    @property
    def strategy_name(self) -> str:
        return self.composer.strategy.name

    async def process_message(self, session_id: str, message: str) -> ChatResult:
        """
        Process a single message for a session.

        Messages for the same session are serialized. The session is only
        written back after the reply is composed, so a failed or cancelled
        request leaves stored state untouched.

        Args:
            session_id: Caller-supplied session identifier
            message: Raw user message

        Returns:
            ChatResult: Reply, intent, confidence and metadata
        """
        start_time = time.perf_counter()

        try:
            async with self.locks.acquire(session_id):
                async with async_timer("chat.process_message", self.monitor):
                    result = await self._process(session_id, message, start_time)
        except Exception as e:
            logger.error(f"Error processing message for session {session_id}: {e}", exc_info=True)
            self.analytics.record_error()
            return self._error_result(session_id, start_time)

        logger.info(
            f"Processed message session={session_id} intent={result.intent} "
            f"confidence={result.confidence:.2f} sentiment={result.metadata.get('sentiment')}"
        )
        return result

    async def _process(self, session_id: str, message: str, start_time: float) -> ChatResult:
        session = self.store.get_or_create(session_id)

        text = normalize(message)
        entities = self.entity_extractor.extract_entities(message)
        sentiment = self.sentiment_analyzer.analyze_sentiment(message)
        emotion = self.sentiment_analyzer.analyze_emotion(message)

        resolution = self.classifier.resolve(text, session=session, raw_message=message)

        composed = await self.composer.compose(
            session_id=session_id,
            message=message,
            resolution=resolution,
            entities=entities,
            sentiment=sentiment,
            emotion=emotion,
            session=session
        )

        session.record_turn(
            message=message,
            intent=resolution.intent,
            confidence=composed.confidence,
            reply=composed.reply
        )
        self.store.upsert(session)
        self.analytics.record(resolution.intent, composed.confidence)

        metadata = dict(composed.metadata)
        metadata['message_count'] = session.profile.message_count
        metadata['processing_time_ms'] = round((time.perf_counter() - start_time) * 1000, 2)

        return ChatResult(
            reply=composed.reply,
            intent=resolution.intent,
            confidence=composed.confidence,
            metadata=metadata,
            suggestions=composed.suggestions,
            success=True,
            error_code=metadata.get('error_code')
        )

    def _error_result(self, session_id: str, start_time: float) -> ChatResult:
        return ChatResult(
            reply=ERROR_REPLY,
            intent=ERROR_INTENT,
            confidence=0.0,
            metadata={
                'session_id': session_id,
                'processing_time_ms': round((time.perf_counter() - start_time) * 1000, 2)
            },
            success=False,
            error_code=PROCESSING_ERROR
        )

    async def process_batch(self, session_id: str, messages: Sequence[str]) -> List[ChatResult]:
        """Process messages for one session in order, one at a time."""
        results = []
        for message in messages:
            results.append(await self.process_message(session_id, message))
        return results

    def get_analytics(self) -> Dict[str, Any]:
        return self.analytics.snapshot(active_sessions=self.store.count())

    def get_user_profile(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Profile view for a session, or None if the session is unknown."""
        session = self.store.get(session_id)
        if session is None:
            return None

        profile = session.profile.to_dict()
        profile['session_id'] = session_id
        profile['is_returning_user'] = session.is_returning_user
        profile['recent_intents'] = [turn.intent for turn in session.turns]
        return profile

    def get_history(self, session_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        session = self.store.get(session_id)
        if session is None:
            return []
        turns = session.turns if limit is None else session.recent_turns(limit)
        return [turn.to_dict() for turn in turns]

    def cleanup_idle_sessions(self, max_idle_seconds: float) -> int:
        """Evict sessions idle longer than max_idle_seconds and drop their locks."""
        evicted = self.store.evict_idle(max_idle_seconds)
        for session_id in evicted:
            self.locks.discard(session_id)
        return len(evicted)

    def get_stats(self) -> Dict[str, Any]:
        return {
            'response_strategy': self.strategy_name,
            'active_sessions': self.store.count(),
            'total_messages': self.analytics.total_messages,
            'error_count': self.analytics.error_count,
            'intents': self.classifier.get_available_intents()
        }

    async def close(self):
        await self.composer.strategy.close()
