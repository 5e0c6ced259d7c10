import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from app.main import app
from app.core.engine import get_chat_engine
from ai.conversation import (
    ChatEngine,
    ConversationSession,
    InMemoryOrderCatalog,
    InMemorySessionStore,
    ResponseComposer,
    TemplateResponseStrategy,
)
from ai.decision_engine import EntityExtractor, IntentClassifier, SentimentAnalyzer
from ai.utils.performance import PerformanceMonitor


@pytest.fixture
def classifier():
    return IntentClassifier()


@pytest.fixture
def sentiment_analyzer():
    return SentimentAnalyzer()


@pytest.fixture
def entity_extractor():
    return EntityExtractor()


@pytest.fixture
def order_catalog():
    return InMemoryOrderCatalog()


@pytest.fixture
def session():
    """Empty conversation session."""
    return ConversationSession(session_id="test_session")


@pytest.fixture
def composer(order_catalog):
    """Template composer with a fixed ticket id."""
    return ResponseComposer(
        strategy=TemplateResponseStrategy(),
        order_catalog=order_catalog,
        ticket_factory=lambda: "TCK-TEST01"
    )


@pytest.fixture
def chat_engine(classifier, composer):
    """Chat engine with isolated store and monitor."""
    return ChatEngine(
        classifier=classifier,
        composer=composer,
        store=InMemorySessionStore(history_limit=10),
        monitor=PerformanceMonitor()
    )


@pytest.fixture
def client(chat_engine):
    """Create test client backed by an isolated chat engine."""
    app.dependency_overrides[get_chat_engine] = lambda: chat_engine

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def mock_gemini_client():
    """Mock Gemini client for testing."""
    gemini_client = MagicMock()
    gemini_client.model = "gemini-test"
    gemini_client.generate_content = AsyncMock(
        return_value=(
            "Your refund will be processed within 5-7 business days according to our "
            "refund policy. Is there anything else I can help with?"
        )
    )
    gemini_client.health_check = AsyncMock(return_value=True)
    gemini_client.close = AsyncMock()
    return gemini_client
