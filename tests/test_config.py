import pytest
from pydantic import ValidationError

from ai.conversation import TemplateResponseStrategy
from ai.llm import LLMResponseStrategy
from app.core.config import Settings
from app.core.engine import build_chat_engine, build_response_strategy


def test_settings_with_defaults(monkeypatch):
    """Test settings with default values."""
    monkeypatch.delenv("CHAT_RESPONSE_STRATEGY", raising=False)
    settings = Settings(_env_file=None)

    assert settings.API_V1_STR == "/api/v1"
    assert settings.PROJECT_NAME == "Customer Service Chat Agent"
    assert settings.CHAT_RESPONSE_STRATEGY == "template"
    assert settings.SESSION_HISTORY_LIMIT == 10
    assert settings.CONTEXT_WINDOW_TURNS == 3
    assert settings.CONTEXT_BOOST_WEIGHT == 2.0
    assert not settings.llm_enabled


def test_strategy_is_normalized():
    settings = Settings(CHAT_RESPONSE_STRATEGY="LLM", GEMINI_API_KEY="key")
    assert settings.CHAT_RESPONSE_STRATEGY == "llm"
    assert settings.llm_enabled


def test_invalid_strategy():
    with pytest.raises(ValidationError):
        Settings(CHAT_RESPONSE_STRATEGY="magic")


@pytest.mark.parametrize("field", ["SESSION_HISTORY_LIMIT", "CONTEXT_WINDOW_TURNS", "BATCH_MAX_MESSAGES"])
def test_non_positive_limits_rejected(field):
    with pytest.raises(ValidationError):
        Settings(**{field: 0})


def test_context_boost_must_not_shrink_scores():
    with pytest.raises(ValidationError):
        Settings(CONTEXT_BOOST_WEIGHT=0.5)


def test_template_strategy_selected():
    strategy = build_response_strategy(Settings(CHAT_RESPONSE_STRATEGY="template"))
    assert isinstance(strategy, TemplateResponseStrategy)


def test_llm_strategy_selected():
    settings = Settings(CHAT_RESPONSE_STRATEGY="llm", GEMINI_API_KEY="key", GEMINI_MODEL="gemini-test")
    strategy = build_response_strategy(settings)

    assert isinstance(strategy, LLMResponseStrategy)
    assert strategy.client.model == "gemini-test"
    assert strategy.client.api_key == "key"


def test_llm_without_key_falls_back_to_templates():
    settings = Settings(CHAT_RESPONSE_STRATEGY="llm", GEMINI_API_KEY="")
    assert isinstance(build_response_strategy(settings), TemplateResponseStrategy)


def test_build_chat_engine_from_settings(tmp_path):
    orders_file = tmp_path / "orders.json"
    orders_file.write_text(
        '[{"id": "ord2001", "status": "Returned", "deliveryDate": "2025-11-01", '
        '"items": [{"name": "Cable", "price": 9.99}], "total": 9.99}]'
    )
    settings = Settings(
        CHAT_RESPONSE_STRATEGY="template",
        SESSION_HISTORY_LIMIT=4,
        CONTEXT_WINDOW_TURNS=2,
        ORDERS_FILE=str(orders_file)
    )

    engine = build_chat_engine(settings)

    assert engine.store.history_limit == 4
    assert engine.classifier.context_window == 2
    assert engine.composer.order_catalog.lookup("ORD2001").status == "Returned"
    assert engine.composer.order_catalog.lookup("ORD1001") is None
