"""
Chat engine construction and lifecycle for the API layer.
"""

import asyncio
from typing import Optional

from ai.conversation import (
    ChatEngine,
    InMemoryOrderCatalog,
    InMemorySessionStore,
    ResponseComposer,
    ResponseStrategy,
    TemplateResponseStrategy,
)
from ai.decision_engine import IntentClassifier

from .config import Settings, settings
from .logging import get_logger

logger = get_logger(__name__)

_engine: Optional[ChatEngine] = None
_cleanup_task: Optional[asyncio.Task] = None


def build_response_strategy(config: Settings) -> ResponseStrategy:
    """Select the reply strategy. LLM without an API key falls back to templates."""
    if config.CHAT_RESPONSE_STRATEGY == "llm":
        if config.GEMINI_API_KEY:
            from ai.llm import GeminiClient, LLMResponseStrategy

            client = GeminiClient(
                api_key=config.GEMINI_API_KEY,
                model=config.GEMINI_MODEL,
                base_url=config.GEMINI_BASE_URL,
                timeout=config.GEMINI_TIMEOUT
            )
            return LLMResponseStrategy(
                client=client,
                timeout=config.GEMINI_TIMEOUT,
                temperature=config.GEMINI_TEMPERATURE,
                max_tokens=config.GEMINI_MAX_TOKENS
            )
        logger.warning("CHAT_RESPONSE_STRATEGY=llm but GEMINI_API_KEY is not set; using templates")

    return TemplateResponseStrategy()


def build_chat_engine(config: Settings = settings) -> ChatEngine:
    """Build a chat engine from settings."""
    if config.ORDERS_FILE:
        order_catalog = InMemoryOrderCatalog.from_json_file(config.ORDERS_FILE)
    else:
        order_catalog = InMemoryOrderCatalog()

    engine = ChatEngine(
        classifier=IntentClassifier(
            context_window=config.CONTEXT_WINDOW_TURNS,
            context_boost=config.CONTEXT_BOOST_WEIGHT
        ),
        composer=ResponseComposer(
            strategy=build_response_strategy(config),
            order_catalog=order_catalog
        ),
        store=InMemorySessionStore(history_limit=config.SESSION_HISTORY_LIMIT)
    )
    logger.info(f"Chat engine ready (strategy={engine.strategy_name})")
    return engine


def get_chat_engine() -> ChatEngine:
    """FastAPI dependency returning the process-wide engine."""
    global _engine
    if _engine is None:
        _engine = build_chat_engine()
    return _engine


def set_chat_engine(engine: Optional[ChatEngine]):
    global _engine
    _engine = engine


async def _cleanup_loop(engine: ChatEngine, interval: float, max_idle: float):
    while True:
        await asyncio.sleep(interval)
        try:
            evicted = engine.cleanup_idle_sessions(max_idle)
            if evicted:
                logger.info(f"Session cleanup evicted {evicted} sessions")
        except Exception as e:
            logger.error(f"Session cleanup failed: {e}", exc_info=True)


def start_session_cleanup(engine: ChatEngine, config: Settings = settings) -> asyncio.Task:
    """Run idle-session eviction in the background."""
    global _cleanup_task
    if _cleanup_task is None or _cleanup_task.done():
        _cleanup_task = asyncio.create_task(
            _cleanup_loop(engine, config.SESSION_CLEANUP_INTERVAL, config.SESSION_IDLE_TIMEOUT)
        )
    return _cleanup_task


async def shutdown_chat_engine():
    global _engine, _cleanup_task
    if _cleanup_task is not None:
        _cleanup_task.cancel()
        try:
            await _cleanup_task
        except asyncio.CancelledError:
            pass
        _cleanup_task = None

    if _engine is not None:
        await _engine.close()
        _engine = None
