"""
LLM-backed response strategy.
Delegates reply text to Gemini while intent, entities and sentiment stay local.
"""

import asyncio
import logging
import random
from typing import Any, Dict, List, Optional, Sequence

from app.core.config import settings

from ..conversation.response_composer import (
    DEFAULT_SUGGESTIONS,
    ESCALATION_MIN_CONFIDENCE,
    ORDER_FOUND_MIN_CONFIDENCE,
    ComposedReply,
    ReplyContext,
    ResponseStrategy,
)
from ..decision_engine.intent_catalog import FALLBACK_INTENT
from .gemini_client import GeminiClient
from .prompt_templates import (
    FALLBACK_REPLIES,
    FALLBACK_SUGGESTIONS,
    CustomerServicePromptTemplates,
)

logger = logging.getLogger(__name__)

HISTORY_TURNS = 5
BASE_CONFIDENCE = 0.7
FALLBACK_CONFIDENCE = 0.3
GENERATION_FAILED = "GENERATION_FAILED"
POLICY_VOCABULARY = ('policy', 'day', 'refund', 'warranty')


def estimate_confidence(text: str, intent: str) -> float:
    """Heuristic confidence from the shape of a generated reply."""
    confidence = BASE_CONFIDENCE

    if intent != FALLBACK_INTENT and len(text) > 50:
        confidence += 0.2

    if len(text) < 20:
        confidence -= 0.3

    lowered = text.lower()
    if any(word in lowered for word in POLICY_VOCABULARY):
        confidence += 0.1

    return min(max(confidence, 0.1), 1.0)


class LLMResponseStrategy(ResponseStrategy):
    """Generates replies with Gemini and falls back to canned replies on failure."""

    name = "llm"

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        timeout: Optional[float] = None,
        history_turns: int = HISTORY_TURNS,
        fallback_replies: Sequence[str] = FALLBACK_REPLIES,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ):
        self.client = client or GeminiClient()
        self.timeout = timeout or settings.GEMINI_TIMEOUT
        self.history_turns = history_turns
        self.fallback_replies = list(fallback_replies)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.system_prompt = CustomerServicePromptTemplates.get_system_prompt()

    def build_prompt(self, context: ReplyContext) -> str:
        exchanges = [
            {'user': turn.message, 'assistant': turn.reply}
            for turn in context.session.recent_turns(self.history_turns)
        ]

        sections = [self.system_prompt]
        history = CustomerServicePromptTemplates.format_history(exchanges)
        if history:
            sections.append(history)

        sections.append(CustomerServicePromptTemplates.format_context(
            intent=context.intent,
            order_id=context.order_id,
            order_status=context.order.status if context.order else None,
            emotion=context.emotion.primary,
            emotion_intensity=context.emotion.intensity,
            ticket_id=context.ticket_id
        ))
        sections.append(CustomerServicePromptTemplates.format_message(context.message))
        return "\n\n".join(section for section in sections if section)

    async def generate_reply(self, context: ReplyContext) -> ComposedReply:
        prompt = self.build_prompt(context)

        try:
            text = await asyncio.wait_for(
                self.client.generate_content(
                    prompt,
                    temperature=self.temperature,
                    max_tokens=self.max_tokens
                ),
                timeout=self.timeout
            )
            text = (text or "").strip()
            if not text:
                raise ValueError("Empty reply from language model")
        except asyncio.TimeoutError:
            logger.warning(f"LLM generation timed out after {self.timeout}s for session {context.session_id}")
            return self.fallback_reply(context, "timeout")
        except Exception as e:
            logger.error(f"LLM generation failed for session {context.session_id}: {e}")
            return self.fallback_reply(context, str(e))

        confidence = estimate_confidence(text, context.intent)
        if context.order is not None:
            confidence = max(confidence, ORDER_FOUND_MIN_CONFIDENCE)
        if context.ticket_id:
            confidence = max(confidence, ESCALATION_MIN_CONFIDENCE)

        return ComposedReply(
            reply=text,
            confidence=confidence,
            metadata={'source': 'gemini-ai', 'model': self.client.model},
            suggestions=self.suggestions_for(context.intent)
        )

    def fallback_reply(self, context: ReplyContext, reason: str) -> ComposedReply:
        metadata: Dict[str, Any] = {
            'source': 'fallback',
            'error_code': GENERATION_FAILED,
            'generation_error': reason
        }
        return ComposedReply(
            reply=random.choice(self.fallback_replies),
            confidence=FALLBACK_CONFIDENCE,
            metadata=metadata,
            suggestions=list(FALLBACK_SUGGESTIONS)
        )

    @staticmethod
    def suggestions_for(intent: str) -> List[str]:
        return list(DEFAULT_SUGGESTIONS.get(intent, DEFAULT_SUGGESTIONS[FALLBACK_INTENT]))

    async def close(self):
        await self.client.close()
