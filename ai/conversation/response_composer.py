"""
Response composition for the customer service agent.
Builds the reply context (order lookup, escalation ticket) and delegates the
reply text to a pluggable response strategy.
"""

import logging
import random
import string
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..decision_engine.intent_catalog import FALLBACK_INTENT
from ..decision_engine.intent_classifier import FALLBACK_MAX_CONFIDENCE, ResolutionResult
from ..decision_engine.sentiment import EmotionResult, SentimentResult
from .order_catalog import Order, OrderCatalog
from .state_manager import ConversationSession

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES: Mapping[str, str] = {
    'greeting': "Hello! I'm your customer service assistant. How can I help you today?",
    'greeting_returning': "Welcome back! How can I help you today?",
    'order_status': "Your order {orderId} is currently {status}. Expected delivery: {deliveryDate}.",
    'order_not_found': "I couldn't find order {orderId}. Please verify the order ID or try asking without it.",
    'order_prompt': "I'd be happy to check your order status! Please provide your order ID (e.g., ORD1001).",
    'refund': (
        "I can help you with a refund for {orderId}. Refunds are processed within "
        "5-7 business days to your original payment method."
    ),
    'complaint': (
        "I'm sorry to hear that. Could you tell me more about the problem so I can make it right?"
    ),
    'complaint_apology': "I sincerely apologize for the trouble you're experiencing. ",
    'human_escalation': (
        "I've created support ticket {ticketId}. A human agent will contact you shortly."
    ),
    'technical_support': (
        "I'm here to provide technical assistance! What specific issue are you experiencing?"
    ),
    'thanks': "You're welcome! Anything else I can help with?",
    'fallback': (
        "Sorry, I didn't quite get that. You can ask me about an order, a refund, "
        "or ask to speak with a human agent."
    ),
    'fallback_negative': (
        "I understand you're having an issue. Let me connect you with a human agent "
        "who can better assist you."
    ),
    'empathy_prefix': "I understand you're frustrated. ",
    'welcome_back_prefix': "Welcome back! ",
}

DEFAULT_SUGGESTIONS: Mapping[str, List[str]] = {
    'greeting': ['Check order status', 'Request a refund', 'Contact support'],
    'order_status': ['Track my package', 'Change delivery address', 'Cancel order'],
    'refund': ['Start refund process', 'Check refund status', 'Return policy'],
    'complaint': ['Describe the problem', 'Request replacement', 'Speak to a human'],
    'human_escalation': ['Wait for agent', 'Leave callback number', 'Send email instead'],
    'technical_support': ['Setup assistance', 'Troubleshooting guide', 'Speak to a human'],
    'thanks': ['Check order status', 'Contact support'],
    FALLBACK_INTENT: ['Order status', 'Return item', 'Speak to a human'],
}

ORDER_FOUND_MIN_CONFIDENCE = 0.9
ORDER_NOT_FOUND_CONFIDENCE = 0.6
ORDER_PROMPT_CONFIDENCE = 0.7
ESCALATION_MIN_CONFIDENCE = 0.95


def fill_template(template: str, slots: Optional[Mapping[str, Any]] = None) -> str:
    """Replace ``{name}`` placeholders. Unknown placeholders are left as is."""
    result = template
    for key, value in (slots or {}).items():
        result = result.replace('{' + key + '}', str(value))
    return result


def generate_ticket_id() -> str:
    """Cosmetic ticket id: TCK- plus six random base-36 characters."""
    alphabet = string.digits + string.ascii_uppercase
    return 'TCK-' + ''.join(random.choice(alphabet) for _ in range(6))


@dataclass
class ReplyContext:
    """Everything a response strategy needs to produce a reply."""
    session_id: str
    message: str
    resolution: ResolutionResult
    sentiment: SentimentResult
    emotion: EmotionResult
    session: ConversationSession
    is_returning_user: bool
    order_id: Optional[str] = None
    order: Optional[Order] = None
    ticket_id: Optional[str] = None

    @property
    def intent(self) -> str:
        return self.resolution.intent

    @property
    def confidence(self) -> float:
        return self.resolution.confidence


@dataclass
class ComposedReply:
    """Reply text plus confidence and metadata produced by a strategy."""
    reply: str
    confidence: float
    metadata: Dict[str, Any] = field(default_factory=dict)
    suggestions: List[str] = field(default_factory=list)


class ResponseStrategy(ABC):
    """Produces reply text for a resolved message."""

    name = "base"

    @abstractmethod
    async def generate_reply(self, context: ReplyContext) -> ComposedReply:
        """Generate the reply for a single message."""

    async def close(self):
        """Release strategy resources."""
        pass


class TemplateResponseStrategy(ResponseStrategy):
    """Deterministic template filling with intent-specific rules."""

    name = "template"

    def __init__(
        self,
        templates: Optional[Mapping[str, str]] = None,
        suggestions: Optional[Mapping[str, List[str]]] = None
    ):
        self.templates = dict(DEFAULT_TEMPLATES)
        if templates:
            self.templates.update(templates)
        self.suggestions = dict(suggestions if suggestions is not None else DEFAULT_SUGGESTIONS)

    def decorate(self, text: str, context: ReplyContext) -> str:
        """Prefix empathy and welcome-back phrases."""
        if context.sentiment.is_negative:
            text = self.templates['empathy_prefix'] + text
        if context.is_returning_user:
            text = self.templates['welcome_back_prefix'] + text
        return text

    async def generate_reply(self, context: ReplyContext) -> ComposedReply:
        intent = context.intent
        confidence = context.confidence
        metadata: Dict[str, Any] = {}

        if intent == 'greeting':
            key = 'greeting_returning' if context.is_returning_user else 'greeting'
            reply = self.templates[key]

        elif intent == 'order_status':
            if context.order is not None:
                reply = self.decorate(fill_template(self.templates['order_status'], {
                    'orderId': context.order.id,
                    'status': context.order.status,
                    'deliveryDate': context.order.delivery_date
                }), context)
                confidence = max(confidence, ORDER_FOUND_MIN_CONFIDENCE)
            elif context.order_id:
                reply = fill_template(self.templates['order_not_found'], {'orderId': context.order_id})
                confidence = ORDER_NOT_FOUND_CONFIDENCE
            else:
                reply = self.templates['order_prompt']
                confidence = ORDER_PROMPT_CONFIDENCE

        elif intent == 'refund':
            reply = self.decorate(fill_template(self.templates['refund'], {
                'orderId': context.order_id or 'your order'
            }), context)

        elif intent == 'complaint':
            reply = self.templates['complaint']
            if context.sentiment.is_negative:
                reply = self.templates['complaint_apology'] + reply
            metadata['escalation_recommended'] = context.emotion.intensity > 0.7

        elif intent == 'human_escalation':
            reply = self.decorate(fill_template(self.templates['human_escalation'], {
                'ticketId': context.ticket_id
            }), context)
            confidence = max(confidence, ESCALATION_MIN_CONFIDENCE)

        elif intent == 'technical_support':
            reply = self.decorate(self.templates['technical_support'], context)

        elif intent in self.templates and intent != FALLBACK_INTENT:
            reply = self.templates[intent]

        else:
            if context.sentiment.is_negative:
                reply = self.templates['fallback_negative']
            else:
                reply = self.templates['fallback']
            confidence = min(confidence, FALLBACK_MAX_CONFIDENCE)

        return ComposedReply(
            reply=reply,
            confidence=confidence,
            metadata=metadata,
            suggestions=list(self.suggestions.get(intent, self.suggestions.get(FALLBACK_INTENT, [])))
        )


class ResponseComposer:
    """Prepares reply context and runs the configured response strategy."""

    def __init__(
        self,
        strategy: ResponseStrategy,
        order_catalog: OrderCatalog,
        ticket_factory: Callable[[], str] = generate_ticket_id
    ):
        self.strategy = strategy
        self.order_catalog = order_catalog
        self.ticket_factory = ticket_factory

    def build_context(
        self,
        session_id: str,
        message: str,
        resolution: ResolutionResult,
        entities: Dict[str, Any],
        sentiment: SentimentResult,
        emotion: EmotionResult,
        session: ConversationSession
    ) -> ReplyContext:
        order_id = entities.get('order_id')
        order = self.order_catalog.lookup(order_id) if order_id else None

        ticket_id = None
        if resolution.intent == 'human_escalation':
            ticket_id = self.ticket_factory()

        return ReplyContext(
            session_id=session_id,
            message=message,
            resolution=resolution,
            sentiment=sentiment,
            emotion=emotion,
            session=session,
            is_returning_user=session.is_returning_user,
            order_id=order_id,
            order=order,
            ticket_id=ticket_id
        )

    async def compose(
        self,
        session_id: str,
        message: str,
        resolution: ResolutionResult,
        entities: Dict[str, Any],
        sentiment: SentimentResult,
        emotion: EmotionResult,
        session: ConversationSession
    ) -> ComposedReply:
        """
        Compose the reply for a resolved message.

        Returns:
            ComposedReply: Reply text, final confidence in [0, 1] and metadata
        """
        context = self.build_context(
            session_id, message, resolution, entities, sentiment, emotion, session
        )
        composed = await self.strategy.generate_reply(context)
        composed.confidence = max(0.0, min(1.0, composed.confidence))

        metadata = {
            'session_id': session_id,
            'sentiment': sentiment.label.value,
            'sentiment_score': sentiment.score,
            'sentiment_confidence': sentiment.confidence,
            'emotion': emotion.primary,
            'emotion_intensity': emotion.intensity,
            'is_returning_user': context.is_returning_user,
            'context_used': bool(resolution.context_weights),
            'response_strategy': self.strategy.name,
        }
        if context.order_id:
            metadata['order_id'] = context.order_id
        if context.order is not None:
            metadata['order'] = context.order.to_dict()
        if context.ticket_id:
            metadata['ticket_id'] = context.ticket_id
            metadata['escalation_reason'] = (
                'customer_frustration' if sentiment.is_negative else 'general_request'
            )
        metadata.update(composed.metadata)
        composed.metadata = metadata

        return composed
