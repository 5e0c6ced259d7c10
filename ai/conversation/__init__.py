"""
Conversation management module for the customer service agent.
Contains session state, response composition and the chat engine.
"""

from .state_manager import (
    ConversationSession,
    ConversationTurn,
    UserProfile,
    SessionStore,
    InMemorySessionStore,
    SessionLockRegistry,
    SessionStateError
)
from .order_catalog import Order, OrderItem, OrderCatalog, InMemoryOrderCatalog
from .response_composer import (
    ResponseComposer,
    ResponseStrategy,
    TemplateResponseStrategy,
    ReplyContext,
    ComposedReply
)
from .analytics import ConversationAnalytics
from .chat_engine import ChatEngine, ChatResult

__all__ = [
    'ConversationSession',
    'ConversationTurn',
    'UserProfile',
    'SessionStore',
    'InMemorySessionStore',
    'SessionLockRegistry',
    'SessionStateError',
    'Order',
    'OrderItem',
    'OrderCatalog',
    'InMemoryOrderCatalog',
    'ResponseComposer',
    'ResponseStrategy',
    'TemplateResponseStrategy',
    'ReplyContext',
    'ComposedReply',
    'ConversationAnalytics',
    'ChatEngine',
    'ChatResult'
]
