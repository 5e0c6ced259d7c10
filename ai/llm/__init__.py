"""
LLM integration for the customer service agent.
"""

from .gemini_client import GeminiClient, GeminiConnectionError, GeminiResponseError
from .llm_service import LLMResponseStrategy, estimate_confidence

__all__ = [
    'GeminiClient',
    'GeminiConnectionError',
    'GeminiResponseError',
    'LLMResponseStrategy',
    'estimate_confidence'
]
