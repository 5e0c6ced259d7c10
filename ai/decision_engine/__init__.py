"""
Decision engine module for the customer service agent.
Contains text normalization, entity extraction, sentiment and intent resolution.
"""

from .text_processing import normalize, tokenize, token_overlap, character_similarity
from .intent_catalog import FALLBACK_INTENT, DEFAULT_INTENTS, IntentCatalog, IntentDefinition
from .entity_extractor import EntityExtractor
from .sentiment import (
    SentimentAnalyzer,
    SentimentLabel,
    SentimentResult,
    EmotionResult
)
from .intent_classifier import IntentClassifier, IntentScore, ResolutionResult

__all__ = [
    'normalize',
    'tokenize',
    'token_overlap',
    'character_similarity',
    'FALLBACK_INTENT',
    'DEFAULT_INTENTS',
    'IntentCatalog',
    'IntentDefinition',
    'EntityExtractor',
    'SentimentAnalyzer',
    'SentimentLabel',
    'SentimentResult',
    'EmotionResult',
    'IntentClassifier',
    'IntentScore',
    'ResolutionResult'
]
