"""
Context-aware intent classification for the customer service agent.
Combines keyword hits, utterance overlap, character-level similarity and
regex patterns into one ranked decision.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .intent_catalog import FALLBACK_INTENT, IntentCatalog, IntentDefinition
from .text_processing import normalize, semantic_similarity, token_overlap

if TYPE_CHECKING:
    from ..conversation.state_manager import ConversationSession

logger = logging.getLogger(__name__)

KEYWORD_WEIGHT = 0.4
UTTERANCE_WEIGHT = 0.4
SEMANTIC_WEIGHT = 0.2
REGEX_WEIGHT = 0.3

CONFIDENCE_SCALE = 3.0
CONFIDENCE_OFFSET = 0.2
FALLBACK_MAX_CONFIDENCE = 0.4

DEFAULT_CONTEXT_WINDOW = 3
DEFAULT_CONTEXT_BOOST = 2.0
DEFAULT_CONTEXT_REINFORCEMENT: Mapping[str, Sequence[str]] = {
    'order_status': ('order', 'status', 'track'),
    'refund': ('refund', 'return', 'money'),
}


@dataclass
class IntentScore:
    """Partial and combined scores for one intent."""
    name: str
    keyword_score: float
    utterance_score: float
    semantic_score: float
    regex_score: float
    score: float

    @property
    def has_evidence(self) -> bool:
        return self.keyword_score > 0 or self.utterance_score > 0 or self.regex_score > 0


@dataclass
class ResolutionResult:
    """Outcome of resolving one message to an intent."""
    intent: str
    raw_score: float
    confidence: float
    scores: Dict[str, float] = field(default_factory=dict)
    ranked: List[str] = field(default_factory=list)
    used_fallback_pass: bool = False
    context_weights: Dict[str, float] = field(default_factory=dict)

    @property
    def is_fallback(self) -> bool:
        return self.intent == FALLBACK_INTENT

    def to_dict(self) -> Dict[str, Any]:
        return {
            'intent': self.intent,
            'raw_score': self.raw_score,
            'confidence': self.confidence,
            'ranked': list(self.ranked),
            'used_fallback_pass': self.used_fallback_pass,
            'context_weights': dict(self.context_weights)
        }


def clamp(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    return max(lower, min(upper, value))


class IntentClassifier:
    """Resolves normalized text and session history to a catalog intent."""

    def __init__(
        self,
        catalog: Optional[IntentCatalog] = None,
        context_window: int = DEFAULT_CONTEXT_WINDOW,
        context_boost: float = DEFAULT_CONTEXT_BOOST,
        context_reinforcement: Optional[Mapping[str, Sequence[str]]] = None
    ):
        self.catalog = catalog or IntentCatalog()
        self.context_window = context_window
        self.context_boost = context_boost
        self.context_reinforcement = dict(
            context_reinforcement if context_reinforcement is not None
            else DEFAULT_CONTEXT_REINFORCEMENT
        )

    def context_weights(self, session: Optional["ConversationSession"]) -> Dict[str, float]:
        """Token weights boosted by intents seen in the recent turns."""
        weights: Dict[str, float] = {}
        if session is None:
            return weights

        for turn in session.recent_turns(self.context_window):
            for token in self.context_reinforcement.get(turn.intent, ()):
                weights[token] = self.context_boost
        return weights

    def score_intent(
        self,
        intent: IntentDefinition,
        text: str,
        raw_message: str,
        weights: Dict[str, float]
    ) -> IntentScore:
        """Compute keyword, utterance, semantic and regex scores for one intent."""
        keyword_score = sum(
            weights.get(keyword, 1.0)
            for keyword in intent.keywords
            if keyword and keyword in text
        )

        utterance_score = max(
            (token_overlap(text, utterance, weights) for utterance in intent.utterances),
            default=0.0
        )

        text_tokens = text.split(' ') if text else []
        utterance_tokens = normalize(' '.join(intent.utterances)).split(' ')
        semantic_score = semantic_similarity(text_tokens, utterance_tokens)

        regex_score = 1.0 if raw_message and intent.matches_pattern(raw_message) else 0.0

        score = (
            keyword_score * KEYWORD_WEIGHT
            + utterance_score * UTTERANCE_WEIGHT
            + semantic_score * SEMANTIC_WEIGHT
            + regex_score * REGEX_WEIGHT
        ) * intent.weight

        return IntentScore(
            name=intent.name,
            keyword_score=keyword_score,
            utterance_score=utterance_score,
            semantic_score=semantic_score,
            regex_score=regex_score,
            score=score
        )

    def resolve(
        self,
        text: str,
        session: Optional["ConversationSession"] = None,
        raw_message: Optional[str] = None
    ) -> ResolutionResult:
        """
        Resolve normalized text to an intent.

        Args:
            text: Normalized user text
            session: Session snapshot used for context weights (not modified)
            raw_message: Original message used for regex patterns

        Returns:
            ResolutionResult: Best intent, its raw score and clamped confidence
        """
        text = normalize(text)
        raw_message = raw_message if raw_message is not None else text
        weights = self.context_weights(session)

        # Semantic similarity alone never makes an intent a candidate.
        candidates: List[Tuple[float, int, str]] = []
        scores: Dict[str, float] = {}
        for index, intent in enumerate(self.catalog):
            intent_score = self.score_intent(intent, text, raw_message, weights)
            score = intent_score.score if intent_score.has_evidence else 0.0
            scores[intent.name] = score
            candidates.append((-score, index, intent.name))

        candidates.sort()
        best_score = -candidates[0][0] if candidates else 0.0
        best_intent = candidates[0][2] if candidates else FALLBACK_INTENT

        used_fallback_pass = False
        if best_score == 0:
            used_fallback_pass = True
            best_intent, best_score = self._fallback_pass(text)

        ranked = [name for neg_score, _, name in candidates if neg_score < 0][:3]

        if best_score <= 0:
            best_intent = FALLBACK_INTENT
            best_score = 0.0

        confidence = clamp(best_score / CONFIDENCE_SCALE + CONFIDENCE_OFFSET)
        if best_intent == FALLBACK_INTENT:
            confidence = min(confidence, FALLBACK_MAX_CONFIDENCE)

        logger.debug(
            f"Resolved '{text}' -> {best_intent} "
            f"(score={best_score:.3f}, confidence={confidence:.2f}, weights={weights})"
        )

        return ResolutionResult(
            intent=best_intent,
            raw_score=best_score,
            confidence=confidence,
            scores=scores,
            ranked=ranked,
            used_fallback_pass=used_fallback_pass,
            context_weights=weights
        )

    def _fallback_pass(self, text: str) -> Tuple[str, float]:
        """Raw overlap against each intent's concatenated utterances.

        Any token shared with the concatenation is shared with a single
        utterance, so with positive weights a match here already scored in the
        main pass. This only selects intents whose weight zeroed their score.
        """
        best_intent, best_score = FALLBACK_INTENT, 0.0
        for intent in self.catalog:
            overlap = token_overlap(text, ' '.join(intent.utterances))
            if overlap > best_score:
                best_intent, best_score = intent.name, overlap
        return best_intent, best_score

    def get_available_intents(self) -> List[str]:
        return self.catalog.names() + [FALLBACK_INTENT]
