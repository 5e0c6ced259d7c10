"""
Lexicon-based sentiment and emotion estimation.
Scores are explainable heuristics, not calibrated probabilities.
"""

from collections import OrderedDict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Sequence

from .text_processing import normalize, tokenize


class SentimentLabel(Enum):
    """Sentiment polarity labels."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


POSITIVE_WORDS: FrozenSet[str] = frozenset([
    'good', 'great', 'excellent', 'happy', 'satisfied', 'love',
    'amazing', 'perfect', 'thank', 'thanks', 'wonderful'
])

NEGATIVE_WORDS: FrozenSet[str] = frozenset([
    'bad', 'terrible', 'awful', 'hate', 'angry', 'frustrated',
    'disappointed', 'broken', 'damaged', 'problem', 'horrible', 'worst'
])

DEFAULT_EMOTION_TAXONOMY: Mapping[str, Sequence[str]] = OrderedDict([
    ('angry', ('angry', 'furious', 'mad', 'frustrated', 'annoyed', 'upset')),
    ('sad', ('sad', 'disappointed', 'unhappy', 'depressed')),
    ('happy', ('happy', 'great', 'awesome', 'excellent', 'wonderful', 'amazing')),
    ('confused', ('confused', 'lost', 'unclear', "don't understand", 'help')),
    ('urgent', ('urgent', 'asap', 'immediately', 'emergency', 'critical')),
])

SENTIMENT_SCALE_FACTOR = 5.0


@dataclass
class SentimentResult:
    """Polarity estimate for a single message."""
    score: int
    label: SentimentLabel
    confidence: float

    @property
    def is_negative(self) -> bool:
        return self.label == SentimentLabel.NEGATIVE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'score': self.score,
            'label': self.label.value,
            'confidence': self.confidence
        }


@dataclass
class EmotionResult:
    """Emotion estimate for a single message."""
    primary: str
    intensities: Dict[str, float]
    intensity: float
    sentiment: SentimentResult

    def to_dict(self) -> Dict[str, Any]:
        return {
            'primary': self.primary,
            'intensities': dict(self.intensities),
            'intensity': self.intensity,
            'sentiment': self.sentiment.to_dict()
        }


class SentimentAnalyzer:
    """Scores sentiment polarity and primary emotion from word lexicons."""

    def __init__(
        self,
        positive_words: Iterable[str] = POSITIVE_WORDS,
        negative_words: Iterable[str] = NEGATIVE_WORDS,
        emotion_taxonomy: Optional[Mapping[str, Sequence[str]]] = None,
        scale_factor: float = SENTIMENT_SCALE_FACTOR
    ):
        self.positive_words = frozenset(positive_words)
        self.negative_words = frozenset(negative_words)
        self.scale_factor = scale_factor

        taxonomy = emotion_taxonomy if emotion_taxonomy is not None else DEFAULT_EMOTION_TAXONOMY
        if not taxonomy:
            raise ValueError("Emotion taxonomy must define at least one emotion")
        self.emotion_taxonomy: Dict[str, tuple] = OrderedDict(
            (emotion, tuple(normalize(keyword) for keyword in keywords))
            for emotion, keywords in taxonomy.items()
        )

    def analyze_sentiment(self, text: Optional[str]) -> SentimentResult:
        """Sum +1 per positive token and -1 per negative token."""
        words = tokenize(text)
        score = 0
        for word in words:
            if word in self.positive_words:
                score += 1
            if word in self.negative_words:
                score -= 1

        if score > 0:
            label = SentimentLabel.POSITIVE
        elif score < 0:
            label = SentimentLabel.NEGATIVE
        else:
            label = SentimentLabel.NEUTRAL

        confidence = 0.0
        if words:
            confidence = min(abs(score) / len(words) * self.scale_factor, 1.0)

        return SentimentResult(score=score, label=label, confidence=confidence)

    def analyze_emotion(self, text: Optional[str]) -> EmotionResult:
        """
        Score each emotion in the taxonomy by lexicon hits.

        Intensities are hits divided by total hits across all emotions. When
        nothing matches, every intensity is 0 and the primary emotion is the
        first taxonomy entry. Ties go to the earlier taxonomy entry.
        """
        normalized = normalize(text)
        words = normalized.split(' ') if normalized else []

        hits: Dict[str, int] = OrderedDict()
        for emotion, keywords in self.emotion_taxonomy.items():
            count = 0
            for keyword in keywords:
                if not keyword:
                    continue
                if ' ' in keyword:
                    matched = keyword in normalized
                else:
                    matched = any(keyword in word for word in words)
                if matched:
                    count += 1
            hits[emotion] = count

        total = sum(hits.values())
        intensities = OrderedDict(
            (emotion, (count / total) if total else 0.0)
            for emotion, count in hits.items()
        )

        primary = next(iter(intensities))
        for emotion, value in intensities.items():
            if value > intensities[primary]:
                primary = emotion

        return EmotionResult(
            primary=primary,
            intensities=dict(intensities),
            intensity=intensities[primary],
            sentiment=self.analyze_sentiment(text)
        )
