"""
Text normalization and similarity scoring helpers for intent classification.
All functions are pure and deterministic.
"""

import re
from typing import Dict, List, Optional

_NON_WORD_RE = re.compile(r'[^\w\s]|_')
_WHITESPACE_RE = re.compile(r'\s+')


def normalize(text: Optional[str]) -> str:
    """Lowercase text, replace punctuation with spaces and collapse whitespace."""
    if not text:
        return ""
    text = text.lower()
    text = _NON_WORD_RE.sub(' ', text)
    return _WHITESPACE_RE.sub(' ', text).strip()


def tokenize(text: Optional[str]) -> List[str]:
    """Split normalized text into tokens."""
    normalized = normalize(text)
    return normalized.split(' ') if normalized else []


def token_overlap(a: str, b: str, weights: Optional[Dict[str, float]] = None) -> float:
    """
    Weighted token-set overlap between two strings.

    Shared tokens contribute their weight (default 1) and the sum is divided
    by the size of the larger token set, so the score is symmetric.

    Args:
        a: First string
        b: Second string
        weights: Optional per-token weights

    Returns:
        float: Overlap score clamped to [0, 1]
    """
    tokens_a = set(tokenize(a))
    tokens_b = set(tokenize(b))
    if not tokens_a or not tokens_b:
        return 0.0

    weights = weights or {}
    weighted_score = sum(weights.get(token, 1.0) for token in tokens_a & tokens_b)
    return min(weighted_score / max(len(tokens_a), len(tokens_b)), 1.0)


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance with unit insert/delete/substitute costs."""
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous_row = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current_row = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current_row.append(previous_row[j - 1])
            else:
                current_row.append(min(
                    previous_row[j - 1] + 1,
                    current_row[j - 1] + 1,
                    previous_row[j] + 1
                ))
        previous_row = current_row

    return previous_row[-1]


def character_similarity(a: str, b: str) -> float:
    """1 - edit distance / length of the longer string."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest


def semantic_similarity(text_tokens: List[str], utterance_tokens: List[str], min_length: int = 3) -> float:
    """
    Average pairwise character similarity between two token lists.

    Only pairs where both tokens have at least ``min_length`` characters add
    to the sum; the average is taken over all pairs.
    """
    pair_count = len(text_tokens) * len(utterance_tokens)
    if pair_count == 0:
        return 0.0

    similarity = 0.0
    for text_token in text_tokens:
        if len(text_token) < min_length:
            continue
        for utterance_token in utterance_tokens:
            if len(utterance_token) >= min_length:
                similarity += character_similarity(text_token, utterance_token)

    return similarity / pair_count
