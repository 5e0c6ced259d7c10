"""
Aggregate conversation counters exposed to the analytics and health endpoints.
"""

import time
from typing import Any, Dict


class ConversationAnalytics:
    """Totals across all sessions since process start."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.total_messages = 0
        self.intent_counts: Dict[str, int] = {}
        self.average_confidence = 0.0
        self.error_count = 0
        self.started_at = time.time()

    def record(self, intent: str, confidence: float):
        """Count a processed message. Uses the same (old + new) / 2 average as profiles."""
        self.total_messages += 1
        self.intent_counts[intent] = self.intent_counts.get(intent, 0) + 1
        self.average_confidence = (self.average_confidence + confidence) / 2

    def record_error(self):
        self.error_count += 1

    def snapshot(self, active_sessions: int, top_n: int = 5) -> Dict[str, Any]:
        """Read-only view of the counters."""
        top_intents = sorted(self.intent_counts.items(), key=lambda item: item[1], reverse=True)
        return {
            'total_messages': self.total_messages,
            'intent_counts': dict(self.intent_counts),
            'average_confidence': self.average_confidence,
            'active_sessions': active_sessions,
            'error_count': self.error_count,
            'top_intents': [
                {'intent': intent, 'count': count} for intent, count in top_intents[:top_n]
            ],
            'uptime_seconds': time.time() - self.started_at
        }
