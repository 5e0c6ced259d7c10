"""
Static intent catalog for the customer service agent.
Each intent carries keywords, example utterances and optional regex patterns.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Pattern, Tuple

FALLBACK_INTENT = "fallback"


@dataclass(frozen=True)
class IntentDefinition:
    """Immutable definition of a single intent."""
    name: str
    keywords: Tuple[str, ...]
    utterances: Tuple[str, ...]
    patterns: Tuple[str, ...] = ()
    weight: float = 1.0
    description: Optional[str] = None
    compiled_patterns: Tuple[Pattern, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        compiled = tuple(re.compile(pattern, re.IGNORECASE) for pattern in self.patterns)
        object.__setattr__(self, 'compiled_patterns', compiled)

    def matches_pattern(self, message: str) -> bool:
        return any(pattern.search(message) for pattern in self.compiled_patterns)


DEFAULT_INTENTS: Tuple[IntentDefinition, ...] = (
    IntentDefinition(
        name="greeting",
        keywords=("hello", "good morning", "good afternoon", "good evening", "greetings"),
        utterances=(
            "hello there",
            "hi there",
            "hey",
            "good morning",
            "good evening"
        ),
        patterns=(r'^\s*(hi|hello|hey)\b', r'good\s+(morning|afternoon|evening)'),
        description="User greets the assistant"
    ),
    IntentDefinition(
        name="order_status",
        keywords=("order", "track", "status", "delivery", "shipped", "package"),
        utterances=(
            "where is my order",
            "track my order",
            "what is the status of my order",
            "when will my package arrive",
            "has my order shipped"
        ),
        patterns=(r'track.*order', r'where.*order', r'order\s*#?\d+'),
        description="User wants to know where their order is"
    ),
    IntentDefinition(
        name="refund",
        keywords=("refund", "return", "money back", "reimburse", "cancel"),
        utterances=(
            "i want a refund",
            "how do i return an item",
            "can i get my money back",
            "cancel my order and refund me"
        ),
        patterns=(r'want.*refund', r'return.*item', r'money\s+back'),
        description="User asks for a refund or return"
    ),
    IntentDefinition(
        name="complaint",
        keywords=("problem", "issue", "broken", "damaged", "defective", "complaint", "wrong"),
        utterances=(
            "my item arrived broken",
            "i have a problem with my purchase",
            "the product is damaged",
            "you sent the wrong item"
        ),
        patterns=(r'not\s+working', r'broken|damaged|defective'),
        weight=0.95,
        description="User reports a problem with a product or service"
    ),
    IntentDefinition(
        name="human_escalation",
        keywords=("human", "agent", "representative", "real person", "speak to someone", "manager"),
        utterances=(
            "speak to a human",
            "i want to talk to a real person",
            "connect me with an agent",
            "let me speak to a manager"
        ),
        patterns=(r'speak.*human', r'talk.*person', r'human\s+agent'),
        description="User wants to talk to a human agent"
    ),
    IntentDefinition(
        name="technical_support",
        keywords=("support", "how to", "setup", "install", "tutorial", "instructions"),
        utterances=(
            "i need help setting up my device",
            "how do i install this",
            "can you help me with setup"
        ),
        patterns=(r'how\s+do\s+i', r'need\s+help'),
        weight=0.9,
        description="User needs technical assistance"
    ),
    IntentDefinition(
        name="thanks",
        keywords=("thank", "thanks", "appreciate"),
        utterances=(
            "thank you",
            "thanks a lot",
            "i appreciate your help"
        ),
        description="User thanks the assistant"
    ),
)


class IntentCatalog:
    """Ordered, read-only collection of intent definitions."""

    def __init__(self, intents: Iterable[IntentDefinition] = DEFAULT_INTENTS):
        self._intents: Tuple[IntentDefinition, ...] = tuple(intents)
        self._by_name: Dict[str, IntentDefinition] = {}

        for intent in self._intents:
            if intent.name == FALLBACK_INTENT:
                raise ValueError(f"Intent name '{FALLBACK_INTENT}' is reserved")
            if intent.name in self._by_name:
                raise ValueError(f"Duplicate intent name: {intent.name}")
            self._by_name[intent.name] = intent

    def __iter__(self) -> Iterator[IntentDefinition]:
        return iter(self._intents)

    def __len__(self) -> int:
        return len(self._intents)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def get(self, name: str) -> Optional[IntentDefinition]:
        return self._by_name.get(name)

    def names(self) -> List[str]:
        return [intent.name for intent in self._intents]
