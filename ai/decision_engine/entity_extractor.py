"""
Entity extraction for customer service messages.
Order identifiers are matched against an ordered list of patterns; the first
pattern that matches wins.
"""

import re
from typing import Dict, List, Optional, Pattern, Sequence

# Prefixed codes come before bare numbers so that quantities and phone
# fragments are not mistaken for order ids.
ORDER_ID_PATTERNS: Sequence[str] = (
    r'ORD[0-9]{3,6}',
    r'ORDER[0-9]{3,6}',
    r'\b[0-9]{5,8}\b',
    r'#[0-9]{4,6}',
)


class EntityExtractor:
    """Regex-based entity extractor."""

    def __init__(self, order_id_patterns: Sequence[str] = ORDER_ID_PATTERNS):
        self.order_id_patterns: List[Pattern] = [
            re.compile(pattern, re.IGNORECASE) for pattern in order_id_patterns
        ]

    def find_order_id(self, text: Optional[str]) -> Optional[str]:
        """Return the first order id found in text, uppercased, or None."""
        if not text:
            return None

        for pattern in self.order_id_patterns:
            match = pattern.search(text)
            if match:
                return match.group(0).upper()
        return None

    def extract_entities(self, text: Optional[str]) -> Dict[str, str]:
        """Extract all supported entities from text."""
        entities = {}

        order_id = self.find_order_id(text)
        if order_id:
            entities['order_id'] = order_id

        return entities
