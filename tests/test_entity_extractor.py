"""Tests for order id extraction."""

import pytest


class TestOrderIdExtraction:
    """Test prioritized order id patterns."""

    def test_prefixed_id_beats_bare_number(self, entity_extractor):
        assert entity_extractor.find_order_id("order ORD1001 or 12345") == "ORD1001"

    @pytest.mark.parametrize("text,expected", [
        ("my order is ord1002", "ORD1002"),
        ("ORDER12345 hasn't arrived", "ORDER12345"),
        ("order number 123456 please", "123456"),
        ("ticket #4321", "#4321"),
    ])
    def test_patterns(self, entity_extractor, text, expected):
        assert entity_extractor.find_order_id(text) == expected

    def test_no_order_id(self, entity_extractor):
        assert entity_extractor.find_order_id("hello there") is None
        assert entity_extractor.find_order_id("call me at 1234") is None
        assert entity_extractor.find_order_id(None) is None

    def test_extract_entities(self, entity_extractor):
        assert entity_extractor.extract_entities("Where is ORD1003?") == {"order_id": "ORD1003"}
        assert entity_extractor.extract_entities("hello") == {}
