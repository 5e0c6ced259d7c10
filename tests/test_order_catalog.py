"""Tests for the order catalog."""

import json

import pytest

from ai.conversation.order_catalog import DEMO_ORDERS, InMemoryOrderCatalog, Order


class TestInMemoryOrderCatalog:
    """Test order lookup and loading."""

    def test_demo_orders(self, order_catalog):
        assert len(order_catalog) == len(DEMO_ORDERS)
        assert order_catalog.lookup("ORD1001").status == "Shipped"
        assert order_catalog.lookup("ORD1002").status == "Processing"
        assert order_catalog.lookup("ORD1003").status == "Delivered"

    def test_lookup_is_case_insensitive(self, order_catalog):
        assert order_catalog.lookup("ord1001").id == "ORD1001"

    def test_lookup_miss(self, order_catalog):
        assert order_catalog.lookup("ORD9999") is None
        assert order_catalog.lookup("") is None

    def test_order_round_trip(self):
        order = DEMO_ORDERS[0]
        assert Order.from_dict(order.to_dict()) == order

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "orders.json"
        path.write_text(json.dumps([
            {"id": "abc1", "status": "Shipped", "delivery_date": "2025-12-01", "total": 10.0},
            {"id": "ABC2", "status": "Processing", "deliveryDate": "2025-12-05"},
        ]))

        catalog = InMemoryOrderCatalog.from_json_file(path)

        assert len(catalog) == 2
        assert catalog.lookup("ABC1").delivery_date == "2025-12-01"
        assert catalog.lookup("abc2").delivery_date == "2025-12-05"

    def test_from_json_file_requires_list(self, tmp_path):
        path = tmp_path / "orders.json"
        path.write_text(json.dumps({"id": "ORD1"}))

        with pytest.raises(ValueError):
            InMemoryOrderCatalog.from_json_file(path)
