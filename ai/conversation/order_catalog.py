"""
Order lookup used by the response composer.
Ships with demo orders; a JSON file can replace them.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderItem:
    """Line item within an order."""
    name: str
    price: float
    quantity: int = 1


@dataclass(frozen=True)
class Order:
    """Customer order as returned by the catalog."""
    id: str
    status: str
    delivery_date: str
    items: List[OrderItem] = field(default_factory=list)
    total: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Order':
        items = [OrderItem(**item) for item in data.get('items', [])]
        return cls(
            id=str(data['id']).upper(),
            status=data['status'],
            delivery_date=data.get('delivery_date') or data.get('deliveryDate', ''),
            items=items,
            total=float(data.get('total', 0.0))
        )


DEMO_ORDERS: List[Order] = [
    Order(
        id="ORD1001",
        status="Shipped",
        delivery_date="2025-10-12",
        items=[OrderItem(name="Wireless Gaming Mouse", price=79.99)],
        total=79.99
    ),
    Order(
        id="ORD1002",
        status="Processing",
        delivery_date="2025-10-15",
        items=[
            OrderItem(name="USB-C Charger", price=24.99, quantity=2),
            OrderItem(name="Braided Cable", price=9.99)
        ],
        total=59.97
    ),
    Order(
        id="ORD1003",
        status="Delivered",
        delivery_date="2025-10-08",
        items=[OrderItem(name="Noise Cancelling Headphones", price=199.0)],
        total=199.0
    ),
]


class OrderCatalog(ABC):
    """Lookup interface for orders keyed by uppercased order id."""

    @abstractmethod
    def lookup(self, order_id: str) -> Optional[Order]:
        """Return the order or None when it does not exist."""


class InMemoryOrderCatalog(OrderCatalog):
    """Order catalog held in a dict."""

    def __init__(self, orders: Iterable[Order] = DEMO_ORDERS):
        self._orders: Dict[str, Order] = {order.id.upper(): order for order in orders}

    def lookup(self, order_id: str) -> Optional[Order]:
        if not order_id:
            return None
        return self._orders.get(order_id.upper())

    def __len__(self) -> int:
        return len(self._orders)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> 'InMemoryOrderCatalog':
        """Load orders from a JSON array of order objects."""
        path = Path(path)
        data = json.loads(path.read_text(encoding='utf-8'))
        if not isinstance(data, list):
            raise ValueError(f"Order file {path} must contain a JSON array")

        orders = [Order.from_dict(entry) for entry in data]
        logger.info(f"Loaded {len(orders)} orders from {path}")
        return cls(orders)
