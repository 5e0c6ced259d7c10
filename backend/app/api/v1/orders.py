"""
Order lookup endpoint backed by the chat engine's order catalog.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status

from ai.conversation import ChatEngine
from app.core.engine import get_chat_engine

router = APIRouter()


@router.get("/{order_id}")
async def get_order(order_id: str, engine: ChatEngine = Depends(get_chat_engine)) -> Dict[str, Any]:
    order = engine.composer.order_catalog.lookup(order_id)
    if order is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order.to_dict()
