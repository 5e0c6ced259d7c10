from fastapi import APIRouter

from . import health, chat, chat_ws, orders, tickets

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(chat.router, prefix="/chat", tags=["chat"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
api_router.include_router(tickets.router, prefix="/tickets", tags=["tickets"])
api_router.include_router(chat_ws.router, prefix="/ws", tags=["websockets"])
