"""
WebSocket endpoint for real-time chat.
Frames are JSON objects with a ``type`` of join, chat or ping.
"""

import json
import time
import uuid
from typing import Any, Dict, Optional

from fastapi import Depends, WebSocket, WebSocketDisconnect
from fastapi.routing import APIRouter

from ai.conversation import ChatEngine
from app.core.config import settings
from app.core.engine import get_chat_engine
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


class ConnectionManager:
    """Tracks open chat WebSocket connections."""

    def __init__(self, max_connections: int):
        self.max_connections = max_connections
        self.active_connections: Dict[str, WebSocket] = {}
        self.connection_metadata: Dict[str, Dict[str, Any]] = {}

    @property
    def is_full(self) -> bool:
        return len(self.active_connections) >= self.max_connections

    async def connect(self, websocket: WebSocket, connection_id: str):
        await websocket.accept()
        self.active_connections[connection_id] = websocket
        self.connection_metadata[connection_id] = {
            "connected_at": time.time(),
            "last_activity": time.time(),
            "session_id": None,
            "messages_received": 0
        }
        logger.info(f"WebSocket connected: {connection_id}")

    def disconnect(self, connection_id: str):
        self.active_connections.pop(connection_id, None)
        self.connection_metadata.pop(connection_id, None)
        logger.info(f"WebSocket disconnected: {connection_id}")

    async def send_message(self, connection_id: str, message: Dict[str, Any]):
        websocket = self.active_connections.get(connection_id)
        if websocket is None:
            return
        await websocket.send_text(json.dumps(message))
        if connection_id in self.connection_metadata:
            self.connection_metadata[connection_id]["last_activity"] = time.time()


manager = ConnectionManager(max_connections=settings.WS_MAX_CONNECTIONS)


async def handle_frame(
    connection_id: str,
    frame: Dict[str, Any],
    engine: ChatEngine
) -> Optional[Dict[str, Any]]:
    """Handle one inbound frame and return the reply frame."""
    frame_type = frame.get("type")
    metadata = manager.connection_metadata.get(connection_id, {})

    if frame_type == "join":
        session_id = frame.get("session_id") or frame.get("sessionId") or str(uuid.uuid4())
        metadata["session_id"] = session_id
        return {"type": "joined", "session_id": session_id, "timestamp": time.time()}

    if frame_type == "chat":
        session_id = frame.get("session_id") or frame.get("sessionId") or metadata.get("session_id")
        message = (frame.get("message") or "").strip()
        if not session_id:
            return {"type": "error", "message": "Join a session before sending chat messages"}
        if not message:
            return {"type": "error", "message": "Message must not be empty"}

        metadata["messages_received"] = metadata.get("messages_received", 0) + 1
        result = await engine.process_message(session_id, message)
        return {"type": "response", "session_id": session_id, "data": result.to_dict()}

    if frame_type == "ping":
        return {"type": "pong", "timestamp": time.time()}

    logger.warning(f"Unknown frame type from {connection_id}: {frame_type}")
    return {"type": "error", "message": "Unknown message type"}


@router.websocket("/chat")
async def chat_websocket(websocket: WebSocket, engine: ChatEngine = Depends(get_chat_engine)):
    """Bidirectional chat over a WebSocket."""
    if manager.is_full:
        await websocket.close(code=1013)
        logger.warning("WebSocket rejected: connection limit reached")
        return

    connection_id = str(uuid.uuid4())
    await manager.connect(websocket, connection_id)

    try:
        while True:
            try:
                data = await websocket.receive_text()
                frame = json.loads(data)
                if not isinstance(frame, dict):
                    raise ValueError("Frame must be a JSON object")
            except json.JSONDecodeError:
                await manager.send_message(connection_id, {
                    "type": "error",
                    "message": "Invalid JSON format"
                })
                continue
            except ValueError as e:
                await manager.send_message(connection_id, {"type": "error", "message": str(e)})
                continue

            reply = await handle_frame(connection_id, frame, engine)
            if reply is not None:
                await manager.send_message(connection_id, reply)

    except WebSocketDisconnect:
        logger.info(f"Client closed WebSocket {connection_id}")
    except Exception as e:
        logger.error(f"Error in chat WebSocket {connection_id}: {e}", exc_info=True)
    finally:
        manager.disconnect(connection_id)
