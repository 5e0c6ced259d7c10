"""
Chat API endpoints for the customer service agent.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field, validator

from ai.conversation import ChatEngine, ChatResult
from app.core.config import settings
from app.core.engine import get_chat_engine
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


# Request/Response Models
class ChatRequest(BaseModel):
    """Request model for a single chat message."""
    session_id: str = Field(..., alias="sessionId", min_length=1, description="Caller-supplied session ID")
    message: str = Field(..., min_length=1, description="User message")

    @validator('message')
    def validate_message(cls, v):
        if not v.strip():
            raise ValueError('Message must not be blank')
        return v

    class Config:
        populate_by_name = True


class BatchChatRequest(BaseModel):
    """Request model for an ordered batch of messages in one session."""
    session_id: str = Field(..., alias="sessionId", min_length=1, description="Caller-supplied session ID")
    messages: List[str] = Field(..., min_length=1, description="Messages processed in order")

    @validator('messages')
    def validate_messages(cls, v):
        if len(v) > settings.BATCH_MAX_MESSAGES:
            raise ValueError(f'At most {settings.BATCH_MAX_MESSAGES} messages per batch')
        if any(not message.strip() for message in v):
            raise ValueError('Messages must not be blank')
        return v

    class Config:
        populate_by_name = True


class ChatResponse(BaseModel):
    """Response model for a processed message."""
    reply: str
    intent: str
    confidence: float
    metadata: Dict[str, Any] = {}
    suggestions: List[str] = []
    success: bool = True
    error_code: Optional[str] = None
    timestamp: str = Field(default_factory=lambda: datetime.utcnow().isoformat())

    @classmethod
    def from_result(cls, result: ChatResult) -> 'ChatResponse':
        return cls(**result.to_dict())


class BatchChatResponse(BaseModel):
    session_id: str
    results: List[ChatResponse]
    total_processed: int


# API Endpoints
@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    http_request: Request,
    engine: ChatEngine = Depends(get_chat_engine)
):
    """Process a single chat message."""
    request_id = getattr(http_request.state, 'request_id', 'unknown')
    logger.debug(f"Chat request for session {request.session_id}", extra={"request_id": request_id})

    result = await engine.process_message(request.session_id, request.message)
    return ChatResponse.from_result(result)


@router.post("/batch", response_model=BatchChatResponse)
async def chat_batch(
    request: BatchChatRequest,
    engine: ChatEngine = Depends(get_chat_engine)
):
    """Process several messages for one session sequentially."""
    results = await engine.process_batch(request.session_id, request.messages)
    return BatchChatResponse(
        session_id=request.session_id,
        results=[ChatResponse.from_result(result) for result in results],
        total_processed=len(results)
    )


@router.get("/analytics")
async def chat_analytics(engine: ChatEngine = Depends(get_chat_engine)) -> Dict[str, Any]:
    """Aggregate conversation counters."""
    analytics = engine.get_analytics()
    analytics["timestamp"] = datetime.utcnow().isoformat()
    return analytics


@router.get("/profile/{session_id}")
async def user_profile(session_id: str, engine: ChatEngine = Depends(get_chat_engine)) -> Dict[str, Any]:
    """Profile derived from a session's messages."""
    profile = engine.get_user_profile(session_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    return profile


@router.get("/history/{session_id}")
async def conversation_history(
    session_id: str,
    limit: Optional[int] = None,
    engine: ChatEngine = Depends(get_chat_engine)
) -> Dict[str, Any]:
    """Recent turns for a session. Unknown sessions return an empty list."""
    turns = engine.get_history(session_id, limit=limit)
    return {
        "session_id": session_id,
        "turns": turns,
        "count": len(turns)
    }
