"""
Support ticket endpoint. Tickets are cosmetic and are not persisted.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ai.conversation import ChatEngine
from app.core.engine import get_chat_engine
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


class TicketRequest(BaseModel):
    session_id: Optional[str] = Field(None, alias="sessionId", description="Session the ticket belongs to")
    issue: Optional[str] = Field(None, max_length=2000, description="Short description of the issue")

    class Config:
        populate_by_name = True


class TicketResponse(BaseModel):
    ticket_id: str
    status: str = "open"
    session_id: Optional[str] = None
    issue: Optional[str] = None
    created_at: str = Field(default_factory=lambda: datetime.utcnow().isoformat())


@router.post("", response_model=TicketResponse)
async def create_ticket(
    request: TicketRequest,
    engine: ChatEngine = Depends(get_chat_engine)
):
    """Open a support ticket for a human agent."""
    ticket_id = engine.composer.ticket_factory()
    logger.info(f"Ticket {ticket_id} opened for session {request.session_id}: {request.issue}")
    return TicketResponse(ticket_id=ticket_id, session_id=request.session_id, issue=request.issue)
