"""API endpoint for the conversational assistant."""

from fastapi import APIRouter, Depends

from grant_agent.api.dependencies import require_settings
from grant_agent.core.schemas_chat import ChatRequest, ChatResponse
from grant_agent.services.chat_service import handle_chat_turn

router = APIRouter()


@router.post("/chat", response_model=ChatResponse, dependencies=[Depends(require_settings)])
async def chat(request: ChatRequest) -> ChatResponse:
    """Handle one conversation turn."""
    messages = [m.model_dump() for m in request.messages]
    return await handle_chat_turn(messages)
